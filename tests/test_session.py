"""Tests for the browsing session."""

from datetime import datetime, timezone

import httpx
import pytest

from vidfetch.errors import FetchError


class TestFetchPage:
    """Test page fetching and error classification."""

    def test_success_sets_current_page(self, make_session):
        """Test that a fetched page becomes the current one."""
        session = make_session(lambda request: httpx.Response(200, text="<html>ok</html>"))

        session.fetch_page("https://example.com/watch/1")

        assert session.content == "<html>ok</html>"
        assert session.url == "https://example.com/watch/1"

    def test_redirect_followed(self, make_session):
        """Test that redirects are followed and the final URL kept."""
        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://example.com/new"})
            return httpx.Response(200, text="moved")

        session = make_session(handler)
        session.fetch_page("https://example.com/old")

        assert session.url == "https://example.com/new"
        assert session.content == "moved"

    def test_error_status(self, make_session):
        """Test that a 404 raises FetchError without a proxy hint."""
        session = make_session(lambda request: httpx.Response(404))

        with pytest.raises(FetchError) as exc_info:
            session.fetch_page("https://example.com/missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.proxy_related is False

    @pytest.mark.parametrize("status", [407, 502, 504])
    def test_proxy_statuses_with_proxy(self, make_session, status):
        """Test that proxy-typical statuses are flagged when a proxy is set."""
        session = make_session(lambda request: httpx.Response(status), proxy="http://proxy:3128")

        with pytest.raises(FetchError) as exc_info:
            session.fetch_page("https://example.com/")

        assert exc_info.value.proxy_related is True

    def test_proxy_status_without_proxy(self, make_session):
        """Test that a 502 without a proxy is not flagged."""
        session = make_session(lambda request: httpx.Response(502))

        with pytest.raises(FetchError) as exc_info:
            session.fetch_page("https://example.com/")

        assert exc_info.value.proxy_related is False

    def test_connection_error(self, make_session):
        """Test that connection failures raise FetchError."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        session = make_session(handler)

        with pytest.raises(FetchError) as exc_info:
            session.fetch_page("https://example.com/")

        assert exc_info.value.status_code is None

    def test_proxy_error(self, make_session):
        """Test that proxy failures are always flagged."""
        def handler(request):
            raise httpx.ProxyError("tunnel failed", request=request)

        session = make_session(handler)

        with pytest.raises(FetchError) as exc_info:
            session.fetch_page("https://example.com/")

        assert exc_info.value.proxy_related is True


class TestProbes:
    """Test HEAD-based probes."""

    def test_content_length(self, make_session):
        """Test reading Content-Length."""
        session = make_session(lambda request: httpx.Response(200, headers={"Content-Length": "2048"}))
        assert session.content_length("https://example.com/v.mp4") == 2048

    def test_content_length_unknown(self, make_session):
        """Test that an error status gives None."""
        session = make_session(lambda request: httpx.Response(404))
        assert session.content_length("https://example.com/v.mp4") is None

    def test_last_modified(self, make_session):
        """Test parsing Last-Modified."""
        session = make_session(
            lambda request: httpx.Response(
                200, headers={"Last-Modified": "Wed, 21 Oct 2026 07:28:00 GMT"}
            )
        )
        assert session.last_modified("https://example.com/p.py") == datetime(
            2026, 10, 21, 7, 28, tzinfo=timezone.utc
        )

    def test_last_modified_missing(self, make_session):
        """Test that a missing header gives None."""
        session = make_session(lambda request: httpx.Response(200))
        assert session.last_modified("https://example.com/p.py") is None

    def test_last_modified_error_status(self, make_session):
        """Test that an error status raises."""
        session = make_session(lambda request: httpx.Response(500))
        with pytest.raises(httpx.HTTPStatusError):
            session.last_modified("https://example.com/p.py")
