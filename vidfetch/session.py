"""Browsing session shared by handlers, backends and the update manager.

The session wraps a synchronous ``httpx.Client`` and remembers the last
page it fetched, so a handler can pre-inspect the session (set cookies or
headers), let vidfetch fetch the page, and then read the response.
"""

from __future__ import annotations

import logging
from email.utils import parsedate_to_datetime
from datetime import datetime
from typing import Any, Optional

import httpx

from vidfetch import __app_name__, __version__
from vidfetch.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    f"Mozilla/5.0 (X11; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0 "
    f"{__app_name__}/{__version__}"
)

# Statuses that usually mean the proxy, not the site, failed
PROXY_STATUS_CODES = (407, 502, 504)


class Session:
    """A cookie-keeping HTTP session with page-fetch error classification.

    Example:
        with Session(proxy="socks5://localhost:1080") as session:
            session.fetch_page("https://example.com/watch/1")
            html = session.content
    """

    def __init__(
        self,
        proxy: Optional[str] = None,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialize the session.

        Args:
            proxy: Proxy URL for all requests
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            client: Pre-built client (used by tests with a mock transport)
        """
        self.proxy = proxy
        self.client = client or httpx.Client(
            follow_redirects=True,
            proxy=proxy,
            timeout=timeout,
            headers={"User-Agent": user_agent},
        )
        self.response: Optional[httpx.Response] = None

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client."""
        self.client.close()

    @property
    def cookies(self) -> httpx.Cookies:
        """Cookies kept by the session."""
        return self.client.cookies

    @property
    def headers(self) -> httpx.Headers:
        """Default headers sent with every request."""
        return self.client.headers

    @property
    def content(self) -> str:
        """Text of the last fetched page."""
        return self.response.text if self.response is not None else ""

    @property
    def url(self) -> str:
        """Final URL of the last fetched page, after redirects."""
        return str(self.response.url) if self.response is not None else ""

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a GET request without touching the current page."""
        return self.client.get(url, **kwargs)

    def head(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a HEAD request, following redirects."""
        return self.client.head(url, **kwargs)

    def stream(self, method: str, url: str, **kwargs: Any):
        """Open a streaming response (context manager)."""
        return self.client.stream(method, url, **kwargs)

    def fetch_page(self, url: str) -> httpx.Response:
        """Fetch a page and make it the current one.

        Args:
            url: Page URL

        Returns:
            The response

        Raises:
            FetchError: On connection failure or a status that is neither
                success nor redirect
        """
        logger.debug(f"Fetching page {url}")

        try:
            response = self.client.get(url)
        except httpx.ProxyError as e:
            raise FetchError(f"Proxy error: {e}", url=url, proxy_related=True)
        except httpx.HTTPError as e:
            raise FetchError(
                f"Couldn't download {url}: {e}",
                url=url,
                proxy_related=self.proxy is not None,
            )

        if response.is_error:
            raise FetchError(
                f"Couldn't download {url}: {response.status_code} {response.reason_phrase}",
                url=url,
                status_code=response.status_code,
                proxy_related=(
                    self.proxy is not None
                    and response.status_code in PROXY_STATUS_CODES
                ),
            )

        self.response = response
        return response

    def content_length(self, url: str) -> Optional[int]:
        """Probe a URL's Content-Length with a HEAD request.

        Returns:
            The length in bytes, or None when unknown or unreachable
        """
        try:
            response = self.head(url)
        except httpx.HTTPError as e:
            logger.debug(f"HEAD {url} failed: {e}")
            return None

        value = response.headers.get("content-length")
        if response.is_success and value and value.isdigit():
            return int(value)
        return None

    def last_modified(self, url: str) -> Optional[datetime]:
        """Get a URL's Last-Modified time with a HEAD request.

        Returns:
            The timestamp, or None if the header is absent or invalid

        Raises:
            httpx.HTTPError: If the request fails
        """
        response = self.head(url)
        response.raise_for_status()

        value = response.headers.get("last-modified")
        if not value:
            return None
        try:
            return parsedate_to_datetime(value)
        except (TypeError, ValueError):
            logger.debug(f"Unparsable Last-Modified from {url}: {value!r}")
            return None
