"""Tests for extraction result types and filename helpers."""

from vidfetch.extraction import (
    CaptureStream,
    HlsStream,
    HttpStream,
    MultiPart,
    RtmpStream,
    TransportKind,
    filename_from_url,
    sanitize_filename,
    title_from_filename,
)


class TestStreams:
    """Test stream kinds."""

    def test_kinds(self):
        """Test each stream type carries its transport kind."""
        assert HttpStream("https://x/v.mp4").kind is TransportKind.HTTP
        assert RtmpStream("rtmp://x/app").kind is TransportKind.RTMP
        assert HlsStream("https://x/v.m3u8").kind is TransportKind.HLS
        assert CaptureStream("https://x/live").kind is TransportKind.FFMPEG

    def test_inferred_filename(self):
        """Test the locator's last path segment is used."""
        assert HttpStream("https://x/media/clip.mp4?token=1").inferred_filename() == "clip.mp4"


class TestMultiPart:
    """Test MultiPart construction."""

    def test_from_urls(self):
        """Test parts are numbered from 1 with the total count."""
        result = MultiPart.from_urls(["https://x/1", "https://x/2"], sizes=[10, None], filenames=["a.flv"])

        assert [(p.index, p.count, p.size) for p in result.parts] == [(1, 2, 10), (2, 2, None)]
        assert result.filenames == ["a.flv"]


class TestFilenameHelpers:
    """Test filename helpers."""

    def test_sanitize(self):
        """Test unsafe characters collapse to underscores."""
        assert sanitize_filename("My Video: Part 1/2") == "My_Video_Part_1_2"

    def test_filename_from_url_default(self):
        """Test the default when the path has no name."""
        assert filename_from_url("https://example.com/") == "video.flv"

    def test_filename_from_url_unquotes(self):
        """Test percent-encoded names are decoded."""
        assert filename_from_url("https://x/my%20clip.mp4") == "my_clip.mp4"

    def test_title_from_filename(self):
        """Test title derivation."""
        assert title_from_filename("my_great_clip.mp4") == "my great clip"
