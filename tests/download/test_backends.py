"""Tests for transport backends."""

from unittest.mock import Mock, patch

import httpx

from vidfetch.download.backends import (
    FfmpegBackend,
    HttpBackend,
    RtmpBackend,
    default_backends,
    player_command,
)
from vidfetch.extraction import CaptureStream, HlsStream, HttpStream, RtmpStream, TransportKind


class TestPlayerCommand:
    """Test player command templates."""

    def test_placeholder(self):
        """Test %s substitution."""
        assert player_command("mpv --really-quiet %s", "https://x/v.mp4") == [
            "mpv",
            "--really-quiet",
            "https://x/v.mp4",
        ]

    def test_appended(self):
        """Test the target is appended without a placeholder."""
        assert player_command("vlc", "-") == ["vlc", "-"]


class TestHttpBackend:
    """Test progressive HTTP downloads."""

    def test_download(self, make_session, tmp_path):
        """Test the body is written and its size returned."""
        session = make_session(lambda request: httpx.Response(200, content=b"video-bytes"))
        target = tmp_path / "clip.mp4"

        written = HttpBackend(session, quiet=True).download(HttpStream("https://x/clip.mp4"), target)

        assert written == len(b"video-bytes")
        assert target.read_bytes() == b"video-bytes"

    def test_download_error_status(self, make_session, tmp_path):
        """Test that HTTP errors are a falsy result."""
        session = make_session(lambda request: httpx.Response(403))

        written = HttpBackend(session, quiet=True).download(
            HttpStream("https://x/clip.mp4"), tmp_path / "clip.mp4"
        )

        assert not written

    def test_play(self, make_session):
        """Test playing runs the player on the stream URL."""
        session = make_session(lambda request: httpx.Response(200))
        backend = HttpBackend(session, player="mpv %s", quiet=True)

        with patch("vidfetch.download.backends.subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=0)
            assert backend.play(HttpStream("https://x/clip.mp4"), None)

        mock_run.assert_called_once_with(["mpv", "https://x/clip.mp4"], stdin=None)


class TestRtmpBackend:
    """Test rtmpdump downloads."""

    def test_build_args(self):
        """Test rtmpdump options from stream params."""
        stream = RtmpStream(
            "rtmp://media.example.com/vod",
            params={"rtmp": "rtmp://media.example.com/vod", "playpath": "mp4:clip", "live": True, "swfVfy": None},
        )

        args = RtmpBackend(quiet=True).build_args(stream, "out.flv")

        assert args == [
            "--rtmp", "rtmp://media.example.com/vod",
            "--playpath", "mp4:clip",
            "--live",
            "--quiet",
            "--flv", "out.flv",
        ]

    def test_missing_program(self, tmp_path):
        """Test that a missing rtmpdump fails the item."""
        with patch("vidfetch.download.backends.shutil.which", return_value=None):
            assert not RtmpBackend().download(RtmpStream("rtmp://x/vod"), tmp_path / "a.flv")

    def test_resumes_incomplete_transfer(self, tmp_path):
        """Test that exit code 2 retries with --resume."""
        with patch("vidfetch.download.backends.shutil.which", return_value="/usr/bin/rtmpdump"), \
             patch("vidfetch.download.backends.subprocess.run") as mock_run:
            mock_run.side_effect = [Mock(returncode=2), Mock(returncode=0)]
            assert RtmpBackend().download(RtmpStream("rtmp://x/vod"), tmp_path / "a.flv")

        assert "--resume" not in mock_run.call_args_list[0].args[0]
        assert "--resume" in mock_run.call_args_list[1].args[0]

    def test_gives_up(self, tmp_path):
        """Test that repeated incomplete transfers fail."""
        with patch("vidfetch.download.backends.shutil.which", return_value="/usr/bin/rtmpdump"), \
             patch("vidfetch.download.backends.subprocess.run", return_value=Mock(returncode=2)) as mock_run:
            assert not RtmpBackend().download(RtmpStream("rtmp://x/vod"), tmp_path / "a.flv")

        assert mock_run.call_count == 3


class TestFfmpegBackend:
    """Test ffmpeg downloads."""

    def test_hls_args(self):
        """Test HLS remuxing arguments."""
        stream = HlsStream("https://x/live.m3u8", headers={"Referer": "https://x/"})
        args = FfmpegBackend(TransportKind.HLS).build_args(stream, "live.mp4")

        assert args[:3] == ["ffmpeg", "-y", "-hide_banner"]
        assert args[args.index("-headers") + 1] == "Referer: https://x/\r\n"
        assert args[args.index("-i") + 1] == "https://x/live.m3u8"
        assert "aac_adtstoasc" in args
        assert args[-1] == "live.mp4"

    def test_capture_args(self):
        """Test capture input arguments go before -i."""
        stream = CaptureStream("rtsp://x/cam", args=["-rtsp_transport", "tcp"])
        args = FfmpegBackend(TransportKind.FFMPEG, quiet=True).build_args(stream, "cam.mkv")

        assert args.index("-rtsp_transport") < args.index("-i")
        assert "-loglevel" in args
        assert "aac_adtstoasc" not in args

    def test_download_failure(self, tmp_path):
        """Test a non-zero ffmpeg exit fails the item."""
        with patch("vidfetch.download.backends.shutil.which", return_value="/usr/bin/ffmpeg"), \
             patch("vidfetch.download.backends.subprocess.run", return_value=Mock(returncode=1)):
            assert not FfmpegBackend(TransportKind.HLS).download(
                HlsStream("https://x/live.m3u8"), tmp_path / "live.mp4"
            )


class TestDefaultBackends:
    """Test the backend table."""

    def test_every_kind_covered(self):
        """Test one backend per transport kind."""
        backends = default_backends(Mock(), "mpv %s")
        assert set(backends) == set(TransportKind)
        assert backends[TransportKind.HLS].kind is TransportKind.HLS
