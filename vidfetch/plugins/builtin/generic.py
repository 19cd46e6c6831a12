"""Fallback handler that scans a page for embedded video.

Looks, in order, at ``<video>``/``<source>`` tags, Open Graph video
metadata, and quoted media URLs anywhere in the page (player configs
usually carry them as JSON strings).
"""

from __future__ import annotations

import html
import logging
import re
from typing import List
from urllib.parse import urljoin

from vidfetch.config import Preferences
from vidfetch.errors import ExtractionError
from vidfetch.extraction import (
    ExtractionResult,
    HlsStream,
    HttpStream,
    Single,
    Stream,
    StreamList,
    filename_from_url,
    sanitize_filename,
)
from vidfetch.plugins.base import HandlerInfo, SiteHandler
from vidfetch.session import Session

logger = logging.getLogger(__name__)

_TAG_SRC = re.compile(
    r"<(?:video|source)\b[^>]*?\bsrc\s*=\s*[\"']([^\"']+)[\"']",
    re.IGNORECASE,
)
_OG_VIDEO = re.compile(
    r"<meta\b[^>]*?property\s*=\s*[\"']og:video(?::(?:secure_)?url)?[\"'][^>]*?"
    r"content\s*=\s*[\"']([^\"']+)[\"']",
    re.IGNORECASE,
)
_QUOTED_MEDIA = re.compile(
    r"[\"']((?:https?:)?(?:\\?/){2}[^\"'\s]+?\.(?:mp4|m4v|flv|webm|m3u8)(?:\?[^\"'\s]*)?)[\"']",
    re.IGNORECASE,
)
_SUBTITLE_TRACK = re.compile(
    r"<track\b[^>]*?\bsrc\s*=\s*[\"']([^\"']+)[\"'][^>]*>",
    re.IGNORECASE,
)
_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


class Generic(SiteHandler):
    """Finds a video on any page; used when no other handler matches."""

    url_patterns = [r"^https?://"]

    @property
    def info(self) -> HandlerInfo:
        return HandlerInfo(
            name="Generic",
            display_name="Generic page scanner",
            description="Finds video tags, Open Graph video and media links on any page",
        )

    def extract(
        self,
        session: Session,
        url: str,
        preferences: Preferences,
    ) -> ExtractionResult:
        page = session.content
        base = session.url or url

        candidates = self._find_candidates(page, base)
        if not candidates:
            raise ExtractionError(f"No video found on {url}")

        logger.debug(f"Generic found {len(candidates)} candidate(s): {candidates}")

        video_url = candidates[0]
        video = self._stream_for(video_url, self._title(page))

        if preferences.subtitles:
            tracks = [
                urljoin(base, html.unescape(m.group(1)))
                for m in _SUBTITLE_TRACK.finditer(page)
                if re.search(r"kind\s*=\s*[\"'](?:subtitles|captions)[\"']", m.group(0), re.I)
            ]
            if tracks:
                subtitle_name = self._subtitle_name(video, tracks[0])
                return StreamList([video, HttpStream(tracks[0], [subtitle_name])])

        return Single(video)

    def _find_candidates(self, page: str, base: str) -> List[str]:
        found: List[str] = []
        for pattern in (_TAG_SRC, _OG_VIDEO, _QUOTED_MEDIA):
            for match in pattern.finditer(page):
                candidate = urljoin(base, html.unescape(match.group(1)).replace("\\/", "/"))
                if candidate.startswith(("http://", "https://")) and candidate not in found:
                    found.append(candidate)
        return found

    def _title(self, page: str) -> str:
        match = _TITLE.search(page)
        if not match:
            return ""
        return sanitize_filename(html.unescape(match.group(1)))

    def _stream_for(self, video_url: str, title: str) -> Stream:
        from_url = filename_from_url(video_url)
        is_hls = re.search(r"\.m3u8(\?|$)", video_url, re.IGNORECASE) is not None
        extension = "mp4" if is_hls else (from_url.rsplit(".", 1)[-1] if "." in from_url else "flv")

        filenames = [] if is_hls else [from_url]
        if title:
            filenames.append(f"{title}.{extension}")

        if is_hls:
            return HlsStream(video_url, filenames or [f"video.{extension}"])
        return HttpStream(video_url, filenames)

    def _subtitle_name(self, video: Stream, track_url: str) -> str:
        stem = (video.filenames[-1] if video.filenames else "video").rsplit(".", 1)[0]
        track_name = filename_from_url(track_url, default="subtitles.srt")
        extension = track_name.rsplit(".", 1)[-1] if "." in track_name else "srt"
        return f"{stem}.{extension}"
