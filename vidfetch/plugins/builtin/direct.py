"""Handler for URLs that already point at a media stream."""

import re
from typing import ClassVar

from vidfetch.config import Preferences
from vidfetch.extraction import (
    ExtractionResult,
    HlsStream,
    HttpStream,
    RtmpStream,
    Single,
    filename_from_url,
)
from vidfetch.plugins.base import HandlerInfo, SiteHandler
from vidfetch.session import Session

MEDIA_EXTENSIONS = ("mp4", "m4v", "flv", "webm", "mkv", "mov", "avi", "mp3", "m4a", "ogg", "ogv")


class Direct(SiteHandler):
    """Downloads media URLs as they are, without fetching a page first."""

    url_patterns = [
        r"^rtmp[se]?://",
        r"\.m3u8(\?|#|$)",
        r"\.(" + "|".join(MEDIA_EXTENSIONS) + r")(\?|#|$)",
    ]

    # The URL is the stream itself, so there is no page to fetch
    fetch_page: ClassVar[bool] = False

    @property
    def info(self) -> HandlerInfo:
        return HandlerInfo(
            name="Direct",
            display_name="Direct media URL",
            description="Downloads URLs that point straight at a video file or stream",
        )

    def extract(
        self,
        session: Session,
        url: str,
        preferences: Preferences,
    ) -> ExtractionResult:
        filenames = [filename_from_url(url)]

        if re.match(r"^rtmp[se]?://", url, re.IGNORECASE):
            return Single(RtmpStream(url, filenames, params={"rtmp": url}))

        if re.search(r"\.m3u8(\?|#|$)", url, re.IGNORECASE):
            name = re.sub(r"\.m3u8$", ".mp4", filenames[0])
            return Single(HlsStream(url, [name]))

        return Single(HttpStream(url, filenames))
