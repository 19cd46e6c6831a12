"""Extraction result types returned by site handlers.

A handler returns exactly one of three result shapes:

- ``Single``: one stream
- ``StreamList``: several streams downloaded in order (e.g. a video plus
  its subtitles)
- ``MultiPart``: one video split into numbered parts

Streams are tagged by transport kind so the dispatcher can pick a backend
without looking at the content.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union
from urllib.parse import unquote, urlparse

DEFAULT_FILENAME = "video.flv"


class TransportKind(Enum):
    """Protocol a stream locator needs."""

    HTTP = "http"      # Progressive download
    RTMP = "rtmp"      # rtmpdump
    HLS = "hls"        # ffmpeg reading an m3u8 playlist
    FFMPEG = "ffmpeg"  # Any other ffmpeg-readable capture source


@dataclass
class Stream:
    """Base class for stream descriptors.

    Attributes:
        url: Locator of the stream
        filenames: Suggested filenames, most specific last
    """

    kind: ClassVar[TransportKind]

    url: str
    filenames: List[str] = field(default_factory=list)

    def inferred_filename(self) -> str:
        """Filename derived from the locator's last path segment."""
        return filename_from_url(self.url)


@dataclass
class HttpStream(Stream):
    """A file fetched with a plain HTTP GET."""

    kind: ClassVar[TransportKind] = TransportKind.HTTP


@dataclass
class RtmpStream(Stream):
    """An RTMP stream.

    Attributes:
        params: rtmpdump options without dashes, e.g. ``{"app": "...",
            "playpath": "...", "swfVfy": "..."}``. True values become bare
            flags.
    """

    kind: ClassVar[TransportKind] = TransportKind.RTMP

    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class HlsStream(Stream):
    """An HLS (m3u8) playlist.

    Attributes:
        headers: Extra HTTP headers ffmpeg must send
    """

    kind: ClassVar[TransportKind] = TransportKind.HLS

    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class CaptureStream(Stream):
    """A source captured through ffmpeg.

    Attributes:
        args: Extra ffmpeg input arguments placed before ``-i``
    """

    kind: ClassVar[TransportKind] = TransportKind.FFMPEG

    args: List[str] = field(default_factory=list)


@dataclass
class Single:
    """Result holding one stream."""

    stream: Stream


@dataclass
class StreamList:
    """Result holding streams that are downloaded one after another."""

    streams: List[Stream]


@dataclass
class Part:
    """One part of a multi-part video.

    Attributes:
        url: Locator of this part
        index: 1-based position of the part
        count: Total number of parts
        size: Expected size in bytes, if the site tells us
    """

    url: str
    index: int
    count: int
    size: Optional[int] = None


@dataclass
class MultiPart:
    """Result holding a video split into parts, each fetched over HTTP.

    Attributes:
        parts: Parts in order
        filenames: Suggested filenames for the whole video, most specific last
    """

    parts: List[Part]
    filenames: List[str] = field(default_factory=list)

    @classmethod
    def from_urls(
        cls,
        urls: List[str],
        sizes: Optional[List[Optional[int]]] = None,
        filenames: Optional[List[str]] = None,
    ) -> "MultiPart":
        """Build a result from part URLs listed in order."""
        sizes = sizes or [None] * len(urls)
        count = len(urls)
        parts = [
            Part(url=url, index=i, count=count, size=size)
            for i, (url, size) in enumerate(zip(urls, sizes), start=1)
        ]
        return cls(parts=parts, filenames=list(filenames or []))


ExtractionResult = Union[Single, StreamList, MultiPart]


_UNSAFE_CHARS = re.compile(r"[^\w.\-]+")


def sanitize_filename(name: str) -> str:
    """Make a string safe to use as a filename.

    Runs of characters other than letters, digits, ``.``, ``-`` and ``_``
    become a single underscore.
    """
    name = _UNSAFE_CHARS.sub("_", name.strip())
    return name.strip("._") or ""


def filename_from_url(url: str, default: str = DEFAULT_FILENAME) -> str:
    """Derive a filename from a URL's last path segment."""
    segment = posixpath.basename(unquote(urlparse(url).path))
    return sanitize_filename(segment) or default


def title_from_filename(filename: str) -> str:
    """Human title from a filename: extension removed, underscores to spaces."""
    stem, _ = posixpath.splitext(filename)
    return stem.replace("_", " ").strip()
