"""Download dispatch, multi-part resume and transport backends."""

from vidfetch.download.backends import (
    Backend,
    FfmpegBackend,
    HttpBackend,
    RtmpBackend,
    default_backends,
)
from vidfetch.download.dispatcher import Dispatcher, DownloadWorkItem
from vidfetch.download.parts import is_complete, part_filename, part_suffix

__all__ = [
    "Backend",
    "Dispatcher",
    "DownloadWorkItem",
    "FfmpegBackend",
    "HttpBackend",
    "RtmpBackend",
    "default_backends",
    "is_complete",
    "part_filename",
    "part_suffix",
]
