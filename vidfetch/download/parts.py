"""Filenames and resume checks for multi-part downloads.

A part already on disk with exactly its expected size is skipped. Any
other existing file is downloaded again from the start.
"""

import logging
import posixpath
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def part_suffix(index: int, count: int) -> str:
    """Suffix marking part ``index`` of ``count``, e.g. ``.part01_of_03``.

    Empty when the video has a single part.
    """
    if count <= 1:
        return ""
    return f".part{index:02d}_of_{count:02d}"


def part_filename(filename: str, index: int, count: int) -> str:
    """Insert the part suffix before the file extension.

    ``clip.mp4`` part 1 of 3 becomes ``clip.part01_of_03.mp4``; a name
    without an extension gets the suffix appended.
    """
    suffix = part_suffix(index, count)
    if not suffix:
        return filename

    stem, extension = posixpath.splitext(filename)
    return f"{stem}{suffix}{extension}"


def is_complete(path: Path, expected_size: Optional[int]) -> bool:
    """Check whether a part is already fully downloaded.

    Only the size is compared; the content is not verified.
    """
    if expected_size is None:
        return False

    try:
        actual = path.stat().st_size
    except FileNotFoundError:
        return False

    if actual == expected_size:
        logger.debug(f"{path} already has the expected {expected_size} bytes")
        return True

    logger.debug(f"{path} has {actual} bytes, expected {expected_size}; downloading again")
    return False
