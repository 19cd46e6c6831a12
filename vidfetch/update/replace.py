"""Atomic file replacement used by self-update and plugin installs.

The sequence is: download to ``<target>.new``, move the current file to
``<target>.old``, move ``.new`` into place, restore permission bits. If a
step fails an UpdateError is raised; the on-disk state may then have
``.old`` moved aside without ``.new`` promoted.
"""

import logging
import os
import stat
from pathlib import Path
from typing import Optional

import httpx

from vidfetch.errors import UpdateError
from vidfetch.session import Session

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

DEFAULT_EXECUTABLE_MODE = 0o755
DEFAULT_FILE_MODE = 0o644


def _sibling(target: Path, suffix: str) -> Path:
    return target.with_name(target.name + suffix)


def download_to(session: Session, url: str, path: Path) -> int:
    """Stream a URL into a file.

    Returns:
        Number of bytes written

    Raises:
        UpdateError: On HTTP or file errors, or an empty body
    """
    written = 0
    try:
        with session.stream("GET", url) as response:
            response.raise_for_status()
            with path.open("wb") as f:
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    f.write(chunk)
                    written += len(chunk)
    except httpx.HTTPError as e:
        raise UpdateError(f"Download of {url} failed: {e}")
    except OSError as e:
        raise UpdateError(f"Cannot write {path}: {e}")

    if written == 0:
        raise UpdateError(f"Download of {url} was empty")
    return written


def atomic_replace(
    session: Session,
    url: str,
    target: Path,
    mode: Optional[int] = None,
) -> Path:
    """Replace ``target`` with the content of ``url``.

    Args:
        session: Session used for the download
        url: Where the new content is
        target: File to replace (need not exist yet)
        mode: Permission bits for the result; defaults to the old file's
            bits, or 0o644 for a new file

    Returns:
        The target path

    Raises:
        UpdateError: If any step fails
    """
    new_path = _sibling(target, ".new")
    old_path = _sibling(target, ".old")

    if mode is None:
        try:
            mode = stat.S_IMODE(target.stat().st_mode)
        except FileNotFoundError:
            mode = DEFAULT_FILE_MODE
        except OSError as e:
            raise UpdateError(f"Cannot stat {target}: {e}")

    logger.debug(f"Downloading {url} to {new_path}")
    download_to(session, url, new_path)

    if target.exists():
        try:
            os.replace(target, old_path)
        except OSError as e:
            raise UpdateError(f"Unable to rename {target} to {old_path}: {e}")

    try:
        os.replace(new_path, target)
    except OSError as e:
        raise UpdateError(f"Unable to rename {new_path} to {target}: {e}")

    try:
        os.chmod(target, mode)
    except OSError as e:
        raise UpdateError(f"Unable to set permissions on {target}: {e}")

    logger.info(f"Replaced {target} from {url}")
    return target
