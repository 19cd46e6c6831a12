"""Dotted version strings.

A version is a tuple of non-negative integers. When one version has more
components than the other, the extra components count as present and the
missing ones as absent (not zero): ``1.25.0`` is newer than ``1.25``.
"""

from typing import Tuple, Union

from vidfetch.errors import ValidationError

Version = Tuple[int, ...]


def parse_version(text: str) -> Version:
    """Parse ``"1.25.91"`` into ``(1, 25, 91)``.

    Raises:
        ValidationError: If a component is not a non-negative integer
    """
    text = text.strip()
    try:
        parts = tuple(int(p) for p in text.split("."))
    except ValueError:
        raise ValidationError(f"Invalid version string: {text!r}")
    if not text or any(p < 0 for p in parts):
        raise ValidationError(f"Invalid version string: {text!r}")
    return parts


def is_newer(candidate: Union[str, Version], current: Union[str, Version]) -> bool:
    """Check whether ``candidate`` is a newer version than ``current``.

    Components are compared left to right. At the first position where
    ``current`` has no component, ``candidate`` is newer; at the first
    differing component, the larger value wins. Equal versions, and a
    ``candidate`` that runs out first, are not newer.
    """
    if isinstance(candidate, str):
        candidate = parse_version(candidate)
    if isinstance(current, str):
        current = parse_version(current)

    for index, value in enumerate(candidate):
        if index >= len(current):
            return True
        if value != current[index]:
            return value > current[index]
    return False


def format_version(version: Version) -> str:
    """Format a version tuple as a dotted string."""
    return ".".join(str(p) for p in version)
