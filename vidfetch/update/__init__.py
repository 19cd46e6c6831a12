"""Self-update and plugin update support.

``vidfetch.update.manager`` holds the UpdateManager; it is not imported
here because the plugin store depends on ``replace``.
"""

from vidfetch.update.replace import atomic_replace, download_to
from vidfetch.update.versions import Version, is_newer, parse_version

__all__ = ["Version", "atomic_replace", "download_to", "is_newer", "parse_version"]
