"""Plugin store: the directory of installed handler files.

Each installed handler is one ``<HandlerName>.py`` file in the plugin
directory. The store lists them as PluginDescriptors and installs new ones
from a local file or a URL.
"""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Type
from urllib.parse import unquote, urlparse

from vidfetch.errors import PluginError, ValidationError
from vidfetch.plugins.base import SiteHandler
from vidfetch.plugins.resolver import (
    PLUGIN_MODULE_PREFIX,
    PLUGIN_SUFFIX,
    InstalledPluginResolver,
    ResolvedSource,
    load_handler_class,
)
from vidfetch.session import Session
from vidfetch.update.replace import atomic_replace

logger = logging.getLogger(__name__)


@dataclass
class PluginDescriptor:
    """An installed handler file.

    Attributes:
        name: Handler name (file stem)
        path: Plugin file
        update_urls: Locations checked for newer copies of the file
        handler_class: The loaded handler class, if it loaded
    """

    name: str
    path: Path
    update_urls: List[str] = field(default_factory=list)
    handler_class: Optional[Type[SiteHandler]] = None


def is_url(value: str) -> bool:
    """Check whether a string looks like an http(s) URL."""
    return urlparse(value).scheme in ("http", "https")


def check_handler_file(path: Path) -> Type[SiteHandler]:
    """Load a plugin file to make sure it defines a handler.

    Raises:
        PluginError: If the file does not load or has no handler class
    """
    source = ResolvedSource(
        name=path.stem,
        origin=InstalledPluginResolver.name,
        path=path,
        module_name=f"{PLUGIN_MODULE_PREFIX}{path.stem}",
    )
    return load_handler_class(source)


class PluginStore:
    """Lists and installs handler plugins in a directory."""

    def __init__(self, plugin_dir: Path) -> None:
        self.plugin_dir = plugin_dir
        self._resolver = InstalledPluginResolver(plugin_dir)

    def names(self) -> List[str]:
        """Names of all installed plugins."""
        return self._resolver.available()

    def descriptors(self) -> List[PluginDescriptor]:
        """Scan the directory into descriptors.

        Plugins that fail to load are still listed, without update URLs.
        """
        result: List[PluginDescriptor] = []

        for name in self.names():
            source = self._resolver.resolve(name)
            if source is None:
                continue

            descriptor = PluginDescriptor(name=name, path=source.path)
            try:
                handler_class = load_handler_class(source)
            except PluginError as e:
                logger.warning(f"Plugin {name} could not be loaded: {e}")
            else:
                descriptor.handler_class = handler_class
                descriptor.update_urls = list(handler_class.update_urls)

            result.append(descriptor)

        return result

    def get(self, name: str) -> Optional[PluginDescriptor]:
        """Get the descriptor of one installed plugin."""
        return next((d for d in self.descriptors() if d.name == name), None)

    def target_for(self, source: str) -> Path:
        """Compute where a plugin from ``source`` is installed.

        Raises:
            ValidationError: If the source's file name lacks the plugin suffix
        """
        if is_url(source):
            filename = posixpath.basename(unquote(urlparse(source).path))
        else:
            filename = Path(source).name

        if not filename.endswith(PLUGIN_SUFFIX) or filename == PLUGIN_SUFFIX:
            raise ValidationError(
                f"Plugin file names must end in {PLUGIN_SUFFIX}: {filename or source}"
            )
        return self.plugin_dir / filename

    def install(self, source: str, session: Optional[Session] = None) -> Path:
        """Install a plugin from a local path or a URL.

        Local files are checked and copied as they are. URLs are downloaded
        and put in place with an atomic replace, then checked; a download
        that defines no handler is rolled back to the previous copy.

        Returns:
            Path of the installed plugin

        Raises:
            ValidationError: If the name is not a plugin file name
            PluginError: If the file defines no handler or cannot be copied
            UpdateError: If downloading or replacing fails
        """
        target = self.target_for(source)
        self.plugin_dir.mkdir(parents=True, exist_ok=True)

        if is_url(source):
            if session is None:
                raise PluginError("A session is needed to install from a URL")
            existed = target.exists()
            atomic_replace(session, source, target)
            try:
                check_handler_file(target)
            except PluginError:
                self._roll_back(target, existed)
                raise
        else:
            path = Path(source).expanduser()
            if not path.is_file():
                raise PluginError(f"No such plugin file: {path}")
            check_handler_file(path)
            try:
                shutil.copyfile(path, target)
            except OSError as e:
                raise PluginError(f"Failed to copy {path} to {target}: {e}")

        logger.info(f"Installed plugin {target.stem} to {target}")
        return target

    def _roll_back(self, target: Path, existed: bool) -> None:
        old_path = target.with_name(target.name + ".old")
        try:
            if existed:
                os.replace(old_path, target)
            else:
                target.unlink()
        except OSError as e:
            logger.warning(f"Could not roll back {target}: {e}")
        else:
            logger.info(f"Rolled back {target}")
