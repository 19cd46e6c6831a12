"""Update manager.

Checks the published version descriptor and updates vidfetch itself, and
checks each installed plugin's update sources for a newer copy.

The version descriptor is a small text resource::

    version: 1.26.0
    from: https://vidfetch.github.io/releases
    info: https://vidfetch.github.io/changes.html
"""

from __future__ import annotations

import logging
import re
import subprocess
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import httpx
from rich.console import Console

import vidfetch
from vidfetch import __app_name__, __version__
from vidfetch.cli.exit_codes import ExitCode
from vidfetch.cli.prompts import InteractionProvider
from vidfetch.config import FetchConfig
from vidfetch.errors import PluginError, UpdateError
from vidfetch.plugins.base import HandlerCapability
from vidfetch.plugins.store import PluginDescriptor, PluginStore
from vidfetch.session import Session
from vidfetch.update.replace import DEFAULT_EXECUTABLE_MODE, atomic_replace
from vidfetch.update.versions import format_version, is_newer, parse_version

logger = logging.getLogger(__name__)

_VERSION_FIELD = re.compile(r"^\s*version:\s*(\S+)", re.MULTILINE)
_FROM_FIELD = re.compile(r"^\s*from:\s*(\S+)", re.MULTILINE)
_INFO_FIELD = re.compile(r"^\s*info:\s*(.+?)\s*$", re.MULTILINE)

PIP_UPGRADE_COMMAND = [sys.executable, "-m", "pip", "install", "--upgrade", __app_name__]


@dataclass
class VersionDescriptor:
    """Parsed content of the published version descriptor."""

    version: str
    base_url: str
    info: Optional[str] = None

    @property
    def download_url(self) -> str:
        """Where the standalone build of this version is published."""
        return f"{self.base_url.rstrip('/')}/{__app_name__}-{self.version}"


def parse_descriptor(text: str) -> VersionDescriptor:
    """Parse a version descriptor.

    Each field is searched for on its own, so order and extra lines do
    not matter.

    Raises:
        UpdateError: If ``version`` or ``from`` is missing
    """
    version = _VERSION_FIELD.search(text)
    base_url = _FROM_FIELD.search(text)
    info = _INFO_FIELD.search(text)

    if version is None or base_url is None:
        raise UpdateError("Version descriptor is missing 'version' or 'from'")

    return VersionDescriptor(
        version=version.group(1),
        base_url=base_url.group(1),
        info=info.group(1) if info else None,
    )


def detect_install_mode(config: FetchConfig, module_path: Optional[Path] = None) -> str:
    """Work out how this copy of vidfetch was installed.

    Returns:
        ``"system"`` for a copy under /usr, ``"pip"`` for a distribution in
        a site-packages directory, ``"standalone"`` otherwise. A configured
        ``install_mode`` other than ``auto`` is returned as is.
    """
    if config.install_mode != "auto":
        return config.install_mode

    path = (module_path or Path(vidfetch.__file__)).resolve()
    if path.parts[:2] == ("/", "usr") and "local" not in path.parts[:3]:
        return "system"
    if "site-packages" in path.parts or "dist-packages" in path.parts:
        return "pip"
    return "standalone"


class UpdateManager:
    """Self-update and plugin updates.

    Example:
        manager = UpdateManager(config, session, TerminalInteraction())
        manager.check_self_update()
        manager.check_plugin_updates()
    """

    def __init__(
        self,
        config: FetchConfig,
        session: Session,
        interaction: InteractionProvider,
        store: Optional[PluginStore] = None,
        console: Optional[Console] = None,
    ) -> None:
        self.config = config
        self.session = session
        self.interaction = interaction
        self.store = store or PluginStore(config.plugin_dir)
        self.console = console or Console()

    def fetch_descriptor(self) -> VersionDescriptor:
        """Download and parse the version descriptor.

        Raises:
            UpdateError: If it cannot be fetched or lacks required fields
        """
        url = self.config.update_url
        logger.debug(f"Fetching version descriptor from {url}")
        try:
            response = self.session.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UpdateError(f"Unable to check for updates: {e}", details={"url": url})
        return parse_descriptor(response.text)

    def check_self_update(self, executable: Optional[Path] = None) -> int:
        """Update vidfetch itself if a newer version is published.

        Args:
            executable: File to replace in standalone mode
                (default: ``sys.argv[0]``)

        Returns:
            Exit code (0 when current or updated)

        Raises:
            UpdateError: If the check or the update fails
        """
        descriptor = self.fetch_descriptor()
        remote = format_version(parse_version(descriptor.version))

        if not is_newer(remote, __version__):
            self.console.print(f"[green]✓[/green] {__app_name__} {__version__} is up to date")
            return ExitCode.SUCCESS

        self.console.print(f"[bold]New version available:[/bold] {remote} (installed: {__version__})")
        if descriptor.info:
            self.console.print(f"[dim]{descriptor.info}[/dim]")

        mode = detect_install_mode(self.config)
        logger.debug(f"Install mode: {mode}")

        if mode == "system":
            self.console.print(
                "[yellow]This copy is managed by your distribution; "
                "upgrade it with the system package manager.[/yellow]"
            )
            return ExitCode.SUCCESS

        if mode == "pip":
            return self._pip_upgrade()

        return self._replace_executable(descriptor, executable)

    def _pip_upgrade(self) -> int:
        command = " ".join(PIP_UPGRADE_COMMAND)
        self.console.print(f"Upgrade command: [cyan]{command}[/cyan]")

        if not self.interaction.confirm("Run it now?", default=True):
            self.console.print("[dim]Update skipped.[/dim]")
            return ExitCode.SUCCESS

        try:
            result = subprocess.run(PIP_UPGRADE_COMMAND)
        except OSError as e:
            raise UpdateError(f"Unable to run pip: {e}")
        if result.returncode != 0:
            raise UpdateError(f"pip exited with code {result.returncode}")

        self.console.print("[green]✓[/green] Upgrade finished")
        return ExitCode.SUCCESS

    def _replace_executable(
        self,
        descriptor: VersionDescriptor,
        executable: Optional[Path],
    ) -> int:
        target = (executable or Path(sys.argv[0])).resolve()
        mode = None if target.exists() else DEFAULT_EXECUTABLE_MODE

        logger.info(f"Replacing {target} with {descriptor.download_url}")
        atomic_replace(self.session, descriptor.download_url, target, mode=mode)

        self.console.print(f"[green]✓[/green] Updated to {descriptor.version}")
        return ExitCode.SUCCESS

    def update_plugin(self, descriptor: PluginDescriptor) -> bool:
        """Update one installed plugin.

        A handler with the UPDATE capability updates itself; if it returns
        None the update sources are probed as for any other plugin. The
        first source whose Last-Modified is newer than the file is
        installed and probing stops.

        Returns:
            True if the plugin was replaced

        Raises:
            UpdateError: If a newer copy exists but none could be installed
        """
        handler_class = descriptor.handler_class
        if handler_class is not None:
            try:
                handler = handler_class()
            except Exception as e:
                raise PluginError(f"Failed to instantiate plugin {descriptor.name}: {e}")

            if handler.has_capability(HandlerCapability.UPDATE):
                logger.debug(f"Plugin {descriptor.name} updates itself")
                updated = handler.update(self.session)
                if updated is not None:
                    return bool(updated)

        if not descriptor.update_urls:
            logger.debug(f"Plugin {descriptor.name} has no update sources")
            return False

        local = datetime.fromtimestamp(descriptor.path.stat().st_mtime, tz=timezone.utc)
        newer_found = False

        for url in descriptor.update_urls:
            try:
                remote = self.session.last_modified(url)
            except httpx.HTTPError as e:
                logger.warning(f"Unable to check {url} for {descriptor.name}: {e}")
                continue

            if remote is None:
                logger.debug(f"{url} has no Last-Modified header")
                continue
            if remote.tzinfo is None:
                remote = remote.replace(tzinfo=timezone.utc)
            if remote <= local:
                logger.debug(f"{descriptor.name} is current with respect to {url}")
                continue

            newer_found = True
            try:
                atomic_replace(self.session, url, descriptor.path)
            except UpdateError as e:
                logger.warning(f"Installing {descriptor.name} from {url} failed: {e}")
                continue
            return True

        if newer_found:
            raise UpdateError(
                f"A newer copy of plugin {descriptor.name} exists but could not be installed"
            )
        return False

    def check_plugin_updates(self) -> int:
        """Check every installed plugin for updates.

        Returns:
            Exit code (0 when every plugin is current or updated)

        Raises:
            UpdateError: If any plugin with a newer copy could not be updated
        """
        failed = []

        for descriptor in self.store.descriptors():
            try:
                updated = self.update_plugin(descriptor)
            except (UpdateError, PluginError) as e:
                self.console.print(f"[red]✗[/red] {descriptor.name}: {e.message}")
                failed.append(descriptor.name)
                continue

            if updated:
                self.console.print(f"[green]✓[/green] Updated plugin {descriptor.name}")
            else:
                logger.info(f"Plugin {descriptor.name} is up to date")

        if failed:
            raise UpdateError(
                "Some plugins could not be updated",
                details={"plugins": ", ".join(failed)},
            )
        return ExitCode.SUCCESS
