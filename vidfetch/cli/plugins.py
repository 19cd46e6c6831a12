"""vidfetch plugins command - Manage site handler plugins."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from vidfetch.cli.error_handler import handle_errors
from vidfetch.config import ensure_directories, load_config

app = typer.Typer(help="Manage site handler plugins.", no_args_is_help=True)
console = Console()


def _capabilities(handler) -> str:
    return ", ".join(cap.name.lower() for cap in handler.info.capabilities) or "-"


@app.command("list")
@handle_errors
def list_plugins(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """List site handlers in the order URLs are matched.

    Example:
        vidfetch plugins list
    """
    from vidfetch.plugins.registry import HandlerRegistry
    from vidfetch.plugins.resolver import InstalledPluginResolver

    config = load_config(config_file)
    registry = HandlerRegistry(config)
    installed = {name.lower() for name in InstalledPluginResolver(config.plugin_dir).available()}

    table = Table(title="Site Handlers")
    table.add_column("Name", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Source", style="bold")
    table.add_column("Capabilities")
    table.add_column("Description")

    for handler in registry.handlers():
        source = "[green]installed[/green]" if handler.name.lower() in installed else "[dim]built-in[/dim]"

        description = handler.info.description
        if len(description) > 50:
            description = description[:50] + "..."

        table.add_row(
            handler.name,
            handler.info.version,
            source,
            _capabilities(handler),
            description,
        )

    console.print(table)

    if not installed:
        console.print(f"[dim]No plugins installed in {config.plugin_dir}[/dim]")


@app.command("install")
@handle_errors
def install_plugin(
    source: str = typer.Argument(
        ...,
        help="Path or URL of a plugin file (must end in .py).",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Install a plugin from a local file or a URL.

    An installed plugin replaces the built-in handler of the same name.

    Example:
        vidfetch plugins install ./ExampleTube.py
        vidfetch plugins install https://example.org/plugins/ExampleTube.py
    """
    from vidfetch.plugins.store import PluginStore, is_url
    from vidfetch.session import Session

    config = load_config(config_file)
    ensure_directories(config)
    store = PluginStore(config.plugin_dir)

    if is_url(source):
        with Session(proxy=config.proxy, timeout=config.timeout) as session:
            target = store.install(source, session)
    else:
        target = store.install(source)

    console.print(f"[green]✓[/green] Installed plugin [cyan]{target.stem}[/cyan] to {target}")
