"""vidfetch update command - Update vidfetch and its plugins."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from vidfetch.cli.error_handler import handle_errors
from vidfetch.cli.prompts import InteractionProvider, ScriptedInteraction, TerminalInteraction
from vidfetch.config import load_config
from vidfetch.session import Session

console = Console()


@handle_errors
def update(
    plugins: bool = typer.Option(
        True,
        "--plugins/--no-plugins",
        help="Also check installed plugins for updates.",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask before running the upgrade.",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Update vidfetch and installed plugins.

    Example:
        vidfetch update
        vidfetch update --no-plugins
    """
    from vidfetch.update.manager import UpdateManager

    config = load_config(config_file).with_overrides(yes=yes or None)
    interaction: InteractionProvider = (
        TerminalInteraction() if config.interactive else ScriptedInteraction()
    )

    with Session(proxy=config.proxy, timeout=config.timeout) as session:
        manager = UpdateManager(config, session, interaction)

        codes = [manager.check_self_update()]
        if plugins:
            console.print("[bold]Checking plugins...[/bold]")
            codes.append(manager.check_plugin_updates())

    raise typer.Exit(code=max(codes))
