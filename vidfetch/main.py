"""Main CLI entry point for vidfetch."""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from vidfetch import __app_name__, __version__
from vidfetch.cli import get, plugins, update
from vidfetch.cli.exit_codes import ExitCode

# Create the main Typer app
app = typer.Typer(
    name=__app_name__,
    help="vidfetch - Download and play videos from web pages.",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Console for CLI output
console = Console()

# Register commands
app.command(name="get")(get.get)
app.command(name="update")(update.update)
app.add_typer(plugins.app, name="plugins")

# Global state for CLI options
_global_state: dict[str, bool] = {
    "verbose": False,
    "debug": False,
    "quiet": False,
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"{__app_name__} v{__version__}")
        raise typer.Exit(code=ExitCode.SUCCESS)


def _setup_logging(
    verbose: bool = False,
    debug: bool = False,
    quiet: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """Set up logging configuration based on CLI options.

    Args:
        verbose: Enable INFO level logging
        debug: Enable DEBUG level logging
        quiet: Only log errors
        log_file: Optional log file path
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    if debug:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
    else:
        format_str = "%(levelname)s: %(message)s"

    handlers: list[logging.Handler] = []

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log debug to file
        handlers.append(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    logging.basicConfig(
        level=logging.DEBUG if log_file else level,
        format=format_str,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    # httpx logs every request at INFO
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if debug else logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured: level={logging.getLevelName(level)}, debug={debug}")


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output (INFO level logging).",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode (DEBUG level logging with full tracebacks).",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress progress output and non-error messages.",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log to file (logs DEBUG level regardless of console settings).",
    ),
) -> None:
    """vidfetch - Download and play videos from web pages.

    [bold]Commands:[/bold]

    • [cyan]get[/cyan] - Download or play videos, or search for them
    • [cyan]update[/cyan] - Update vidfetch and installed plugins
    • [cyan]plugins[/cyan] - List and install site handler plugins

    [bold]Examples:[/bold]

        vidfetch get https://example.com/watch/42
        vidfetch get --play https://example.com/watch/42
        vidfetch update
        vidfetch plugins list

    For more help on a specific command, use: [cyan]vidfetch <command> --help[/cyan]
    """
    _global_state["verbose"] = verbose
    _global_state["debug"] = debug
    _global_state["quiet"] = quiet

    if quiet and verbose:
        console.print("[red]Error:[/red] --quiet and --verbose are mutually exclusive")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    if quiet and debug:
        console.print("[red]Error:[/red] --quiet and --debug are mutually exclusive")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    _setup_logging(verbose=verbose, debug=debug, quiet=quiet, log_file=log_file)

    logger = logging.getLogger(__name__)
    logger.debug(f"vidfetch v{__version__} starting")
    logger.debug(f"Options: verbose={verbose}, debug={debug}, quiet={quiet}")


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return _global_state.get("debug", False)


def is_quiet() -> bool:
    """Check if quiet mode is enabled."""
    return _global_state.get("quiet", False)


__all__ = [
    "app",
    "console",
    "is_debug",
    "is_quiet",
]


if __name__ == "__main__":
    app()
