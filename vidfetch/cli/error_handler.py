"""Global exception handling for vidfetch.

This module provides a decorator that ensures consistent error reporting
and exit codes across all CLI commands.
"""

from functools import wraps
from typing import Callable, TypeVar, Any
import logging
import traceback

import httpx
import typer
from rich.console import Console

from vidfetch.cli.exit_codes import ExitCode
from vidfetch.errors import VidfetchError

# Console for error output (stderr)
console = Console(stderr=True)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def report_error(error: VidfetchError) -> None:
    """Print a VidfetchError and its details to stderr."""
    console.print(f"[red]Error:[/red] {error.message}")
    for key, value in error.details.items():
        console.print(f"  [dim]{key}:[/dim] {value}")


def _has_request(error: httpx.HTTPError) -> bool:
    try:
        error.request
    except RuntimeError:
        return False
    return True


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling across CLI commands.

    - VidfetchError subclasses: show the message, exit with the error's code
    - httpx errors that escape a command: network error, exit 5
    - KeyboardInterrupt: show cancellation message, exit 130
    - typer.Exit: passed through
    - Other exceptions: log the traceback, exit 1

    Example:
        @app.command()
        @handle_errors
        def update():
            raise UpdateError("Version descriptor unreachable")
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except VidfetchError as e:
            logger.error(
                f"{type(e).__name__}: {e.message}",
                extra={"exit_code": e.exit_code, "details": e.details},
            )
            report_error(e)
            raise typer.Exit(code=e.exit_code)

        except httpx.HTTPError as e:
            url = e.request.url if _has_request(e) else None
            logger.error(f"HTTP error: {e}")
            console.print(f"[red]Network error:[/red] {e}")
            if url is not None:
                console.print(f"  [dim]url:[/dim] {url}")
            raise typer.Exit(code=ExitCode.NETWORK_ERROR)

        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user.[/yellow]")
            logger.info("Operation cancelled by user (KeyboardInterrupt)")
            raise typer.Exit(code=ExitCode.CANCELLED)

        except typer.Exit:
            raise

        except Exception as e:
            logger.exception("Unexpected error occurred")
            console.print(f"[red]Unexpected error:[/red] {e}")
            console.print("[dim]Run with --debug for more details[/dim]")
            raise typer.Exit(code=ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore[return-value]


def get_error_context(verbose: bool = False) -> str:
    """Get formatted error context for debugging.

    Args:
        verbose: If True, include full traceback

    Returns:
        Formatted error context string
    """
    exc_info = traceback.format_exc()

    if verbose:
        return exc_info

    lines = exc_info.strip().split("\n")
    if len(lines) >= 2:
        return f"{lines[-2]}: {lines[-1]}"

    return exc_info
