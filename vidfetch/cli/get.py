"""vidfetch get command - Download or play videos from web pages.

Arguments that look like URLs are processed in order. When none does, the
arguments are joined into a search phrase, sent to every handler that can
search, and the user picks which results to download.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional

import httpx
import typer
from rich.console import Console

from vidfetch.cli.error_handler import get_error_context, handle_errors
from vidfetch.cli.exit_codes import ExitCode
from vidfetch.cli.prompts import InteractionProvider, ScriptedInteraction, TerminalInteraction
from vidfetch.config import FetchConfig, Preferences, load_config
from vidfetch.download.dispatcher import Dispatcher
from vidfetch.errors import (
    FetchError,
    MissingDependencyError,
    NotFoundError,
    VidfetchError,
)
from vidfetch.plugins.base import SearchResult
from vidfetch.plugins.registry import HandlerRegistry
from vidfetch.session import Session

console = Console()

logger = logging.getLogger(__name__)

_URL_LIKE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def looks_like_url(value: str) -> bool:
    """Check whether a command-line argument is a URL rather than a search word."""
    return bool(_URL_LIKE.match(value))


def search(
    registry: HandlerRegistry,
    session: Session,
    phrase: str,
    interaction: InteractionProvider,
    preferences: Preferences,
) -> List[str]:
    """Search all capable handlers and let the user pick results.

    Non-interactive runs take the first result.

    Returns:
        Page URLs to download, in the order selected

    Raises:
        NotFoundError: If no handler can search or nothing was found
        ValidationError: If the selection is invalid
    """
    searchers = registry.searchers()
    if not searchers:
        raise NotFoundError("No installed handler supports searching")

    results: List[SearchResult] = []
    for handler in searchers:
        logger.debug(f"Searching {handler.name} for '{phrase}'")
        try:
            results.extend(handler.search(session, phrase, preferences))
        except (VidfetchError, httpx.HTTPError) as e:
            logger.warning(f"Search with {handler.name} failed: {e}")

    if not results:
        raise NotFoundError(f"No results for '{phrase}'")

    if not preferences.interactive:
        return [results[0].url]

    titles = [
        f"{r.name} - {r.description}" if r.description else r.name
        for r in results
    ]
    return [results[i].url for i in interaction.select_results(titles)]


def process_url(
    url: str,
    registry: HandlerRegistry,
    session: Session,
    dispatcher: Dispatcher,
    preferences: Preferences,
    remaining: int = 0,
) -> bool:
    """Resolve, extract and download one URL.

    Failures are reported and turned into False so the batch continues.
    """
    try:
        handler, canonical = registry.resolve(url)
        registry.prepare(handler, session, canonical)
        if handler.fetch_page:
            session.fetch_page(canonical)
        result = registry.extract(handler, session, canonical, preferences)

    except MissingDependencyError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        if e.module:
            console.print(f"Install it with: [cyan]pip install {e.module}[/cyan]")
        return False

    except FetchError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        if e.proxy_related:
            console.print(
                "[yellow]This looks like a proxy problem. "
                "Check the proxy setting or try without --proxy.[/yellow]"
            )
        return False

    except NotFoundError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return False

    except Exception as e:
        console.print(f"[red]Error:[/red] Extraction failed for {url}: {e}")
        console.print(
            "[dim]The site may have changed. Run 'vidfetch update' for newer "
            "handlers, or use --debug for details.[/dim]"
        )
        logger.debug(get_error_context(verbose=True))
        return False

    try:
        return dispatcher.dispatch(result, remaining)
    except typer.Exit:
        # info mode ends the run after the first result
        raise
    except Exception as e:
        console.print(f"[red]Error:[/red] Download failed for {url}: {e}")
        logger.debug(get_error_context(verbose=True))
        return False


def run_batch(
    config: FetchConfig,
    targets: List[str],
    session: Session,
    interaction: InteractionProvider,
    registry: Optional[HandlerRegistry] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> int:
    """Process every target and compute the batch exit code.

    Args:
        config: Process configuration
        targets: URLs, or words of a search phrase
        session: Shared browsing session
        interaction: Provider for filename and search questions
        registry: Handler registry (default: built from config)
        dispatcher: Download dispatcher (default: built from config)

    Returns:
        0 if every URL succeeded, 1 if none did, 2 otherwise
    """
    registry = registry or HandlerRegistry(config)
    dispatcher = dispatcher or Dispatcher(config, session, interaction)
    preferences = config.preferences

    if any(looks_like_url(t) for t in targets):
        urls = targets
    else:
        urls = search(registry, session, " ".join(targets), interaction, preferences)

    succeeded = 0
    for position, url in enumerate(urls):
        if process_url(url, registry, session, dispatcher, preferences, len(urls) - position - 1):
            succeeded += 1

    code = ExitCode.for_batch(succeeded, len(urls))
    logger.info(f"{succeeded} of {len(urls)} URL(s) succeeded")
    return code


@handle_errors
def get(
    targets: List[str] = typer.Argument(
        ...,
        help="Video page URLs, or words to search for.",
    ),
    filename: Optional[str] = typer.Option(
        None,
        "--filename",
        "-f",
        help="Save as this filename.",
    ),
    play: bool = typer.Option(
        False,
        "--play",
        "-p",
        help="Play with the configured player instead of downloading.",
    ),
    player: Optional[str] = typer.Option(
        None,
        "--player",
        help="Player command; %s is replaced with the stream.",
    ),
    proxy: Optional[str] = typer.Option(
        None,
        "--proxy",
        help="Proxy URL for all requests.",
    ),
    quality: Optional[str] = typer.Option(
        None,
        "--quality",
        "-r",
        help="Preferred quality (e.g. high, low, 720p).",
    ),
    subtitles: bool = typer.Option(
        False,
        "--subtitles",
        help="Download subtitles as well, where available.",
    ),
    info: bool = typer.Option(
        False,
        "--info",
        "-i",
        help="Show stream information without downloading.",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Never ask questions; pick defaults.",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Download or play videos.

    Example:
        vidfetch get https://example.com/watch/42
        vidfetch get -f talk.mp4 https://example.com/watch/42
        vidfetch get --info https://example.com/watch/42
        vidfetch get funny cats
    """
    from vidfetch.main import is_debug, is_quiet

    config = load_config(config_file).with_overrides(
        filename=filename,
        play=play or None,
        player=player,
        proxy=proxy,
        quality=quality,
        subtitles=subtitles or None,
        info=info or None,
        yes=yes or None,
        quiet=is_quiet() or None,
        debug=is_debug() or None,
    )

    interaction: InteractionProvider = (
        TerminalInteraction() if config.interactive else ScriptedInteraction()
    )

    with Session(proxy=config.proxy, timeout=config.timeout) as session:
        code = run_batch(config, targets, session, interaction)

    raise typer.Exit(code=code)
