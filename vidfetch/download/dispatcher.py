"""Download dispatcher.

Turns an ExtractionResult into ordered work items, chooses the save-as
filenames, and hands each item to the backend for its transport kind.
Items of one result run strictly in order and stop at the first failure.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

import typer
from rich.console import Console

from vidfetch.cli.exit_codes import ExitCode
from vidfetch.cli.prompts import InteractionProvider
from vidfetch.config import FetchConfig
from vidfetch.download.backends import Backend, default_backends
from vidfetch.download.parts import is_complete, part_filename, part_suffix
from vidfetch.extraction import (
    ExtractionResult,
    HttpStream,
    MultiPart,
    Single,
    Stream,
    StreamList,
    TransportKind,
    filename_from_url,
    title_from_filename,
)
from vidfetch.session import Session

logger = logging.getLogger(__name__)


@dataclass
class DownloadWorkItem:
    """One concrete download.

    Attributes:
        kind: Transport kind selecting the backend
        stream: Stream to fetch
        filename: Target filename, part suffix included
        part_suffix: ``.partNN_of_MM`` for multi-part items, else empty
        expected_size: Known size in bytes, used to skip finished parts
    """

    kind: TransportKind
    stream: Stream
    filename: str
    part_suffix: str = ""
    expected_size: Optional[int] = None


def _distinct(names: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for name in names:
        if name and name not in seen:
            seen.append(name)
    return seen


def _unique(name: str, taken: Set[str]) -> str:
    """Number ``name`` as ``stem.N.ext`` until no earlier item uses it."""
    stem, extension = posixpath.splitext(name)
    candidate = name
    number = 2
    while candidate in taken:
        candidate = f"{stem}.{number}{extension}"
        number += 1
    return candidate


class Dispatcher:
    """Routes extraction results to transport backends.

    Example:
        dispatcher = Dispatcher(config, session, TerminalInteraction())
        ok = dispatcher.dispatch(result, remaining=2)
    """

    def __init__(
        self,
        config: FetchConfig,
        session: Session,
        interaction: InteractionProvider,
        backends: Optional[Dict[TransportKind, Backend]] = None,
        output_dir: Optional[Path] = None,
        console: Optional[Console] = None,
    ) -> None:
        self.config = config
        self.session = session
        self.interaction = interaction
        self.backends = backends if backends is not None else default_backends(
            session, config.player, config.quiet
        )
        self.output_dir = output_dir or Path(".")
        self.console = console or Console()

    def choose_filename(
        self,
        suggestions: Sequence[str],
        fallback: str,
        explicit: Optional[str] = None,
    ) -> str:
        """Pick the save-as name for one download.

        An explicit name wins. Otherwise the most specific (last)
        suggestion is used, unless there are several different ones and
        prompting is allowed, in which case the user picks. Without
        suggestions the fallback is used.
        """
        if explicit:
            return explicit

        names = _distinct(suggestions)
        if not names:
            return fallback
        if len(names) > 1 and self.config.interactive:
            return self.interaction.choose_filename(names)
        return names[-1]

    def flatten(self, result: ExtractionResult) -> List[DownloadWorkItem]:
        """Turn a result into ordered work items with final filenames."""
        explicit = self.config.filename

        if isinstance(result, Single):
            stream = result.stream
            name = self.choose_filename(stream.filenames, stream.inferred_filename(), explicit)
            return [DownloadWorkItem(stream.kind, stream, name)]

        if isinstance(result, StreamList):
            items = []
            taken: Set[str] = set()
            for position, stream in enumerate(result.streams):
                if position == 0 or not explicit:
                    name = self.choose_filename(
                        stream.filenames, stream.inferred_filename(), explicit
                    )
                else:
                    own = self.choose_filename(stream.filenames, stream.inferred_filename())
                    name = posixpath.splitext(explicit)[0] + posixpath.splitext(own)[1]
                name = _unique(name, taken)
                taken.add(name)
                items.append(DownloadWorkItem(stream.kind, stream, name))
            return items

        if isinstance(result, MultiPart):
            if not result.parts:
                return []
            name = self.choose_filename(
                result.filenames, filename_from_url(result.parts[0].url), explicit
            )
            return [
                DownloadWorkItem(
                    kind=TransportKind.HTTP,
                    stream=HttpStream(part.url),
                    filename=part_filename(name, part.index, part.count),
                    part_suffix=part_suffix(part.index, part.count),
                    expected_size=part.size,
                )
                for part in result.parts
            ]

        raise TypeError(f"Unknown extraction result: {type(result).__name__}")

    def show_info(self, items: List[DownloadWorkItem]) -> None:
        """Print what would be downloaded, without transferring anything."""
        for item in items:
            self.console.print(f"[bold]Title:[/bold] {title_from_filename(item.filename)}")
            self.console.print(f"[bold]Filename:[/bold] {item.filename}")
            self.console.print(f"[bold]Transport:[/bold] {item.kind.value}")
            self.console.print(f"[bold]URL:[/bold] {item.stream.url}")

            if item.kind is TransportKind.HTTP:
                length = self.session.content_length(item.stream.url)
                self.console.print(
                    f"[bold]Content-Length:[/bold] {length if length is not None else 'unknown'}"
                )
            self.console.print()

    def dispatch(self, result: ExtractionResult, remaining: int = 0) -> bool:
        """Download (or play) everything in a result.

        Args:
            result: Handler output
            remaining: URLs still queued after this one, for progress output

        Returns:
            True if every item succeeded or was already complete

        Raises:
            typer.Exit: With code 0 after printing info in info-only mode
        """
        items = self.flatten(result)
        if not items:
            logger.error("Nothing to download in extraction result")
            return False

        if self.config.info:
            self.show_info(items)
            raise typer.Exit(code=ExitCode.SUCCESS)

        if remaining:
            logger.info(f"{remaining} more URL(s) queued after this one")

        for item in items:
            target = self.output_dir / item.filename

            if not self.config.play and is_complete(target, item.expected_size):
                self.console.print(f"[dim]Skipping {item.filename}, already downloaded[/dim]")
                continue

            backend = self.backends.get(item.kind)
            if backend is None:
                logger.error(f"No backend for {item.kind.value} streams")
                return False

            if self.config.play:
                action = backend.play
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                action = backend.download

            if not action(item.stream, target):
                self.console.print(f"[red]✗[/red] Failed: {item.filename}")
                return False

            if not self.config.play:
                self.console.print(f"[green]✓[/green] Saved to {target}")

        return True
