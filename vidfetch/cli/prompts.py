"""User interaction for vidfetch.

Every question vidfetch asks (which filename to save as, which search
results to download, whether to run an upgrade) goes through an
InteractionProvider. The terminal provider asks with typer prompts; the
scripted provider answers from a list or with fixed defaults, for
``--yes`` runs and for tests.
"""

import re
from typing import List, Optional, Protocol, Sequence, TypeVar

import typer
from rich.console import Console

from vidfetch.errors import ValidationError

# Console for prompt output
console = Console()

T = TypeVar("T")

_RANGE = re.compile(r"^(\d+)-(\d+)$")


def parse_selection(text: str, count: int) -> List[int]:
    """Parse a selection of 1-based choices into 0-based indexes.

    Accepts a single number (``2``), a range (``1-3``), or several of
    those separated by commas or spaces (``1,3 5-6``). Empty input selects
    the first choice.

    Args:
        text: What the user typed
        count: Number of available choices

    Returns:
        Selected indexes in the order given, without duplicates

    Raises:
        ValidationError: If the input is malformed or out of range
    """
    text = text.strip()
    if not text:
        return [0] if count > 0 else []

    text = re.sub(r"\s*-\s*", "-", text)

    selected: List[int] = []
    for token in re.split(r"[,\s]+", text):
        if not token:
            continue

        if token.isdigit():
            start = end = int(token)
        elif match := _RANGE.match(token):
            start, end = int(match.group(1)), int(match.group(2))
        else:
            raise ValidationError(f"Invalid choice: {token}")

        if start < 1 or end > count or start > end:
            raise ValidationError(
                f"Invalid choice: {token}",
                details={"available": f"1-{count}"},
            )

        for number in range(start, end + 1):
            if number - 1 not in selected:
                selected.append(number - 1)

    return selected


class InteractionProvider(Protocol):
    """Answers the questions vidfetch needs to ask."""

    def choose_filename(self, suggestions: Sequence[str]) -> str:
        """Pick one of several suggested filenames."""
        ...

    def select_results(self, titles: Sequence[str]) -> List[int]:
        """Pick search results to download; returns 0-based indexes."""
        ...

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question."""
        ...


class TerminalInteraction:
    """Asks the user on the terminal."""

    def choose_filename(self, suggestions: Sequence[str]) -> str:
        default = len(suggestions) - 1
        return select_from_list(
            "Select a filename:",
            [(name, name) for name in suggestions],
            default=default,
        )

    def select_results(self, titles: Sequence[str]) -> List[int]:
        console.print("[bold]Search results:[/bold]")
        for i, title in enumerate(titles, start=1):
            console.print(f"  {i}. {title}")
        console.print("[dim]Enter a number, a range (e.g. 1-3), or several separated by commas[/dim]")

        response = typer.prompt("Download", default="1")
        return parse_selection(response, len(titles))

    def confirm(self, message: str, default: bool = False) -> bool:
        return typer.confirm(message, default=default)


class ScriptedInteraction:
    """Answers without a terminal.

    Answers are taken from ``answers`` in order; once they run out the
    defaults apply: the most specific filename, the first search result,
    and ``assume_yes`` for confirmations.
    """

    def __init__(
        self,
        answers: Optional[Sequence[str]] = None,
        assume_yes: bool = True,
    ) -> None:
        self._answers = list(answers or [])
        self.assume_yes = assume_yes
        self.questions: List[str] = []

    def _next(self) -> Optional[str]:
        return self._answers.pop(0) if self._answers else None

    def choose_filename(self, suggestions: Sequence[str]) -> str:
        self.questions.append("filename")
        answer = self._next()
        if answer is None:
            return suggestions[-1]
        return suggestions[parse_selection(answer, len(suggestions))[0]]

    def select_results(self, titles: Sequence[str]) -> List[int]:
        self.questions.append("search")
        return parse_selection(self._next() or "", len(titles))

    def confirm(self, message: str, default: bool = False) -> bool:
        self.questions.append("confirm")
        answer = self._next()
        if answer is None:
            return self.assume_yes
        return answer.strip().lower() in ("y", "yes")


def select_from_list(
    message: str,
    options: list[tuple[str, T]],
    default: int = 0,
) -> T:
    """Let user select an option from a list.

    Args:
        message: The prompt message
        options: List of (display_name, value) tuples
        default: Default selection index (0-based)

    Returns:
        The selected value

    Raises:
        typer.Exit: If user cancels
    """
    console.print(f"[bold]{message}[/bold]")

    for i, (name, _) in enumerate(options):
        marker = "[green]›[/green]" if i == default else " "
        console.print(f"  {marker} {i + 1}. {name}")

    console.print("[dim]Enter number or 'q' to cancel[/dim]")

    while True:
        response = typer.prompt("Choice", default=str(default + 1))

        if response.lower() in ("q", "quit", "cancel"):
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Exit()

        try:
            index = int(response) - 1
            if 0 <= index < len(options):
                return options[index][1]
            else:
                console.print(f"[red]Please enter a number between 1 and {len(options)}[/red]")
        except ValueError:
            console.print("[red]Please enter a valid number[/red]")
