"""Base class for site handlers.

Handlers are the site-specific part of vidfetch. Each handler declares the
URLs it claims and turns a fetched page into an ExtractionResult.
"""

import importlib
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, ClassVar, List, Optional, Pattern, Sequence

from vidfetch.config import Preferences
from vidfetch.errors import MissingDependencyError
from vidfetch.extraction import ExtractionResult
from vidfetch.session import Session


class HandlerCapability(Enum):
    """Optional capabilities a handler can provide."""

    PRE_INSPECT = auto()  # Prepares the session before the page is fetched
    SEARCH = auto()       # Can search the site for a phrase
    UPDATE = auto()       # Updates its own plugin file


@dataclass
class HandlerInfo:
    """Information about a handler.

    Attributes:
        name: Unique handler identifier, equal to its plugin file stem
        display_name: Human-readable name
        version: Handler version
        description: Handler description
        capabilities: Optional capabilities
    """

    name: str
    display_name: str = ""
    version: str = "1.0.0"
    description: str = ""
    capabilities: List[HandlerCapability] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.name


@dataclass
class SearchResult:
    """A video found by a handler's search.

    Attributes:
        name: Title shown to the user
        url: Page URL to download
        description: Optional extra text
    """

    name: str
    url: str
    description: str = ""


class SiteHandler(ABC):
    """Abstract base class for site handlers.

    Handlers must implement:
    - info property: Return handler information
    - extract(): Turn the fetched page into an ExtractionResult

    Handlers may set or override:
    - url_patterns: Regexes matched against candidate URLs
    - update_urls: Where updated copies of the plugin file are published
    - can_handle(): Custom URL matching
    - canonical_url(): Rewrite a URL before fetching
    - pre_inspect(): Set cookies or headers before the page is fetched
      (declare HandlerCapability.PRE_INSPECT)
    - search(): Search the site (declare HandlerCapability.SEARCH)
    - update(): Custom self-update (declare HandlerCapability.UPDATE)

    Example:
        class ExampleTube(SiteHandler):
            url_patterns = [r"example\\.com/watch/"]

            @property
            def info(self) -> HandlerInfo:
                return HandlerInfo(name="ExampleTube")

            def extract(self, session, url, preferences):
                src = re.search(r'src="([^"]+\\.mp4)"', session.content)
                return Single(HttpStream(src.group(1), ["example.mp4"]))
    """

    url_patterns: ClassVar[Sequence[str]] = ()
    update_urls: ClassVar[Sequence[str]] = ()

    # False for handlers whose URL is the stream itself
    fetch_page: ClassVar[bool] = True

    def __init__(self) -> None:
        self._compiled: List[Pattern[str]] = [
            re.compile(p, re.IGNORECASE) for p in self.url_patterns
        ]

    @property
    @abstractmethod
    def info(self) -> HandlerInfo:
        """Get handler information."""
        pass

    @property
    def name(self) -> str:
        """Get handler name."""
        return self.info.name

    def has_capability(self, capability: HandlerCapability) -> bool:
        """Check if the handler has a specific capability."""
        return capability in self.info.capabilities

    def can_handle(self, url: str) -> bool:
        """Check whether this handler claims a URL.

        The default matches the URL against ``url_patterns``.
        """
        return any(p.search(url) for p in self._compiled)

    def canonical_url(self, url: str) -> str:
        """Return the URL that should actually be fetched."""
        return url

    def pre_inspect(self, session: Session, url: str) -> None:
        """Prepare the session before the page is fetched."""
        pass

    @abstractmethod
    def extract(
        self,
        session: Session,
        url: str,
        preferences: Preferences,
    ) -> ExtractionResult:
        """Extract stream information from the fetched page.

        ``session.content`` holds the page fetched from ``url``.

        Raises:
            MissingDependencyError: If an optional library is missing
            ExtractionError: If the page has no usable stream
        """
        pass

    def search(
        self,
        session: Session,
        phrase: str,
        preferences: Preferences,
    ) -> List[SearchResult]:
        """Search the site for a phrase."""
        return []

    def update(self, session: Session) -> Optional[bool]:
        """Update this handler's own plugin file.

        Returns:
            True if updated, False if already current, None to fall back
            to the standard Last-Modified check
        """
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


def require(module: str, purpose: str = "") -> Any:
    """Import an optional library a handler depends on.

    Args:
        module: Importable module name
        purpose: What the library is needed for, shown to the user

    Returns:
        The imported module

    Raises:
        MissingDependencyError: If the module cannot be imported
    """
    try:
        return importlib.import_module(module)
    except ImportError:
        reason = f" ({purpose})" if purpose else ""
        raise MissingDependencyError(
            f"This site needs the Python module '{module}'{reason}, which is not installed.",
            module=module,
        )
