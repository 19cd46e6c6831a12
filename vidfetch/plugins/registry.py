"""Site handler registry.

The registry decides which handler claims a URL. Candidate names are the
built-in handlers in declared order, then installed plugins that are not
built-in names; the fallback handler is tried last. Every name is loaded
through the resolver chain, so an installed plugin with a built-in name
takes that built-in's place.
"""

import logging
from typing import Dict, List, Optional, Tuple, Type

from vidfetch.config import FetchConfig, Preferences
from vidfetch.errors import NotFoundError, PluginError
from vidfetch.extraction import ExtractionResult
from vidfetch.plugins.base import HandlerCapability, SiteHandler
from vidfetch.plugins.builtin import BUILTIN_HANDLERS, FALLBACK_HANDLER
from vidfetch.plugins.resolver import (
    BuiltinResolver,
    InstalledPluginResolver,
    ResolverChain,
)
from vidfetch.session import Session

logger = logging.getLogger(__name__)

BUILTIN_PACKAGE = "vidfetch.plugins.builtin"


def default_resolvers(config: FetchConfig) -> ResolverChain:
    """Installed plugins first, then built-in handlers."""
    return ResolverChain([
        InstalledPluginResolver(config.plugin_dir),
        BuiltinResolver(BUILTIN_PACKAGE, BUILTIN_HANDLERS),
    ])


class HandlerRegistry:
    """Matches URLs to site handlers.

    Example:
        registry = HandlerRegistry(config)
        handler, url = registry.resolve("https://example.com/watch/1")
        registry.prepare(handler, session, url)
        session.fetch_page(url)
        result = registry.extract(handler, session, url, config.preferences)
    """

    def __init__(
        self,
        config: FetchConfig,
        resolvers: Optional[ResolverChain] = None,
        builtin_names: Optional[List[str]] = None,
        fallback: Optional[str] = FALLBACK_HANDLER,
    ) -> None:
        """Initialize the registry.

        Args:
            config: Process configuration
            resolvers: Resolver chain (default: installed, then built-in)
            builtin_names: Built-in handler names in match order
            fallback: Handler tried after all others, None for no fallback
        """
        self._config = config
        self._resolvers = resolvers or default_resolvers(config)
        self._builtin_names = list(builtin_names if builtin_names is not None else BUILTIN_HANDLERS)
        self._fallback = fallback
        self._classes: Dict[str, Optional[Type[SiteHandler]]] = {}
        self._instances: Dict[str, SiteHandler] = {}

    @property
    def resolvers(self) -> ResolverChain:
        return self._resolvers

    def _installed_names(self) -> List[str]:
        installed = self._resolvers.get(InstalledPluginResolver.name)
        return installed.available() if installed is not None else []

    def candidate_names(self) -> List[str]:
        """Handler names in the order they are tried."""
        names = [n for n in self._builtin_names if n != self._fallback]
        builtin_lower = {n.lower() for n in self._builtin_names}

        for name in self._installed_names():
            if name.lower() not in builtin_lower and name not in names:
                names.append(name)

        if self._fallback:
            names.append(self._fallback)
        return names

    def load(self, name: str) -> Optional[Type[SiteHandler]]:
        """Load a handler class by name, caching the result.

        Returns:
            The class, or None if no resolver knows the name

        Raises:
            PluginError: If the handler exists but fails to load
        """
        if name not in self._classes:
            self._classes[name] = self._resolvers.load(name)
        return self._classes[name]

    def get_handler(self, name: str) -> Optional[SiteHandler]:
        """Get a handler instance by name, or None if it cannot be loaded."""
        if name in self._instances:
            return self._instances[name]

        try:
            handler_class = self.load(name)
        except PluginError as e:
            logger.warning(f"Skipping handler {name}: {e}")
            return None
        if handler_class is None:
            return None

        try:
            handler = handler_class()
        except Exception as e:
            logger.warning(f"Skipping handler {name}: failed to instantiate: {e}")
            return None

        self._instances[name] = handler
        return handler

    def handlers(self) -> List[SiteHandler]:
        """All loadable handlers in match order."""
        result = []
        for name in self.candidate_names():
            handler = self.get_handler(name)
            if handler is not None:
                result.append(handler)
        return result

    def resolve(self, url: str) -> Tuple[SiteHandler, str]:
        """Find the handler for a URL.

        Returns:
            (handler, canonical URL)

        Raises:
            NotFoundError: If no handler claims the URL
        """
        for handler in self.handlers():
            if handler.can_handle(url):
                canonical = handler.canonical_url(url)
                logger.info(f"Using handler {handler.name} for {canonical}")
                return handler, canonical

        raise NotFoundError(f"No handler found for {url}")

    def prepare(self, handler: SiteHandler, session: Session, url: str) -> None:
        """Let a handler set up the session before its page is fetched."""
        if handler.has_capability(HandlerCapability.PRE_INSPECT):
            logger.debug(f"Pre-inspecting session with {handler.name}")
            handler.pre_inspect(session, url)

    def extract(
        self,
        handler: SiteHandler,
        session: Session,
        url: str,
        preferences: Preferences,
    ) -> ExtractionResult:
        """Run a handler's extraction."""
        return handler.extract(session, url, preferences)

    def searchers(self) -> List[SiteHandler]:
        """Handlers that can search."""
        return [h for h in self.handlers() if h.has_capability(HandlerCapability.SEARCH)]
