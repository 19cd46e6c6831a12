"""Resolution of handler names to handler source code.

Handlers are looked up through an explicit, ordered list of resolvers.
The default order is the installed-plugin directory first, then the
handlers bundled with vidfetch, so an installed file replaces a built-in
handler of the same name. A resolver that has nothing for a name returns
None; absence is never an error at this level.
"""

import importlib
import importlib.util
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, List, Optional, Protocol, Type

from vidfetch.errors import PluginError
from vidfetch.plugins.base import SiteHandler

logger = logging.getLogger(__name__)

PLUGIN_SUFFIX = ".py"

# Module name prefix for handlers loaded from the plugin directory
PLUGIN_MODULE_PREFIX = "vidfetch_plugin_"


@dataclass(frozen=True)
class ResolvedSource:
    """Where a handler's code was found.

    Attributes:
        name: Handler name that was asked for
        origin: "installed" or "builtin"
        path: File holding the source
        module_name: Name the module is loaded under
    """

    name: str
    origin: str
    path: Path
    module_name: str

    def open(self) -> BinaryIO:
        """Open the handler source for reading."""
        return self.path.open("rb")


class HandlerResolver(Protocol):
    """A named source of handler code."""

    name: str

    def resolve(self, handler_name: str) -> Optional[ResolvedSource]:
        ...

    def available(self) -> List[str]:
        ...


class InstalledPluginResolver:
    """Finds handlers in the user's plugin directory.

    The directory is flat: ``<dir>/<HandlerName>.py``. A file whose stem
    matches the name case-insensitively is accepted too.
    """

    name = "installed"

    def __init__(self, plugin_dir: Path) -> None:
        self.plugin_dir = plugin_dir

    def _files(self) -> Iterator[Path]:
        if not self.plugin_dir.is_dir():
            return iter(())
        return (
            p for p in sorted(self.plugin_dir.glob(f"*{PLUGIN_SUFFIX}"))
            if not p.name.startswith("_") and p.is_file()
        )

    def resolve(self, handler_name: str) -> Optional[ResolvedSource]:
        candidate = self.plugin_dir / f"{handler_name}{PLUGIN_SUFFIX}"
        logger.debug(f"Probing for plugin {handler_name} at {candidate}")

        try:
            if not candidate.is_file():
                wanted = handler_name.lower()
                candidate = next(
                    (p for p in self._files() if p.stem.lower() == wanted),
                    None,
                )
                if candidate is None:
                    return None
                logger.debug(f"Found plugin {handler_name} at {candidate}")
        except OSError as e:
            logger.debug(f"Could not probe {self.plugin_dir}: {e}")
            return None

        return ResolvedSource(
            name=handler_name,
            origin=self.name,
            path=candidate,
            module_name=f"{PLUGIN_MODULE_PREFIX}{candidate.stem}",
        )

    def available(self) -> List[str]:
        try:
            return [p.stem for p in self._files()]
        except OSError as e:
            logger.debug(f"Could not list {self.plugin_dir}: {e}")
            return []


class BuiltinResolver:
    """Finds handlers bundled in a package.

    Args:
        package: Package holding handler modules
        handlers: Mapping of handler name to module name inside the package
    """

    name = "builtin"

    def __init__(self, package: str, handlers: Dict[str, str]) -> None:
        self.package = package
        self.handlers = dict(handlers)

    def resolve(self, handler_name: str) -> Optional[ResolvedSource]:
        module = self.handlers.get(handler_name)
        if module is None:
            return None

        module_name = f"{self.package}.{module}"
        logger.debug(f"Probing for built-in handler {handler_name} in {module_name}")

        spec = importlib.util.find_spec(module_name)
        if spec is None or not spec.origin:
            return None

        return ResolvedSource(
            name=handler_name,
            origin=self.name,
            path=Path(spec.origin),
            module_name=module_name,
        )

    def available(self) -> List[str]:
        return list(self.handlers)


class ResolverChain:
    """Ordered list of resolvers; the first one with an answer wins.

    Example:
        chain = ResolverChain([
            InstalledPluginResolver(config.plugin_dir),
            BuiltinResolver("vidfetch.plugins.builtin", BUILTIN_HANDLERS),
        ])
        source = chain.resolve("Generic")
    """

    def __init__(self, resolvers: List[HandlerResolver]) -> None:
        self.resolvers = list(resolvers)

    def resolve(self, handler_name: str) -> Optional[ResolvedSource]:
        """Find the source for a handler name, or None."""
        for resolver in self.resolvers:
            source = resolver.resolve(handler_name)
            if source is not None:
                logger.debug(f"Handler {handler_name} resolved by {resolver.name}: {source.path}")
                return source
        logger.debug(f"Handler {handler_name} not found")
        return None

    def get(self, resolver_name: str) -> Optional[HandlerResolver]:
        """Get a resolver by name."""
        return next((r for r in self.resolvers if r.name == resolver_name), None)

    def load(self, handler_name: str) -> Optional[Type[SiteHandler]]:
        """Resolve and load a handler class.

        Returns:
            Handler class, or None when no resolver knows the name

        Raises:
            PluginError: If the source exists but cannot be loaded
        """
        source = self.resolve(handler_name)
        if source is None:
            return None
        return load_handler_class(source)


def _is_handler_class(obj: object, module_name: str) -> bool:
    return (
        isinstance(obj, type)
        and issubclass(obj, SiteHandler)
        and obj is not SiteHandler
        and obj.__module__ == module_name
        and not getattr(obj, "__abstractmethods__", None)
    )


def load_handler_class(source: ResolvedSource) -> Type[SiteHandler]:
    """Load the handler class defined by a resolved source.

    Built-in handlers are imported normally. Installed handlers are executed
    from their file into a fresh module, replacing any earlier load. A class
    named after the handler is preferred over other handler classes.

    Raises:
        PluginError: If the code fails to run or defines no handler class
    """
    if source.origin == BuiltinResolver.name:
        try:
            module = importlib.import_module(source.module_name)
        except Exception as e:
            raise PluginError(f"Failed to import built-in handler {source.name}: {e}")
    else:
        spec = importlib.util.spec_from_file_location(source.module_name, source.path)
        if spec is None or spec.loader is None:
            raise PluginError(
                f"Cannot load plugin {source.name}",
                details={"path": source.path},
            )

        module = importlib.util.module_from_spec(spec)
        sys.modules[source.module_name] = module

        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(source.module_name, None)
            raise PluginError(
                f"Failed to load plugin {source.name}: {e}",
                details={"path": source.path},
            )

    candidates = [
        obj for obj in vars(module).values() if _is_handler_class(obj, module.__name__)
    ]
    for obj in candidates:
        if obj.__name__.lower() == source.name.lower():
            return obj
    if candidates:
        return candidates[0]

    raise PluginError(
        f"No handler class found in {source.name}",
        details={"path": source.path},
    )
