"""Site handler plugins.

Handlers turn a web page into stream descriptors. Built-in handlers ship
in ``vidfetch.plugins.builtin``; more can be installed as single files in
the plugin directory, where they override built-ins of the same name.
"""

from vidfetch.plugins.base import HandlerCapability, HandlerInfo, SearchResult, SiteHandler, require
from vidfetch.plugins.registry import HandlerRegistry
from vidfetch.plugins.resolver import (
    BuiltinResolver,
    InstalledPluginResolver,
    ResolvedSource,
    ResolverChain,
)
from vidfetch.plugins.store import PluginDescriptor, PluginStore

__all__ = [
    "BuiltinResolver",
    "HandlerCapability",
    "HandlerInfo",
    "HandlerRegistry",
    "InstalledPluginResolver",
    "PluginDescriptor",
    "PluginStore",
    "ResolvedSource",
    "ResolverChain",
    "SearchResult",
    "SiteHandler",
    "require",
]
