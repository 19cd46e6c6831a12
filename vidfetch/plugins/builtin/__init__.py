"""Built-in handlers for vidfetch.

This package contains the handlers that ship with vidfetch. Handlers are
matched in the order of BUILTIN_HANDLERS; ``Generic`` is the fallback and
is always tried last.
"""

from vidfetch.plugins.builtin.direct import Direct
from vidfetch.plugins.builtin.generic import Generic

# Handler name -> module inside this package
BUILTIN_HANDLERS = {
    "Direct": "direct",
    "Generic": "generic",
}

FALLBACK_HANDLER = "Generic"

__all__ = ["BUILTIN_HANDLERS", "FALLBACK_HANDLER", "Direct", "Generic"]
