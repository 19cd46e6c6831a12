"""CLI command modules for vidfetch.

This package contains the CLI command implementations and supporting
utilities for exit codes, error handling and user interaction. Command
modules are imported by ``vidfetch.main``; only the light-weight helpers
are re-exported here so core modules can import them without cycles.
"""

from vidfetch.cli.exit_codes import ExitCode

__all__ = ["ExitCode"]
