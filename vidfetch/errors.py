"""Exception hierarchy for vidfetch.

Every error raised on purpose by vidfetch inherits from VidfetchError and
carries the exit code the CLI should use when the error reaches it.
"""

from typing import Any

from vidfetch.cli.exit_codes import ExitCode


class VidfetchError(Exception):
    """Base exception for vidfetch.

    Attributes:
        message: Error message
        exit_code: Exit code to use when exiting
        details: Optional dictionary of additional error details
    """

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(VidfetchError):
    """Invalid configuration file or option value."""

    exit_code = ExitCode.CONFIGURATION_ERROR


class PluginError(VidfetchError):
    """A handler plugin could not be loaded or installed."""

    exit_code = ExitCode.PLUGIN_ERROR


class NetworkError(VidfetchError):
    """Network or connectivity error."""

    exit_code = ExitCode.NETWORK_ERROR


class FetchError(NetworkError):
    """A page could not be fetched.

    Raised for connection failures and for responses that are neither
    successful nor redirects.
    """

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        proxy_related: bool = False,
    ) -> None:
        super().__init__(message, details={"url": url})
        self.url = url
        self.status_code = status_code
        self.proxy_related = proxy_related


class ExtractionError(VidfetchError):
    """A site handler failed to extract stream information."""


class MissingDependencyError(ExtractionError):
    """A handler needs an optional library that is not installed.

    The message is shown to the user as-is, followed by install guidance
    for ``module`` when it is given.
    """

    def __init__(self, message: str, module: str | None = None) -> None:
        super().__init__(message)
        self.module = module


class UpdateError(VidfetchError):
    """Self-update, plugin update or plugin installation failed."""

    exit_code = ExitCode.UPDATE_ERROR


class ValidationError(VidfetchError):
    """User input failed validation."""

    exit_code = ExitCode.INVALID_ARGUMENT


class NotFoundError(VidfetchError):
    """A requested resource could not be found."""

    exit_code = ExitCode.NOT_FOUND
