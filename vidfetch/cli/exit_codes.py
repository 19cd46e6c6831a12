"""Standard exit codes for vidfetch.

This module defines the exit codes used across the CLI for consistent
error reporting and scripting support.
"""


class ExitCode:
    """Standard exit codes for vidfetch.

    The batch codes come first so scripts can tell how a run of several
    URLs went:
    - 0: Every requested download succeeded
    - 1: No download succeeded (also used for unexpected errors)
    - 2: Some downloads succeeded, some failed

    Errors outside the download batch use 3 and up:
    - 3: Configuration error
    - 4: Plugin error
    - 5: Network error
    - 6: Update error
    - 7: Invalid argument
    - 8: Not found
    - 9: Permission denied
    - 130: Cancelled with Ctrl+C (128 + SIGINT)
    """

    SUCCESS = 0

    # Batch outcomes
    GENERAL_ERROR = 1
    PARTIAL_SUCCESS = 2

    # vidfetch-specific errors (3-9)
    CONFIGURATION_ERROR = 3
    PLUGIN_ERROR = 4
    NETWORK_ERROR = 5
    UPDATE_ERROR = 6
    INVALID_ARGUMENT = 7
    NOT_FOUND = 8
    PERMISSION_DENIED = 9

    # Signal-based exits (128 + signal number)
    CANCELLED = 130  # Ctrl+C (SIGINT = 2)

    @classmethod
    def get_name(cls, code: int) -> str:
        """Get the name of an exit code.

        Args:
            code: The exit code value

        Returns:
            Human-readable name for the exit code
        """
        names = {
            cls.SUCCESS: "SUCCESS",
            cls.GENERAL_ERROR: "GENERAL_ERROR",
            cls.PARTIAL_SUCCESS: "PARTIAL_SUCCESS",
            cls.CONFIGURATION_ERROR: "CONFIGURATION_ERROR",
            cls.PLUGIN_ERROR: "PLUGIN_ERROR",
            cls.NETWORK_ERROR: "NETWORK_ERROR",
            cls.UPDATE_ERROR: "UPDATE_ERROR",
            cls.INVALID_ARGUMENT: "INVALID_ARGUMENT",
            cls.NOT_FOUND: "NOT_FOUND",
            cls.PERMISSION_DENIED: "PERMISSION_DENIED",
            cls.CANCELLED: "CANCELLED",
        }
        return names.get(code, f"UNKNOWN({code})")

    @classmethod
    def get_description(cls, code: int) -> str:
        """Get the description of an exit code.

        Args:
            code: The exit code value

        Returns:
            Human-readable description for the exit code
        """
        descriptions = {
            cls.SUCCESS: "All requested downloads succeeded",
            cls.GENERAL_ERROR: "No download succeeded or an unexpected error occurred",
            cls.PARTIAL_SUCCESS: "Some downloads succeeded, some failed",
            cls.CONFIGURATION_ERROR: "Configuration error or invalid config file",
            cls.PLUGIN_ERROR: "Plugin loading or installation error",
            cls.NETWORK_ERROR: "Network or connectivity error",
            cls.UPDATE_ERROR: "Self-update or plugin update failed",
            cls.INVALID_ARGUMENT: "Invalid command-line argument or choice",
            cls.NOT_FOUND: "Requested resource not found",
            cls.PERMISSION_DENIED: "Permission denied",
            cls.CANCELLED: "Operation cancelled by user",
        }
        return descriptions.get(code, f"Unknown exit code: {code}")

    @classmethod
    def for_batch(cls, succeeded: int, total: int) -> int:
        """Get the exit code summarising a batch of downloads.

        Args:
            succeeded: Number of URLs that downloaded successfully
            total: Number of URLs attempted

        Returns:
            SUCCESS if all succeeded, GENERAL_ERROR if none did,
            PARTIAL_SUCCESS otherwise
        """
        if succeeded >= total:
            return cls.SUCCESS
        if succeeded == 0:
            return cls.GENERAL_ERROR
        return cls.PARTIAL_SUCCESS
