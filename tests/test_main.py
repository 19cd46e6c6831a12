"""Tests for the main CLI entry point."""

import logging

from typer.testing import CliRunner

from vidfetch import __version__
from vidfetch.cli.exit_codes import ExitCode
from vidfetch.main import _setup_logging, app


runner = CliRunner()


class TestMain:
    """Tests for global options."""

    def test_version(self):
        """Test --version prints the version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == ExitCode.SUCCESS
        assert __version__ in result.output

    def test_help_lists_commands(self):
        """Test the command groups are registered."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == ExitCode.SUCCESS
        for command in ("get", "update", "plugins"):
            assert command in result.output

    def test_quiet_and_verbose_exclusive(self):
        """Test --quiet with --verbose is rejected."""
        result = runner.invoke(app, ["--quiet", "--verbose", "plugins", "list"])
        assert result.exit_code == ExitCode.INVALID_ARGUMENT

    def test_quiet_and_debug_exclusive(self):
        """Test --quiet with --debug is rejected."""
        result = runner.invoke(app, ["--quiet", "--debug", "plugins", "list"])
        assert result.exit_code == ExitCode.INVALID_ARGUMENT

    def test_log_file(self, tmp_path, monkeypatch):
        """Test --log-file receives debug output."""
        monkeypatch.setenv("VIDFETCH_CONFIG_DIR", str(tmp_path / "config"))
        log_file = tmp_path / "logs" / "vidfetch.log"

        result = runner.invoke(app, ["--log-file", str(log_file), "plugins", "list"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "Logging configured" in log_file.read_text()


class TestSetupLogging:
    """Tests for logging configuration."""

    def test_http_client_logs_quiet_without_debug(self):
        """Test httpx request logging stays hidden in verbose mode."""
        _setup_logging(verbose=True)

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger().level == logging.INFO

    def test_http_client_logs_shown_with_debug(self):
        """Test httpx request logging is shown in debug mode."""
        _setup_logging(debug=True)

        assert logging.getLogger("httpx").level == logging.DEBUG
        assert logging.getLogger("httpcore").level == logging.DEBUG
