"""
vidfetch Configuration Management.

Handles loading configuration from various sources:
- Default values
- System-wide configuration file (/etc/vidfetchrc)
- User configuration file (~/.config/vidfetch/config)
- Environment variables
- Command-line arguments (applied by the CLI with ``with_overrides``)

Configuration files are line oriented::

    # comment
    player = mpv --really-quiet %s
    subtitles
    proxy = socks5://localhost:1080

A bare key means ``true``. User values override system values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

from vidfetch.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Configuration directory and file constants
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "vidfetch"
DEFAULT_CONFIG_FILE = "config"
SYSTEM_CONFIG_FILE = Path("/etc/vidfetchrc")
PLUGIN_DIR_NAME = "plugins"

DEFAULT_UPDATE_URL = "https://vidfetch.github.io/latest.txt"
DEFAULT_PLAYER = "mpv --really-quiet %s"

ENV_PREFIX = "VIDFETCH_"

TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")

INSTALL_MODES = ("auto", "standalone", "pip", "system")


@dataclass(frozen=True)
class Preferences:
    """The settings a site handler is allowed to see.

    Attributes:
        quality: Requested quality (e.g. "high", "medium", "low", "720p")
        subtitles: Whether subtitle streams should be extracted as well
        interactive: Whether the user may be asked questions
    """

    quality: str = "high"
    subtitles: bool = False
    interactive: bool = True


@dataclass
class FetchConfig:
    """Main configuration container for vidfetch.

    One value of this class is built at startup and passed to every
    component that needs options.
    """

    # Paths
    config_dir: Path = DEFAULT_CONFIG_DIR

    # Download behaviour
    filename: Optional[str] = None
    play: bool = False
    player: str = DEFAULT_PLAYER
    proxy: Optional[str] = None
    quality: str = "high"
    subtitles: bool = False
    info: bool = False
    yes: bool = False
    timeout: float = 30.0

    # Verbosity
    quiet: bool = False
    debug: bool = False

    # Updates
    update_url: str = DEFAULT_UPDATE_URL
    install_mode: str = "auto"

    @property
    def plugin_dir(self) -> Path:
        """Directory holding installed handler plugins."""
        return self.config_dir / PLUGIN_DIR_NAME

    @property
    def interactive(self) -> bool:
        """Whether prompts may be shown (``--yes`` turns them off)."""
        return not self.yes

    @property
    def preferences(self) -> Preferences:
        """Handler-facing subset of the configuration."""
        return Preferences(
            quality=self.quality,
            subtitles=self.subtitles,
            interactive=self.interactive,
        )

    def with_overrides(self, **overrides: Any) -> "FetchConfig":
        """Return a copy with the given non-None values applied.

        CLI options left at ``None`` keep the configured value.
        """
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values)


def parse_config_lines(text: str, source: str = "<string>") -> dict[str, str | bool]:
    """Parse ``key = value`` lines into a dictionary.

    Args:
        text: File content
        source: Name used in log messages

    Returns:
        Mapping of normalised keys to string values, or True for bare keys
    """
    values: dict[str, str | bool] = {}

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        if "=" in line:
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()
        else:
            key, value = line, True

        if not key:
            logger.warning(f"{source}:{lineno}: ignoring line without a key")
            continue

        values[key.replace("-", "_").lower()] = value

    return values


def _coerce(name: str, raw: str | bool, current: Any) -> Any:
    """Convert a raw config value to the type of the field it sets."""
    if isinstance(current, bool):
        if isinstance(raw, bool):
            return raw
        lowered = raw.lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ConfigurationError(f"Invalid boolean for '{name}': {raw}")

    if isinstance(raw, bool):
        raise ConfigurationError(f"Option '{name}' needs a value")

    if isinstance(current, float):
        try:
            return float(raw)
        except ValueError:
            raise ConfigurationError(f"Invalid number for '{name}': {raw}")

    if name == "config_dir":
        return Path(raw).expanduser()

    if name == "install_mode" and raw not in INSTALL_MODES:
        raise ConfigurationError(
            f"Invalid install_mode: {raw}",
            details={"allowed": ", ".join(INSTALL_MODES)},
        )

    return raw


def apply_values(
    config: FetchConfig,
    values: dict[str, str | bool],
    source: str,
) -> FetchConfig:
    """Apply parsed key/value pairs to a configuration.

    Unknown keys are logged and skipped.
    """
    known = {f.name for f in fields(FetchConfig)}

    for key, raw in values.items():
        if key not in known:
            logger.warning(f"{source}: unknown option '{key}' ignored")
            continue
        setattr(config, key, _coerce(key, raw, getattr(config, key)))
        logger.debug(f"{source}: {key} set")

    return config


def _load_from_file(path: Path, config: FetchConfig) -> FetchConfig:
    """Load configuration from a key/value file if it exists."""
    if not path.is_file():
        logger.debug(f"No config file at {path}")
        return config

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Failed to read config from {path}: {e}")
        return config

    return apply_values(config, parse_config_lines(text, str(path)), str(path))


def _load_from_env(config: FetchConfig, prefix: str) -> FetchConfig:
    """Load configuration from environment variables."""
    values: dict[str, str | bool] = {}

    for f in fields(FetchConfig):
        if f.name == "config_dir":
            continue
        if env_val := os.environ.get(f"{prefix}{f.name.upper()}"):
            values[f.name] = env_val

    return apply_values(config, values, "environment")


def load_config(
    user_path: Optional[Path] = None,
    system_path: Optional[Path] = SYSTEM_CONFIG_FILE,
    env_prefix: str = ENV_PREFIX,
) -> FetchConfig:
    """
    Load configuration from files and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. User config file
    3. System config file
    4. Default values

    Args:
        user_path: User config file (default: <config_dir>/config)
        system_path: System-wide config file, None to skip it
        env_prefix: Prefix for environment variables

    Returns:
        Loaded configuration
    """
    config = FetchConfig()

    if env_config_dir := os.environ.get(f"{env_prefix}CONFIG_DIR"):
        config.config_dir = Path(env_config_dir).expanduser()

    if user_path is None:
        user_path = config.config_dir / DEFAULT_CONFIG_FILE

    if system_path is not None:
        config = _load_from_file(system_path, config)
    config = _load_from_file(user_path, config)
    config = _load_from_env(config, env_prefix)

    return config


def ensure_directories(config: FetchConfig) -> None:
    """Create the configuration and plugin directories."""
    config.plugin_dir.mkdir(parents=True, exist_ok=True)
