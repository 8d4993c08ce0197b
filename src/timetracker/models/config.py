"""Configuration model for timetracker."""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import ConfigError

CONFIG_PATH = "~/.timetracker.toml"
CONFIG_SESSIONS_PATH = "sessions_path"


def resolve_path(path: str | Path) -> Path:
    """Expand ``~`` and environment variables in a path."""
    return Path(os.path.expandvars(os.path.expanduser(str(path))))


def get_config_path() -> Path:
    """Location of the config file, overridable with TIMETRACKER_CONFIG."""
    return resolve_path(os.environ.get("TIMETRACKER_CONFIG", CONFIG_PATH))


@dataclass
class TrackerConfig:
    """timetracker configuration."""

    sessions_path: Path

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {CONFIG_SESSIONS_PATH: str(self.sessions_path)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackerConfig":
        """Create a TrackerConfig from a dictionary.

        Raises:
            ConfigError: If ``sessions_path`` is missing, empty or not a string.
        """
        sessions_path = data.get(CONFIG_SESSIONS_PATH)
        if not isinstance(sessions_path, str):
            raise ConfigError(
                f"wrong config file format, please use `{CONFIG_SESSIONS_PATH}='<path>'`"
            )
        if not sessions_path.strip():
            raise ConfigError(f"wrong config, {CONFIG_SESSIONS_PATH} is empty")
        return cls(sessions_path=resolve_path(sessions_path.strip()))

    @classmethod
    def from_toml(cls, text: str) -> "TrackerConfig":
        """Parse the contents of a config file."""
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"couldn't parse config file: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: Path | None = None) -> "TrackerConfig":
        """Load the configuration.

        TIMETRACKER_SESSIONS_PATH, when set, replaces the config file. A
        missing config file is created with an empty template.

        Raises:
            ConfigError: If the file was missing or is malformed.
        """
        override = os.environ.get("TIMETRACKER_SESSIONS_PATH")
        if override:
            return cls(sessions_path=resolve_path(override))

        path = path or get_config_path()
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            path.write_text(f"{CONFIG_SESSIONS_PATH}=''\n", encoding="utf-8")
            raise ConfigError(f"config file not found, created one at `{path}`")
        return cls.from_toml(text)


@dataclass
class WebConfig:
    """Where the web view listens, read from TIMETRACKER_WEB_* variables."""

    host: str = "127.0.0.1"
    port: int = 8000
    reload: bool = False

    @classmethod
    def from_env(cls) -> "WebConfig":
        """Build from the environment, keeping defaults for unset variables.

        Raises:
            ConfigError: If TIMETRACKER_WEB_PORT is not a valid port number.
        """
        defaults = cls()
        port_text = os.environ.get("TIMETRACKER_WEB_PORT", str(defaults.port))
        try:
            port = int(port_text)
        except ValueError:
            port = -1
        if not 0 < port < 65536:
            raise ConfigError(f"invalid TIMETRACKER_WEB_PORT '{port_text}'")
        return cls(
            host=os.environ.get("TIMETRACKER_WEB_HOST", defaults.host),
            port=port,
            reload=os.environ.get("TIMETRACKER_WEB_RELOAD", "").lower() == "true",
        )
