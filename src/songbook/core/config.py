"""
Configuration management for Songbook
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .exceptions import ConfigError

VALID_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Rotating file sink; `true` in TOML picks the data dir
    console_output: bool = True  # Log to stderr

    def validate(self, source: Path) -> None:
        """Validate logging configuration values.

        Raises:
            ConfigError: If the level is unknown
        """
        if self.level not in VALID_LOG_LEVELS:
            raise ConfigError(
                source,
                f"unknown log level {self.level!r}, expected one of {', '.join(VALID_LOG_LEVELS)}",
            )


@dataclass
class EditorConfig:
    """Configuration for the external metadata editor."""

    command: Optional[str] = None  # Falls back to $EDITOR, then vi


@dataclass
class IndexConfig:
    """Configuration for locating the library index."""

    search_levels: int = 64  # Ancestor directories examined when opening

    def validate(self, source: Path) -> None:
        if self.search_levels < 1:
            raise ConfigError(source, "index.search_levels must be at least 1")


@dataclass
class Config:
    """Main configuration object."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    editor: EditorConfig = field(default_factory=EditorConfig)
    index: IndexConfig = field(default_factory=IndexConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "songbook"
    return Path.home() / ".config" / "songbook"


def get_config_path() -> Path:
    """Get the main configuration file path.

    $SONGBOOK_CONFIG wins over the XDG location.
    """
    explicit = os.environ.get("SONGBOOK_CONFIG")
    if explicit:
        return Path(explicit).expanduser()
    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "songbook"
    return Path.home() / ".local" / "share" / "songbook"


def get_log_file_path() -> Path:
    """Default location of the rotating log file."""
    return get_data_dir() / "songbook.log"


def _section(toml_data: dict, name: str, source: Path) -> dict:
    section = toml_data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(source, f"[{name}] must be a table")
    return section


def parse_config(toml_data: dict, source: Path) -> Config:
    """Build a Config from already-decoded TOML data."""
    config = Config()

    logging_data = _section(toml_data, "logging", source)
    log_file = logging_data.get("log_file")
    if log_file is True:
        log_file = str(get_log_file_path())
    elif log_file:
        log_file = str(Path(log_file).expanduser())
    else:
        log_file = None
    config.logging = LoggingConfig(
        level=str(logging_data.get("level", config.logging.level)).upper(),
        log_file=log_file,
        console_output=logging_data.get("console_output", config.logging.console_output),
    )

    editor_data = _section(toml_data, "editor", source)
    config.editor = EditorConfig(command=editor_data.get("command"))

    index_data = _section(toml_data, "index", source)
    search_levels = index_data.get("search_levels", config.index.search_levels)
    if not isinstance(search_levels, int):
        raise ConfigError(source, "index.search_levels must be an integer")
    config.index = IndexConfig(search_levels=search_levels)

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file, or defaults when no file exists.

    Environment variables override TOML values:
    - SONGBOOK_EDITOR
    - SONGBOOK_LOG_LEVEL
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                toml_data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(config_path, str(e)) from e
        except OSError as e:
            raise ConfigError(config_path, e.strerror or str(e)) from e
        config = parse_config(toml_data, config_path)
    else:
        config = Config()

    editor_override = os.environ.get("SONGBOOK_EDITOR")
    if editor_override:
        config.editor.command = editor_override

    level_override = os.environ.get("SONGBOOK_LOG_LEVEL")
    if level_override:
        config.logging.level = level_override.upper()

    config.logging.validate(config_path)
    config.index.validate(config_path)
    return config
