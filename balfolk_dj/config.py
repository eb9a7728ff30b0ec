"""Configuration management for balfolk-dj."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from balfolk_dj.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)

DEFAULT_MAX_QUEUE_ITEMS = 6
DEFAULT_DELAY_SECONDS = 30
MIN_DELAY_SECONDS = 1
MAX_DELAY_SECONDS = 300
DEFAULT_PLAYER_COMMAND = ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"]


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "balfolk-dj" / "config.toml"


def get_default_data_dir() -> Path:
    """Get the default directory for the dance tree and synonym files."""
    return Path.home() / ".local" / "share" / "balfolk-dj"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        music_dir: Directory scanned for tracks. None until configured.
        data_dir: Directory holding dancetree.json and dancesynonyms.json.
        max_queue_items: Capacity of the playback queue.
        delay_seconds: Default length of a delay marker.
        allow_duplicates: Whether a track may be queued again once queued,
            playing or already played this session.
        auto_queue: Whether a weighted random suggestion is appended when
            the queue runs out of manual items.
        player_command: External player invocation; the file path is appended.
        colored_output: Whether to use colored terminal output.
        config_path: Path where config was loaded from (None if defaults).
    """

    music_dir: Path | None = None
    data_dir: Path = field(default_factory=get_default_data_dir)
    max_queue_items: int = DEFAULT_MAX_QUEUE_ITEMS
    delay_seconds: int = DEFAULT_DELAY_SECONDS
    allow_duplicates: bool = True
    auto_queue: bool = False
    player_command: list[str] = field(default_factory=lambda: list(DEFAULT_PLAYER_COMMAND))
    colored_output: bool = True
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Out-of-range numbers are clamped rather than rejected.

        Returns:
            List of warning messages for non-fatal issues.
        """
        warnings: list[str] = []

        self.data_dir = self.data_dir.expanduser().resolve()
        if self.music_dir is not None:
            self.music_dir = self.music_dir.expanduser().resolve()
            if not self.music_dir.is_dir():
                warnings.append(f"Music directory not found: {self.music_dir}")

        if self.max_queue_items < 1:
            warnings.append(f"queue.max_items={self.max_queue_items} is below 1, using 1")
            self.max_queue_items = 1

        if not MIN_DELAY_SECONDS <= self.delay_seconds <= MAX_DELAY_SECONDS:
            clamped = min(max(self.delay_seconds, MIN_DELAY_SECONDS), MAX_DELAY_SECONDS)
            warnings.append(
                f"queue.delay_seconds={self.delay_seconds} is outside valid range "
                f"{MIN_DELAY_SECONDS}-{MAX_DELAY_SECONDS}, using {clamped}"
            )
            self.delay_seconds = clamped

        if not self.player_command:
            warnings.append("player.command is empty, using default player")
            self.player_command = list(DEFAULT_PLAYER_COMMAND)

        return warnings

    @property
    def tree_path(self) -> Path:
        return self.data_dir / "dancetree.json"

    @property
    def synonyms_path(self) -> Path:
        return self.data_dir / "dancesynonyms.json"


def load_config(config_path: Path | None = None) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Args:
        config_path: Explicit config file path. If None, uses default location.

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        config = Config()
        warnings.append(
            f"No config file found at {config_path}. Using defaults. "
            f"Create config with: balfolk-dj init-config"
        )
        config_warnings = config.validate()
        return config, warnings + config_warnings

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    config_warnings = config.validate()

    return config, warnings + config_warnings


def _require(value: object, expected: type, key: str, reason: str) -> None:
    # bool is a subclass of int; a flag is never a valid count
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise ConfigValidationError(key, value, reason)


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [paths] section
    paths = data.get("paths", {})
    if "music_dir" in paths:
        value = paths["music_dir"]
        _require(value, str, "paths.music_dir", "must be a string path")
        config.music_dir = Path(value)

    if "data_dir" in paths:
        value = paths["data_dir"]
        _require(value, str, "paths.data_dir", "must be a string path")
        config.data_dir = Path(value)

    # Parse [queue] section
    queue = data.get("queue", {})
    if "max_items" in queue:
        value = queue["max_items"]
        _require(value, int, "queue.max_items", "must be an integer")
        config.max_queue_items = value

    if "delay_seconds" in queue:
        value = queue["delay_seconds"]
        _require(value, int, "queue.delay_seconds", "must be an integer")
        config.delay_seconds = value

    if "allow_duplicates" in queue:
        value = queue["allow_duplicates"]
        _require(value, bool, "queue.allow_duplicates", "must be a boolean")
        config.allow_duplicates = value

    if "auto_queue" in queue:
        value = queue["auto_queue"]
        _require(value, bool, "queue.auto_queue", "must be a boolean")
        config.auto_queue = value

    # Parse [player] section
    player = data.get("player", {})
    if "command" in player:
        value = player["command"]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigValidationError("player.command", value, "must be a list of strings")
        config.player_command = list(value)

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        value = display["colored_output"]
        _require(value, bool, "display.colored_output", "must be a boolean")
        config.colored_output = value

    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {
        "paths": {
            "data_dir": str(config.data_dir),
        },
        "queue": {
            "max_items": config.max_queue_items,
            "delay_seconds": config.delay_seconds,
            "allow_duplicates": config.allow_duplicates,
            "auto_queue": config.auto_queue,
        },
        "display": {
            "colored_output": config.colored_output,
        },
    }

    if config.music_dir is not None:
        data["paths"]["music_dir"] = str(config.music_dir)

    if config.player_command != DEFAULT_PLAYER_COMMAND:
        data["player"] = {"command": list(config.player_command)}

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
