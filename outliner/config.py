"""Configuration management for outliner."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from outliner.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)

OUTPUT_FORMATS: tuple[str, ...] = ("table", "ids", "json", "jsonl", "fields")

DEFAULT_FIELDS = "id,text,attributes"


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "outliner" / "config.toml"


def get_default_outline_path() -> Path:
    """Get the default outline document path."""
    return Path.home() / ".local" / "share" / "outliner" / "outline.json"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        outline: Path to the outline JSON document searched by default.
        colored_output: Whether to use colored terminal output.
        default_format: Default output format for ``search``.
        quick_search_limit: Result cap for ``search --quick``.
        lenient: Fall back to plain text search on query syntax errors.
        fields: Comma-separated fields for the ``fields``/``json`` formats.
        config_path: Path where config was loaded from (None if defaults).
    """

    outline: Path = field(default_factory=get_default_outline_path)
    colored_output: bool = True
    default_format: str = "table"
    quick_search_limit: int = 10
    lenient: bool = False
    fields: str = DEFAULT_FIELDS
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.
        """
        warnings: list[str] = []

        self.outline = self.outline.expanduser()

        if not self.outline.exists():
            warnings.append(f"Outline not found: {self.outline}")

        if self.default_format not in OUTPUT_FORMATS:
            warnings.append(
                f"search.default_format={self.default_format!r} is not one of "
                f"{', '.join(OUTPUT_FORMATS)}; using 'table'"
            )
            self.default_format = "table"

        if self.quick_search_limit <= 0:
            warnings.append(
                f"search.quick_search_limit={self.quick_search_limit} must be positive; using 10"
            )
            self.quick_search_limit = 10

        return warnings


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
            f"Create config with: outliner init-config"
        )
        return config, warnings + config.validate()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    return config, warnings + config.validate()


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [paths] section
    paths = data.get("paths", {})
    if "outline" in paths:
        value = paths["outline"]
        if not isinstance(value, str):
            raise ConfigValidationError("paths.outline", value, "must be a string path")
        config.outline = Path(value)

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        value = display["colored_output"]
        if not isinstance(value, bool):
            raise ConfigValidationError("display.colored_output", value, "must be a boolean")
        config.colored_output = value

    # Parse [search] section
    search = data.get("search", {})
    if "default_format" in search:
        value = search["default_format"]
        if not isinstance(value, str):
            raise ConfigValidationError("search.default_format", value, "must be a string")
        config.default_format = value

    if "quick_search_limit" in search:
        value = search["quick_search_limit"]
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigValidationError("search.quick_search_limit", value, "must be an integer")
        config.quick_search_limit = value

    if "lenient" in search:
        value = search["lenient"]
        if not isinstance(value, bool):
            raise ConfigValidationError("search.lenient", value, "must be a boolean")
        config.lenient = value

    if "fields" in search:
        value = search["fields"]
        if not isinstance(value, str):
            raise ConfigValidationError("search.fields", value, "must be a comma-separated string")
        config.fields = value

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
            "outline": str(config.outline),
        },
        "display": {
            "colored_output": config.colored_output,
        },
    }

    # Build [search] section (only non-default values)
    search_data: dict[str, Any] = {}
    if config.default_format != "table":
        search_data["default_format"] = config.default_format
    if config.quick_search_limit != 10:
        search_data["quick_search_limit"] = config.quick_search_limit
    if config.lenient:
        search_data["lenient"] = True
    if config.fields != DEFAULT_FIELDS:
        search_data["fields"] = config.fields
    if search_data:
        data["search"] = search_data

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
