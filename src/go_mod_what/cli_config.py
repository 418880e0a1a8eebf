"""
Configuration management for go-mod-what.

Settings come from dataclass defaults, then an optional config file
(TOML or JSON) found in the standard locations, then environment variables.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
from rich.console import Console

console = Console(stderr=True)

CONVENTIONAL_FILENAME = "go.mod"
OUTPUT_FORMATS = ("text", "json", "table")


@dataclass
class QueryConfig:
    """Lookup and output configuration."""

    default_modfile: str = "./" + CONVENTIONAL_FILENAME
    separator: str = " "
    fail_on_missing: bool = True
    output_format: str = "text"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"
    enable_json: bool = True
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class ComprehensiveConfig:
    """Main configuration containing all subsections."""

    query: QueryConfig = field(default_factory=QueryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_global_config: Optional[ComprehensiveConfig] = None


def validate_config_values(config: ComprehensiveConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if not isinstance(config.query.default_modfile, str):
        errors.append("query.default_modfile must be a string")
    if not isinstance(config.query.separator, str) or not config.query.separator:
        errors.append("query.separator must be a non-empty string")
    if not isinstance(config.query.fail_on_missing, bool):
        errors.append("query.fail_on_missing must be a boolean")
    if config.query.output_format not in OUTPUT_FORMATS:
        errors.append(
            f"query.output_format must be one of: {', '.join(OUTPUT_FORMATS)}"
        )

    level = config.logging.log_level
    if not isinstance(level, str) or not isinstance(
        logging.getLevelName(level.upper()), int
    ):
        errors.append("logging.log_level must be a logging level name")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from a TOML or JSON file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() == ".toml":
                data = toml.load(f)
            elif config_path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                return None
    except (OSError, ValueError, toml.TomlDecodeError) as e:
        console.print(
            f"⚠️  Error loading config from {config_path}: {e}",
            style="yellow",
            markup=False,
        )
        return None

    if not isinstance(data, dict):
        console.print(
            f"⚠️  Config file {config_path} must hold a table, ignoring it",
            style="yellow",
            markup=False,
        )
        return None

    return data


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".go-mod-what.toml",
        Path.cwd() / ".go-mod-what.json",
        Path.home() / ".config" / "go-mod-what" / "config.toml",
        Path.home() / ".config" / "go-mod-what" / "config.json",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ComprehensiveConfig) -> None:
    """Load environment variable overrides."""

    def get_env_bool(key: str, default: bool) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    if modfile := os.environ.get("GO_MOD_WHAT_MODFILE"):
        config.query.default_modfile = modfile
    if separator := os.environ.get("GO_MOD_WHAT_SEPARATOR"):
        config.query.separator = separator
    if output_format := os.environ.get("GO_MOD_WHAT_FORMAT"):
        config.query.output_format = output_format.lower()
    config.query.fail_on_missing = get_env_bool(
        "GO_MOD_WHAT_FAIL_ON_MISSING", config.query.fail_on_missing
    )

    if log_level := os.environ.get("GO_MOD_WHAT_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()


def apply_config_section(config: Any, section_data: Any, section_name: str) -> None:
    """Apply configuration from dictionary to config section."""
    if not isinstance(section_data, dict):
        console.print(
            f"⚠️  Config section {section_name} must be a table, ignoring it",
            style="yellow",
        )
        return

    for key, value in section_data.items():
        if key == "output_format" and isinstance(value, str):
            value = value.lower()
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def _restore_invalid_defaults(config: ComprehensiveConfig) -> None:
    defaults = ComprehensiveConfig()
    errors = validate_config_values(config)
    for error in errors:
        section, key = error.split(" ", 1)[0].split(".")
        setattr(
            getattr(config, section), key, getattr(getattr(defaults, section), key)
        )


def load_config() -> ComprehensiveConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None:
        return _global_config

    config = ComprehensiveConfig()

    config_file = find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if file_config:
            if "query" in file_config:
                apply_config_section(config.query, file_config["query"], "query")
            if "logging" in file_config:
                apply_config_section(config.logging, file_config["logging"], "logging")

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        _restore_invalid_defaults(config)

    _global_config = config
    return config


def get_config() -> ComprehensiveConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None



def create_sample_config() -> str:
    """Generate a sample .go-mod-what.toml holding every default."""
    defaults = ComprehensiveConfig()
    sample_config = {
        "query": asdict(defaults.query),
        "logging": asdict(defaults.logging),
    }

    return toml.dumps(sample_config)
