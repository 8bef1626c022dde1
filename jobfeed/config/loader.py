"""Configuration loader for the feed importer."""

from pathlib import Path
from typing import Optional, Tuple

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

DEFAULT_CONFIG_LOCATIONS = (Path("config.yaml"), Path("config") / "config.yaml")


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from a YAML file and environment variables.

    ``FEED_OUTPUT_DIR`` from the environment overrides ``import.output_dir``.

    Raises:
        ConfigurationError: If configuration is invalid or the file is missing
    """
    config_file = _find_config_file(config_path)
    config_dict = _read_yaml(config_file)

    warnings = check_for_warnings(config_dict)
    if warnings:
        emit_warnings(warnings)

    app_config = parse_config(config_dict)
    env_config = load_environment_config()

    if env_config.output_dir:
        app_config.import_settings.output_dir = env_config.output_dir

    return app_config, env_config


def parse_config(config_dict: dict) -> AppConfig:
    """Validate a raw mapping, translating pydantic errors to ConfigurationError."""
    try:
        return AppConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            errors=[_describe_error(error) for error in e.errors()],
            suggestions=[
                "Review config.example.yaml for the expected layout",
                "Check that every feed has an id and a url",
            ],
        ) from e


def _describe_error(error: dict) -> str:
    field_path = " -> ".join(str(loc) for loc in error["loc"]) or "(root)"
    error_type = error["type"]
    if error_type == "missing":
        return f"Missing required field: {field_path}"
    if error_type.endswith("_type"):
        expected = error_type[: -len("_type")]
        return f"Invalid type for '{field_path}': expected {expected}, got {error.get('input')!r}"
    return f"{field_path}: {error['msg']}"


def _read_yaml(config_file: Path) -> dict:
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[f"Ensure {config_file} is readable"],
        ) from e

    if not config_dict:
        raise ConfigurationError(
            "Configuration file is empty",
            suggestions=["Copy config.example.yaml to config.yaml"],
        )
    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
        )
    return config_dict


def _find_config_file(config_path: Optional[Path] = None) -> Path:
    if config_path:
        if not Path(config_path).exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[f"Ensure {config_path} exists", "Check the path and try again"],
            )
        return Path(config_path)

    for candidate in DEFAULT_CONFIG_LOCATIONS:
        if candidate.exists():
            return candidate

    raise ConfigurationError(
        "Configuration file not found",
        errors=[f"Tried: {candidate}" for candidate in DEFAULT_CONFIG_LOCATIONS],
        suggestions=[
            "Copy config.example.yaml to config.yaml",
            "Use --config flag to specify a custom location",
        ],
    )


def validate_config_file(config_path: Path) -> bool:
    """
    Validate a configuration file without touching the environment.

    Prints the outcome and any warnings; returns True when valid.
    """
    try:
        config_dict = _read_yaml(Path(config_path))
        config = parse_config(config_dict)
    except ConfigurationError as e:
        print(f"✗ Configuration validation failed:\n{e}")
        return False

    for message in check_for_warnings(config_dict):
        print(f"! {message}")
    print(
        f"✓ Configuration file {config_path} is valid "
        f"({len(config.get_enabled_feeds())} enabled feeds)"
    )
    return True
