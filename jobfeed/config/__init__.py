"""Configuration management for the feed importer."""

from .duration import DurationParseError, parse_duration, validate_duration_range
from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_config, validate_config_file
from .models import (
    AppConfig,
    FeedConfig,
    FetchSettings,
    ImportSettings,
    LogFormat,
    LogLevel,
    LoggingConfig,
    TransportStrategy,
)
from .validators import ensure_output_dir

__all__ = [
    "load_config",
    "parse_config",
    "validate_config_file",
    "load_environment_config",
    "ensure_output_dir",
    "parse_duration",
    "validate_duration_range",
    "AppConfig",
    "FeedConfig",
    "FetchSettings",
    "ImportSettings",
    "LoggingConfig",
    "EnvironmentConfig",
    "TransportStrategy",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
    "DurationParseError",
]
