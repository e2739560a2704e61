"""Configuration management for the property importer."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config, validate_config_file
from .models import (
    AppConfig,
    DuplicateConfig,
    ExtractionConfig,
    ExtractionMode,
    ImportingConfig,
    LLMConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    NormalizationConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_app_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ExtractionConfig",
    "LLMConfig",
    "NormalizationConfig",
    "DuplicateConfig",
    "ImportingConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "ExtractionMode",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
