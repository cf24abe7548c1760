"""Configuration management module for njgit."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import apply_environment_overrides, load_config, validate_backend_credentials
from .models import (
    AppConfig,
    BackendType,
    ChangesConfig,
    GitConfig,
    JobConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    NomadConfig,
    StatusConfig,
)

__all__ = [
    # Main loader functions
    "load_config",
    "load_environment_config",
    "apply_environment_overrides",
    "validate_backend_credentials",
    # Configuration models
    "AppConfig",
    "GitConfig",
    "NomadConfig",
    "JobConfig",
    "ChangesConfig",
    "LoggingConfig",
    "StatusConfig",
    "EnvironmentConfig",
    # Enums
    "BackendType",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
