"""Configuration loader for njgit."""

from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig, BackendType
from .validators import check_for_warnings, emit_warnings

DEFAULT_CONFIG_CANDIDATES = (
    Path("njgit.yaml"),
    Path("config.yaml"),
    Path("config") / "njgit.yaml",
)


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from a YAML file and environment variables.

    Config file lookup:
    1. Use provided config_path if given
    2. Try njgit.yaml, config.yaml, then config/njgit.yaml
    3. Fail with helpful error message

    Environment values fill settings the file leaves unset (NOMAD_ADDR,
    NOMAD_TOKEN, GITHUB_TOKEN/GH_TOKEN); DATABASE_URL always wins.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Tuple of (AppConfig, EnvironmentConfig) with validated configuration

    Raises:
        ConfigurationError: If configuration is invalid or file not found
    """
    config_file = _find_config_file(config_path)

    try:
        with open(config_file, "r") as f:
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
            suggestions=[
                f"Ensure {config_file} is readable",
                "Check file permissions",
            ],
        ) from e

    if not config_dict:
        raise ConfigurationError(
            "Configuration file is empty",
            suggestions=[
                "Copy njgit.example.yaml to njgit.yaml",
                "Add at least one entry under 'jobs'",
            ],
        )

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
            suggestions=["Review njgit.example.yaml for the expected layout"],
        )

    warnings = check_for_warnings(config_dict)
    if warnings:
        emit_warnings(warnings)

    try:
        app_config = AppConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            errors=_format_validation_errors(e),
            suggestions=[
                "Review njgit.example.yaml for correct format",
                "Check that all required fields are present",
                "Verify field types match the expected schema",
            ],
        ) from e

    env_config = load_environment_config()
    apply_environment_overrides(app_config, env_config)
    validate_backend_credentials(app_config)

    return app_config, env_config


def apply_environment_overrides(app_config: AppConfig, env_config: EnvironmentConfig) -> None:
    """Fill unset settings from the environment (in place)."""
    if not app_config.nomad.address and env_config.nomad_addr:
        app_config.nomad.address = env_config.nomad_addr
    if not app_config.nomad.token and env_config.nomad_token:
        app_config.nomad.token = env_config.nomad_token
    if not app_config.git.token and env_config.github_token:
        app_config.git.token = env_config.github_token
    if env_config.database_url:
        app_config.status.database_url = env_config.database_url


def validate_backend_credentials(app_config: AppConfig) -> None:
    """
    Check credentials that may only be known after environment overrides.

    Raises:
        ConfigurationError: If the github-api backend has no token
    """
    if app_config.git.backend == BackendType.GITHUB_API and not app_config.git.token:
        raise ConfigurationError(
            "Configuration validation failed",
            errors=["git: token is required for github-api backend"],
            suggestions=[
                "Set GITHUB_TOKEN or GH_TOKEN in the environment",
                "Or use backend: git with a local repository",
            ],
        )


def _format_validation_errors(error: ValidationError) -> List[str]:
    """Convert Pydantic validation errors to user-friendly messages."""
    errors = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"]) or "config"
        error_type = item["type"]

        if error_type == "missing":
            errors.append(f"Missing required field: {field_path}")
        elif error_type in ("string_type", "int_type", "bool_type", "list_type"):
            expected_type = error_type.replace("_type", "")
            errors.append(
                f"Invalid type for '{field_path}': expected {expected_type}, got {item.get('input')}"
            )
        elif "enum" in error_type:
            errors.append(f"Invalid value for '{field_path}': {item['msg']}")
        else:
            errors.append(f"{field_path}: {item['msg']}")
    return errors


def _find_config_file(config_path: Optional[Path] = None) -> Path:
    """
    Find configuration file using fallback logic.

    Raises:
        ConfigurationError: If no config file is found
    """
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    f"Ensure {config_path} exists",
                    "Check the path and try again",
                ],
            )
        return config_path

    for candidate in DEFAULT_CONFIG_CANDIDATES:
        if candidate.exists():
            return candidate

    raise ConfigurationError(
        "Configuration file not found",
        errors=[f"Tried: {candidate}" for candidate in DEFAULT_CONFIG_CANDIDATES],
        suggestions=[
            "Copy njgit.example.yaml to njgit.yaml",
            "Use --config to specify a custom location",
        ],
    )
