"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        nomad_addr: Optional[str] = None,
        nomad_token: Optional[str] = None,
        github_token: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.nomad_addr = nomad_addr
        self.nomad_token = nomad_token
        self.github_token = github_token
        self.log_level = log_level
        self.database_url = database_url
        self.environment = environment or "local"


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - NOMAD_ADDR: Nomad address, used when nomad.address is not configured
    - NOMAD_TOKEN: Nomad ACL token, used when nomad.token is not configured
    - GITHUB_TOKEN / GH_TOKEN: token for the github-api backend (GITHUB_TOKEN wins)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - DATABASE_URL: SQLAlchemy URL for the sync status store
    - ENVIRONMENT: Environment label attached to log records

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If a variable has an invalid value
    """
    errors = []

    nomad_addr = _getenv("NOMAD_ADDR")
    log_level = _getenv("LOG_LEVEL")

    if nomad_addr and not nomad_addr.startswith(("http://", "https://")):
        errors.append(
            f"Invalid NOMAD_ADDR: '{nomad_addr}'. Must start with http:// or https://"
        )

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Check the variables exported in your shell or .env file",
                "Unset variables you do not need; all of them are optional",
            ],
        )

    return EnvironmentConfig(
        nomad_addr=nomad_addr.rstrip("/") if nomad_addr else None,
        nomad_token=_getenv("NOMAD_TOKEN"),
        github_token=_getenv("GITHUB_TOKEN") or _getenv("GH_TOKEN"),
        log_level=log_level.upper() if log_level else None,
        database_url=_getenv("DATABASE_URL"),
        environment=_getenv("ENVIRONMENT"),
    )


def _getenv(name: str) -> Optional[str]:
    """Read an environment variable, treating blank values as unset."""
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None
