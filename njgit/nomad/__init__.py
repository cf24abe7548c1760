"""Nomad API client used as the job source."""

from .auth import NomadAuth, read_token_file, resolve_nomad_auth
from .client import NomadClient
from .exceptions import (
    JobNotFoundError,
    NomadError,
    NomadHTTPError,
    NomadResponseError,
    NomadTimeoutError,
)

__all__ = [
    "NomadClient",
    "NomadAuth",
    "resolve_nomad_auth",
    "read_token_file",
    # Exceptions
    "NomadError",
    "NomadHTTPError",
    "NomadTimeoutError",
    "NomadResponseError",
    "JobNotFoundError",
]
