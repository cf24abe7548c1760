"""Storage backends for canonical job documents."""

from .base import Backend
from .exceptions import (
    BackendConfigurationError,
    BackendError,
    BackendInitializationError,
    BackendOperationError,
    GitCommandError,
)
from .factory import get_backend
from .git import GitBackend
from .github import GitHubBackend
from .repository import LocalRepository, parse_log_output

__all__ = [
    "Backend",
    "GitBackend",
    "GitHubBackend",
    "LocalRepository",
    "parse_log_output",
    "get_backend",
    # Exceptions
    "BackendError",
    "BackendConfigurationError",
    "BackendInitializationError",
    "BackendOperationError",
    "GitCommandError",
]
