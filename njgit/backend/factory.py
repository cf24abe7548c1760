"""Factory function for instantiating storage backends."""

from njgit.config.models import BackendType, GitConfig
from njgit.logging import get_logger

from .base import Backend
from .exceptions import BackendConfigurationError
from .git import GitBackend
from .github import GitHubBackend

logger = get_logger(__name__, component="backend")


def get_backend(git_config: GitConfig) -> Backend:
    """Instantiate the backend selected by ``git.backend``.

    The backend is not initialized; callers invoke ``initialize()`` before use.

    Args:
        git_config: Storage configuration

    Returns:
        GitBackend for ``git``, GitHubBackend for ``github-api``

    Raises:
        BackendConfigurationError: If the backend type is unknown or its settings are incomplete

    Example:
        >>> backend = get_backend(GitConfig(local_path="./jobs"))
        >>> backend.initialize()
    """
    backend_map = {
        BackendType.GIT.value: GitBackend,
        BackendType.GITHUB_API.value: GitHubBackend,
    }

    backend_type = getattr(git_config.backend, "value", git_config.backend)
    backend_class = backend_map.get(backend_type)

    if not backend_class:
        supported = ", ".join(sorted(backend_map))
        raise BackendConfigurationError(
            f"Unknown backend type: {backend_type}. Supported types: {supported}"
        )

    logger.debug(
        "Creating backend instance",
        extra={"backend_type": backend_type, "backend_class": backend_class.__name__},
    )
    return backend_class(git_config)
