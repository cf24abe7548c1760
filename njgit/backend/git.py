"""Backend that commits job documents to a local git repository."""

from typing import List, Optional

from njgit.config.models import GitConfig
from njgit.logging import get_logger

from .exceptions import BackendInitializationError, BackendOperationError
from .repository import LocalRepository

logger = get_logger(__name__, component="backend")


class GitBackend:
    """Stores documents in a local working tree and commits them with git.

    ``push`` is a no-op when the repository has no ``origin`` remote, so a
    purely local history works without any further setup.
    """

    def __init__(self, config: GitConfig, repository: Optional[LocalRepository] = None) -> None:
        self.local_path = config.local_path
        self.author_name = config.author_name
        self.author_email = config.author_email
        self.repository = repository or LocalRepository(config.local_path)
        self._staged: List[str] = []

    @property
    def name(self) -> str:
        return f"Git (local: {self.local_path})"

    def initialize(self) -> None:
        """Check that the configured path is a git working tree.

        Raises:
            BackendInitializationError: If the path is not a repository
        """
        if not self.repository.is_repository():
            raise BackendInitializationError(
                f"Not a git repository: {self.repository.path}. "
                f"Create it first with: git init {self.repository.path}"
            )
        logger.debug(
            "Git backend initialized",
            extra={"event": "backend.initialized", "backend": self.name},
        )

    def file_exists(self, path: str) -> bool:
        return self.repository.file_exists(path)

    def read_file(self, path: str) -> bytes:
        return self.repository.read_file(path)

    def write_file(self, path: str, content: bytes) -> None:
        """Write a document to the working tree and remember it for the next commit."""
        self.repository.write_file(path, content)
        if path not in self._staged:
            self._staged.append(path)

    def commit(self, message: str) -> str:
        """Commit the documents written since the last commit.

        The staged set is cleared whether or not the commit succeeds. On
        failure the written documents are rolled back to their committed
        state, so the next run compares against what is really in history.
        """
        if not self._staged:
            return ""

        paths = list(self._staged)
        try:
            commit_id = self.repository.commit(
                message,
                paths,
                author_name=self.author_name,
                author_email=self.author_email,
            )
        except BackendOperationError:
            self._discard(paths)
            raise
        finally:
            self._staged.clear()

        if commit_id:
            logger.info(
                f"Created commit {commit_id}",
                extra={"event": "backend.commit.created", "commit_id": commit_id, "paths": paths},
            )
        return commit_id

    def _discard(self, paths: List[str]) -> None:
        try:
            self.repository.discard(paths)
        except BackendOperationError as e:
            logger.warning(
                f"Failed to roll back uncommitted documents: {e}",
                extra={"event": "backend.discard.failed", "paths": paths},
            )

    def push(self) -> None:
        if not self.repository.has_remote("origin"):
            logger.debug(
                "No origin remote configured, skipping push",
                extra={"event": "backend.push.skipped"},
            )
            return
        self.repository.push("origin")
        logger.info("Pushed to origin", extra={"event": "backend.push.completed"})

    def close(self) -> None:
        self._staged.clear()
