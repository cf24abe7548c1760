"""In-memory storage backend for testing."""

from typing import Dict, List, Optional, Set

from njgit.backend.exceptions import BackendInitializationError, BackendOperationError


class InMemoryBackend:
    """Backend that keeps documents and commits in dictionaries.

    Attributes:
        files: Committed documents by path
        commits: (message, {path: content}) for every commit, in order
        pushes: Number of push() calls
        fail_commit: Reject every commit
        fail_commit_paths: Reject commits that include any of these paths
        fail_read_paths: Raise when one of these paths is read
    """

    def __init__(self, files: Optional[Dict[str, bytes]] = None, fail_init: bool = False):
        self.files: Dict[str, bytes] = dict(files or {})
        self.staged: Dict[str, bytes] = {}
        self.commits: List[tuple] = []
        self.pushes = 0
        self.initialized = False
        self.closed = False
        self.fail_init = fail_init
        self.fail_commit = False
        self.fail_commit_paths: Set[str] = set()
        self.fail_read_paths: Set[str] = set()

    @property
    def name(self) -> str:
        return "memory"

    def initialize(self) -> None:
        if self.fail_init:
            raise BackendInitializationError("repository unavailable")
        self.initialized = True

    def file_exists(self, path: str) -> bool:
        return path in self.files

    def read_file(self, path: str) -> bytes:
        if path in self.fail_read_paths:
            raise BackendOperationError(f"Failed to read {path}: permission denied")
        if path not in self.files:
            raise BackendOperationError(f"file not found: {path}")
        return self.files[path]

    def write_file(self, path: str, content: bytes) -> None:
        self.staged[path] = content

    def commit(self, message: str) -> str:
        if not self.staged:
            return ""
        staged, self.staged = self.staged, {}
        if self.fail_commit or self.fail_commit_paths.intersection(staged):
            raise BackendOperationError("commit rejected")
        self.files.update(staged)
        self.commits.append((message, staged))
        return f"{len(self.commits):08x}"

    def push(self) -> None:
        self.pushes += 1

    def close(self) -> None:
        self.closed = True

    @property
    def messages(self) -> List[str]:
        return [message for message, _ in self.commits]
