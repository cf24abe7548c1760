"""Storage backend interface."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Backend(Protocol):
    """Where canonical job documents are stored and committed.

    ``write_file`` only stages a document; nothing is recorded until
    ``commit`` is called, and nothing leaves the machine until ``push``.
    """

    @property
    def name(self) -> str:
        """Human-readable backend description for logs."""
        ...

    def initialize(self) -> None:
        """Verify the backend is usable. Raises BackendInitializationError."""
        ...

    def file_exists(self, path: str) -> bool:
        ...

    def read_file(self, path: str) -> bytes:
        ...

    def write_file(self, path: str, content: bytes) -> None:
        ...

    def commit(self, message: str) -> str:
        """Commit staged documents and return the commit id (may be empty)."""
        ...

    def push(self) -> None:
        ...

    def close(self) -> None:
        ...
