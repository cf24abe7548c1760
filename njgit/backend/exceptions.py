"""Custom exceptions for storage backends."""

from typing import Optional, Sequence


class BackendError(Exception):
    """Base exception for all backend errors.

    Catching this handles any failure to read, stage, commit or push a job
    document.
    """

    pass


class BackendConfigurationError(BackendError):
    """Invalid backend configuration (unknown backend type, missing token)."""

    pass


class BackendInitializationError(BackendError):
    """The backend could not be prepared for use.

    Raised before any job is processed, so it aborts the whole sync run.
    """

    pass


class BackendOperationError(BackendError):
    """A read, write, commit or push failed for a single document."""

    pass


class GitCommandError(BackendOperationError):
    """A git command exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        """Initialize with the failed command and its output.

        Args:
            message: Human-readable error message
            command: git arguments that were run
            returncode: Process exit status
            stderr: Captured standard error
        """
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
