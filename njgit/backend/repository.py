"""Local git repository access through the git command line.

Used by the git backend to write and commit documents, and by the history,
show and deploy commands to browse earlier revisions.
"""

import os
import subprocess
from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence

from njgit.domain.models import CommitInfo
from njgit.logging import get_logger
from njgit.utils.timestamps import parse_iso_datetime

from .exceptions import BackendOperationError, GitCommandError

logger = get_logger(__name__, component="git")

SHORT_HASH_LENGTH = 8

# Field and record separators for git log output
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = "%x1e%H%x1f%an%x1f%ae%x1f%cI%x1f%B%x1f"


class LocalRepository:
    """Thin wrapper around the ``git`` executable for one working tree.

    Attributes:
        path: Root of the working tree
        timeout: Timeout for each git invocation in seconds
    """

    def __init__(self, path: str, timeout: int = 60, git_executable: str = "git") -> None:
        self.path = Path(path).expanduser()
        self.timeout = timeout
        self.git_executable = git_executable

    def is_repository(self) -> bool:
        return (self.path / ".git").exists()

    def run(
        self,
        args: Sequence[str],
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run a git command in the working tree.

        Args:
            args: Arguments after ``git``
            check: Raise GitCommandError on a non-zero exit status

        Returns:
            Completed process with stdout/stderr as bytes

        Raises:
            GitCommandError: If git is missing, times out or (with check) fails
        """
        command = [self.git_executable, *args]
        env = dict(os.environ, GIT_TERMINAL_PROMPT="0")

        logger.debug(
            f"Running git {' '.join(args[:2])}",
            extra={"event": "git.command", "git_args": list(args)},
        )

        try:
            result = subprocess.run(
                command,
                cwd=self.path,
                capture_output=True,
                timeout=self.timeout,
                env=env,
            )
        except FileNotFoundError as e:
            raise GitCommandError(
                f"git executable not found: {self.git_executable}", command=args
            ) from e
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(
                f"git {args[0]} timed out after {self.timeout} seconds", command=args
            ) from e

        if check and result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise GitCommandError(
                f"git {args[0]} failed (exit {result.returncode}): {stderr}",
                command=args,
                returncode=result.returncode,
                stderr=stderr,
            )

        return result

    def output(self, args: Sequence[str]) -> str:
        """Run a git command and return its stdout as text."""
        return self.run(args).stdout.decode("utf-8", errors="replace")

    def resolve_path(self, path: str) -> Path:
        """Map a repository-relative path to a filesystem path.

        Raises:
            BackendOperationError: If the path is empty, absolute or escapes the repository
        """
        relative = PurePosixPath(path.strip())
        if not path.strip() or relative.is_absolute() or ".." in relative.parts:
            raise BackendOperationError(f"Invalid document path: {path!r}")
        return self.path.joinpath(*relative.parts)

    def file_exists(self, path: str) -> bool:
        return self.resolve_path(path).is_file()

    def read_file(self, path: str) -> bytes:
        target = self.resolve_path(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            raise BackendOperationError(f"file not found: {path}") from e
        except OSError as e:
            raise BackendOperationError(f"Failed to read {path}: {e}") from e

    def write_file(self, path: str, content: bytes) -> None:
        """Write a file, creating parent directories as needed."""
        target = self.resolve_path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise BackendOperationError(f"Failed to write {path}: {e}") from e

    def stage(self, paths: Sequence[str]) -> None:
        self.run(["add", "--", *paths])

    def has_head(self) -> bool:
        return self.run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False).returncode == 0

    def commit(
        self,
        message: str,
        paths: Sequence[str],
        author_name: str,
        author_email: str,
    ) -> str:
        """Stage and commit the given paths only.

        Other changes already staged in the repository are left alone.

        Returns:
            Short hash of the new commit, or "" if the paths had no changes
        """
        if not paths:
            return ""

        self.stage(paths)

        args = [
            "-c", f"user.name={author_name}",
            "-c", f"user.email={author_email}",
            "commit", "--quiet", "-m", message,
        ]

        # Partial commits need an existing HEAD
        if self.has_head():
            staged = self.run(["diff", "--cached", "--quiet", "--", *paths], check=False)
            if staged.returncode == 0:
                logger.debug(
                    "Nothing to commit for staged paths",
                    extra={"event": "git.commit.empty", "paths": list(paths)},
                )
                return ""
            args.extend(["--", *paths])

        self.run(args)
        return self.output(["rev-parse", f"--short={SHORT_HASH_LENGTH}", "HEAD"]).strip()

    def discard(self, paths: Sequence[str]) -> None:
        """Drop uncommitted changes to ``paths`` from the index and working tree.

        Paths tracked at HEAD are restored to their committed content; paths
        HEAD does not know are unstaged and deleted.
        """
        has_head = self.has_head()
        for path in paths:
            target = self.resolve_path(path)
            tracked = (
                has_head
                and self.run(["cat-file", "-e", f"HEAD:{path}"], check=False).returncode == 0
            )
            if tracked:
                self.run(["checkout", "HEAD", "--", path])
                continue

            self.run(["rm", "--cached", "--quiet", "--ignore-unmatch", "--", path])
            try:
                target.unlink(missing_ok=True)
            except OSError as e:
                raise BackendOperationError(f"Failed to remove {path}: {e}") from e

        logger.debug(
            "Discarded uncommitted changes",
            extra={"event": "git.discard", "paths": list(paths)},
        )

    def has_remote(self, name: str = "origin") -> bool:
        remotes = self.output(["remote"]).split()
        return name in remotes

    def push(self, remote: str = "origin") -> None:
        self.run(["push", "--quiet", remote, "HEAD"])

    def get_history(self, path: Optional[str] = None, limit: int = 20) -> List[CommitInfo]:
        """List commits, newest first.

        Args:
            path: Restrict to commits touching this path
            limit: Maximum number of commits (0 for no limit)

        Returns:
            Commits with the files each one touched; empty if the repository has no commits
        """
        if not self.has_head():
            return []

        args = ["log", "--name-only", f"--format={_LOG_FORMAT}"]
        if limit > 0:
            args.append(f"--max-count={limit}")
        if path:
            args.extend(["--", path])

        return parse_log_output(self.output(args))

    def get_commit(self, ref: str) -> CommitInfo:
        """Look up a single commit by full hash, short hash or other revision.

        Raises:
            GitCommandError: If the revision does not exist
        """
        ref = ref.strip()
        if not ref or ref.startswith("-"):
            raise BackendOperationError(f"Invalid commit reference: {ref!r}")

        commits = parse_log_output(
            self.output(["log", "-1", "--name-only", f"--format={_LOG_FORMAT}", ref, "--"])
        )
        if not commits:
            raise BackendOperationError(f"Commit not found: {ref}")
        return commits[0]

    def get_file_at_commit(self, ref: str, path: str) -> bytes:
        """Return the content of ``path`` as of commit ``ref``.

        Raises:
            GitCommandError: If the commit or the file at that commit does not exist
        """
        self.resolve_path(path)
        return self.run(["show", f"{ref}:{path}"]).stdout


def parse_log_output(output: str) -> List[CommitInfo]:
    """Parse ``git log --name-only`` output produced with _LOG_FORMAT."""
    commits = []
    for record in output.split(_RECORD_SEP):
        if not record.strip():
            continue

        fields = record.split(_FIELD_SEP, 5)
        if len(fields) < 6:
            logger.warning(
                "Skipping malformed git log record",
                extra={"event": "git.log.malformed"},
            )
            continue

        full_hash, author, email, date, message, files_blob = fields
        full_hash = full_hash.strip()
        commits.append(
            CommitInfo(
                hash=full_hash[:SHORT_HASH_LENGTH],
                full_hash=full_hash,
                author=author,
                email=email,
                date=parse_iso_datetime(date.strip()),
                message=message.strip(),
                files=[line.strip() for line in files_blob.splitlines() if line.strip()],
            )
        )
    return commits
