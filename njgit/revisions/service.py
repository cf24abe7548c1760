"""Browsing committed job documents: history, show and deploy.

History browsing needs a local working tree and is only available for the
git backend. For the github-api backend the commands point at the GitHub
web UI instead.
"""

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

from njgit.backend.exceptions import BackendOperationError
from njgit.backend.repository import LocalRepository
from njgit.config.models import BackendType, GitConfig
from njgit.domain.models import DOCUMENT_EXTENSION, CommitInfo, JobIdentity
from njgit.logging import get_logger
from njgit.utils.timestamps import format_commit_date

from .exceptions import RevisionError

logger = get_logger(__name__, component="revisions")

GITHUB_WEB_URL = "https://github.com"


@dataclass
class Deployment:
    """A job document selected from history for redeployment."""

    commit: CommitInfo
    identity: JobIdentity
    document: bytes

    @property
    def text(self) -> str:
        return self.document.decode("utf-8", errors="replace")


def is_local_backend(git_config: GitConfig) -> bool:
    return getattr(git_config.backend, "value", git_config.backend) == BackendType.GIT.value


def github_commits_url(git_config: GitConfig, path: Optional[str] = None) -> str:
    """URL of the commit list on GitHub, optionally for a single document."""
    url = f"{GITHUB_WEB_URL}/{git_config.owner}/{git_config.repo}/commits/{git_config.branch}"
    return f"{url}/{path}" if path else url


def github_commit_url(git_config: GitConfig, ref: str) -> str:
    return f"{GITHUB_WEB_URL}/{git_config.owner}/{git_config.repo}/commit/{ref}"


def github_blob_url(git_config: GitConfig, ref: str, path: str) -> str:
    return f"{GITHUB_WEB_URL}/{git_config.owner}/{git_config.repo}/blob/{ref}/{path}"


def document_stem(path: str) -> str:
    """``global/default/web.hcl`` -> ``global/default/web``."""
    if path.endswith(DOCUMENT_EXTENSION):
        return path[: -len(DOCUMENT_EXTENSION)]
    return path


def identity_from_path(path: str) -> Optional[JobIdentity]:
    """Recover the job identity from a ``region/namespace/name.hcl`` path.

    Returns None for paths that do not follow the layout.
    """
    parts = PurePosixPath(path).parts
    if len(parts) != 3 or not parts[2].endswith(DOCUMENT_EXTENSION):
        return None
    name = parts[2][: -len(DOCUMENT_EXTENSION)]
    if not name:
        return None
    return JobIdentity(region=parts[0], namespace=parts[1], name=name)


def format_history_line(commit: CommitInfo) -> str:
    """One history line: ``<date> <hash> <document> <subject>``.

    The document column is omitted for commits that touched no files.
    """
    date = format_commit_date(commit.date)
    if commit.files:
        return f"{date} {commit.hash} {document_stem(commit.files[0])} {commit.subject}"
    return f"{date} {commit.hash} {commit.subject}"


class RevisionBrowser:
    """Read-only access to the history of committed job documents."""

    def __init__(self, repository: LocalRepository):
        self.repository = repository

    @classmethod
    def from_config(cls, git_config: GitConfig) -> "RevisionBrowser":
        """Open the local repository configured for the git backend.

        Raises:
            RevisionError: If the backend is not git or the path is not a repository
        """
        if not is_local_backend(git_config):
            raise RevisionError(
                f"Revision history requires the git backend (configured: {git_config.backend})"
            )
        repository = LocalRepository(git_config.local_path)
        if not repository.is_repository():
            raise RevisionError(
                f"Failed to open repository at {git_config.local_path}: not a git repository"
            )
        return cls(repository)

    def history(self, identity: Optional[JobIdentity] = None, limit: int = 20) -> List[CommitInfo]:
        """Commits newest first, restricted to one job's document when given."""
        path = identity.path if identity else None
        try:
            return self.repository.get_history(path, limit)
        except BackendOperationError as e:
            raise RevisionError(f"Failed to get history: {e}") from e

    def find_commit(self, ref: str) -> CommitInfo:
        """Resolve a short or full commit hash.

        Raises:
            RevisionError: If the commit does not exist
        """
        try:
            return self.repository.get_commit(ref)
        except BackendOperationError as e:
            logger.debug(
                f"Commit lookup failed: {e}",
                extra={"event": "revisions.commit.not_found", "ref": ref},
            )
            raise RevisionError(f"commit {ref} not found") from e

    def document_at(self, commit: CommitInfo, path: str) -> bytes:
        """Content of a document as of a commit.

        Raises:
            RevisionError: If the document does not exist at that commit
        """
        try:
            return self.repository.get_file_at_commit(commit.full_hash, path)
        except BackendOperationError as e:
            raise RevisionError(
                f"failed to get file {path} at commit {commit.hash}: {e}"
            ) from e

    def detect_job(self, commit: CommitInfo, region: str, namespace: str) -> str:
        """Find the single job document a commit touched in ``region/namespace``.

        Raises:
            RevisionError: If no document or more than one document matches
        """
        target = PurePosixPath(region, namespace)
        names = sorted(
            {
                PurePosixPath(path).name[: -len(DOCUMENT_EXTENSION)]
                for path in commit.files
                if PurePosixPath(path).parent == target and path.endswith(DOCUMENT_EXTENSION)
            }
        )

        if not names:
            changed = ", ".join(commit.files) or "none"
            raise RevisionError(
                f"no job files found in {region}/{namespace} for commit {commit.hash}\n"
                f"Changed files: {changed}\n"
                f"Specify the job name explicitly: njgit deploy {commit.hash} <job-name> "
                f"--region {region} --namespace {namespace}"
            )
        if len(names) > 1:
            raise RevisionError(
                f"commit affects multiple jobs: {', '.join(names)}\n"
                f"Specify which job to deploy: njgit deploy {commit.hash} <job-name> "
                f"--region {region} --namespace {namespace}"
            )
        return names[0]

    def prepare_deployment(
        self,
        ref: str,
        region: str = "global",
        namespace: str = "default",
        job_name: Optional[str] = None,
    ) -> Deployment:
        """Select the document to redeploy from a commit.

        Args:
            ref: Commit hash (short or full)
            region: Region of the job
            namespace: Namespace of the job
            job_name: Job name; auto-detected from the commit when omitted

        Raises:
            RevisionError: If the commit, job or document cannot be resolved
        """
        commit = self.find_commit(ref)
        name = job_name or self.detect_job(commit, region, namespace)
        identity = JobIdentity(name=name, namespace=namespace, region=region)
        document = self.document_at(commit, identity.path)
        return Deployment(commit=commit, identity=identity, document=document)


def deploy(deployment: Deployment, client: Any) -> str:
    """Parse a historical document with Nomad and register it.

    Args:
        deployment: Selected revision
        client: NomadClient

    Returns:
        Evaluation ID of the registration
    """
    job: Dict[str, Any] = client.parse_hcl(deployment.text)
    if not job.get("Namespace"):
        job["Namespace"] = deployment.identity.namespace

    logger.info(
        f"Deploying {deployment.identity.display_name} from commit {deployment.commit.hash}",
        extra={
            "event": "deploy.started",
            "job_key": deployment.identity.key,
            "commit_id": deployment.commit.hash,
        },
    )
    eval_id = client.register_job(job)
    logger.info(
        "Deployment registered",
        extra={"event": "deploy.completed", "job_key": deployment.identity.key, "eval_id": eval_id},
    )
    return eval_id
