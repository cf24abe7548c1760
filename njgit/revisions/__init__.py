"""History browsing and redeployment of committed job documents."""

from .exceptions import RevisionError
from .service import (
    Deployment,
    RevisionBrowser,
    deploy,
    document_stem,
    format_history_line,
    github_blob_url,
    github_commit_url,
    github_commits_url,
    identity_from_path,
    is_local_backend,
)

__all__ = [
    "RevisionBrowser",
    "Deployment",
    "deploy",
    "format_history_line",
    "document_stem",
    "identity_from_path",
    "is_local_backend",
    "github_commits_url",
    "github_commit_url",
    "github_blob_url",
    "RevisionError",
]
