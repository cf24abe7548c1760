"""Domain models for njgit."""

from .models import (
    DOCUMENT_EXTENSION,
    ChangeKind,
    ChangeRecord,
    CommitInfo,
    JobIdentity,
    JobSpecification,
    JobSyncStatus,
    NormalizedJob,
    Resources,
    Task,
    TaskGroup,
    UpdateStrategy,
)

__all__ = [
    "JobSpecification",
    "NormalizedJob",
    "TaskGroup",
    "Task",
    "Resources",
    "UpdateStrategy",
    "JobIdentity",
    "ChangeKind",
    "ChangeRecord",
    "JobSyncStatus",
    "CommitInfo",
    "DOCUMENT_EXTENSION",
]
