"""Sync pipeline orchestration."""

from .models import JobOutcome, JobSyncResult, SyncRunResult
from .runner import JobSource, SyncPipeline, build_commit_message

__all__ = [
    "SyncPipeline",
    "JobSource",
    "build_commit_message",
    "JobOutcome",
    "JobSyncResult",
    "SyncRunResult",
]
