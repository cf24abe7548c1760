"""Data models for sync run tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class JobOutcome(str, Enum):
    """What happened to a single job during a sync run."""

    NEW = "new"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    WOULD_SYNC = "would_sync"
    ERROR = "error"


@dataclass
class JobSyncResult:
    """
    Outcome of syncing one job within a run.

    Attributes:
        job_key: region/namespace/name
        namespace: Nomad namespace
        name: Job name
        outcome: JobOutcome value, None until the job has been processed
        commit_id: Commit created for this job ("" when none)
        description: Change description for modified jobs
        document_size: Size of the rendered document in bytes
        document_hash: SHA256 of the rendered document
        duration_seconds: Time spent on this job
        had_errors: Whether processing failed
        error_message: Failure description if processing failed
    """

    job_key: str
    namespace: str
    name: str
    outcome: Optional[str] = None
    commit_id: str = ""
    description: Optional[str] = None
    document_size: int = 0
    document_hash: Optional[str] = None
    duration_seconds: float = 0.0
    had_errors: bool = False
    error_message: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def committed(self) -> bool:
        return self.outcome in (JobOutcome.NEW.value, JobOutcome.MODIFIED.value)


@dataclass
class SyncRunResult:
    """
    Aggregate results from a complete sync run.

    Counts are computed from ``job_results`` when not given explicitly.

    Attributes:
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        run_id: Identifier attached to every log record of the run
        dry_run: Whether the run only rendered documents
        total_duration_seconds: Total time for the entire run
        total_jobs: Number of jobs attempted
        new_count: Jobs committed for the first time
        modified_count: Jobs committed with changes
        unchanged_count: Jobs whose document matched the stored one
        skipped_count: Jobs not found in Nomad
        would_sync_count: Jobs rendered in dry-run mode
        error_count: Jobs that failed
        job_results: Per-job outcomes in configuration order
        had_errors: Whether any job failed
        skipped: Whether the whole run was skipped (lock already held)
    """

    run_started_at: datetime
    run_finished_at: datetime
    run_id: str = ""
    dry_run: bool = False
    total_duration_seconds: float = 0.0
    total_jobs: int = 0
    new_count: int = 0
    modified_count: int = 0
    unchanged_count: int = 0
    skipped_count: int = 0
    would_sync_count: int = 0
    error_count: int = 0
    job_results: List[JobSyncResult] = field(default_factory=list)
    had_errors: bool = False
    skipped: bool = False

    def __post_init__(self):
        """Compute aggregate statistics from job results if not already set."""
        if self.job_results and self.total_jobs == 0:
            outcomes = [r.outcome for r in self.job_results]
            self.total_jobs = len(self.job_results)
            self.new_count = outcomes.count(JobOutcome.NEW.value)
            self.modified_count = outcomes.count(JobOutcome.MODIFIED.value)
            self.unchanged_count = outcomes.count(JobOutcome.UNCHANGED.value)
            self.skipped_count = outcomes.count(JobOutcome.SKIPPED.value)
            self.would_sync_count = outcomes.count(JobOutcome.WOULD_SYNC.value)
            self.error_count = sum(1 for r in self.job_results if r.had_errors)
            self.had_errors = any(r.had_errors for r in self.job_results)

        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()
