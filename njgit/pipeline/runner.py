"""Sync orchestration: Nomad job -> canonical document -> commit."""

import threading
import time
from datetime import datetime
from typing import List, Optional, Protocol
from uuid import uuid4

from njgit.backend.base import Backend
from njgit.changes.comparator import INITIAL_VERSION, UPDATED_SUMMARY, compare
from njgit.config.models import AppConfig
from njgit.domain.models import ChangeKind, ChangeRecord, JobIdentity, JobSpecification
from njgit.hcl.canonical import render_document
from njgit.logging import get_logger
from njgit.logging.context import log_context
from njgit.nomad.exceptions import JobNotFoundError
from njgit.normalization.service import JobNormalizer
from njgit.persistence import database
from njgit.persistence.exceptions import PersistenceError
from njgit.persistence.repositories import SyncStatusRepository
from njgit.utils.hashing import compute_document_hash
from njgit.utils.timestamps import utc_now

from .models import JobOutcome, JobSyncResult, SyncRunResult

logger = get_logger(__name__, component="pipeline")


class JobSource(Protocol):
    """Where job specifications come from (NomadClient in production)."""

    def ping(self) -> object:
        ...

    def fetch_job_spec(self, namespace: str, name: str) -> JobSpecification:
        ...


def build_commit_message(
    identity: JobIdentity, change: ChangeRecord, metadata_only: bool = False
) -> str:
    """Build the commit message for a new or modified job.

    The subject is always ``Update <namespace>/<name>``. New jobs get an
    ``Initial version`` body, modified jobs a ``Changes:`` section.

    Args:
        identity: Job being committed
        change: Comparison result (NEW or MODIFIED)
        metadata_only: Omit the body and commit the subject line alone
    """
    subject = f"Update {identity.display_name}"
    if metadata_only:
        return subject

    if change.kind == ChangeKind.NEW:
        return f"{subject}\n\n{INITIAL_VERSION}"

    return f"{subject}\n\nChanges:\n{change.description or UPDATED_SUMMARY}"


class SyncPipeline:
    """
    Orchestrates a single sync of all configured jobs.

    Jobs are processed one at a time in configuration order; each job's
    commit (and push) completes before the next job is fetched. A failing
    job is recorded and the run continues. Only failures that make every
    job impossible (Nomad unreachable, backend unusable) abort the run.
    """

    def __init__(
        self,
        app_config: AppConfig,
        job_source: JobSource,
        backend: Optional[Backend] = None,
        dry_run: bool = False,
        no_push: bool = False,
    ):
        """
        Initialize the sync pipeline.

        Args:
            app_config: Application configuration
            job_source: Source of job specifications (NomadClient)
            backend: Storage backend; may be None only in dry-run mode
            dry_run: Render documents without writing or committing
            no_push: Commit without pushing

        Raises:
            ValueError: If no backend is given outside dry-run mode
        """
        if backend is None and not dry_run:
            raise ValueError("A backend is required unless dry_run is set")

        self.app_config = app_config
        self.job_source = job_source
        self.backend = backend
        self.dry_run = dry_run
        self.no_push = no_push
        self.normalizer = JobNormalizer(ignore_fields=app_config.changes.ignore_fields)
        self._lock = threading.Lock()

    def run_once(self, job_names: Optional[List[str]] = None) -> SyncRunResult:
        """
        Execute a complete sync of the configured (or selected) jobs.

        Args:
            job_names: Restrict the run to these job names

        Returns:
            SyncRunResult with per-job outcomes and aggregate counts

        Raises:
            NomadError: If Nomad cannot be reached at the start of the run
            BackendError: If the backend cannot be initialized
        """
        run_started_at = utc_now()
        run_id = uuid4().hex

        # Try to acquire the lock; if already held, skip this run
        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Sync run skipped: previous run still in progress",
                    extra={"event": "sync.run.skipped", "reason": "lock_held"},
                )
            return SyncRunResult(
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                run_id=run_id,
                dry_run=self.dry_run,
                skipped=True,
            )

        try:
            with log_context(run_id=run_id):
                jobs = self.app_config.select_jobs(job_names)

                logger.info(
                    f"Sync run started for {len(jobs)} jobs",
                    extra={
                        "event": "sync.run.started",
                        "job_count": len(jobs),
                        "dry_run": self.dry_run,
                        "no_push": self.no_push,
                    },
                )

                self.job_source.ping()
                if not self.dry_run:
                    self.backend.initialize()

                job_results = [self._sync_job(job.identity) for job in jobs]

                result = SyncRunResult(
                    run_started_at=run_started_at,
                    run_finished_at=utc_now(),
                    run_id=run_id,
                    dry_run=self.dry_run,
                    job_results=job_results,
                )

                logger.info(
                    "Sync run completed",
                    extra={
                        "event": "sync.run.completed",
                        "duration_ms": int(result.total_duration_seconds * 1000),
                        "total_jobs": result.total_jobs,
                        "new": result.new_count,
                        "modified": result.modified_count,
                        "unchanged": result.unchanged_count,
                        "skipped": result.skipped_count,
                        "errors": result.error_count,
                        "had_errors": result.had_errors,
                    },
                )

                return result

        finally:
            self._lock.release()

    def _sync_job(self, identity: JobIdentity) -> JobSyncResult:
        """
        Sync one job: fetch, normalize, render, compare and commit.

        Never raises; failures are captured in the returned result.
        """
        job_start = time.time()
        result = JobSyncResult(
            job_key=identity.key,
            namespace=identity.namespace,
            name=identity.name,
        )

        with log_context(job_key=identity.key):
            logger.info(
                f"Syncing job {identity.display_name}",
                extra={"event": "sync.job.started"},
            )

            try:
                try:
                    spec = self.job_source.fetch_job_spec(identity.namespace, identity.name)
                except JobNotFoundError as e:
                    result.outcome = JobOutcome.SKIPPED.value
                    logger.warning(
                        f"Job not found in Nomad, skipping: {e}",
                        extra={"event": "sync.job.not_found"},
                    )
                    return result

                normalized = self.normalizer.normalize(spec)
                document = render_document(normalized)
                result.document_size = len(document)
                result.document_hash = compute_document_hash(document)

                if self.dry_run:
                    result.outcome = JobOutcome.WOULD_SYNC.value
                    logger.info(
                        f"Dry run: would sync {identity.path} ({result.document_size} bytes)",
                        extra={"event": "sync.job.would_sync", "path": identity.path},
                    )
                    return result

                stored = None
                if self.backend.file_exists(identity.path):
                    stored = self.backend.read_file(identity.path)

                change = compare(stored, document)
                result.description = change.description

                if not change.has_changes:
                    result.outcome = JobOutcome.UNCHANGED.value
                    logger.info(
                        f"No changes for {identity.display_name}",
                        extra={"event": "sync.job.unchanged"},
                    )
                else:
                    result.commit_id = self._commit(identity, document, change)
                    result.outcome = ChangeKind(change.kind).value
                    logger.info(
                        f"Committed {identity.path}",
                        extra={
                            "event": "sync.job.committed",
                            "change_kind": result.outcome,
                            "commit_id": result.commit_id,
                            "pushed": not self.no_push,
                        },
                    )

                self._record_success(identity, result, utc_now())

            except Exception as e:
                # Log error but continue with the next job
                result.had_errors = True
                result.outcome = JobOutcome.ERROR.value
                result.error_message = str(e)
                logger.error(
                    f"Failed to sync {identity.display_name}: {e}",
                    extra={
                        "event": "sync.job.failed",
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                self._record_error(identity, utc_now(), str(e))

            finally:
                result.duration_seconds = time.time() - job_start

        return result

    def _commit(self, identity: JobIdentity, document: bytes, change: ChangeRecord) -> str:
        message = build_commit_message(
            identity, change, metadata_only=self.app_config.changes.commit_metadata_only
        )
        self.backend.write_file(identity.path, document)
        commit_id = self.backend.commit(message)
        if not self.no_push:
            self.backend.push()
        return commit_id

    def _record_success(self, identity: JobIdentity, result: JobSyncResult, timestamp: datetime) -> None:
        if not database.is_initialized():
            return
        try:
            with database.get_session() as session:
                SyncStatusRepository(session).record_success(
                    identity,
                    ChangeKind(result.outcome),
                    result.commit_id or None,
                    result.document_hash,
                    timestamp,
                )
        except PersistenceError as e:
            logger.warning(
                f"Failed to record sync status: {e}",
                extra={"event": "status.record.failed"},
            )

    def _record_error(self, identity: JobIdentity, timestamp: datetime, message: str) -> None:
        if not database.is_initialized():
            return
        try:
            with database.get_session() as session:
                SyncStatusRepository(session).record_error(identity, timestamp, message)
        except PersistenceError as e:
            logger.warning(
                f"Failed to record sync status: {e}",
                extra={"event": "status.record.failed"},
            )
