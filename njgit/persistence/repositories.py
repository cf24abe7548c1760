"""Data access for per-job sync status.

Repositories encapsulate database operations and return domain models
rather than ORM models.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from njgit.domain.models import ChangeKind, JobIdentity, JobSyncStatus
from njgit.logging import get_logger

from .exceptions import DataIntegrityError, PersistenceError
from .schema import JobStatusModel, _format_datetime

logger = get_logger(__name__, component="database")


class SyncStatusRepository:
    """Repository for the last sync outcome of each tracked job."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, job_key: str) -> Optional[JobSyncStatus]:
        """Retrieve the status of one job.

        Args:
            job_key: ``region/namespace/name``

        Returns:
            JobSyncStatus if the job has been synced before, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(JobStatusModel, job_key)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving status for {job_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job status: {e}") from e

    def get_all(self) -> List[JobSyncStatus]:
        """Retrieve all status records ordered by job key.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(JobStatusModel).order_by(JobStatusModel.job_key)
            models = self.session.execute(stmt).scalars().all()
            return [model.to_domain() for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job statuses: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job statuses: {e}") from e

    def record_success(
        self,
        identity: JobIdentity,
        kind: ChangeKind,
        commit_id: Optional[str],
        document_hash: Optional[str],
        timestamp: datetime,
    ) -> JobSyncStatus:
        """Record a successful sync of a job.

        Clears any previous error. When the job was unchanged, the previous
        commit id is kept so the status keeps pointing at the last commit.

        Raises:
            PersistenceError: If database error occurs
        """
        kind_value = ChangeKind(kind).value
        try:
            model = self._get_or_create(identity)
            model.last_change_kind = kind_value
            if commit_id:
                model.last_commit_id = commit_id
            if document_hash:
                model.document_hash = document_hash
            model.last_success_at = _format_datetime(timestamp)
            model.last_error_at = None
            model.error_message = None
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error recording success for {identity.key}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to record job status due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error recording success for {identity.key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record job success: {e}") from e

    def record_error(
        self, identity: JobIdentity, timestamp: datetime, error_message: str
    ) -> JobSyncStatus:
        """Record a failed sync of a job.

        Keeps last_success_at and the last commit unchanged.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            model = self._get_or_create(identity)
            model.last_error_at = _format_datetime(timestamp)
            model.error_message = error_message
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error recording error for {identity.key}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to record job status due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error recording error for {identity.key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record job error: {e}") from e

    def _get_or_create(self, identity: JobIdentity) -> JobStatusModel:
        model = self.session.get(JobStatusModel, identity.key)
        if model is None:
            model = JobStatusModel(
                job_key=identity.key,
                region=identity.region,
                namespace=identity.namespace,
                name=identity.name,
            )
            self.session.add(model)
        return model
