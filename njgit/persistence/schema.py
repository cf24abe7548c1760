"""ORM model for the sync status table and conversions to domain models."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Index, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from njgit.domain.models import JobSyncStatus
from njgit.logging import get_logger

logger = get_logger(__name__, component="database")

Base = declarative_base()

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class JobStatusModel(Base):
    """ORM model for the job_status table.

    One row per tracked job, keyed by ``region/namespace/name``.
    """

    __tablename__ = "job_status"

    job_key = Column(String(512), primary_key=True, nullable=False)

    region = Column(String(128), nullable=False)
    namespace = Column(String(128), nullable=False)
    name = Column(String(255), nullable=False)

    last_change_kind = Column(String(20), nullable=True)
    last_commit_id = Column(String(64), nullable=True)
    document_hash = Column(String(64), nullable=True)

    # Timestamps (stored as ISO 8601 strings)
    last_success_at = Column(String(50), nullable=True)
    last_error_at = Column(String(50), nullable=True)
    error_message = Column(Text, nullable=True)

    __table_args__ = (Index("idx_job_status_namespace", "region", "namespace"),)

    def to_domain(self) -> JobSyncStatus:
        return JobSyncStatus(
            job_key=self.job_key,
            region=self.region,
            namespace=self.namespace,
            name=self.name,
            last_change_kind=self.last_change_kind,
            last_commit_id=self.last_commit_id,
            document_hash=self.document_hash,
            last_success_at=_parse_datetime(self.last_success_at),
            last_error_at=_parse_datetime(self.last_error_at),
            error_message=self.error_message,
        )

    @classmethod
    def from_domain(cls, status: JobSyncStatus) -> "JobStatusModel":
        return cls(
            job_key=status.job_key,
            region=status.region,
            namespace=status.namespace,
            name=status.name,
            last_change_kind=status.last_change_kind,
            last_commit_id=status.last_commit_id,
            document_hash=status.document_hash,
            last_success_at=_format_datetime(status.last_success_at),
            last_error_at=_format_datetime(status.last_error_at),
            error_message=status.error_message,
        )


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO 8601 UTC string for storage."""
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime(TIMESTAMP_FORMAT)


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string back to a UTC datetime."""
    if not dt_str:
        return None

    dt_str = dt_str.rstrip("Z")
    try:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)


def create_schema(engine: Engine) -> None:
    """Create tables and indexes if they don't exist (idempotent)."""
    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.debug(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
