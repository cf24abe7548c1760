"""Unit tests for the sync status store."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from njgit.domain.models import ChangeKind, JobIdentity, JobSyncStatus
from njgit.persistence import (
    DatabaseConnectionError,
    PersistenceError,
    SyncStatusRepository,
    close_database,
    get_session,
    init_database,
    is_initialized,
)
from njgit.persistence.database import _redact_url
from njgit.persistence.schema import JobStatusModel

WEB = JobIdentity(name="web")
WORKER = JobIdentity(name="worker", namespace="batch", region="eu-west")
T0 = datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_init_database_creates_file_and_parents(self, tmp_path):
        """Test SQLite files and missing parent directories are created."""
        db_file = tmp_path / "data" / "nested" / "njgit.db"

        init_database(f"sqlite:///{db_file}")

        assert db_file.exists()
        assert is_initialized()
        close_database()
        assert not is_initialized()

    def test_schema_creation_is_idempotent(self, tmp_path):
        db_url = f"sqlite:///{tmp_path / 'njgit.db'}"

        init_database(db_url)
        init_database(db_url)

        with get_session() as session:
            rows = session.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            assert "job_status" in [row[0] for row in rows]

    def test_invalid_url_raises(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("")

        with pytest.raises(DatabaseConnectionError):
            init_database("notadialect://nowhere")

    def test_get_session_without_init_raises(self):
        close_database()

        with pytest.raises(DatabaseConnectionError, match="Database not initialized"):
            with get_session():
                pass

    def test_close_database_is_safe_when_not_initialized(self):
        close_database()
        close_database()

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("sqlite:///./data/njgit.db", "sqlite:///./data/njgit.db"),
            ("postgresql://njgit:hunter2@db:5432/njgit", "postgresql://njgit:***@db:5432/njgit"),
        ],
    )
    def test_redact_url(self, url, expected):
        assert _redact_url(url) == expected


class TestSessionManagement:
    """Tests for get_session transaction handling."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_session_commits_on_success(self):
        with get_session() as session:
            SyncStatusRepository(session).record_success(WEB, ChangeKind.NEW, "abc12345", "h", T0)

        with get_session() as session:
            assert SyncStatusRepository(session).get(WEB.key) is not None

    def test_session_rolls_back_on_exception(self):
        with pytest.raises(ValueError):
            with get_session() as session:
                SyncStatusRepository(session).record_success(WEB, ChangeKind.NEW, "abc", "h", T0)
                raise ValueError("boom")

        with get_session() as session:
            assert SyncStatusRepository(session).get(WEB.key) is None


class TestSyncStatusRepository:
    """Tests for SyncStatusRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_get_unknown_job(self):
        with get_session() as session:
            assert SyncStatusRepository(session).get("global/default/missing") is None

    def test_record_success_creates_row(self):
        with get_session() as session:
            status = SyncStatusRepository(session).record_success(
                WORKER, ChangeKind.NEW, "abc12345", "d" * 64, T0
            )

        assert status.job_key == "eu-west/batch/worker"
        assert status.region == "eu-west"
        assert status.namespace == "batch"
        assert status.last_change_kind == "new"
        assert status.last_success_at == T0

    def test_unchanged_keeps_commit_and_hash(self):
        with get_session() as session:
            repo = SyncStatusRepository(session)
            repo.record_success(WEB, ChangeKind.NEW, "abc12345", "hash1", T0)
            status = repo.record_success(WEB, ChangeKind.UNCHANGED, None, None, T0 + timedelta(minutes=15))

        assert status.last_change_kind == "unchanged"
        assert status.last_commit_id == "abc12345"
        assert status.document_hash == "hash1"
        assert status.last_success_at == T0 + timedelta(minutes=15)

    def test_error_then_success_clears_error(self):
        with get_session() as session:
            repo = SyncStatusRepository(session)
            repo.record_success(WEB, ChangeKind.NEW, "abc12345", "hash1", T0)
            failed = repo.record_error(WEB, T0 + timedelta(minutes=15), "timed out")

            assert failed.error_message == "timed out"
            assert failed.last_success_at == T0

            recovered = repo.record_success(
                WEB, ChangeKind.MODIFIED, "def67890", "hash2", T0 + timedelta(minutes=30)
            )

        assert recovered.error_message is None
        assert recovered.last_error_at is None
        assert recovered.last_commit_id == "def67890"

    def test_get_all_ordered_by_key(self):
        with get_session() as session:
            repo = SyncStatusRepository(session)
            repo.record_success(WEB, ChangeKind.NEW, "a", "h", T0)
            repo.record_error(WORKER, T0, "boom")

        with get_session() as session:
            keys = [s.job_key for s in SyncStatusRepository(session).get_all()]

        assert keys == ["eu-west/batch/worker", "global/default/web"]

    def test_database_errors_are_wrapped(self):
        session = MagicMock()
        session.get.side_effect = OperationalError("SELECT", {}, Exception("locked"))

        with pytest.raises(PersistenceError, match="Failed to retrieve job status"):
            SyncStatusRepository(session).get(WEB.key)


class TestORMModelConversions:
    """Tests for ORM model to domain model conversions."""

    def test_round_trip_preserves_fields(self):
        status = JobSyncStatus(
            job_key=WEB.key,
            region="global",
            namespace="default",
            name="web",
            last_change_kind="modified",
            last_commit_id="abc12345",
            document_hash="h",
            last_success_at=T0,
            last_error_at=None,
            error_message=None,
        )

        model = JobStatusModel.from_domain(status)

        assert model.last_success_at == "2025-11-04T12:00:00.000000Z"
        assert model.to_domain() == status

    def test_parse_timestamp_without_fraction(self):
        model = JobStatusModel(
            job_key=WEB.key,
            region="global",
            namespace="default",
            name="web",
            last_success_at="2025-11-04T12:00:00Z",
        )

        assert model.to_domain().last_success_at == T0
