"""Unit tests for domain models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from njgit.domain.models import (
    ChangeKind,
    ChangeRecord,
    CommitInfo,
    JobIdentity,
    JobSpecification,
    JobSyncStatus,
)


class TestJobSpecification:
    """Tests for parsing Nomad API payloads."""

    def test_parse_api_payload(self, web_payload):
        """Test Nomad keys are accepted as aliases."""
        spec = JobSpecification.model_validate(web_payload)

        assert spec.id == "web"
        assert spec.type == "service"
        assert spec.datacenters == ["dc2", "dc1"]
        assert spec.task_groups[0].name == "frontend"
        assert spec.task_groups[0].tasks[0].resources.memory_mb == 128
        assert spec.modify_index == 5

    def test_unknown_keys_are_kept_as_extras(self, web_payload):
        """Test fields without a model attribute survive parsing."""
        spec = JobSpecification.model_validate(web_payload)

        assert spec.model_extra["Stop"] is False
        assert spec.model_extra["Version"] == 3

    def test_null_collections_become_empty(self):
        """Test null lists and maps from the API are tolerated."""
        spec = JobSpecification.model_validate(
            {"ID": "web", "Datacenters": None, "TaskGroups": None, "Meta": None}
        )

        assert spec.datacenters == []
        assert spec.task_groups == []
        assert spec.meta is None

    def test_string_map_values_are_coerced(self):
        """Test non-string env and meta values are stringified."""
        spec = JobSpecification.model_validate(
            {
                "ID": "web",
                "Meta": {"replicas": 3, "enabled": True, "empty": None},
                "TaskGroups": [{"Name": "g", "Tasks": [{"Name": "t", "Env": {"PORT": 8080}}]}],
            }
        )

        assert spec.meta == {"replicas": "3", "enabled": "true", "empty": ""}
        assert spec.task_groups[0].tasks[0].env == {"PORT": "8080"}

    def test_job_name_falls_back_to_name(self):
        """Test job_name prefers ID and falls back to Name."""
        assert JobSpecification(ID="api", Name="other").job_name == "api"
        assert JobSpecification(Name="api").job_name == "api"
        assert JobSpecification().job_name == ""


class TestJobIdentity:
    """Tests for JobIdentity."""

    def test_defaults(self):
        identity = JobIdentity(name="web")

        assert identity.namespace == "default"
        assert identity.region == "global"

    def test_key_path_and_display_name(self):
        """Test the derived storage key, document path and display name."""
        identity = JobIdentity(name="worker", namespace="batch", region="eu-west")

        assert identity.key == "eu-west/batch/worker"
        assert identity.path == "eu-west/batch/worker.hcl"
        assert identity.display_name == "batch/worker"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            JobIdentity(name="")

    def test_identity_is_frozen_and_hashable(self):
        """Test identities can be used as dict keys."""
        identity = JobIdentity(name="web")

        with pytest.raises(ValidationError):
            identity.name = "other"
        assert {identity: 1}[JobIdentity(name="web")] == 1


class TestChangeRecord:
    """Tests for ChangeRecord."""

    @pytest.mark.parametrize(
        "kind,has_changes",
        [(ChangeKind.NEW, True), (ChangeKind.MODIFIED, True), (ChangeKind.UNCHANGED, False)],
    )
    def test_has_changes(self, kind, has_changes):
        assert ChangeRecord(kind=kind).has_changes is has_changes

    def test_is_new(self):
        assert ChangeRecord(kind=ChangeKind.NEW).is_new
        assert not ChangeRecord(kind=ChangeKind.MODIFIED).is_new


class TestJobSyncStatus:
    def test_naive_timestamps_become_utc(self):
        """Test timestamps are normalized to UTC."""
        status = JobSyncStatus(
            job_key="global/default/web",
            region="global",
            namespace="default",
            name="web",
            last_success_at=datetime(2025, 11, 4, 12, 0, 0),
            last_error_at=datetime(2025, 11, 4, 14, 0, 0, tzinfo=timezone(timedelta(hours=2))),
        )

        assert status.last_success_at.tzinfo == timezone.utc
        assert status.last_error_at.hour == 12


class TestCommitInfo:
    """Tests for CommitInfo."""

    @pytest.fixture
    def commit(self):
        return CommitInfo(
            hash="abc12345",
            full_hash="abc12345def67890abc12345def67890abc12345",
            message="Update default/web\n\nInitial version",
        )

    def test_subject_is_first_line(self, commit):
        assert commit.subject == "Update default/web"

    def test_matches_short_and_full_hash(self, commit):
        assert commit.matches("abc12345")
        assert commit.matches("abc12")
        assert commit.matches(commit.full_hash)

    def test_does_not_match_other_refs(self, commit):
        assert not commit.matches("def67890")
        assert not commit.matches("")
        assert not commit.matches("   ")
