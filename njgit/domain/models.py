"""Core domain models for Nomad jobs, change records, and sync tracking.

This module defines the data structures used throughout the application:
- JobSpecification: raw job description as returned by the Nomad API
- NormalizedJob: job with volatile fields removed and collections sorted
- JobIdentity: region/namespace/name triple and its storage path
- ChangeRecord: classification of a fresh document against stored history
- JobSyncStatus: last known sync outcome for a tracked job
- CommitInfo: a commit in the job history repository
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

DOCUMENT_EXTENSION = ".hcl"


def _coerce_string_map(value: Any) -> Optional[Dict[str, str]]:
    """Coerce a Nomad string map, tolerating nulls and non-string values."""
    if value is None or not isinstance(value, dict):
        return None
    coerced = {}
    for key, item in value.items():
        if item is None:
            coerced[str(key)] = ""
        elif isinstance(item, bool):
            coerced[str(key)] = "true" if item else "false"
        else:
            coerced[str(key)] = str(item)
    return coerced


class Resources(BaseModel):
    """Resource requests for a task."""

    cpu: Optional[int] = Field(None, alias="CPU", description="CPU in MHz")
    memory_mb: Optional[int] = Field(None, alias="MemoryMB", description="Memory in MB")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class UpdateStrategy(BaseModel):
    """Rolling update strategy for a job."""

    max_parallel: Optional[int] = Field(None, alias="MaxParallel")
    health_check: Optional[str] = Field(None, alias="HealthCheck")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class Task(BaseModel):
    """A single unit of work inside a task group (e.g., a Docker container)."""

    name: Optional[str] = Field(None, alias="Name")
    driver: Optional[str] = Field(None, alias="Driver")
    config: Optional[Dict[str, Any]] = Field(
        None, alias="Config", description="Driver-specific configuration"
    )
    env: Optional[Dict[str, str]] = Field(None, alias="Env")
    resources: Optional[Resources] = Field(None, alias="Resources")
    meta: Optional[Dict[str, str]] = Field(None, alias="Meta")

    @field_validator("env", "meta", mode="before")
    @classmethod
    def coerce_string_map(cls, v: Any) -> Optional[Dict[str, str]]:
        """Accept nulls and non-string values in string maps."""
        return _coerce_string_map(v)

    @field_validator("config", mode="before")
    @classmethod
    def coerce_config(cls, v: Any) -> Optional[Dict[str, Any]]:
        """Drop driver config that is not a mapping."""
        if v is None or not isinstance(v, dict):
            return None
        return v

    model_config = {"populate_by_name": True, "extra": "ignore"}


class TaskGroup(BaseModel):
    """A group of tasks scheduled together on the same client."""

    name: Optional[str] = Field(None, alias="Name")
    count: Optional[int] = Field(None, alias="Count")
    meta: Optional[Dict[str, str]] = Field(None, alias="Meta")
    tasks: List[Task] = Field(default_factory=list, alias="Tasks")

    @field_validator("meta", mode="before")
    @classmethod
    def coerce_string_map(cls, v: Any) -> Optional[Dict[str, str]]:
        """Accept nulls and non-string values in string maps."""
        return _coerce_string_map(v)

    @field_validator("tasks", mode="before")
    @classmethod
    def coerce_tasks(cls, v: Any) -> List[Any]:
        """Treat a null task list as empty."""
        return v or []

    model_config = {"populate_by_name": True, "extra": "ignore"}


class JobSpecification(BaseModel):
    """Raw job description as returned by ``GET /v1/job/<name>``.

    Field names follow Python conventions; the Nomad API keys are accepted as
    aliases. Unknown top-level keys (Stop, Version, ...) are kept as extra
    fields on the raw specification; normalization drops them.

    A fresh instance is built on every fetch and is never persisted as-is.
    """

    id: Optional[str] = Field(None, alias="ID")
    name: Optional[str] = Field(None, alias="Name")
    namespace: Optional[str] = Field(None, alias="Namespace")
    region: Optional[str] = Field(None, alias="Region")
    type: Optional[str] = Field(None, alias="Type")
    priority: Optional[int] = Field(None, alias="Priority")
    datacenters: List[str] = Field(default_factory=list, alias="Datacenters")
    task_groups: List[TaskGroup] = Field(default_factory=list, alias="TaskGroups")
    update: Optional[UpdateStrategy] = Field(None, alias="Update")
    meta: Optional[Dict[str, str]] = Field(None, alias="Meta")

    # Orchestrator-assigned bookkeeping, refreshed on every read
    modify_index: Optional[int] = Field(None, alias="ModifyIndex")
    modify_time: Optional[int] = Field(None, alias="ModifyTime")
    job_modify_index: Optional[int] = Field(None, alias="JobModifyIndex")
    submit_time: Optional[int] = Field(None, alias="SubmitTime")
    create_index: Optional[int] = Field(None, alias="CreateIndex")
    status: Optional[str] = Field(None, alias="Status")
    status_description: Optional[str] = Field(None, alias="StatusDescription")

    @field_validator("meta", mode="before")
    @classmethod
    def coerce_string_map(cls, v: Any) -> Optional[Dict[str, str]]:
        """Accept nulls and non-string values in string maps."""
        return _coerce_string_map(v)

    @field_validator("datacenters", mode="before")
    @classmethod
    def coerce_datacenters(cls, v: Any) -> List[str]:
        """Treat a null datacenter list as empty and stringify entries."""
        if not v:
            return []
        return [str(dc) for dc in v if dc is not None]

    @field_validator("task_groups", mode="before")
    @classmethod
    def coerce_task_groups(cls, v: Any) -> List[Any]:
        """Treat a null group list as empty."""
        return v or []

    @property
    def job_name(self) -> str:
        """Job identity used in documents: ID, falling back to Name."""
        return self.id or self.name or ""

    model_config = {
        "populate_by_name": True,
        "extra": "allow",
        "json_schema_extra": {
            "example": {
                "ID": "web",
                "Name": "web",
                "Namespace": "default",
                "Region": "global",
                "Type": "service",
                "Priority": 50,
                "Datacenters": ["dc1"],
                "TaskGroups": [
                    {
                        "Name": "frontend",
                        "Count": 2,
                        "Tasks": [
                            {
                                "Name": "nginx",
                                "Driver": "docker",
                                "Config": {"image": "nginx:1.0"},
                                "Resources": {"CPU": 100, "MemoryMB": 128},
                            }
                        ],
                    }
                ],
                "ModifyIndex": 42,
                "SubmitTime": 1730728800000000000,
                "Status": "running",
            }
        },
    }


class NormalizedJob(JobSpecification):
    """A job specification with volatile fields removed and collections sorted.

    Produced only by the normalizer. Semantically equal inputs (differing in
    bookkeeping fields or collection order) normalize to equal values, and a
    NormalizedJob never shares mutable state with the specification it came from.
    """

    # Only declared fields are compared and rendered
    model_config = {"extra": "ignore"}


class JobIdentity(BaseModel):
    """Identity of a tracked job: region + namespace + name."""

    name: str = Field(..., min_length=1)
    namespace: str = Field("default", min_length=1)
    region: str = Field("global", min_length=1)

    @property
    def key(self) -> str:
        """Storage key, ``region/namespace/name``."""
        return f"{self.region}/{self.namespace}/{self.name}"

    @property
    def path(self) -> str:
        """Document path inside the backend, ``region/namespace/name.hcl``."""
        return f"{self.key}{DOCUMENT_EXTENSION}"

    @property
    def display_name(self) -> str:
        """Short ``namespace/name`` form used in commit subjects."""
        return f"{self.namespace}/{self.name}"

    model_config = {"frozen": True}


class ChangeKind(str, Enum):
    """Classification of a fresh document against the stored one."""

    NEW = "new"
    UNCHANGED = "unchanged"
    MODIFIED = "modified"


class ChangeRecord(BaseModel):
    """Result of comparing a fresh canonical document to stored history.

    Created once per sync attempt per job; never persisted. The description is
    informational only and never influences the classification.
    """

    kind: ChangeKind
    description: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        """True when the document must be written and committed."""
        return self.kind != ChangeKind.UNCHANGED

    @property
    def is_new(self) -> bool:
        return self.kind == ChangeKind.NEW

    model_config = {"frozen": True}


class JobSyncStatus(BaseModel):
    """Last known sync outcome for a tracked job."""

    job_key: str = Field(..., description="region/namespace/name")
    region: str
    namespace: str
    name: str
    last_change_kind: Optional[str] = Field(None, description="new, unchanged or modified")
    last_commit_id: Optional[str] = None
    document_hash: Optional[str] = Field(None, description="SHA256 of the last document")
    last_success_at: Optional[datetime] = None
    last_error_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @field_validator("last_success_at", "last_error_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class CommitInfo(BaseModel):
    """A commit in the job history repository."""

    hash: str = Field(..., description="Abbreviated hash (8 characters)")
    full_hash: str
    author: str = ""
    email: str = ""
    date: Optional[datetime] = None
    message: str = ""
    files: List[str] = Field(default_factory=list)

    @property
    def subject(self) -> str:
        """First line of the commit message."""
        return self.message.split("\n", 1)[0]

    def matches(self, ref: str) -> bool:
        """Whether ``ref`` names this commit (short, full or unique prefix)."""
        ref = ref.strip()
        return bool(ref) and (self.full_hash.startswith(ref) or self.hash == ref)
