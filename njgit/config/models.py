"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from njgit.domain.models import JobIdentity

from .duration import DurationParseError, parse_duration, validate_duration_range


class BackendType(str, Enum):
    """Supported storage backends."""

    GIT = "git"
    GITHUB_API = "github-api"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class GitConfig(BaseModel):
    """Where job documents are stored and how commits are authored."""

    backend: BackendType = Field(BackendType.GIT, description="git or github-api")
    local_path: str = Field(".", description="Local repository path (git backend)")
    branch: str = Field("main", description="Branch to commit to (github-api backend)")
    owner: Optional[str] = Field(None, description="Repository owner (github-api backend)")
    repo: Optional[str] = Field(None, description="Repository name (github-api backend)")
    author_name: str = Field("njgit", description="Commit author name")
    author_email: str = Field("njgit@localhost", description="Commit author email")
    token: Optional[str] = Field(
        None, description="GitHub token (prefer GITHUB_TOKEN or GH_TOKEN env vars)"
    )

    @field_validator("local_path", "branch", "author_name", "author_email", "owner", "repo")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace from string fields."""
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_backend_requirements(self):
        """Check the fields each backend needs, except the token.

        The token usually comes from the environment and is checked after
        environment overrides are applied (see validate_backend_credentials).
        """
        if self.backend == BackendType.GIT:
            if not self.local_path:
                raise ValueError("local_path is required for git backend")
        else:
            missing = [
                name
                for name in ("owner", "repo", "branch", "author_name", "author_email")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(
                    f"{', '.join(missing)} required for github-api backend"
                )
        return self

    model_config = {"use_enum_values": True}


class NomadConfig(BaseModel):
    """Connection settings for the Nomad HTTP API."""

    address: Optional[str] = Field(None, description="Nomad address (or NOMAD_ADDR)")
    token: Optional[str] = Field(None, description="ACL token (or NOMAD_TOKEN)")
    ca_cert: Optional[str] = Field(None, description="Path to CA certificate bundle")
    tls_skip_verify: bool = Field(False, description="Disable TLS verification")
    timeout: int = Field(30, ge=5, le=300, description="Request timeout (seconds)")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: Optional[str]) -> Optional[str]:
        """Require an http(s) URL when an address is given."""
        if v is None:
            return None
        stripped = v.strip().rstrip("/")
        if not stripped:
            return None
        if not stripped.startswith(("http://", "https://")):
            raise ValueError(
                f"Nomad address must start with http:// or https://, got: {stripped}"
            )
        return stripped


class JobConfig(BaseModel):
    """A Nomad job to track."""

    name: str = Field(..., min_length=1, description="Job name in Nomad")
    namespace: str = Field("default", min_length=1, description="Nomad namespace")
    region: str = Field("global", min_length=1, description="Nomad region")

    @field_validator("name", "namespace", "region")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @property
    def identity(self) -> JobIdentity:
        return JobIdentity(name=self.name, namespace=self.namespace, region=self.region)


class ChangesConfig(BaseModel):
    """Change detection settings."""

    ignore_fields: List[str] = Field(
        default_factory=list,
        description="Additional top-level job fields to ignore when comparing",
    )
    commit_metadata_only: bool = Field(
        False, description="Commit messages carry only the summary line"
    )

    @field_validator("ignore_fields")
    @classmethod
    def normalize_fields(cls, v: List[str]) -> List[str]:
        """Strip whitespace, drop empty names and duplicates (order kept)."""
        seen = []
        for name in v:
            stripped = name.strip()
            if stripped and stripped not in seen:
                seen.append(stripped)
        return seen


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class StatusConfig(BaseModel):
    """Optional sync status store."""

    database_url: Optional[str] = Field(
        None, description="SQLAlchemy URL; status tracking is disabled when unset"
    )


class AppConfig(BaseModel):
    """Root configuration object for njgit."""

    git: GitConfig = Field(default_factory=GitConfig, description="Storage backend")
    nomad: NomadConfig = Field(default_factory=NomadConfig, description="Nomad connection")
    jobs: List[JobConfig] = Field(..., min_length=1, description="Jobs to track")
    changes: ChangesConfig = Field(default_factory=ChangesConfig)
    sync_interval: str = Field("15m", description="Interval between syncs in daemon mode")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    status: StatusConfig = Field(default_factory=StatusConfig)

    # Computed field
    sync_interval_seconds: Optional[int] = None

    @field_validator("sync_interval")
    @classmethod
    def validate_sync_interval(cls, v: str) -> str:
        """Validate and parse sync interval."""
        try:
            seconds = parse_duration(v)
            validate_duration_range(seconds, min_seconds=60, max_seconds=86400)
            return v
        except DurationParseError as e:
            raise ValueError(str(e)) from e

    @model_validator(mode="after")
    def validate_jobs_and_compute_fields(self):
        """Reject duplicate jobs and compute derived fields."""
        seen = set()
        for job in self.jobs:
            key = job.identity.key
            if key in seen:
                raise ValueError(f"Duplicate job: {key} appears multiple times")
            seen.add(key)

        self.sync_interval_seconds = parse_duration(self.sync_interval)
        return self

    def select_jobs(self, names: Optional[List[str]] = None) -> List[JobConfig]:
        """Return configured jobs, optionally restricted to the given names.

        Configuration order is preserved; unknown names are ignored.
        """
        if not names:
            return list(self.jobs)
        wanted = {name.strip() for name in names if name.strip()}
        return [job for job in self.jobs if job.name in wanted]

    def redacted(self) -> dict:
        """Configuration as a dict with secrets masked, for display."""
        data = self.model_dump(mode="json")
        for section in ("git", "nomad"):
            if data[section].get("token"):
                data[section]["token"] = "********"
        return data
