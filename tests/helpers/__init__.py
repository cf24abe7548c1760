"""Test doubles for the job source and storage backend."""

from .fixture_source import FixtureJobSource, load_job_fixture
from .memory_backend import InMemoryBackend

__all__ = ["FixtureJobSource", "InMemoryBackend", "load_job_fixture"]
