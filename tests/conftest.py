"""Shared fixtures for the njgit test suite."""

import subprocess
from pathlib import Path

import pytest

from njgit.config.models import AppConfig, ChangesConfig, GitConfig, JobConfig, NomadConfig
from njgit.logging.context import clear_log_context
from njgit.persistence.database import close_database

from tests.helpers import FixtureJobSource, InMemoryBackend, load_job_fixture

FIXTURES_DIR = Path(__file__).parent / "fixtures"

WEB_DOCUMENT = b'''job "web" {
  datacenters = ["dc1", "dc2"]
  type = "service"
  priority = 50
  region = "global"
  meta {
    team = "platform"
  }
  update {
    max_parallel = 1
    health_check = "checks"
  }

  group "frontend" {
    count = 2

    task "nginx" {
      driver = "docker"
      config {
        image = "nginx:1.0"
        ports = ["http"]
      }
      env {
        A = "1"
        B = "2"
      }
      resources {
        cpu = 100
        memory = 128
      }
    }
  }

}
'''



@pytest.fixture(autouse=True)
def clean_log_context():
    """Each test starts with an empty logging context."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture(autouse=True)
def no_status_database():
    """Make sure no test leaks an initialized status database."""
    yield
    close_database()


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def web_payload():
    """Nomad API payload for the ``web`` job."""
    return load_job_fixture("web")


@pytest.fixture
def worker_payload():
    """Nomad API payload for the ``worker`` batch job."""
    return load_job_fixture("worker")


@pytest.fixture
def web_document():
    return WEB_DOCUMENT


@pytest.fixture
def app_config(tmp_path):
    """Configuration tracking web (default namespace) and worker (batch/eu-west)."""
    return AppConfig(
        git=GitConfig(backend="git", local_path=str(tmp_path / "repo")),
        nomad=NomadConfig(address="http://127.0.0.1:4646"),
        jobs=[
            JobConfig(name="web"),
            JobConfig(name="worker", namespace="batch", region="eu-west"),
        ],
        changes=ChangesConfig(),
        sync_interval="15m",
    )


@pytest.fixture
def job_source(web_payload, worker_payload):
    return FixtureJobSource([web_payload, worker_payload])


@pytest.fixture
def memory_backend():
    return InMemoryBackend()


@pytest.fixture
def git_repo(tmp_path):
    """An empty git repository with a configured identity."""
    path = tmp_path / "repo"
    path.mkdir()
    subprocess.run(["git", "init", "--quiet", str(path)], check=True)
    subprocess.run(["git", "-C", str(path), "config", "user.name", "Test"], check=True)
    subprocess.run(["git", "-C", str(path), "config", "user.email", "test@example.com"], check=True)
    subprocess.run(["git", "-C", str(path), "config", "commit.gpgsign", "false"], check=True)
    return path
