"""Unit tests for the scheduler service.

Tests the SchedulerService including:
- Job registration with an immediate first run
- Prevention of overlapping runs (max_instances=1)
- Start/shutdown lifecycle and shutdown event
- Trigger now functionality
"""

import threading
import time
from datetime import datetime, timezone
from unittest.mock import Mock

from njgit.scheduler import SYNC_JOB_ID, SchedulerService


class TestSchedulerService:
    """Test suite for SchedulerService."""

    def test_scheduler_initialization(self):
        mock_callable = Mock()
        shutdown_event = threading.Event()

        scheduler = SchedulerService(
            pipeline_callable=mock_callable,
            interval_seconds=900,
            shutdown_event=shutdown_event,
        )

        assert scheduler.interval_seconds == 900
        assert scheduler.pipeline_callable is mock_callable
        assert not scheduler.is_running()

    def test_start_and_shutdown(self):
        """Test lifecycle and that shutdown sets the shutdown event."""
        shutdown_event = threading.Event()
        scheduler = SchedulerService(Mock(), interval_seconds=300, shutdown_event=shutdown_event)

        scheduler.start()
        assert scheduler.is_running()

        scheduler.shutdown(wait=False)
        assert not scheduler.is_running()
        assert shutdown_event.is_set()

    def test_sync_job_registered(self):
        """Test the sync job is registered under its id with the interval trigger."""
        scheduler = SchedulerService(Mock(), interval_seconds=600)
        scheduler.start()
        try:
            job = scheduler.scheduler.get_job(SYNC_JOB_ID)

            assert job is not None
            assert job.name == "Nomad job sync"
            assert job.max_instances == 1
            assert job.coalesce is True
            assert job.trigger.interval.total_seconds() == 600
        finally:
            scheduler.shutdown(wait=False)

    def test_immediate_first_run(self):
        """Test the first run happens right after start, not after one interval."""
        ran = threading.Event()

        scheduler = SchedulerService(ran.set, interval_seconds=3600)
        scheduler.start()
        try:
            assert ran.wait(timeout=5)
        finally:
            scheduler.shutdown(wait=True)

    def test_runs_do_not_overlap(self):
        """Test max_instances=1 prevents concurrent executions."""
        active = []
        overlaps = []
        lock = threading.Lock()

        def slow_callable():
            with lock:
                if active:
                    overlaps.append(True)
                active.append(1)
            time.sleep(0.5)
            with lock:
                active.pop()

        scheduler = SchedulerService(slow_callable, interval_seconds=1)
        scheduler.start()
        time.sleep(2.5)
        scheduler.shutdown(wait=True)

        assert overlaps == []

    def test_trigger_now_executes_synchronously(self):
        mock_callable = Mock()
        scheduler = SchedulerService(mock_callable, interval_seconds=3600)

        scheduler.trigger_now()

        mock_callable.assert_called_once_with()

    def test_get_next_run_time(self):
        scheduler = SchedulerService(Mock(), interval_seconds=3600)

        assert scheduler.get_next_run_time() is None

        before = datetime.now(timezone.utc)
        scheduler.start()
        try:
            # The immediate first run may already have advanced the schedule
            next_run = scheduler.get_next_run_time()
            assert next_run is not None
            assert next_run >= before.replace(microsecond=0)
        finally:
            scheduler.shutdown(wait=False)

    def test_shutdown_without_start(self):
        """Test shutdown is safe before the scheduler starts."""
        shutdown_event = threading.Event()
        scheduler = SchedulerService(Mock(), interval_seconds=60, shutdown_event=shutdown_event)

        scheduler.shutdown()

        assert shutdown_event.is_set()
