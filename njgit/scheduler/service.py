"""Scheduler service for periodic sync runs."""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from njgit.logging import get_logger

logger = get_logger(__name__, component="scheduler")

SYNC_JOB_ID = "njgit-sync"


class SchedulerService:
    """
    Wraps APScheduler to run the sync pipeline at a fixed interval.

    Uses BackgroundScheduler so the main thread stays free to handle
    signals and coordinate shutdown.
    """

    def __init__(
        self,
        pipeline_callable: Callable[[], Any],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the scheduler service.

        Args:
            pipeline_callable: Function to call on each scheduled run (e.g., pipeline.run_once)
            interval_seconds: Interval between runs in seconds
            shutdown_event: Optional event to set on shutdown for coordination
        """
        self.pipeline_callable = pipeline_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,  # Prevent overlapping runs
                "coalesce": True,  # If run is delayed, only execute once
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def start(self) -> None:
        """
        Start the scheduler and register the sync job.

        The first run executes immediately; later runs follow the interval.
        """
        trigger = IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc)

        next_run = datetime.now(timezone.utc)
        self.scheduler.add_job(
            func=self.pipeline_callable,
            trigger=trigger,
            id=SYNC_JOB_ID,
            name="Nomad job sync",
            replace_existing=True,
            next_run_time=next_run,
        )

        self.scheduler.start()

        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat(),
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler.

        Args:
            wait: If True, wait for a running sync to complete before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self) -> None:
        """Run the pipeline synchronously in the current thread."""
        logger.info("Triggering immediate sync run", extra={"event": "scheduler.trigger_now"})
        self.pipeline_callable()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        """
        Get the next scheduled run time.

        Returns:
            Next run time, or None if not scheduled
        """
        job = self.scheduler.get_job(SYNC_JOB_ID)
        return job.next_run_time if job else None
