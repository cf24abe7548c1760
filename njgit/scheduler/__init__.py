"""Periodic execution of the sync pipeline."""

from .service import SYNC_JOB_ID, SchedulerService

__all__ = ["SchedulerService", "SYNC_JOB_ID"]
