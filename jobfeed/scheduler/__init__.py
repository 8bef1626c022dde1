"""Scheduling of periodic feed imports."""

from .service import IMPORT_JOB_ID, SchedulerService

__all__ = ["IMPORT_JOB_ID", "SchedulerService"]
