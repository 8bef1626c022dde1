"""Periodic import scheduling on top of APScheduler."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from jobfeed.logging import get_logger

logger = get_logger(__name__, component="scheduler")

IMPORT_JOB_ID = "feed-import"


class SchedulerService:
    """
    Triggers the import callable every ``interval_seconds``.

    The job runs on APScheduler's background thread with at most one
    instance at a time; late runs are coalesced into one. The callable's
    exceptions are logged and never reach the scheduler thread.
    """

    def __init__(
        self,
        import_callable: Callable[[], Any],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
        run_immediately: bool = True,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.import_callable = import_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event
        self.run_immediately = run_immediately
        self.runs_failed = 0

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def start(self) -> None:
        """Register the import job and start the background scheduler."""
        if self.scheduler.running:
            logger.warning("Scheduler already running", extra={"event": "scheduler.already_running"})
            return

        now = datetime.now(timezone.utc)
        first_run = now if self.run_immediately else now + timedelta(seconds=self.interval_seconds)

        self.scheduler.add_job(
            func=self._run_job,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=IMPORT_JOB_ID,
            name="Job feed import",
            replace_existing=True,
            next_run_time=first_run,
        )
        self.scheduler.start()

        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": first_run.isoformat(),
            },
        )

    def _run_job(self) -> None:
        try:
            self.import_callable()
        except Exception as e:
            self.runs_failed += 1
            logger.error(
                f"Scheduled import failed: {e}",
                extra={"event": "scheduler.job.failed", "error_type": type(e).__name__},
                exc_info=True,
            )

    def shutdown(self, wait: bool = False) -> None:
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
        if self.shutdown_event is not None:
            self.shutdown_event.set()
        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self) -> None:
        """Run the import synchronously in the calling thread."""
        logger.info("Triggering immediate import", extra={"event": "scheduler.trigger_now"})
        self._run_job()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(IMPORT_JOB_ID)
        return job.next_run_time if job else None
