"""Unit tests for the scheduler service.

Tests the SchedulerService including:
- Job registration with max_instances=1 and coalescing
- Immediate or deferred first run
- Start/shutdown lifecycle
- Trigger now functionality
- Import failures contained in the job
"""

import threading
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from jobfeed.scheduler import IMPORT_JOB_ID, SchedulerService


class TestSchedulerService:
    """Test suite for SchedulerService."""

    def test_scheduler_initialization(self):
        mock_callable = Mock()
        shutdown_event = threading.Event()

        scheduler = SchedulerService(
            import_callable=mock_callable,
            interval_seconds=60,
            shutdown_event=shutdown_event,
        )

        assert scheduler.interval_seconds == 60
        assert scheduler.import_callable == mock_callable
        assert scheduler.shutdown_event == shutdown_event
        assert not scheduler.is_running()

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValueError):
            SchedulerService(import_callable=Mock(), interval_seconds=0)

    def test_scheduler_start_and_shutdown(self):
        shutdown_event = threading.Event()
        scheduler = SchedulerService(
            import_callable=Mock(),
            interval_seconds=300,
            shutdown_event=shutdown_event,
            run_immediately=False,
        )

        scheduler.start()
        assert scheduler.is_running()

        scheduler.shutdown(wait=False)
        assert not scheduler.is_running()
        assert shutdown_event.is_set()

    def test_job_registered_with_single_instance_and_coalescing(self):
        scheduler = SchedulerService(
            import_callable=Mock(), interval_seconds=60, run_immediately=False
        )
        scheduler.start()
        try:
            job = scheduler.scheduler.get_job(IMPORT_JOB_ID)
            assert job.max_instances == 1
            assert job.coalesce is True
            assert job.misfire_grace_time == 60
        finally:
            scheduler.shutdown(wait=False)

    def test_scheduler_immediate_first_run(self):
        ran = threading.Event()
        scheduler = SchedulerService(import_callable=ran.set, interval_seconds=3600)

        scheduler.start()
        try:
            assert ran.wait(timeout=5)
        finally:
            scheduler.shutdown(wait=True)

    def test_deferred_first_run(self):
        mock_callable = Mock()
        scheduler = SchedulerService(
            import_callable=mock_callable, interval_seconds=3600, run_immediately=False
        )

        scheduler.start()
        try:
            next_run = scheduler.get_next_run_time()
            assert next_run - datetime.now(timezone.utc) > timedelta(minutes=59)
            time.sleep(0.2)
            mock_callable.assert_not_called()
        finally:
            scheduler.shutdown(wait=False)

    def test_trigger_now_executes_synchronously(self):
        mock_callable = Mock()
        scheduler = SchedulerService(import_callable=mock_callable, interval_seconds=3600)

        scheduler.trigger_now()

        mock_callable.assert_called_once_with()

    def test_get_next_run_time(self):
        scheduler = SchedulerService(
            import_callable=Mock(), interval_seconds=60, run_immediately=False
        )

        assert scheduler.get_next_run_time() is None

        scheduler.start()
        try:
            assert isinstance(scheduler.get_next_run_time(), datetime)
        finally:
            scheduler.shutdown(wait=False)

    def test_multiple_start_calls_safe(self):
        scheduler = SchedulerService(
            import_callable=Mock(), interval_seconds=60, run_immediately=False
        )

        scheduler.start()
        scheduler.start()

        assert scheduler.is_running()
        assert len(scheduler.scheduler.get_jobs()) == 1
        scheduler.shutdown(wait=False)

    def test_import_exceptions_are_contained(self):
        scheduler = SchedulerService(
            import_callable=Mock(side_effect=RuntimeError("feed host down")),
            interval_seconds=60,
        )

        scheduler.trigger_now()
        scheduler.trigger_now()

        assert scheduler.runs_failed == 2

    def test_shutdown_with_wait_lets_running_import_finish(self):
        started = threading.Event()
        finished = threading.Event()

        def slow_import():
            started.set()
            time.sleep(0.3)
            finished.set()

        scheduler = SchedulerService(import_callable=slow_import, interval_seconds=3600)
        scheduler.start()
        assert started.wait(timeout=5)

        scheduler.shutdown(wait=True)

        assert finished.is_set()
