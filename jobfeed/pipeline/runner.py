"""Import pipeline: fetch, stream, combine and publish every enabled feed."""

import threading
from pathlib import Path
from typing import Iterable, List, Optional, Union
from uuid import uuid4

from jobfeed.combine.combiner import COMBINED_FILENAME, CombineError, CombinedArtifact, combine
from jobfeed.config.exceptions import ConfigurationError
from jobfeed.config.models import AppConfig
from jobfeed.domain.models import ImportPhase
from jobfeed.fetch.fetcher import FeedFetcher
from jobfeed.fetch.models import FetchOptions
from jobfeed.logging import RunLog, get_logger
from jobfeed.logging.context import log_context
from jobfeed.publish.models import PublishStats
from jobfeed.publish.service import BatchPublisher
from jobfeed.status.reporter import StatusReporter
from jobfeed.status.store import StatusStore
from jobfeed.utils.timestamps import utc_now

from .models import FeedRunStats, ImportRunResult
from .orchestrator import FeedOrchestrator, feed_paths

logger = get_logger(__name__, component="pipeline")


class FeedImportPipeline:
    """
    Runs one complete import across the enabled feeds.

    A run moves through the phases feed-downloading, feed-processing,
    jsonl-combining and (when publishing is enabled) duplicate-cleanup, then
    ends in done, cancelled or error. Progress goes to the status store as
    it happens.

    Only one run executes at a time; an overlapping ``run_once`` call returns
    a skipped result immediately.
    """

    def __init__(
        self,
        app_config: AppConfig,
        status_store: StatusStore,
        fetcher: Optional[FeedFetcher] = None,
        publisher: Optional[BatchPublisher] = None,
        publish: Optional[bool] = None,
    ):
        """
        Args:
            app_config: Application configuration
            status_store: Where progress snapshots are written
            fetcher: Feed downloader (built from ``app_config.fetch`` if omitted)
            publisher: Publisher to use instead of one bound to the run log
            publish: Override ``import.publish`` from the config
        """
        self.app_config = app_config
        self.status_store = status_store
        self.fetcher = fetcher or FeedFetcher(user_agent=app_config.fetch.user_agent)
        self.publisher = publisher
        self.publish_enabled = (
            app_config.import_settings.publish if publish is None else publish
        )
        self._lock = threading.Lock()
        self._cancel = threading.Event()

    @property
    def output_dir(self) -> Path:
        return Path(self.app_config.import_settings.output_dir)

    def request_cancel(self) -> None:
        """Ask the running import to stop at its next safe point."""
        self._cancel.set()
        logger.info("Import cancellation requested", extra={"event": "pipeline.cancel.requested"})

    def run_once(self) -> ImportRunResult:
        """
        Execute one import.

        Feed-level failures are captured in the result. Only configuration
        errors (such as an unusable output directory) propagate, after the
        status has been moved to the error phase.

        Raises:
            ConfigurationError: If the run cannot start
        """
        run_started_at = utc_now()
        run_id = uuid4().hex

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Import run skipped: previous run still in progress",
                    extra={"event": "pipeline.run.skipped", "reason": "lock_held"},
                )
            return ImportRunResult(
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                skipped=True,
            )

        try:
            with log_context(run_id=run_id):
                self._cancel.clear()
                return self._run(run_started_at)
        finally:
            self._lock.release()

    def _run(self, run_started_at) -> ImportRunResult:
        settings = self.app_config.import_settings
        run_log = RunLog(max_lines=max(settings.log_tail_size * 10, 1000))
        reporter = StatusReporter(self.status_store, run_log)
        feed_map = self.app_config.feed_map()

        reporter.start(len(feed_map))
        run_log.append(f"Starting import of {len(feed_map)} feeds", event="pipeline.run.started")

        orchestrator = FeedOrchestrator(
            fetcher=self.fetcher,
            run_log=run_log,
            reporter=reporter,
            fetch_options=FetchOptions.from_settings(self.app_config.fetch),
            batch_size=settings.batch_size,
            max_workers=settings.max_workers,
            cancel_event=self._cancel,
        )

        try:
            feed_stats = orchestrator.process_feeds(
                feed_map, self.output_dir, settings.fallback_domain
            )
        except ConfigurationError as e:
            run_log.error(f"Import aborted: {e.message}", event="pipeline.run.aborted")
            reporter.phase(
                ImportPhase.ERROR,
                current_feed=None,
                complete=True,
                success=False,
                error_message=e.message,
                finished_at=utc_now(),
            )
            raise

        total_items = sum(s.item_count for s in feed_stats)
        run_log.append(f"Imported {total_items} items", event="pipeline.feeds.completed")

        combined: Optional[CombinedArtifact] = None
        publish_stats: Optional[PublishStats] = None
        error_message: Optional[str] = None

        if not self._cancel.is_set():
            reporter.phase(ImportPhase.JSONL_COMBINING, current_feed=None)
            try:
                combined = combine(feed_map, self.output_dir, total_items, run_log)
            except CombineError as e:
                error_message = str(e)

        if combined is not None and self.publish_enabled and not self._cancel.is_set():
            reporter.phase(ImportPhase.DUPLICATE_CLEANUP)
            publisher = self.publisher or BatchPublisher(
                run_log, reporter=reporter, cancel_event=self._cancel
            )
            publish_stats = publisher.publish_file(combined.path, settings.batch_size)

        result = ImportRunResult(
            run_started_at=run_started_at,
            run_finished_at=utc_now(),
            feed_stats=feed_stats,
            combined=combined,
            publish_stats=publish_stats,
            had_errors=error_message is not None,
            cancelled=self._cancel.is_set(),
            error_message=error_message,
        )
        self._finish(result, reporter, run_log)
        return result

    def _finish(self, result: ImportRunResult, reporter: StatusReporter, run_log: RunLog) -> None:
        if result.cancelled:
            phase = ImportPhase.CANCELLED
            run_log.warning("Import cancelled", event="pipeline.run.cancelled")
        elif result.error_message:
            phase = ImportPhase.ERROR
        else:
            phase = ImportPhase.DONE
            run_log.append(
                f"Import complete: {result.total_items} items from "
                f"{len(result.feed_stats)} feeds",
                event="pipeline.run.done",
            )

        reporter.phase(
            phase,
            current_feed=None,
            complete=True,
            success=phase == ImportPhase.DONE,
            error_message=result.error_message,
            finished_at=result.run_finished_at,
        )

        logger.info(
            "Import run completed",
            extra={
                "event": "pipeline.run.completed",
                "duration_ms": int(result.total_duration_seconds * 1000),
                "total_items": result.total_items,
                "failed_feeds": result.failed_feeds,
                "had_errors": result.had_errors,
                "cancelled": result.cancelled,
                "status_failures": reporter.failures,
            },
        )

    def reset(self) -> List[Path]:
        """Clear the status and remove this config's feed artifacts.

        Refuses while a run is in progress.
        """
        if not self._lock.acquire(blocking=False):
            raise RuntimeError("Cannot reset while an import is running")
        try:
            self.status_store.reset()
            removed = remove_artifacts(self.output_dir, self.app_config.feed_map())
            logger.info(
                f"Import state reset, removed {len(removed)} files",
                extra={"event": "pipeline.reset", "removed": len(removed)},
            )
            return removed
        finally:
            self._lock.release()


def remove_artifacts(output_dir: Union[str, Path], feed_ids: Iterable[str]) -> List[Path]:
    """Delete per-feed and combined artifacts; missing files are ignored."""
    output_dir = Path(output_dir)
    targets = [path for feed_id in feed_ids for path in feed_paths(output_dir, feed_id).values()]
    targets.append(output_dir / COMBINED_FILENAME)
    targets.append(output_dir / f"{COMBINED_FILENAME}.gz")

    removed = []
    for path in targets:
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        removed.append(path)
    return removed


def summarize(stats: List[FeedRunStats]) -> str:
    """One line per feed for CLI output."""
    lines = []
    for s in stats:
        if s.had_errors:
            lines.append(f"  ✗ {s.feed_id}: {s.error_type}: {s.error_message}")
        elif s.cancelled:
            lines.append(f"  - {s.feed_id}: cancelled after {s.item_count} items")
        else:
            lines.append(f"  ✓ {s.feed_id}: {s.item_count} items ({s.duration_seconds:.1f}s)")
    return "\n".join(lines)
