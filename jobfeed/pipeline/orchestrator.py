"""Fetch and stream every configured feed into its record stream."""

import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from jobfeed.combine.archive import gzip_file
from jobfeed.config.exceptions import ConfigurationError
from jobfeed.config.validators import ensure_output_dir
from jobfeed.domain.models import FeedDescriptor, ImportPhase
from jobfeed.fetch.exceptions import DownloadError
from jobfeed.fetch.fetcher import FeedFetcher
from jobfeed.fetch.models import FetchOptions
from jobfeed.logging import RunLog, get_logger
from jobfeed.logging.context import bind_log_context, log_context
from jobfeed.status.reporter import StatusReporter
from jobfeed.streaming.exceptions import ParseError
from jobfeed.streaming.streamer import XmlRecordStreamer

from .models import FeedRunStats

logger = get_logger(__name__, component="orchestrator")

FILE_MODE = 0o644


def feed_paths(output_dir: Path, feed_id: str) -> Dict[str, Path]:
    """On-disk artifacts of one feed."""
    return {
        "xml": output_dir / f"{feed_id}.xml",
        "jsonl": output_dir / f"{feed_id}.jsonl",
        "gz": output_dir / f"{feed_id}.jsonl.gz",
    }


class FeedOrchestrator:
    """
    Runs fetch then stream for every feed and totals the records written.

    Feeds run one after another by default. With ``max_workers > 1`` they run
    on a bounded thread pool; each feed still reports through the shared
    StatusReporter, whose updates are atomic merges. A feed's failure is
    recorded in its stats and never stops the other feeds.

    A cancel request (``cancel_event``) is honoured before each feed starts
    and at every streaming batch boundary.
    """

    def __init__(
        self,
        fetcher: FeedFetcher,
        run_log: RunLog,
        reporter: Optional[StatusReporter] = None,
        fetch_options: Optional[FetchOptions] = None,
        batch_size: int = 100,
        max_workers: int = 1,
        cancel_event: Optional[threading.Event] = None,
        streamer_factory: Callable[..., XmlRecordStreamer] = XmlRecordStreamer,
        compress_streams: bool = True,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.fetcher = fetcher
        self.run_log = run_log
        self.reporter = reporter
        self.fetch_options = fetch_options or FetchOptions()
        self.batch_size = batch_size
        self.max_workers = max_workers
        self.cancel_event = cancel_event or threading.Event()
        self.streamer_factory = streamer_factory
        self.compress_streams = compress_streams

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def run(
        self,
        feed_map: Mapping[str, str],
        output_dir: Union[str, Path],
        fallback_domain: str,
    ) -> int:
        """Import every feed and return the total number of records written.

        Raises:
            ConfigurationError: If the output directory is unusable or a
                feed id is not filesystem-safe
        """
        return sum(s.item_count for s in self.process_feeds(feed_map, output_dir, fallback_domain))

    def process_feeds(
        self,
        feed_map: Mapping[str, str],
        output_dir: Union[str, Path],
        fallback_domain: str,
    ) -> List[FeedRunStats]:
        """Import every feed and return per-feed stats in ``feed_map`` order."""
        output_path = ensure_output_dir(output_dir)
        feeds = _descriptors(feed_map)

        if not feeds:
            self.run_log.append("No feeds to import", event="orchestrator.no_feeds")
            return []

        streamer = self.streamer_factory(fallback_domain=fallback_domain, run_log=self.run_log)
        workers = min(self.max_workers, len(feeds))

        if workers == 1:
            return [self._process_feed(feed, output_path, streamer) for feed in feeds]

        logger.info(
            f"Processing {len(feeds)} feeds with {workers} workers",
            extra={"event": "orchestrator.pool.started", "workers": workers},
        )
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="feed") as pool:
            futures = [
                pool.submit(bind_log_context(self._process_feed), feed, output_path, streamer)
                for feed in feeds
            ]
            return [future.result() for future in futures]

    def _process_feed(
        self, feed: FeedDescriptor, output_dir: Path, streamer: XmlRecordStreamer
    ) -> FeedRunStats:
        """Fetch and stream one feed. Never raises."""
        stats = FeedRunStats(feed_id=feed.id)
        started = time.time()
        paths = feed_paths(output_dir, feed.id)

        with log_context(feed_id=feed.id):
            if self.cancelled:
                stats.cancelled = True
                self.run_log.warning(
                    f"Skipping feed {feed.id}: import cancelled", event="feed.cancelled"
                )
                return stats

            try:
                self._report(ImportPhase.FEED_DOWNLOADING, current_feed=feed.id)
                stats.item_hint = self.fetcher.fetch(
                    feed.source_url, paths["xml"], self.run_log, self.fetch_options
                )
                stats.downloaded = True

                self._report(ImportPhase.FEED_PROCESSING, current_feed=feed.id)
                stats.item_count = self._stream_feed(streamer, feed.id, paths, stats)

                if self.compress_streams and not stats.cancelled:
                    gzip_file(paths["jsonl"], paths["gz"])

            except Exception as e:
                self._fail_feed(feed, paths, stats, e)

            finally:
                stats.duration_seconds = round(time.time() - started, 3)
                if self.reporter is not None:
                    self.reporter.feed_completed(feed.id, stats.item_count)
                logger.info(
                    f"Feed {feed.id} finished with {stats.item_count} items",
                    extra={
                        "event": "feed.run.completed",
                        "item_count": stats.item_count,
                        "duration_seconds": stats.duration_seconds,
                        "had_errors": stats.had_errors,
                    },
                )

        return stats

    def _stream_feed(
        self,
        streamer: XmlRecordStreamer,
        feed_id: str,
        paths: Dict[str, Path],
        stats: FeedRunStats,
    ) -> int:
        count = 0
        with open(paths["jsonl"], "w", encoding="utf-8") as sink:
            batches = streamer.iter_batches(paths["xml"], sink, feed_id, self.batch_size)
            try:
                for count in batches:
                    if self.reporter is not None:
                        self.reporter.update(current_feed=feed_id, feed_counts={feed_id: count})
                    if self.cancelled:
                        stats.cancelled = True
                        self.run_log.warning(
                            f"Import cancelled while processing {feed_id} "
                            f"after {count} items",
                            event="feed.cancelled",
                        )
                        break
            finally:
                batches.close()
        os.chmod(paths["jsonl"], FILE_MODE)
        return count

    def _fail_feed(
        self, feed: FeedDescriptor, paths: Dict[str, Path], stats: FeedRunStats, error: Exception
    ) -> None:
        stats.had_errors = True
        stats.item_count = 0
        stats.error_type = type(error).__name__
        stats.error_message = str(error)

        if isinstance(error, DownloadError):
            message = f"Feed {feed.id} download failed: {error}"
        elif isinstance(error, ParseError):
            message = f"Processing error for {feed.id}: {error}"
        elif isinstance(error, OSError):
            message = f"File error for {feed.id}: {error}"
        else:
            message = f"Unexpected error for {feed.id}: {error}"
            logger.error(message, extra={"event": "feed.run.crashed"}, exc_info=True)
        self.run_log.error(message, event="feed.run.failed", error_type=stats.error_type)

        # Partial streams must not reach the combined artifact
        for key in ("jsonl", "gz"):
            try:
                paths[key].unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                self.run_log.warning(f"Could not remove {paths[key].name}: {e}")

    def _report(self, phase: ImportPhase, **fields) -> None:
        if self.reporter is not None:
            self.reporter.phase(phase, **fields)


def _descriptors(feed_map: Mapping[str, str]) -> List[FeedDescriptor]:
    try:
        return [FeedDescriptor(id=feed_id, source_url=url) for feed_id, url in feed_map.items()]
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid feed map",
            errors=[err["msg"] for err in e.errors()],
            suggestions=["Feed ids are used as file names; use letters, digits, '.', '_', '-'"],
        ) from e
