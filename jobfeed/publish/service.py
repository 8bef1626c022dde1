"""Publish the combined record stream into the content store.

Records are read from ``combined-jobs.jsonl`` in batches. Each batch runs in
one database session: the duplicate resolver settles which existing post
keeps each GUID, then every record is created, updated or skipped against
that post.
"""

import threading
from pathlib import Path
from typing import Callable, ContextManager, Dict, Iterator, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from jobfeed.dedup.resolver import DuplicateResolver
from jobfeed.domain.models import NormalizedRecord, RecordStatus
from jobfeed.logging import RunLog, get_logger
from jobfeed.persistence.database import get_session
from jobfeed.persistence.exceptions import PersistenceError
from jobfeed.persistence.repositories import JobPostRepository
from jobfeed.status.reporter import StatusReporter

from .models import PublishOutcome, PublishStats

logger = get_logger(__name__, component="publish")


class ContentPublisher:
    """Creates or updates one post per record."""

    def __init__(self, repository: JobPostRepository) -> None:
        self.repository = repository

    def publish(self, record: NormalizedRecord, existing_id: Optional[int]) -> PublishOutcome:
        """
        Write ``record`` against the post that kept its GUID, if any.

        A published post whose fingerprint matches is left alone. Anything
        else is overwritten and republished.
        """
        if existing_id is not None:
            stored = self.repository.get(existing_id)
            if stored is not None:
                if (
                    stored.fingerprint == record.fingerprint
                    and stored.status == RecordStatus.PUBLISHED.value
                ):
                    return PublishOutcome.SKIPPED
                self.repository.update(existing_id, record)
                return PublishOutcome.UPDATED

        self.repository.create(record)
        return PublishOutcome.CREATED


def iter_record_batches(
    path: Union[str, Path],
    batch_size: int,
    run_log: RunLog,
    stats: Optional[PublishStats] = None,
) -> Iterator[Dict[str, NormalizedRecord]]:
    """
    Yield batches of records keyed by GUID from a JSONL file.

    Within a batch the last line for a GUID wins. Lines that do not parse as
    a record are logged and counted in ``stats.malformed``.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    batch: Dict[str, NormalizedRecord] = {}
    lines_in_batch = 0
    with open(path, "r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = NormalizedRecord.model_validate_json(line)
            except ValidationError as e:
                if stats is not None:
                    stats.malformed += 1
                run_log.warning(
                    f"Skipping malformed record on line {line_number}: {e.error_count()} errors",
                    event="publish.record.malformed",
                    line=line_number,
                )
                continue

            batch[record.guid] = record
            lines_in_batch += 1
            if lines_in_batch >= batch_size:
                yield batch
                batch = {}
                lines_in_batch = 0

    if batch:
        yield batch


class BatchPublisher:
    """
    Drives duplicate resolution and publishing over the combined artifact.

    Example:
        >>> publisher = BatchPublisher(run_log, reporter)
        >>> stats = publisher.publish_file(artifact.path, batch_size=100)
    """

    def __init__(
        self,
        run_log: RunLog,
        reporter: Optional[StatusReporter] = None,
        cancel_event: Optional[threading.Event] = None,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
    ) -> None:
        self.run_log = run_log
        self.reporter = reporter
        self.cancel_event = cancel_event or threading.Event()
        self.session_factory = session_factory

    def publish_file(self, path: Union[str, Path], batch_size: int = 100) -> PublishStats:
        stats = PublishStats()
        self.run_log.append(f"Publishing records from {Path(path).name}", event="publish.started")

        for batch in iter_record_batches(path, batch_size, self.run_log, stats):
            if self.cancel_event.is_set():
                stats.cancelled = True
                self.run_log.warning("Publishing cancelled", event="publish.cancelled")
                break

            stats.batches += 1
            try:
                self._publish_batch(batch, stats)
            except PersistenceError as e:
                stats.failed += len(batch)
                self.run_log.error(
                    f"Batch {stats.batches} failed, {len(batch)} records not published: {e}",
                    event="publish.batch.failed",
                )

            if self.reporter is not None:
                self.reporter.update(
                    published=stats.published,
                    updated=stats.updated,
                    skipped=stats.skipped,
                    duplicates_drafted=stats.duplicates_drafted,
                )

        self.run_log.append(
            f"Published {stats.published} new, updated {stats.updated}, "
            f"skipped {stats.skipped}, drafted {stats.duplicates_drafted} duplicates",
            event="publish.completed",
            failed=stats.failed,
        )
        return stats

    def _publish_batch(self, batch: Dict[str, NormalizedRecord], stats: PublishStats) -> None:
        guids: List[str] = list(batch)
        outcomes: List[PublishOutcome] = []

        with self.session_factory() as session:
            repository = JobPostRepository(session)
            existing = repository.find_ids_by_guids(guids)
            resolution = DuplicateResolver(repository, self.run_log).resolve(guids, existing)

            publisher = ContentPublisher(repository)
            for guid, record in batch.items():
                outcomes.append(publisher.publish(record, resolution.post_ids_by_guid.get(guid)))

        # Counted only once the session has committed
        stats.duplicates_drafted += resolution.count_drafted
        for outcome in outcomes:
            stats.record(outcome)

        logger.debug(
            f"Published batch of {len(batch)} records",
            extra={"event": "publish.batch.completed", "batch_size": len(batch)},
        )
