"""Data models for import run tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from jobfeed.combine.combiner import CombinedArtifact
from jobfeed.publish.models import PublishStats


@dataclass
class FeedRunStats:
    """
    Outcome of one feed within an import run.

    Attributes:
        feed_id: Feed slug
        item_count: Records written to the feed's record stream (0 on failure)
        item_hint: ``<item`` tags seen while downloading
        downloaded: Whether the raw XML was fetched
        duration_seconds: Wall time spent on this feed
        had_errors: Whether the feed failed
        error_type: Exception class name when the feed failed
        error_message: Error text when the feed failed
        cancelled: Whether a cancel request stopped this feed early
    """

    feed_id: str
    item_count: int = 0
    item_hint: int = 0
    downloaded: bool = False
    duration_seconds: float = 0.0
    had_errors: bool = False
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    cancelled: bool = False


@dataclass
class ImportRunResult:
    """
    Aggregate result of one import run.

    Totals are derived from ``feed_stats`` in ``__post_init__``.
    """

    run_started_at: datetime
    run_finished_at: datetime
    feed_stats: List[FeedRunStats] = field(default_factory=list)
    combined: Optional[CombinedArtifact] = None
    publish_stats: Optional[PublishStats] = None
    total_items: int = 0
    failed_feeds: int = 0
    total_duration_seconds: float = 0.0
    had_errors: bool = False
    cancelled: bool = False
    skipped: bool = False
    error_message: Optional[str] = None

    def __post_init__(self):
        if self.feed_stats:
            self.total_items = sum(s.item_count for s in self.feed_stats)
            self.failed_feeds = sum(1 for s in self.feed_stats if s.had_errors)
            self.had_errors = self.had_errors or self.failed_feeds > 0
            self.cancelled = self.cancelled or any(s.cancelled for s in self.feed_stats)

        if self.publish_stats is not None and self.publish_stats.failed:
            self.had_errors = True

        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()
