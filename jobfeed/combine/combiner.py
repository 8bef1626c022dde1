"""Concatenate per-feed record streams into the combined artifact."""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Union

from jobfeed.logging import RunLog, get_logger

from .archive import FILE_MODE, gzip_file

logger = get_logger(__name__, component="combine")

COMBINED_FILENAME = "combined-jobs.jsonl"


class CombineError(OSError):
    """The combined output file could not be created."""


@dataclass
class CombinedArtifact:
    """Result of one combine step."""

    path: Path
    gz_path: Path
    total_items: int
    bytes_written: int = 0
    feeds_included: List[str] = field(default_factory=list)
    feeds_skipped: List[str] = field(default_factory=list)


def record_stream_path(output_dir: Union[str, Path], feed_id: str) -> Path:
    return Path(output_dir) / f"{feed_id}.jsonl"


def combine(
    feed_ids: Iterable[str],
    output_dir: Union[str, Path],
    total_items: int,
    run_log: RunLog,
) -> CombinedArtifact:
    """
    Copy every existing per-feed record stream, in feed order, into
    ``combined-jobs.jsonl`` and gzip it.

    Streams are copied byte for byte. Feeds without a stream are skipped
    silently; a feed whose copy fails is logged, truncated back out of the
    combined file and skipped.

    Args:
        feed_ids: Feed ids in presentation order (a feed map works too)
        output_dir: Directory holding ``<feed_id>.jsonl`` files
        total_items: Item count reported for the run
        run_log: Run-scoped log

    Raises:
        CombineError: If the combined file cannot be opened for writing
    """
    output_dir = Path(output_dir)
    combined_path = output_dir / COMBINED_FILENAME
    artifact = CombinedArtifact(
        path=combined_path,
        gz_path=combined_path.with_name(combined_path.name + ".gz"),
        total_items=total_items,
    )

    try:
        combined = open(combined_path, "wb")
    except OSError as e:
        run_log.error(f"Cannot open combined JSONL: {e}", event="combine.open_failed")
        raise CombineError(e.errno, f"Cannot open {combined_path}: {e.strerror or e}") from e

    with combined:
        for feed_id in feed_ids:
            stream_path = record_stream_path(output_dir, feed_id)
            if not stream_path.exists():
                continue

            start = combined.tell()
            try:
                with open(stream_path, "rb") as source:
                    shutil.copyfileobj(source, combined)
            except OSError as e:
                combined.seek(start)
                combined.truncate()
                artifact.feeds_skipped.append(feed_id)
                run_log.error(
                    f"Failed to copy {stream_path.name} into combined JSONL: {e}",
                    event="combine.feed_failed",
                    feed_id=feed_id,
                )
                continue

            artifact.feeds_included.append(feed_id)
        artifact.bytes_written = combined.tell()

    os.chmod(combined_path, FILE_MODE)
    run_log.append(
        f"Combined JSONL ({total_items} items)",
        event="combine.completed",
        bytes=artifact.bytes_written,
        feeds=len(artifact.feeds_included),
    )

    gzip_file(combined_path, artifact.gz_path)
    logger.info(
        "Combined artifact compressed",
        extra={"event": "combine.gzipped", "path": str(artifact.gz_path)},
    )
    return artifact
