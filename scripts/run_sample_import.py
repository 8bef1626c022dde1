#!/usr/bin/env python3
"""Offline import harness for local XML files.

Streams each file into ``<output>/<feed_id>.jsonl``, combines them and,
unless ``--no-publish`` is given, publishes into a SQLite database. The
feed id is the file name without its extension.

Usage:
    python scripts/run_sample_import.py tests/fixtures/feeds/*.xml --output /tmp/feeds
    python scripts/run_sample_import.py feed.xml --database /tmp/jobs.db
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from jobfeed.combine import combine
from jobfeed.config import ensure_output_dir
from jobfeed.logging import RunLog
from jobfeed.logging.config import configure_logging
from jobfeed.persistence import close_database, init_database
from jobfeed.publish import BatchPublisher
from jobfeed.streaming import XmlRecordStreamer


def print_header(title: str) -> None:
    print("\n" + "=" * 72)
    print(f" {title}")
    print("=" * 72 + "\n")


def main() -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Import local XML feed files")
    parser.add_argument("files", nargs="+", type=Path, help="XML feed files")
    parser.add_argument("--output", type=Path, default=Path("sample-output"))
    parser.add_argument("--database", type=Path, default=Path("sample-output/sample.db"))
    parser.add_argument("--fallback-domain", default="belgiumjobs.work")
    parser.add_argument("--no-publish", action="store_true")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    configure_logging(level=args.log_level, format_type="key-value")
    output_dir = ensure_output_dir(args.output)
    run_log = RunLog()
    streamer = XmlRecordStreamer(fallback_domain=args.fallback_domain, run_log=run_log)

    print_header("Streaming feeds")
    feed_ids = []
    total = 0
    for xml_path in args.files:
        feed_id = xml_path.stem
        with open(output_dir / f"{feed_id}.jsonl", "w", encoding="utf-8") as sink:
            count = streamer.stream(xml_path, sink, feed_id)
        feed_ids.append(feed_id)
        total += count
        print(f"  {feed_id:<30} {count:>6} items")

    artifact = combine(feed_ids, output_dir, total, run_log)
    print(f"\n  Combined: {artifact.path} ({artifact.bytes_written} bytes)")

    if not args.no_publish:
        print_header("Publishing")
        init_database(f"sqlite:///{args.database}")
        try:
            stats = BatchPublisher(run_log).publish_file(artifact.path)
        finally:
            close_database()
        print(f"  Created:            {stats.published}")
        print(f"  Updated:            {stats.updated}")
        print(f"  Skipped:            {stats.skipped}")
        print(f"  Duplicates drafted: {stats.duplicates_drafted}")

    print_header("Run log")
    for line in run_log.tail(40):
        print(f"  {line}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
