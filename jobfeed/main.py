"""Command-line entry point for the job feed importer."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from jobfeed.config.environment import EnvironmentConfig
from jobfeed.config.exceptions import ConfigurationError
from jobfeed.config.loader import load_config
from jobfeed.config.models import AppConfig
from jobfeed.logging import get_logger
from jobfeed.logging.config import configure_logging
from jobfeed.persistence.database import close_database, init_database
from jobfeed.pipeline import FeedImportPipeline
from jobfeed.pipeline.runner import summarize
from jobfeed.scheduler import SchedulerService
from jobfeed.status.store import DatabaseStatusStore

logger = get_logger(__name__, component="cli")

LOG_LEVEL_CHOICES = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def load_runtime_config(
    config_path: Path, log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Priority is CLI flag, then LOG_LEVEL, then ``logging.level`` in the file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job Feed Importer - download partner job feeds and publish them as job posts"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument(
        "--manual-run",
        action="store_true",
        help="Run a single import immediately and exit",
    )
    parser.add_argument(
        "--no-publish",
        action="store_true",
        help="Stop after writing the combined JSONL; do not touch the content store",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Print the status of the current or last import as JSON and exit",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear the import status and remove feed artifacts, then exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=LOG_LEVEL_CHOICES,
        help="Log level (overrides config and environment)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the importer.

    Returns:
        Exit code: 0 on success, 1 on configuration or fatal errors, and 1
        for a manual run in which any feed failed.
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Job feed importer starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config),
                "log_level": env_config.log_level,
                "manual_run": args.manual_run,
            },
        )

        init_database(env_config.database_url)
        status_store = DatabaseStatusStore(log_limit=app_config.import_settings.log_tail_size)

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "feed_count": len(app_config.feeds),
                "enabled_feed_count": len(app_config.get_enabled_feeds()),
                "interval_seconds": app_config.import_settings.interval_seconds,
                "output_dir": app_config.import_settings.output_dir,
            },
        )

        if args.status:
            print(json.dumps(status_store.get().model_dump(mode="json"), indent=2))
            close_database()
            return 0

        pipeline = FeedImportPipeline(
            app_config=app_config,
            status_store=status_store,
            publish=False if args.no_publish else None,
        )

        if args.reset:
            removed = pipeline.reset()
            print(f"Import status cleared, {len(removed)} files removed")
            close_database()
            return 0

        if args.manual_run:
            return _run_manual(pipeline, start_time)
        return _run_daemon(pipeline, app_config, start_time)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e.message}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        close_database()
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        close_database()
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        close_database()
        return 1


def _run_manual(pipeline: FeedImportPipeline, start_time: float) -> int:
    logger.info("Executing manual import", extra={"event": "service.manual_run.starting"})

    def cancel_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, cancelling import",
            extra={"event": "service.signal_received", "signal": signum},
        )
        pipeline.request_cancel()

    signal.signal(signal.SIGTERM, cancel_handler)

    try:
        result = pipeline.run_once()
    finally:
        close_database()

    print(summarize(result.feed_stats))
    logger.info(
        f"Manual import completed: {result.total_items} items, "
        f"{result.failed_feeds} failed feeds",
        extra={
            "event": "service.manual_run.completed",
            "duration_seconds": result.total_duration_seconds,
            "had_errors": result.had_errors,
            "cancelled": result.cancelled,
            "uptime_seconds": round(time.time() - start_time, 2),
        },
    )
    return 1 if result.had_errors else 0


def _run_daemon(pipeline: FeedImportPipeline, app_config: AppConfig, start_time: float) -> int:
    shutdown_event = threading.Event()
    scheduler_service = SchedulerService(
        import_callable=pipeline.run_once,
        interval_seconds=app_config.import_settings.interval_seconds,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        pipeline.request_cancel()
        scheduler_service.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler_service.start()
    logger.info(
        "Scheduler started. Press Ctrl+C to stop",
        extra={"event": "service.daemon_mode.started"},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        pipeline.request_cancel()
        scheduler_service.shutdown(wait=False)
    finally:
        close_database()

    logger.info(
        "Job feed importer stopped",
        extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
