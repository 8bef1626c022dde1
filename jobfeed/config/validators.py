"""Soft configuration checks and output directory validation."""

import os
import uuid
import warnings
from pathlib import Path
from typing import Any, Dict, List, Union

from .exceptions import ConfigurationError


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check raw configuration for suspicious but valid settings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    messages = []

    feeds = config_dict.get("feeds") or []
    enabled = [f for f in feeds if isinstance(f, dict) and f.get("enabled", True)]
    if not enabled:
        messages.append("No enabled feeds configured; imports will finish with 0 items")

    seen_urls = set()
    for feed in feeds:
        if not isinstance(feed, dict):
            continue
        feed_id = feed.get("id", "unknown")
        url = str(feed.get("url", "")).strip()
        if not feed.get("enabled", True):
            messages.append(f"Feed '{feed_id}' is disabled and will be skipped")
        if url.lower().startswith("http://"):
            messages.append(f"Feed '{feed_id}' uses plain http: {url}")
        if url and url in seen_urls:
            messages.append(f"Feed '{feed_id}' repeats a URL used by another feed: {url}")
        seen_urls.add(url)

    import_settings = config_dict.get("import") or {}
    if isinstance(import_settings, dict):
        workers = import_settings.get("max_workers", 1)
        if isinstance(workers, int) and workers > 4:
            messages.append(
                f"max_workers={workers} opens many concurrent downloads; "
                "feed hosts may throttle"
            )

    return messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)


def ensure_output_dir(output_dir: Union[str, Path]) -> Path:
    """
    Create ``output_dir`` if needed and verify it is writable.

    Returns:
        The directory as a Path

    Raises:
        ConfigurationError: If the directory cannot be created or written
    """
    path = Path(output_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(
            f"Output directory cannot be created: {path}",
            errors=[str(e)],
            suggestions=["Check import.output_dir or FEED_OUTPUT_DIR", "Check permissions"],
        ) from e

    if not path.is_dir():
        raise ConfigurationError(
            f"Output path is not a directory: {path}",
            suggestions=["Point import.output_dir at a directory"],
        )

    probe = path / f".write-probe-{uuid.uuid4().hex}"
    try:
        with open(probe, "wb"):
            pass
        os.remove(probe)
    except OSError as e:
        raise ConfigurationError(
            f"Output directory is not writable: {path}",
            errors=[str(e)],
            suggestions=["Fix directory permissions for the importer user"],
        ) from e

    return path
