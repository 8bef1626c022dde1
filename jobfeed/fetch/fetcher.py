"""Download a feed's raw XML into local storage."""

import os
import time
from pathlib import Path
from typing import Callable, Optional, Tuple, Union
from urllib.parse import urlsplit

import requests

from jobfeed.config.models import TransportStrategy
from jobfeed.logging import RunLog, get_logger

from .exceptions import (
    DownloadError,
    DownloadHTTPError,
    DownloadTimeoutError,
    EmptyFeedError,
    InvalidFeedURLError,
)
from .models import FetchOptions, ItemTagCounter

logger = get_logger(__name__, component="fetch")

FILE_MODE = 0o644


class FeedFetcher:
    """
    Retrieves one feed into ``destination`` with retry and transport fallback.

    The body is written to ``<destination>.part`` and moved into place only
    after a 2xx response with at least ``min_body_bytes`` bytes, so a failed
    download never creates or clobbers the destination file.

    Attributes:
        user_agent: User-Agent header sent with every request
    """

    def __init__(
        self,
        user_agent: str = "JobFeedImporter/1.0",
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not user_agent or not user_agent.strip():
            raise ValueError("user_agent cannot be empty")
        self.user_agent = user_agent.strip()
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})
        self._sleep = sleep

    def fetch(
        self,
        url: str,
        destination: Union[str, Path],
        run_log: RunLog,
        options: Optional[FetchOptions] = None,
    ) -> int:
        """
        Download ``url`` to ``destination``.

        Args:
            url: Feed URL (http or https)
            destination: Final path of the raw XML file
            run_log: Run-scoped log receiving progress lines
            options: Transport, timeout and retry options

        Returns:
            Number of ``<item`` start tags seen in the body (a count hint)

        Raises:
            DownloadError: If every attempt and transport failed
        """
        options = options or FetchOptions()
        destination = Path(destination)
        validate_feed_url(url)

        run_log.append(f"Downloading feed from {url}", event="feed.fetch.started", url=url)

        strategies = options.strategies()
        for index, strategy in enumerate(strategies):
            try:
                size, item_hint = self._fetch_with_retries(url, destination, run_log, options, strategy)
            except DownloadError as e:
                is_last = index == len(strategies) - 1
                if is_last or not e.transient:
                    run_log.error(
                        f"Download error: {e}",
                        event="feed.fetch.failed",
                        url=url,
                        error_type=type(e).__name__,
                    )
                    raise
                run_log.warning(
                    f"{strategy.value} download failed ({e}); "
                    f"falling back to {strategies[index + 1].value}",
                    event="feed.fetch.fallback",
                    url=url,
                )
                continue

            run_log.append(
                f"Downloaded feed: {size} bytes",
                event="feed.fetch.completed",
                url=url,
                bytes=size,
                item_hint=item_hint,
                transport=strategy.value,
            )
            return item_hint

        # strategies() never returns an empty list
        raise DownloadError(f"No transport available for {url}", url=url)

    def _fetch_with_retries(
        self,
        url: str,
        destination: Path,
        run_log: RunLog,
        options: FetchOptions,
        strategy: TransportStrategy,
    ) -> Tuple[int, int]:
        attempt = 0
        while True:
            try:
                return self._download(url, destination, options, strategy)
            except DownloadError as e:
                if not e.transient or attempt >= options.max_retries:
                    raise
                delay = options.retry_backoff_seconds * (2 ** attempt)
                attempt += 1
                run_log.warning(
                    f"Download attempt {attempt} failed ({e}); retrying in {delay:.1f}s",
                    event="feed.fetch.retry",
                    url=url,
                    attempt=attempt,
                )
                self._sleep(delay)

    def _download(
        self,
        url: str,
        destination: Path,
        options: FetchOptions,
        strategy: TransportStrategy,
    ) -> Tuple[int, int]:
        """Single request. Returns (bytes written, item tag hint)."""
        streaming = strategy == TransportStrategy.STREAMING
        part_path = destination.with_name(destination.name + ".part")

        logger.debug(
            f"HTTP GET {url}",
            extra={"event": "feed.fetch.request", "url": url, "transport": strategy.value},
        )
        try:
            response = self._session.get(
                url, timeout=options.timeout_seconds, stream=streaming, allow_redirects=True
            )
        except requests.Timeout as e:
            raise DownloadTimeoutError(
                f"Request timed out after {options.timeout_seconds}s", url=url
            ) from e
        except requests.RequestException as e:
            raise DownloadHTTPError(f"Request failed: {e}", status_code=0, url=url) from e

        try:
            if not 200 <= response.status_code < 300:
                raise DownloadHTTPError(
                    f"HTTP {response.status_code}", status_code=response.status_code, url=url
                )

            counter = ItemTagCounter()
            written = 0
            with open(part_path, "wb") as handle:
                if streaming:
                    for chunk in response.iter_content(chunk_size=options.chunk_size):
                        if not chunk:
                            continue
                        handle.write(chunk)
                        counter.feed(chunk)
                        written += len(chunk)
                else:
                    body = response.content or b""
                    handle.write(body)
                    counter.feed(body)
                    written = len(body)

            if written < options.min_body_bytes:
                raise EmptyFeedError(
                    f"Response body too small ({written} bytes)", size=written, url=url
                )

            os.replace(part_path, destination)
            os.chmod(destination, FILE_MODE)
            return written, counter.count

        except requests.Timeout as e:
            raise DownloadTimeoutError("Timed out while reading response body", url=url) from e
        except requests.RequestException as e:
            raise DownloadHTTPError(f"Response stream failed: {e}", status_code=0, url=url) from e
        finally:
            response.close()
            if part_path.exists():
                part_path.unlink()

    def close(self) -> None:
        self._session.close()


def validate_feed_url(url: str) -> None:
    """Raise InvalidFeedURLError unless ``url`` is an absolute http(s) URL."""
    try:
        parts = urlsplit(url or "")
    except ValueError as e:
        raise InvalidFeedURLError(f"Malformed feed URL: {url!r}", url=url) from e
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidFeedURLError(f"Malformed feed URL: {url!r}", url=url)
