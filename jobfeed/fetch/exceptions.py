"""Exceptions raised while downloading feeds."""

from typing import Optional


class DownloadError(Exception):
    """Base exception for a feed download that did not produce a usable file.

    Download errors are feed-local: the orchestrator records zero items for
    the feed and moves on to the next one.
    """

    #: Whether retrying (or switching transport) may succeed
    transient = False

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class DownloadHTTPError(DownloadError):
    """The request failed or returned a non-2xx status.

    ``status_code`` is 0 when no response was received (connection refused,
    DNS failure, broken stream).
    """

    def __init__(self, message: str, status_code: int, url: Optional[str] = None) -> None:
        super().__init__(message, url)
        self.status_code = status_code

    @property
    def transient(self) -> bool:
        return self.status_code == 0 or self.status_code >= 500


class DownloadTimeoutError(DownloadError):
    """The request did not complete within the configured timeout."""

    transient = True


class EmptyFeedError(DownloadError):
    """The response body was shorter than the minimum accepted size."""

    def __init__(self, message: str, size: int, url: Optional[str] = None) -> None:
        super().__init__(message, url)
        self.size = size


class InvalidFeedURLError(DownloadError):
    """The feed URL is not a syntactically valid http(s) URL."""
