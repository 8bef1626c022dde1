"""Feed acquisition over HTTP."""

from jobfeed.config.models import TransportStrategy

from .exceptions import (
    DownloadError,
    DownloadHTTPError,
    DownloadTimeoutError,
    EmptyFeedError,
    InvalidFeedURLError,
)
from .fetcher import FeedFetcher, validate_feed_url
from .models import FetchOptions, ItemTagCounter

__all__ = [
    "FeedFetcher",
    "FetchOptions",
    "ItemTagCounter",
    "TransportStrategy",
    "validate_feed_url",
    "DownloadError",
    "DownloadHTTPError",
    "DownloadTimeoutError",
    "EmptyFeedError",
    "InvalidFeedURLError",
]
