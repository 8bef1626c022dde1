"""Configuration schema models using Pydantic."""

import re
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range

FEED_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class TransportStrategy(str, Enum):
    """How a feed body is pulled over HTTP."""

    AUTO = "auto"
    STREAMING = "streaming"
    BUFFERED = "buffered"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class FeedConfig(BaseModel):
    """A single remote XML feed."""

    id: str = Field(..., min_length=1, description="Filesystem-safe feed slug")
    url: str = Field(..., min_length=1, description="Feed source URL")
    enabled: bool = Field(True, description="Whether to import this feed")

    @field_validator("id")
    @classmethod
    def validate_feed_id(cls, v: str) -> str:
        """Feed ids are used verbatim as file names."""
        v = v.strip()
        if not FEED_ID_PATTERN.match(v):
            raise ValueError(
                f"Feed id '{v}' must start with a letter or digit and contain "
                "only letters, digits, '.', '_' or '-'"
            )
        return v

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Feed url cannot be empty")
        return stripped


class ImportSettings(BaseModel):
    """Settings for a single import run."""

    output_dir: str = Field("feeds", min_length=1, description="Directory for feed artifacts")
    fallback_domain: str = Field(
        "belgiumjobs.work", min_length=1, description="Domain for unknown provinces"
    )
    batch_size: int = Field(100, ge=1, le=10000, description="Items per progress batch")
    max_workers: int = Field(
        1, ge=1, le=16, description="Concurrent feeds (1 = sequential)"
    )
    interval: str = Field("6h", description="Scheduled import interval")
    publish: bool = Field(True, description="Publish the combined records after import")
    log_tail_size: int = Field(100, ge=1, le=10000, description="Log lines kept in status")

    # Computed
    interval_seconds: Optional[int] = None

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: str) -> str:
        try:
            validate_duration_range(parse_duration(v))
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_interval_seconds(self):
        self.interval_seconds = parse_duration(self.interval)
        return self


class FetchSettings(BaseModel):
    """HTTP settings for feed downloads."""

    transport: TransportStrategy = Field(
        TransportStrategy.AUTO, description="auto, streaming or buffered"
    )
    timeout_seconds: int = Field(300, ge=5, le=600, description="Request timeout (seconds)")
    user_agent: str = Field("JobFeedImporter/1.0", min_length=1)
    max_retries: int = Field(2, ge=0, le=10, description="Retries for transient failures")
    retry_backoff_seconds: float = Field(1.0, ge=0.0, le=60.0)
    min_body_bytes: int = Field(10, ge=1, description="Smaller bodies count as a failure")
    chunk_size: int = Field(65536, ge=1024, description="Streaming chunk size (bytes)")

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped

    model_config = {"use_enum_values": True}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="json or key-value")

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the feed importer."""

    feeds: List[FeedConfig] = Field(default_factory=list, description="Feeds to import")
    import_settings: ImportSettings = Field(default_factory=ImportSettings, alias="import")
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def validate_unique_feed_ids(self):
        seen = set()
        for feed in self.feeds:
            if feed.id in seen:
                raise ValueError(f"Duplicate feed id: '{feed.id}' appears multiple times")
            seen.add(feed.id)
        return self

    def get_enabled_feeds(self) -> List[FeedConfig]:
        return [feed for feed in self.feeds if feed.enabled]

    def feed_map(self) -> Dict[str, str]:
        """Enabled feeds as an ordered ``feed_id -> url`` mapping."""
        return {feed.id: feed.url for feed in self.get_enabled_feeds()}
