"""Shared fixtures for the feed importer test suite."""

import logging
from pathlib import Path

import pytest

from jobfeed.logging import RunLog
from jobfeed.logging.context import clear_log_context
from jobfeed.persistence.database import close_database, init_database

FIXTURES_DIR = Path(__file__).parent / "fixtures"
FEEDS_DIR = FIXTURES_DIR / "feeds"


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def restore_root_logger():
    """Put root logger handlers back after a test reconfigures logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def temp_database():
    """Create a temporary in-memory database for testing."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture
def run_log():
    return RunLog()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Environment with every importer variable unset."""
    for name in ("DATABASE_URL", "LOG_LEVEL", "FEED_OUTPUT_DIR", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def sample_feed_bytes():
    return (FEEDS_DIR / "sample.xml").read_bytes()


@pytest.fixture
def make_record():
    """Factory for NormalizedRecord with a fingerprint derived from its content."""
    from jobfeed.domain.models import NormalizedRecord
    from jobfeed.utils.hashing import compute_fingerprint
    from jobfeed.utils.timestamps import utc_now

    def factory(guid="G1", title="Accountant", feed_id="partner", **fields):
        content = {"guid": guid, "title": title, **fields}
        fields.setdefault("fingerprint", compute_fingerprint(content))
        fields.setdefault("last_seen_at", utc_now())
        return NormalizedRecord(guid=guid, title=title, feed_id=feed_id, **fields)

    return factory
