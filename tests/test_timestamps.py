"""Tests for timestamp utilities."""

from datetime import datetime, timedelta, timezone

from jobfeed.utils.timestamps import (
    ensure_utc,
    format_log_timestamp,
    format_timestamp,
    parse_feed_datetime,
    parse_iso_datetime,
    utc_now,
)


def test_utc_now_is_aware():
    assert utc_now().tzinfo == timezone.utc


def test_ensure_utc():
    naive = datetime(2025, 11, 4, 12, 0)
    brussels = datetime(2025, 11, 4, 13, 0, tzinfo=timezone(timedelta(hours=1)))

    assert ensure_utc(None) is None
    assert ensure_utc(naive) == datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)
    assert ensure_utc(brussels) == datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)


def test_ensure_utc_out_of_range():
    plus_one = timezone(timedelta(hours=1))

    assert ensure_utc(datetime(1, 1, 1, 0, 0, tzinfo=plus_one)) is None


class TestParseIso:
    def test_z_suffix(self):
        assert parse_iso_datetime("2025-11-04T12:00:00Z") == datetime(
            2025, 11, 4, 12, 0, tzinfo=timezone.utc
        )

    def test_date_only(self):
        assert parse_iso_datetime("2025-11-04") == datetime(2025, 11, 4, tzinfo=timezone.utc)

    def test_invalid(self):
        assert parse_iso_datetime("") is None
        assert parse_iso_datetime("   ") is None
        assert parse_iso_datetime("yesterday") is None


class TestParseFeedDatetime:
    def test_rfc822(self):
        assert parse_feed_datetime("Tue, 04 Nov 2025 13:00:00 +0100") == datetime(
            2025, 11, 4, 12, 0, tzinfo=timezone.utc
        )

    def test_iso(self):
        assert parse_feed_datetime("2025-11-04T12:00:00+00:00").hour == 12

    def test_garbage(self):
        assert parse_feed_datetime("not a date") is None
        assert parse_feed_datetime(None) is None

    def test_out_of_range(self):
        assert parse_feed_datetime("0001-01-01T00:00:00+01:00") is None
        assert parse_feed_datetime("Fri, 31 Dec 9999 23:30:00 -0100") is None


def test_format_timestamp():
    dt = datetime(2025, 11, 4, 12, 30, 5, tzinfo=timezone.utc)

    assert format_timestamp(dt) == "2025-11-04T12:30:05Z"
    assert format_timestamp(None) == ""


def test_format_log_timestamp():
    dt = datetime(2025, 11, 4, 9, 5, 0, tzinfo=timezone.utc)

    assert format_log_timestamp(dt) == "04-Nov-2025 09:05:00 UTC"
