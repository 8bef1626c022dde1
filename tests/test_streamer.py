"""Tests for streaming XML feeds into record streams."""

import io
import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest
from lxml import etree

from jobfeed.domain.models import NormalizedRecord
from jobfeed.streaming import MalformedItemError, ParseError, XmlRecordStreamer
from jobfeed.streaming.inference import infer_item_details
from jobfeed.utils.hashing import derive_guid

FEEDS_DIR = Path(__file__).parent / "fixtures" / "feeds"
FIXED_NOW = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def streamer(run_log):
    return XmlRecordStreamer(
        fallback_domain="belgiumjobs.work", run_log=run_log, clock=lambda: FIXED_NOW
    )


def stream_records(streamer, xml_path, feed_id="partner"):
    sink = io.StringIO()
    count = streamer.stream(xml_path, sink, feed_id)
    lines = sink.getvalue().splitlines()
    return count, [NormalizedRecord.model_validate_json(line) for line in lines]


def log_messages(run_log):
    return [line.split("] ", 1)[1] for line in run_log.lines()]


class TestStream:
    def test_sample_feed(self, streamer, run_log):
        """Three items, one with an empty title: two records and one skip line."""
        count, records = stream_records(streamer, FEEDS_DIR / "sample.xml")

        assert count == 2
        assert [r.guid for r in records] == ["JOB-1001", "JOB-1003"]
        assert "partner item skipped: missing title" in log_messages(run_log)
        assert log_messages(run_log)[-1] == "Processed 2 items for partner"

    def test_record_fields(self, streamer):
        _, records = stream_records(streamer, FEEDS_DIR / "sample.xml")
        first = records[0]

        assert first.feed_id == "partner"
        assert first.title == "Boekhouder"
        assert first.enhanced_title == "Boekhouder in Gent, Oost-Vlaanderen"
        assert first.domain == "oost-vlaanderen.work"
        assert first.company == "Acme Finance"
        assert first.postal_code == "9000"
        assert first.description == "<p>Wij zoeken een boekhouder met ervaring in Excel.</p>"
        assert first.skills == ["Excel"]
        assert first.apply_link == (
            "https://apply.example.com/jobs/1001?utm_source=puntwork&utm_term=JOB-1001"
        )
        assert first.job_link == f"https://oost-vlaanderen.work/job/{first.slug}"
        assert first.source_updated_at == datetime(2025, 11, 4, 11, 0, tzinfo=timezone.utc)
        assert first.last_seen_at == FIXED_NOW
        assert first.fingerprint.startswith("v1:")

    def test_inferred_flags_and_links(self, streamer):
        _, records = stream_records(streamer, FEEDS_DIR / "sample.xml")
        second = records[1]

        assert second.domain == "bruxelles.work"
        assert second.remote_work is True
        assert second.has_company_car is False
        assert second.apply_link.endswith("?ref=feed&utm_source=puntwork&utm_term=JOB-1003")

    def test_output_is_one_json_object_per_line(self, streamer):
        sink = io.StringIO()
        streamer.stream(FEEDS_DIR / "sample.xml", sink, "partner")

        lines = sink.getvalue().split("\n")
        assert lines[-1] == ""
        assert all(isinstance(json.loads(line), dict) for line in lines[:-1])

    def test_iter_batches_yields_running_counts(self, streamer, run_log):
        sink = io.StringIO()

        counts = list(streamer.iter_batches(FEEDS_DIR / "sample.xml", sink, "partner", batch_size=1))

        assert counts == [1, 2, 2]
        assert "Processed 1 items so far for partner" in log_messages(run_log)

    def test_invalid_batch_size(self, streamer):
        with pytest.raises(ValueError):
            list(streamer.iter_batches(FEEDS_DIR / "sample.xml", io.StringIO(), "partner", 0))

    def test_malformed_document_raises_parse_error(self, streamer):
        with pytest.raises(ParseError) as exc_info:
            streamer.stream(FEEDS_DIR / "broken.xml", io.StringIO(), "broken")

        assert exc_info.value.feed_id == "broken"

    def test_namespaced_items(self, streamer, tmp_path):
        xml = tmp_path / "ns.xml"
        xml.write_text(
            '<feed xmlns="urn:jobs"><item><guid>N1</guid><title>Chef</title></item></feed>',
            encoding="utf-8",
        )

        count, records = stream_records(streamer, xml)

        assert count == 1
        assert records[0].title == "Chef"

    def test_empty_channel(self, streamer, tmp_path):
        xml = tmp_path / "empty.xml"
        xml.write_text("<rss><channel></channel></rss>", encoding="utf-8")

        assert stream_records(streamer, xml) == (0, [])


    def test_infinite_salary_does_not_fail_feed(self, streamer, tmp_path):
        xml = tmp_path / "salary.xml"
        xml.write_text(
            "<rss><channel>"
            "<item><guid>S1</guid><title>Baker</title><salaryfrom>2000</salaryfrom></item>"
            "<item><guid>S2</guid><title>Cook</title><salaryfrom>inf</salaryfrom>"
            "<salaryto>1e400</salaryto></item>"
            "<item><guid>S3</guid><title>Waiter</title></item>"
            "</channel></rss>",
            encoding="utf-8",
        )

        count, records = stream_records(streamer, xml)

        assert count == 3
        assert [r.guid for r in records] == ["S1", "S2", "S3"]
        assert records[1].salary_from is None
        assert records[1].salary_to is None

    def test_out_of_range_date_does_not_fail_feed(self, streamer, tmp_path):
        xml = tmp_path / "dates.xml"
        xml.write_text(
            "<rss><channel>"
            "<item><guid>D1</guid><title>Baker</title>"
            "<pubDate>0001-01-01T00:00:00+01:00</pubDate></item>"
            "<item><guid>D2</guid><title>Cook</title>"
            "<pubDate>2025-11-03T08:00:00Z</pubDate></item>"
            "</channel></rss>",
            encoding="utf-8",
        )

        count, records = stream_records(streamer, xml)

        assert count == 2
        assert records[0].source_updated_at is None
        assert records[1].source_updated_at == datetime(2025, 11, 3, 8, 0, tzinfo=timezone.utc)

    def test_unconvertible_item_skipped(self, streamer, run_log, tmp_path):
        xml = tmp_path / "overflow.xml"
        xml.write_text(
            "<rss><channel>"
            "<item><guid>O1</guid><title>Baker</title></item>"
            "<item><guid>O2</guid><title>Cook</title></item>"
            "<item><guid>O3</guid><title>Waiter</title></item>"
            "</channel></rss>",
            encoding="utf-8",
        )
        real_infer = infer_item_details

        def infer(fields, guid, fallback_domain):
            if guid == "O2":
                raise OverflowError("cannot convert float infinity to integer")
            return real_infer(fields, guid, fallback_domain)

        with patch("jobfeed.streaming.streamer.infer_item_details", side_effect=infer):
            count, records = stream_records(streamer, xml)

        assert count == 2
        assert [r.guid for r in records] == ["O1", "O3"]
        assert (
            "partner item skipped: unusable value: cannot convert float infinity to integer"
            in log_messages(run_log)
        )

class TestBuildRecord:
    def test_missing_guid_derived_from_link(self, streamer):
        element = etree.fromstring(
            "<item><title>Nurse</title><link>https://x.example/jobs/7</link></item>"
        )

        record = streamer.build_record(element, "partner")

        assert record.guid == derive_guid("partner", "https://x.example/jobs/7")

    def test_missing_guid_and_link(self, streamer):
        element = etree.fromstring("<item><title>Nurse</title></item>")

        with pytest.raises(MalformedItemError, match="missing guid"):
            streamer.build_record(element, "partner")

    def test_no_fields(self, streamer):
        with pytest.raises(MalformedItemError, match="No fields collected"):
            streamer.build_record(etree.fromstring("<item><guid> </guid></item>"), "partner")

    def test_function_title_preferred(self, streamer):
        element = etree.fromstring(
            "<item><guid>G</guid><title>Generic</title>"
            "<functiontitle>Payroll Officer</functiontitle></item>"
        )

        assert streamer.build_record(element, "partner").title == "Payroll Officer"

    def test_same_content_same_fingerprint(self, streamer):
        xml = "<item><guid>G</guid><title>Chef</title><city>Gent</city></item>"

        a = streamer.build_record(etree.fromstring(xml), "partner")
        b = streamer.build_record(etree.fromstring(xml), "partner")

        assert a.fingerprint == b.fingerprint
