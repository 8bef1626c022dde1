"""Unit tests for the persistence layer."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from jobfeed.dedup import DuplicateResolver
from jobfeed.domain.models import RecordStatus
from jobfeed.logging import RunLog
from jobfeed.persistence import (
    DatabaseConnectionError,
    JobPostRepository,
    RecordNotFoundError,
    StatusRepository,
    close_database,
    get_session,
    init_database,
    is_initialized,
)
from jobfeed.persistence.database import _redact_url
from jobfeed.persistence.schema import JobPostModel, _format_datetime, _parse_datetime


class TestDatabaseInitialization:
    def test_file_database_creates_parent_directories(self, tmp_path):
        db_file = tmp_path / "nested" / "jobs.db"

        init_database(f"sqlite:///{db_file}")
        try:
            assert db_file.exists()
            assert is_initialized()
            with get_session() as session:
                tables = session.execute(
                    text("SELECT name FROM sqlite_master WHERE type='table'")
                ).scalars().all()
            assert {"job_posts", "import_status"} <= set(tables)
        finally:
            close_database()

        assert not is_initialized()

    def test_empty_url_rejected(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("")

    def test_get_session_requires_init(self):
        close_database()

        with pytest.raises(DatabaseConnectionError, match="not initialized"):
            with get_session():
                pass

    def test_close_database_is_idempotent(self):
        close_database()
        close_database()

    def test_session_rolls_back_on_error(self, temp_database, make_record):
        with pytest.raises(RuntimeError):
            with get_session() as session:
                JobPostRepository(session).create(make_record())
                raise RuntimeError("abort")

        with get_session() as session:
            assert JobPostRepository(session).find_ids_by_guids(["G1"]) == {}


def test_redact_url():
    assert _redact_url("postgresql://app:secret@db:5432/jobs") == "postgresql://app:***@db:5432/jobs"
    assert _redact_url("sqlite:///./data/jobfeed.db") == "sqlite:///./data/jobfeed.db"


def test_datetime_round_trip():
    dt = datetime(2025, 11, 4, 12, 0, 0, 123456, tzinfo=timezone.utc)

    assert _parse_datetime(_format_datetime(dt)) == dt
    assert _parse_datetime("2025-11-04T12:00:00Z") == datetime(2025, 11, 4, 12, tzinfo=timezone.utc)
    assert _parse_datetime(None) is None
    with pytest.raises(ValueError):
        _parse_datetime("04/11/2025")


class TestJobPostRepository:
    def test_create_and_get(self, temp_database, make_record):
        record = make_record(enhanced_title="Accountant in Gent")

        with get_session() as session:
            post_id = JobPostRepository(session).create(record)

        with get_session() as session:
            stored = JobPostRepository(session).get(post_id)
            model = session.get(JobPostModel, post_id)
            payload = json.loads(model.payload)

        assert stored.guid == "G1"
        assert stored.title == "Accountant in Gent"
        assert stored.status == RecordStatus.PUBLISHED.value
        assert stored.fingerprint == record.fingerprint
        assert stored.modified_at.tzinfo == timezone.utc
        assert payload["guid"] == "G1"

    def test_find_ids_by_guids_groups_in_id_order(self, temp_database, make_record):
        with get_session() as session:
            repo = JobPostRepository(session)
            first = repo.create(make_record(guid="G1"))
            other = repo.create(make_record(guid="G2"))
            second = repo.create(make_record(guid="G1"))

        with get_session() as session:
            grouped = JobPostRepository(session).find_ids_by_guids(["G1", "G2", "G3", "G1"])

        assert grouped == {"G1": [first, second], "G2": [other]}

    def test_find_ids_by_guids_empty(self, temp_database):
        with get_session() as session:
            assert JobPostRepository(session).find_ids_by_guids([]) == {}

    def test_get_records(self, temp_database, make_record):
        with get_session() as session:
            repo = JobPostRepository(session)
            ids = [repo.create(make_record(guid=g)) for g in ("A", "B")]

        with get_session() as session:
            records = JobPostRepository(session).get_records(ids + [999])

        assert sorted(r.guid for r in records) == ["A", "B"]

    def test_supersede(self, temp_database, make_record):
        created = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)
        with get_session() as session:
            post_id = JobPostRepository(session).create(make_record(), now=created)

        with get_session() as session:
            JobPostRepository(session).supersede(post_id, "Accountant [Duplicate - Identical content]")

        with get_session() as session:
            stored = JobPostRepository(session).get(post_id)
        assert stored.status == RecordStatus.DRAFT.value
        assert stored.title.endswith("[Duplicate - Identical content]")
        assert stored.modified_at == created

    def test_update_republishes(self, temp_database, make_record):
        modified = datetime(2030, 1, 1, tzinfo=timezone.utc)
        with get_session() as session:
            repo = JobPostRepository(session)
            post_id = repo.create(make_record())
            repo.supersede(post_id, "old [draft]")

        with get_session() as session:
            JobPostRepository(session).update(post_id, make_record(title="Senior Accountant"), now=modified)

        with get_session() as session:
            stored = JobPostRepository(session).get(post_id)
        assert stored.status == RecordStatus.PUBLISHED.value
        assert stored.title == "Senior Accountant"
        assert stored.modified_at == modified

    def test_missing_record(self, temp_database, make_record):
        with get_session() as session:
            repo = JobPostRepository(session)
            assert repo.get(42) is None
            with pytest.raises(RecordNotFoundError):
                repo.supersede(42, "x")


class TestDuplicateResolutionOnDatabase:
    """DuplicateResolver running against the real post repository."""

    T0 = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)

    def create_posts(self, *posts):
        with get_session() as session:
            repo = JobPostRepository(session)
            return [
                repo.create(record, now=self.T0 + timedelta(seconds=offset))
                for record, offset in posts
            ]

    def resolve(self, guid="G1"):
        with get_session() as session:
            repo = JobPostRepository(session)
            resolver = DuplicateResolver(repo, RunLog())
            return resolver.resolve([guid], repo.find_ids_by_guids([guid]))

    def test_keep_is_stable_across_runs(self, temp_database, make_record):
        older, newer = self.create_posts(
            (make_record(title="Accountant"), 0),
            (make_record(title="Senior Accountant"), 100),
        )

        first = self.resolve()
        second = self.resolve()

        assert first.post_ids_by_guid == {"G1": newer}
        assert second.post_ids_by_guid == {"G1": newer}
        with get_session() as session:
            stored = JobPostRepository(session).get(older)
        assert stored.modified_at == self.T0

    def test_drafts_duplicates_and_suffixes_titles_once(self, temp_database, make_record):
        original, copy, revised = self.create_posts(
            (make_record(title="Accountant"), 0),
            (make_record(title="Accountant"), 50),
            (make_record(title="Senior Accountant"), 100),
        )

        first = self.resolve()
        second = self.resolve()

        assert first.post_ids_by_guid == second.post_ids_by_guid == {"G1": revised}
        assert [s.record_id for s in first.superseded] == [copy, original]
        assert [s.record_id for s in second.superseded] == [copy, original]
        with get_session() as session:
            repo = JobPostRepository(session)
            stored = {post_id: repo.get(post_id) for post_id in (original, copy, revised)}
        assert stored[original].status == RecordStatus.DRAFT.value
        assert stored[original].title == "Accountant [Duplicate - Older version kept]"
        assert stored[copy].status == RecordStatus.DRAFT.value
        assert stored[copy].title == "Accountant [Duplicate - Identical content]"
        assert stored[revised].status == RecordStatus.PUBLISHED.value
        assert stored[revised].title == "Senior Accountant"


class TestStatusRepository:
    def test_save_load_delete(self, temp_database):
        with get_session() as session:
            StatusRepository(session).save("k", '{"total": 1}')

        with get_session() as session:
            repo = StatusRepository(session)
            assert repo.load("k") == '{"total": 1}'
            repo.save("k", '{"total": 2}')

        with get_session() as session:
            repo = StatusRepository(session)
            assert repo.load("k", for_update=True) == '{"total": 2}'
            repo.delete("k")

        with get_session() as session:
            assert StatusRepository(session).load("k") is None
