"""Tests for combining record streams and gzip archiving."""

import gzip
import os
import stat

import pytest

from jobfeed.combine import COMBINED_FILENAME, CombineError, combine, gzip_file


@pytest.fixture
def streams(tmp_path):
    contents = {
        "alpha": b'{"guid": "A1"}\n{"guid": "A2"}\n',
        "beta": b'{"guid": "B1"}\n',
    }
    for feed_id, data in contents.items():
        (tmp_path / f"{feed_id}.jsonl").write_bytes(data)
    return contents


class TestCombine:
    def test_concatenates_in_feed_order(self, tmp_path, streams, run_log):
        artifact = combine(["beta", "alpha"], tmp_path, 3, run_log)

        combined = (tmp_path / COMBINED_FILENAME).read_bytes()
        assert combined == streams["beta"] + streams["alpha"]
        assert artifact.bytes_written == sum(len(data) for data in streams.values())
        assert artifact.feeds_included == ["beta", "alpha"]
        assert artifact.total_items == 3

    def test_missing_streams_are_skipped(self, tmp_path, streams, run_log):
        artifact = combine(["alpha", "gamma", "beta"], tmp_path, 3, run_log)

        assert artifact.feeds_included == ["alpha", "beta"]
        assert artifact.feeds_skipped == []
        assert artifact.path.read_bytes() == streams["alpha"] + streams["beta"]

    def test_accepts_feed_map(self, tmp_path, streams, run_log):
        feed_map = {"alpha": "https://x/a.xml", "beta": "https://x/b.xml"}

        artifact = combine(feed_map, tmp_path, 3, run_log)

        assert artifact.feeds_included == ["alpha", "beta"]

    def test_gzip_round_trip(self, tmp_path, streams, run_log):
        artifact = combine(["alpha", "beta"], tmp_path, 3, run_log)

        assert artifact.gz_path == tmp_path / f"{COMBINED_FILENAME}.gz"
        with gzip.open(artifact.gz_path, "rb") as handle:
            assert handle.read() == artifact.path.read_bytes()

    def test_permissions_and_log(self, tmp_path, streams, run_log):
        artifact = combine(["alpha", "beta"], tmp_path, 3, run_log)

        assert stat.S_IMODE(os.stat(artifact.path).st_mode) == 0o644
        assert stat.S_IMODE(os.stat(artifact.gz_path).st_mode) == 0o644
        assert run_log.lines()[-1].endswith("Combined JSONL (3 items)")

    def test_no_streams_gives_empty_artifact(self, tmp_path, run_log):
        artifact = combine(["alpha"], tmp_path, 0, run_log)

        assert artifact.path.read_bytes() == b""
        assert artifact.bytes_written == 0
        assert artifact.gz_path.exists()

    def test_rerun_overwrites_previous_artifact(self, tmp_path, streams, run_log):
        combine(["alpha", "beta"], tmp_path, 3, run_log)
        artifact = combine(["beta"], tmp_path, 1, run_log)

        assert artifact.path.read_bytes() == streams["beta"]

    def test_unwritable_output_raises(self, tmp_path, run_log):
        with pytest.raises(CombineError):
            combine(["alpha"], tmp_path / "missing-dir", 0, run_log)

        assert "Cannot open combined JSONL" in run_log.lines()[-1]


class TestGzipFile:
    def test_default_target(self, tmp_path):
        source = tmp_path / "feed.jsonl"
        source.write_bytes(b"x" * 10000)

        target = gzip_file(source)

        assert target == tmp_path / "feed.jsonl.gz"
        assert gzip.decompress(target.read_bytes()) == b"x" * 10000
        assert not (tmp_path / "feed.jsonl.gz.part").exists()

    def test_missing_source_leaves_no_partial(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            gzip_file(tmp_path / "absent.jsonl")

        assert list(tmp_path.iterdir()) == []
