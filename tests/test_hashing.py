"""Tests for fingerprint and GUID hashing."""

from jobfeed.utils.hashing import (
    FINGERPRINT_VERSION,
    compute_fingerprint,
    derive_guid,
    fingerprint_version,
    hash_string,
)


class TestComputeFingerprint:
    def test_format(self):
        fingerprint = compute_fingerprint({"guid": "G1", "title": "Accountant"})

        assert fingerprint.startswith(f"v{FINGERPRINT_VERSION}:")
        assert len(fingerprint.split(":", 1)[1]) == 64

    def test_deterministic_and_order_independent(self):
        a = compute_fingerprint({"guid": "G1", "title": "Accountant", "city": "Gent"})
        b = compute_fingerprint({"city": "Gent", "title": "Accountant", "guid": "G1"})

        assert a == b

    def test_whitespace_normalized(self):
        assert compute_fingerprint({"title": "Senior  Accountant "}) == compute_fingerprint(
            {"title": "Senior Accountant"}
        )

    def test_empty_string_equals_missing(self):
        assert compute_fingerprint({"guid": "G1", "city": ""}) == compute_fingerprint({"guid": "G1"})

    def test_significant_field_change_changes_fingerprint(self):
        base = {"guid": "G1", "title": "Accountant", "salary_from": 3000.0}

        assert compute_fingerprint(base) != compute_fingerprint({**base, "salary_from": 3200.0})

    def test_non_significant_fields_ignored(self):
        base = {"guid": "G1", "title": "Accountant"}

        assert compute_fingerprint(base) == compute_fingerprint({**base, "last_seen_at": "now"})


class TestFingerprintVersion:
    def test_version_parsed(self):
        assert fingerprint_version(compute_fingerprint({"guid": "G1"})) == FINGERPRINT_VERSION

    def test_unversioned_values(self):
        assert fingerprint_version(None) is None
        assert fingerprint_version("") is None
        assert fingerprint_version(hash_string("legacy")) is None
        assert fingerprint_version("v2:short") is None


class TestDeriveGuid:
    def test_stable(self):
        assert derive_guid("Partner-One", " https://x/1 ") == derive_guid("partner-one", "https://x/1")

    def test_feed_scoped(self):
        assert derive_guid("a", "https://x/1") != derive_guid("b", "https://x/1")


def test_hash_string_known_value():
    assert hash_string("") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
