"""
Tests for numbered, immutable report versions.
"""

import threading
from datetime import datetime, timezone

import pytest

from accessibility_conformance.utils.logging_helper import NotFoundError, PersistenceConflictError
from accessibility_conformance.versioning import VersionManager
from accessibility_conformance.versioning import version_manager as version_manager_module
from accessibility_conformance.versioning.version_manager import to_json_compatible


@pytest.fixture
def versions(session_factory):
    return VersionManager(session_factory)


class TestCreateVersion:

    def test_first_version(self, versions, make_snapshot):
        record = versions.create_version("report-1", make_snapshot(), "alice", reason="Initial import")
        assert record.version == 1
        assert record.created_by == "alice"
        assert record.reason == "Initial import"
        assert [c.change_type for c in record.change_log] == ["created"]
        assert record.snapshot["product_info"]["name"] == "Sample Book"

    def test_versions_are_sequential(self, versions, make_snapshot):
        numbers = [
            versions.create_version("report-1", make_snapshot(name=f"Book {n}"), "alice").version
            for n in range(4)
        ]
        assert numbers == [1, 2, 3, 4]
        assert versions.get_version_count("report-1") == 4

    def test_reports_are_numbered_independently(self, versions, make_snapshot):
        versions.create_version("report-1", make_snapshot(), "alice")
        versions.create_version("report-1", make_snapshot(), "alice")
        assert versions.create_version("report-2", make_snapshot(), "bob").version == 1

    def test_change_log_against_previous_version(self, versions, make_snapshot):
        versions.create_version("report-1", make_snapshot(), "alice")
        record = versions.create_version("report-1", make_snapshot(status="approved"), "bob")
        assert [(c.field, c.previous_value, c.new_value) for c in record.change_log] == [
            ("status", "draft", "approved")
        ]

    def test_snapshot_is_json_compatible(self, versions, make_snapshot):
        snapshot = make_snapshot()
        snapshot["generated_at"] = datetime(2025, 3, 1, tzinfo=timezone.utc)
        record = versions.create_version("report-1", snapshot, "alice")
        assert record.snapshot["generated_at"] == "2025-03-01T00:00:00+00:00"

    def test_to_json_compatible_rejects_unknown_types(self):
        with pytest.raises(TypeError):
            to_json_compatible({"value": object()})


class TestRetries:

    def test_conflict_is_retried(self, versions, make_snapshot, monkeypatch):
        versions.create_version("report-1", make_snapshot(), "alice")

        real_latest = VersionManager._latest
        calls = []

        def stale_latest(self, session, report_id):
            calls.append(report_id)
            if len(calls) == 1:
                # A reader that missed the existing version 1
                return None
            return real_latest(self, session, report_id)

        sleeps = []
        monkeypatch.setattr(VersionManager, "_latest", stale_latest)
        monkeypatch.setattr(version_manager_module.time, "sleep", sleeps.append)

        record = versions.create_version("report-1", make_snapshot(status="approved"), "bob")
        assert record.version == 2
        assert len(calls) == 2
        assert sleeps == [pytest.approx(0.1)]

    def test_exhausted_retries_raise(self, session_factory, make_snapshot, monkeypatch):
        versions = VersionManager(session_factory, options={"max_attempts": 2})
        versions.create_version("report-1", make_snapshot(), "alice")

        monkeypatch.setattr(VersionManager, "_latest", lambda self, session, report_id: None)
        monkeypatch.setattr(version_manager_module.time, "sleep", lambda seconds: None)

        with pytest.raises(PersistenceConflictError) as exc_info:
            versions.create_version("report-1", make_snapshot(), "bob")
        assert exc_info.value.details == {"report_id": "report-1", "attempts": 2}

        monkeypatch.undo()
        assert versions.get_version_count("report-1") == 1

    def test_concurrent_writers_get_distinct_numbers(self, session_factory, make_snapshot):
        versions = VersionManager(session_factory, options={"max_attempts": 10})
        writers = 8
        results = []
        errors = []
        barrier = threading.Barrier(writers)

        def write(n):
            barrier.wait()
            try:
                results.append(versions.create_version("report-1", make_snapshot(name=f"Book {n}"), f"user-{n}").version)
            except Exception as e:  # collected for the assertion below
                errors.append(e)

        threads = [threading.Thread(target=write, args=(n,)) for n in range(writers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sorted(results) == list(range(1, writers + 1))
        assert [v.version for v in versions.get_versions("report-1")] == list(range(writers, 0, -1))


class TestReadVersions:

    def test_get_versions_newest_first(self, versions, make_snapshot):
        for status in ("draft", "in_review", "approved"):
            versions.create_version("report-1", make_snapshot(status=status), "alice")
        assert [v.version for v in versions.get_versions("report-1")] == [3, 2, 1]
        assert versions.get_versions("missing") == []

    def test_get_version(self, versions, make_snapshot):
        versions.create_version("report-1", make_snapshot(), "alice")
        assert versions.get_version("report-1", 1).version == 1
        with pytest.raises(NotFoundError):
            versions.get_version("report-1", 2)

    def test_latest_version(self, versions, make_snapshot):
        assert versions.get_latest_version("report-1") is None
        versions.create_version("report-1", make_snapshot(), "alice")
        versions.create_version("report-1", make_snapshot(status="approved"), "alice")
        assert versions.get_latest_version("report-1").snapshot["status"] == "approved"


class TestCompareVersions:

    def test_same_version_has_no_differences(self, versions, make_snapshot):
        versions.create_version("report-1", make_snapshot(), "alice")
        comparison = versions.compare_versions("report-1", 1, 1)
        assert comparison.differences == []
        assert comparison.summary.fields_changed == 0

    def test_conformance_change(self, versions, make_snapshot):
        versions.create_version("report-1", make_snapshot(), "alice")
        changed = make_snapshot(
            criteria=[
                {"criterion_id": "1.1.1", "conformance_level": "Does Not Support", "remarks": "All images have alt text"},
                {"criterion_id": "1.3.1", "conformance_level": "Partially Supports", "remarks": "Some tables lack headers"},
            ]
        )
        versions.create_version("report-1", changed, "bob")

        comparison = versions.compare_versions("report-1", 1, 2)
        assert len(comparison.differences) == 1
        difference = comparison.differences[0]
        assert difference.field == "criteria.1.1.1.conformance_level"
        assert difference.changed_by == "bob"
        assert comparison.summary.criteria_changed == 1
        assert not comparison.summary.status_changed

    def test_any_two_versions(self, versions, make_snapshot):
        versions.create_version("report-1", make_snapshot(), "alice")
        versions.create_version("report-1", make_snapshot(status="in_review"), "alice")
        versions.create_version("report-1", make_snapshot(status="approved"), "alice")
        comparison = versions.compare_versions("report-1", 3, 1)
        assert [(d.previous_value, d.new_value) for d in comparison.differences] == [("approved", "draft")]

    def test_missing_version(self, versions, make_snapshot):
        versions.create_version("report-1", make_snapshot(), "alice")
        with pytest.raises(NotFoundError):
            versions.compare_versions("report-1", 1, 5)


class TestDeleteVersions:

    def test_delete(self, versions, make_snapshot):
        versions.create_version("report-1", make_snapshot(), "alice")
        versions.create_version("report-1", make_snapshot(), "alice")
        versions.create_version("report-2", make_snapshot(), "alice")
        assert versions.delete_versions("report-1") == 2
        assert versions.get_version_count("report-1") == 0
        assert versions.get_version_count("report-2") == 1
        assert versions.delete_versions("report-1") == 0
