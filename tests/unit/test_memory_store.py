"""Unit tests for the in-memory report store."""

import threading

import pytest

from app.core.errors import DuplicateVoteError, ForbiddenError, NotFoundError
from app.stores.base import utcnow
from app.stores.memory_store import InMemoryReportStore


def _report(store, creator="citizen-c", **overrides):
    data = {
        "title": "Overflowing bin",
        "type": "overflow_dustbin",
        "latitude": 12.0,
        "longitude": 77.0,
        "status": "pending",
        "support_count": 0,
        "opposition_count": 0,
        "created_by_id": creator,
        "created_at": utcnow(),
    }
    data.update(overrides)
    return store.create_report(data)


def _allow(report):
    return None


class TestReports:

    def test_create_and_get(self):
        store = InMemoryReportStore()
        created = _report(store)

        fetched = store.get_report(created["id"])

        assert fetched["title"] == "Overflowing bin"
        assert fetched["id"] == created["id"]

    def test_returned_documents_are_copies(self):
        store = InMemoryReportStore()
        created = _report(store)

        created["title"] = "changed"

        assert store.get_report(created["id"])["title"] == "Overflowing bin"

    def test_update_applies_mutator(self):
        store = InMemoryReportStore()
        created = _report(store)

        updated = store.update_report(created["id"], lambda r: {"status": "escalated"})

        assert updated["status"] == "escalated"
        assert store.get_report(created["id"])["status"] == "escalated"

    def test_update_rolls_back_when_mutator_raises(self):
        store = InMemoryReportStore()
        created = _report(store)

        def mutator(report):
            report["status"] = "resolved"
            raise ForbiddenError("nope")

        with pytest.raises(ForbiddenError):
            store.update_report(created["id"], mutator)

        assert store.get_report(created["id"])["status"] == "pending"

    def test_update_missing_report(self):
        with pytest.raises(NotFoundError):
            InMemoryReportStore().update_report("missing", lambda r: {})

    def test_list_filters_and_orders_newest_first(self):
        store = InMemoryReportStore()
        first = _report(store, creator="a")
        second = _report(store, creator="b", support_count=6)
        third = _report(store, creator="a", assigned_worker_id="worker-1")

        assert [r["id"] for r in store.list_reports()] == [third["id"], second["id"], first["id"]]
        assert [r["id"] for r in store.list_reports(created_by_id="a")] == [third["id"], first["id"]]
        assert [r["id"] for r in store.list_reports(exclude_created_by_id="a")] == [second["id"]]
        assert [r["id"] for r in store.list_reports(min_support_count=5)] == [second["id"]]
        assert [r["id"] for r in store.list_reports(assigned_worker_id="worker-1")] == [third["id"]]


class TestVotes:

    def test_record_vote_increments_matching_counter(self):
        store = InMemoryReportStore()
        report = _report(store)

        store.record_vote(report["id"], "v1", True, _allow)
        store.record_vote(report["id"], "v2", False, _allow)

        stored = store.get_report(report["id"])
        assert stored["support_count"] == 1
        assert stored["opposition_count"] == 1
        assert store.count_votes(report["id"]) == 2
        assert store.count_votes(report["id"], support=True) == 1

    def test_duplicate_vote_rejected_and_counter_untouched(self):
        store = InMemoryReportStore()
        report = _report(store)
        store.record_vote(report["id"], "v1", True, _allow)

        with pytest.raises(DuplicateVoteError):
            store.record_vote(report["id"], "v1", False, _allow)

        stored = store.get_report(report["id"])
        assert stored["support_count"] == 1
        assert stored["opposition_count"] == 0

    def test_guard_failure_records_nothing(self):
        store = InMemoryReportStore()
        report = _report(store)

        def guard(current):
            raise ForbiddenError("Cannot vote on your own report")

        with pytest.raises(ForbiddenError):
            store.record_vote(report["id"], "citizen-c", True, guard)

        assert store.count_votes(report["id"]) == 0

    def test_concurrent_votes_from_same_voter_record_once(self):
        store = InMemoryReportStore()
        report = _report(store)
        errors = []

        def vote():
            try:
                store.record_vote(report["id"], "v1", True, _allow)
            except DuplicateVoteError as e:
                errors.append(e)

        threads = [threading.Thread(target=vote) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.count_votes(report["id"]) == 1
        assert len(errors) == 9
        assert store.get_report(report["id"])["support_count"] == 1

    def test_delete_cascades_votes(self):
        store = InMemoryReportStore()
        report = _report(store)
        other = _report(store)
        store.record_vote(report["id"], "v1", True, _allow)
        store.record_vote(other["id"], "v1", True, _allow)

        store.delete_report(report["id"], _allow)

        assert store.get_report(report["id"]) is None
        assert store.list_votes(report["id"]) == []
        assert len(store.list_votes(other["id"])) == 1


class TestWorkerLocationsAndNotifications:

    def test_upsert_replaces_previous_location(self):
        store = InMemoryReportStore()
        store.upsert_worker_location("worker-1", 12.0, 77.0)
        store.upsert_worker_location("worker-1", 13.0, 78.0)

        locations = store.list_worker_locations()

        assert len(locations) == 1
        assert locations[0]["latitude"] == 13.0

    def test_notification_read_markers(self):
        store = InMemoryReportStore()
        first = store.add_notification("u1", None, "hello")
        store.add_notification("u1", "r1", "world")
        store.add_notification("u2", "r1", "other")

        assert store.count_unread_notifications("u1") == 2
        store.mark_notification_read(first["id"])
        assert store.count_unread_notifications("u1") == 1
        assert store.mark_all_notifications_read("u1") == 1
        assert store.count_unread_notifications("u1") == 0
        assert store.count_unread_notifications("u2") == 1
