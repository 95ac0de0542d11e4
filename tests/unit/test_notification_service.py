"""Unit tests for the notification sink and feed."""

import pytest

from app.core.errors import ForbiddenError, NotFoundError
from app.models.report import ReportStatus
from app.models.user import UserRole
from app.services.lifecycle_engine import LifecycleEngine
from app.services.notification_service import NotificationService
from app.stores.memory_store import InMemoryReportStore
from app.utils.geo import PlanarDistance

from conftest import ADMINS, escalate, make_report


class FailingNotificationStore(InMemoryReportStore):
    """Store whose notification writes always fail."""

    def add_notification(self, user_id, report_id, message):
        raise RuntimeError("notification backend down")


class TestDelivery:

    def test_notify_persists_unread(self, store):
        service = NotificationService(store=store)

        notification = service.notify("citizen-c", "r1", "hello")

        assert notification["is_read"] is False
        assert service.unread_count("citizen-c") == 1

    def test_notify_role_fans_out(self, store):
        service = NotificationService(store=store)

        delivered = service.notify_role(UserRole.ADMIN, "r1", "review please")

        assert delivered == len(ADMINS)
        for admin_id in ADMINS:
            assert service.unread_count(admin_id) == 1

    def test_failed_delivery_is_swallowed(self):
        service = NotificationService(store=FailingNotificationStore())

        assert service.notify("citizen-c", "r1", "hello") is None

    def test_failed_fan_out_does_not_undo_escalation(self):
        store = FailingNotificationStore()
        for admin_id in ADMINS:
            store.save_user(admin_id, UserRole.ADMIN.value)
        engine = LifecycleEngine(store=store, distance_strategy=PlanarDistance(), escalation_threshold=5)
        report = make_report(engine)

        escalate(engine, report.id)

        assert store.get_report(report.id)["status"] == ReportStatus.ESCALATED.value


class TestFeed:

    def test_feed_is_newest_first_and_limited(self, store):
        service = NotificationService(store=store)
        for i in range(3):
            service.notify("citizen-c", None, f"message {i}")

        feed = service.list_notifications("citizen-c", limit=2)

        assert [n["message"] for n in feed] == ["message 2", "message 1"]

    def test_mark_read_by_owner(self, store):
        service = NotificationService(store=store)
        notification = service.notify("citizen-c", None, "hello")

        updated = service.mark_read(notification["id"], "citizen-c")

        assert updated["is_read"] is True
        assert service.unread_count("citizen-c") == 0
        # Idempotent
        assert service.mark_read(notification["id"], "citizen-c")["is_read"] is True

    def test_mark_read_by_other_user(self, store):
        service = NotificationService(store=store)
        notification = service.notify("citizen-c", None, "hello")

        with pytest.raises(ForbiddenError):
            service.mark_read(notification["id"], "voter-1")

        assert service.unread_count("citizen-c") == 1

    def test_mark_read_missing(self, store):
        with pytest.raises(NotFoundError):
            NotificationService(store=store).mark_read("missing", "citizen-c")

    def test_mark_all_read(self, store):
        service = NotificationService(store=store)
        service.notify("citizen-c", None, "one")
        service.notify("citizen-c", None, "two")
        service.notify("voter-1", None, "other")

        assert service.mark_all_read("citizen-c") == 2
        assert service.unread_count("citizen-c") == 0
        assert service.unread_count("voter-1") == 1
