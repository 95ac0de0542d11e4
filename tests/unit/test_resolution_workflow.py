"""Unit tests for evidence upload, worker sign-off and admin confirmation."""

import threading

import pytest

from app.core.errors import ForbiddenError, InvalidStateError
from app.models.report import EvidenceUploadRequest, ReportStatus, ReportType

from conftest import ADMINS, CREATOR, REPORT_LAT, REPORT_LON, admin, escalate, make_report, worker

EVIDENCE = EvidenceUploadRequest(image_url="https://media.example.com/fixed.jpg", notes="Cleared the pile")


@pytest.fixture
def assigned_report(engine, store):
    """A field-dispatch report assigned to worker-1."""
    store.upsert_worker_location("worker-1", REPORT_LAT, REPORT_LON)
    report = make_report(engine)
    escalate(engine, report.id)
    return engine.assign_nearest_worker(report.id, admin())


def _notifications(store, user_id, report_id):
    return [n for n in store.list_notifications(user_id, 100) if n["report_id"] == report_id]


class TestWorkerResolution:

    def test_upload_evidence_keeps_status(self, engine, assigned_report):
        result = engine.upload_resolution_evidence(assigned_report.id, worker(), EVIDENCE)

        assert result.status == ReportStatus.ASSIGNED
        assert result.resolution_image_url == EVIDENCE.image_url
        assert result.resolution_notes == "Cleared the pile"
        assert result.status_history[-1].event == "upload_evidence"

    def test_other_worker_cannot_upload(self, engine, store, assigned_report):
        with pytest.raises(ForbiddenError) as exc_info:
            engine.upload_resolution_evidence(assigned_report.id, worker("worker-2"), EVIDENCE)

        assert "not assigned to you" in exc_info.value.message
        assert store.get_report(assigned_report.id)["resolution_image_url"] is None

    def test_mark_resolved_requires_evidence(self, engine, assigned_report):
        with pytest.raises(InvalidStateError) as exc_info:
            engine.worker_mark_resolved(assigned_report.id, worker())

        assert "resolution photo" in exc_info.value.message

    def test_mark_resolved_awaits_confirmation(self, engine, store, assigned_report):
        engine.upload_resolution_evidence(assigned_report.id, worker(), EVIDENCE)

        result = engine.worker_mark_resolved(assigned_report.id, worker())

        assert result.status == ReportStatus.PENDING_CONFIRMATION
        for admin_id in ADMINS:
            messages = [n["message"] for n in _notifications(store, admin_id, assigned_report.id)]
            assert any("Requires Admin Confirmation" in m for m in messages)

    def test_other_worker_cannot_mark_resolved(self, engine, assigned_report):
        engine.upload_resolution_evidence(assigned_report.id, worker(), EVIDENCE)

        with pytest.raises(ForbiddenError):
            engine.worker_mark_resolved(assigned_report.id, worker("worker-2"))

    def test_evidence_on_unassigned_report_rejected(self, engine):
        report = make_report(engine)

        with pytest.raises(ForbiddenError):
            engine.upload_resolution_evidence(report.id, worker(), EVIDENCE)


class TestAdminConfirmation:

    def test_full_field_dispatch_path(self, engine, store, assigned_report):
        engine.upload_resolution_evidence(assigned_report.id, worker(), EVIDENCE)
        engine.worker_mark_resolved(assigned_report.id, worker())

        result = engine.admin_confirm_resolution(assigned_report.id, admin("admin-2"))

        assert result.status == ReportStatus.RESOLVED
        assert result.resolved_by_id == "admin-2"
        assert result.resolved_at is not None
        assert [entry.to_status for entry in result.status_history] == [
            "escalated", "assigned", "assigned", "pending_confirmation", "resolved",
        ]
        creator_messages = [n["message"] for n in _notifications(store, CREATOR, assigned_report.id)]
        assert any("officially RESOLVED" in m for m in creator_messages)

    def test_second_confirmation_rejected(self, engine, assigned_report):
        engine.upload_resolution_evidence(assigned_report.id, worker(), EVIDENCE)
        engine.worker_mark_resolved(assigned_report.id, worker())
        engine.admin_confirm_resolution(assigned_report.id, admin())

        with pytest.raises(InvalidStateError) as exc_info:
            engine.admin_confirm_resolution(assigned_report.id, admin())

        assert "already officially resolved" in exc_info.value.message

    def test_concurrent_confirms_resolve_once(self, engine, store, assigned_report):
        engine.upload_resolution_evidence(assigned_report.id, worker(), EVIDENCE)
        engine.worker_mark_resolved(assigned_report.id, worker())
        barrier = threading.Barrier(len(ADMINS))
        confirmed = []
        rejected = []

        def confirm(admin_id):
            barrier.wait()
            try:
                confirmed.append(engine.admin_confirm_resolution(assigned_report.id, admin(admin_id)))
            except InvalidStateError as e:
                rejected.append(e)

        threads = [threading.Thread(target=confirm, args=(admin_id,)) for admin_id in ADMINS]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(confirmed) == 1
        assert len(rejected) == 1
        stored = store.get_report(assigned_report.id)
        assert stored["status"] == ReportStatus.RESOLVED.value
        assert stored["resolved_by_id"] == confirmed[0].resolved_by_id
        resolved_messages = [
            n["message"] for n in _notifications(store, CREATOR, assigned_report.id) if "RESOLVED" in n["message"]
        ]
        assert len(resolved_messages) == 1

    def test_worker_cannot_reopen_resolved_report(self, engine, assigned_report):
        engine.upload_resolution_evidence(assigned_report.id, worker(), EVIDENCE)
        engine.worker_mark_resolved(assigned_report.id, worker())
        engine.admin_confirm_resolution(assigned_report.id, admin())

        with pytest.raises(InvalidStateError):
            engine.worker_mark_resolved(assigned_report.id, worker())

    def test_confirm_before_worker_sign_off_rejected(self, engine, assigned_report):
        with pytest.raises(InvalidStateError):
            engine.admin_confirm_resolution(assigned_report.id, admin())

    def test_confirm_requires_admin(self, engine, assigned_report):
        engine.upload_resolution_evidence(assigned_report.id, worker(), EVIDENCE)
        engine.worker_mark_resolved(assigned_report.id, worker())

        with pytest.raises(ForbiddenError):
            engine.admin_confirm_resolution(assigned_report.id, worker())


class TestInfrastructurePath:

    def test_working_then_confirm(self, engine, store):
        report = make_report(engine, report_type=ReportType.PUBLIC_TOILET_REQUEST)

        working = engine.admin_start_working(report.id, admin())
        resolved = engine.admin_confirm_resolution(report.id, admin())

        assert working.status == ReportStatus.WORKING
        assert working.assigned_worker_id is None
        assert resolved.status == ReportStatus.RESOLVED
        assert len(_notifications(store, CREATOR, report.id)) == 2

    def test_working_from_escalated(self, engine):
        report = make_report(engine, report_type=ReportType.PUBLIC_BIN_REQUEST)
        escalate(engine, report.id)

        assert engine.admin_start_working(report.id, admin()).status == ReportStatus.WORKING

    def test_field_dispatch_type_cannot_skip_assignment(self, engine):
        report = make_report(engine, report_type=ReportType.DEAD_ANIMAL)

        with pytest.raises(InvalidStateError) as exc_info:
            engine.admin_start_working(report.id, admin())

        assert "Only infrastructure requests" in exc_info.value.message

    def test_working_twice_rejected(self, engine):
        report = make_report(engine, report_type=ReportType.PUBLIC_BIN_REQUEST)
        engine.admin_start_working(report.id, admin())

        with pytest.raises(InvalidStateError):
            engine.admin_start_working(report.id, admin())
