"""
Resolution Workflow - worker evidence, worker sign-off and admin confirmation.

Field-dispatch branch:
    assigned --(evidence)--> assigned --(mark resolved)--> pending_confirmation --(confirm)--> resolved
Infrastructure branch:
    pending/escalated --(admin working)--> working --(confirm)--> resolved

Every guard runs inside the store transaction together with the write.
"""

from typing import Dict, Optional
import logging

from app.core.errors import ForbiddenError, InvalidStateError, NotFoundError
from app.models.report import ReportStatus
from app.services.assignment_engine import is_infra_request
from app.services.notification_service import NotificationService
from app.services.status_workflow import LifecycleEvent, StatusWorkflowEngine
from app.stores.base import ReportStore, utcnow
from app.stores.registry import get_report_store

logger = logging.getLogger(__name__)


class ResolutionWorkflow:

    def __init__(
        self,
        store: Optional[ReportStore] = None,
        notifications: Optional[NotificationService] = None,
    ):
        self.store = store or get_report_store()
        self.notifications = notifications or NotificationService(store=self.store)

    @staticmethod
    def _require_assigned_worker(report: Dict, worker_id: str) -> None:
        if report.get("assigned_worker_id") != worker_id:
            raise ForbiddenError("This report is not assigned to you")

    def upload_evidence(
        self,
        report_id: str,
        worker_id: str,
        image_url: str,
        notes: Optional[str] = None
    ) -> Dict:
        """
        Attach resolution evidence; status stays assigned.

        Raises:
            NotFoundError, ForbiddenError (not the assigned worker),
            InvalidStateError (report not in assigned state)
        """
        def mutator(report: Dict) -> Dict:
            self._require_assigned_worker(report, worker_id)
            updates = StatusWorkflowEngine.transition_updates(
                report, LifecycleEvent.UPLOAD_EVIDENCE, changed_by=worker_id
            )
            updates["resolution_image_url"] = image_url
            updates["resolution_notes"] = notes
            return updates

        updated = self.store.update_report(report_id, mutator)
        logger.info(f"Evidence uploaded for report {report_id} by worker {worker_id}")

        self.notifications.notify_admins(
            report_id,
            f"Worker uploaded resolution evidence for: {updated.get('title')}"
        )
        return updated

    def worker_mark_resolved(self, report_id: str, worker_id: str) -> Dict:
        """
        Worker signs off; the report waits for admin confirmation.

        Raises:
            NotFoundError, ForbiddenError (not the assigned worker),
            InvalidStateError (no evidence yet, or report not in assigned state)
        """
        def mutator(report: Dict) -> Dict:
            self._require_assigned_worker(report, worker_id)
            if not report.get("resolution_image_url"):
                raise InvalidStateError("Upload a resolution photo before marking the report resolved")
            return StatusWorkflowEngine.transition_updates(
                report, LifecycleEvent.MARK_RESOLVED, changed_by=worker_id
            )

        updated = self.store.update_report(report_id, mutator)
        logger.info(f"Report {report_id} marked resolved by worker {worker_id}; awaiting admin confirmation")

        self.notifications.notify_admins(
            report_id,
            f"Worker finished report: {updated.get('title')}. Requires Admin Confirmation."
        )
        return updated

    def admin_confirm_resolution(self, report_id: str, admin_id: str) -> Dict:
        """
        Final confirmation; moves pending_confirmation/working to resolved.

        Raises:
            NotFoundError, InvalidStateError (already resolved, or nothing to confirm)
        """
        def mutator(report: Dict) -> Dict:
            if report.get("status") == ReportStatus.RESOLVED.value:
                raise InvalidStateError("Report is already officially resolved")
            updates = StatusWorkflowEngine.transition_updates(
                report, LifecycleEvent.CONFIRM, changed_by=admin_id
            )
            updates["resolved_by_id"] = admin_id
            updates["resolved_at"] = utcnow()
            return updates

        updated = self.store.update_report(report_id, mutator)
        logger.info(f"Report {report_id} resolution confirmed by admin {admin_id}")

        self.notifications.notify(
            updated["created_by_id"],
            report_id,
            f"Your report \"{updated.get('title')}\" has been officially RESOLVED and confirmed by the administration. Thank you!"
        )
        return updated

    def admin_start_working(self, report_id: str, admin_id: str) -> Dict:
        """
        Infrastructure requests only: admin takes the request into work.

        Raises:
            NotFoundError, InvalidStateError (field-dispatch type, or wrong state)
        """
        report = self.store.get_report(report_id)
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")

        if not is_infra_request(report.get("type")):
            raise InvalidStateError(
                "Only infrastructure requests can be marked as working without assignment"
            )

        def mutator(current: Dict) -> Dict:
            return StatusWorkflowEngine.transition_updates(
                current, LifecycleEvent.START_WORKING, changed_by=admin_id
            )

        updated = self.store.update_report(report_id, mutator)
        logger.info(f"Infrastructure request {report_id} marked working by admin {admin_id}")

        self.notifications.notify(
            updated["created_by_id"],
            report_id,
            f"Your infrastructure request is being worked on: {updated.get('title')}"
        )
        return updated
