"""
Lifecycle Engine - the single entry point for report lifecycle operations.

Composes the vote ledger, escalation rule, assignment engine, resolution
workflow and notification sink over one ReportStore. Routes call this class
only; it checks the actor's role, delegates, and returns the updated report
projected for the caller.

Every operation either returns a ReportResponse (or a small result model) or
raises a LifecycleError subclass with a specific reason.
"""

from typing import Dict, List, Optional
import logging

from app.core.errors import ForbiddenError, NotFoundError
from app.models.base import BaseResponse
from app.models.report import (
    EvidenceUploadRequest,
    ReportCreate,
    ReportListView,
    ReportResponse,
    ReportStatus,
)
from app.models.user import Actor, UserRole
from app.models.vote import VotePolarity, VoteSummary
from app.models.worker import WorkerLocation, WorkerLocationUpdate
from app.services.assignment_engine import AssignmentEngine
from app.services.escalation_engine import EscalationEngine
from app.services.notification_service import NotificationService
from app.services.resolution_workflow import ResolutionWorkflow
from app.services.status_workflow import LifecycleEvent, StatusWorkflowEngine
from app.services.vote_service import VoteService
from app.services.worker_service import WorkerService
from app.stores.base import ReportStore, utcnow
from app.stores.registry import get_report_store
from app.utils.geo import DistanceStrategy

logger = logging.getLogger(__name__)


def require_role(actor: Actor, *roles: UserRole) -> None:
    """Raise ForbiddenError unless the actor holds one of the roles."""
    if actor.role not in roles:
        allowed = ", ".join(role.value for role in roles)
        raise ForbiddenError(f"This action requires the {allowed} role")


class LifecycleEngine:
    """Owns the report state machine; every other component composes through it."""

    def __init__(
        self,
        store: Optional[ReportStore] = None,
        distance_strategy: Optional[DistanceStrategy] = None,
        escalation_threshold: Optional[int] = None,
    ):
        self.store = store or get_report_store()
        self.notifications = NotificationService(store=self.store)
        self.escalation = EscalationEngine(
            store=self.store,
            notifications=self.notifications,
            threshold=escalation_threshold,
        )
        self.votes = VoteService(store=self.store, escalation_engine=self.escalation)
        self.assignment = AssignmentEngine(
            store=self.store,
            notifications=self.notifications,
            distance_strategy=distance_strategy,
        )
        self.resolution = ResolutionWorkflow(store=self.store, notifications=self.notifications)
        self.workers = WorkerService(store=self.store)

    # Projection

    def project(self, report: Dict, viewer: Actor) -> ReportResponse:
        """Build the API projection of a report for a given viewer. Only citizens can vote."""
        viewer_id = viewer.user_id
        is_own = viewer_id is not None and report.get("created_by_id") == viewer_id
        vote = self.store.get_vote(report["id"], viewer_id) if viewer_id else None

        user_vote = None
        if vote is not None:
            user_vote = VotePolarity.SUPPORT.value if vote["support"] else VotePolarity.OPPOSE.value

        return ReportResponse(
            **report,
            is_own_report=is_own,
            user_vote=user_vote,
            has_voted=vote is not None,
            can_vote=(
                viewer.role == UserRole.CITIZEN
                and not is_own
                and vote is None
                and report.get("status") in VoteService.VOTABLE_STATUSES
            ),
        )

    def _load(self, report_id: str) -> Dict:
        report = self.store.get_report(report_id)
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")
        return report

    # Reports

    def create_report(self, actor: Actor, payload: ReportCreate) -> ReportResponse:
        require_role(actor, UserRole.CITIZEN)

        now = utcnow()
        data = {
            "title": payload.title,
            "description": payload.description or "",
            "type": payload.type.value,
            "latitude": payload.latitude,
            "longitude": payload.longitude,
            "image_url": payload.image_url,
            "status": ReportStatus.PENDING.value,
            "support_count": 0,
            "opposition_count": 0,
            "created_by_id": actor.user_id,
            "assigned_worker_id": None,
            "resolution_image_url": None,
            "resolution_notes": None,
            "status_history": [],
            "created_at": now,
            "updated_at": now,
        }
        report = self.store.create_report(data)
        logger.info(f"Report {report['id']} created by {actor.user_id} (type={payload.type.value})")
        return self.project(report, actor)

    def get_report(self, report_id: str, actor: Actor) -> ReportResponse:
        return self.project(self._load(report_id), actor)

    def list_reports(self, actor: Actor, view: ReportListView = ReportListView.ALL) -> List[ReportResponse]:
        """
        List reports, newest first.

        Views:
        - all: every report
        - mine / others: created / not created by the actor
        - admin: reports at or above the escalation threshold (ADMIN only)
        - assigned: reports assigned to the acting worker (WORKER only)
        """
        if view == ReportListView.MINE:
            reports = self.store.list_reports(created_by_id=actor.user_id)
        elif view == ReportListView.OTHERS:
            reports = self.store.list_reports(exclude_created_by_id=actor.user_id)
        elif view == ReportListView.ADMIN:
            require_role(actor, UserRole.ADMIN)
            reports = self.store.list_reports(min_support_count=self.escalation.threshold)
        elif view == ReportListView.ASSIGNED:
            require_role(actor, UserRole.WORKER)
            reports = self.store.list_reports(assigned_worker_id=actor.user_id)
        else:
            reports = self.store.list_reports()

        return [self.project(report, actor) for report in reports]

    def withdraw_report(self, report_id: str, actor: Actor) -> BaseResponse:
        """
        Creator withdraws a still-pending report; the report and its votes are deleted.
        """
        def guard(report: Dict) -> None:
            if report.get("created_by_id") != actor.user_id:
                raise ForbiddenError("You do not have permission to withdraw this report")
            StatusWorkflowEngine.next_status(report.get("status"), LifecycleEvent.WITHDRAW)

        self.store.delete_report(report_id, guard)
        logger.info(f"Report {report_id} withdrawn by creator {actor.user_id}")
        return BaseResponse(message="Report withdrawn successfully")

    # Votes

    def cast_vote(self, report_id: str, actor: Actor, polarity: VotePolarity) -> ReportResponse:
        require_role(actor, UserRole.CITIZEN)
        self.votes.cast_vote(report_id, actor.user_id, polarity)
        return self.project(self._load(report_id), actor)

    def get_vote_summary(self, report_id: str, actor: Actor) -> VoteSummary:
        return VoteSummary(**self.votes.get_vote_summary(report_id, actor.user_id))

    # Assignment

    def assign_nearest_worker(self, report_id: str, actor: Actor) -> ReportResponse:
        require_role(actor, UserRole.ADMIN)
        report = self.assignment.assign_nearest_worker(report_id, assigned_by=actor.user_id)
        return self.project(report, actor)

    # Resolution

    def upload_resolution_evidence(
        self,
        report_id: str,
        actor: Actor,
        evidence: EvidenceUploadRequest
    ) -> ReportResponse:
        require_role(actor, UserRole.WORKER)
        report = self.resolution.upload_evidence(
            report_id, actor.user_id, evidence.image_url, evidence.notes
        )
        return self.project(report, actor)

    def worker_mark_resolved(self, report_id: str, actor: Actor) -> ReportResponse:
        require_role(actor, UserRole.WORKER)
        report = self.resolution.worker_mark_resolved(report_id, actor.user_id)
        return self.project(report, actor)

    def admin_confirm_resolution(self, report_id: str, actor: Actor) -> ReportResponse:
        require_role(actor, UserRole.ADMIN)
        report = self.resolution.admin_confirm_resolution(report_id, actor.user_id)
        return self.project(report, actor)

    def admin_start_working(self, report_id: str, actor: Actor) -> ReportResponse:
        require_role(actor, UserRole.ADMIN)
        report = self.resolution.admin_start_working(report_id, actor.user_id)
        return self.project(report, actor)

    # Workers

    def update_worker_location(self, actor: Actor, update: WorkerLocationUpdate) -> WorkerLocation:
        # Header role and stored role must both be WORKER
        user = self.store.get_user(actor.user_id)
        if actor.role != UserRole.WORKER or user is None or user.get("role") != UserRole.WORKER.value:
            raise ForbiddenError("Only field workers can update their location")
        location = self.workers.update_location(actor.user_id, update.latitude, update.longitude)
        return WorkerLocation(**location)

    def list_worker_locations(self, actor: Actor) -> List[WorkerLocation]:
        require_role(actor, UserRole.ADMIN)
        return [WorkerLocation(**location) for location in self.workers.list_locations()]


# Global engine instance (singleton pattern)
_lifecycle_engine = None


def get_lifecycle_engine() -> LifecycleEngine:
    """Get or create the LifecycleEngine singleton bound to the configured store."""
    global _lifecycle_engine
    if _lifecycle_engine is None:
        _lifecycle_engine = LifecycleEngine()
    return _lifecycle_engine
