"""
Assignment Engine - routes escalated field-dispatch reports to the nearest worker.

DESIGN PRINCIPLES:
- Infrastructure requests are never dispatched; they go through the admin
  "working" path
- Distance comes from a pluggable strategy (planar by default)
- Ties are broken by worker_id so the choice is deterministic
- The escalated -> assigned transition is re-checked inside the store
  transaction, so two admins racing the same report cannot both assign it
"""

from typing import Dict, List, Optional, Tuple
import logging

from app.core.errors import InvalidStateError, NotFoundError, ResourceUnavailableError
from app.core.settings import settings
from app.services.notification_service import NotificationService
from app.services.status_workflow import LifecycleEvent, StatusWorkflowEngine
from app.stores.base import ReportStore
from app.stores.registry import get_report_store
from app.utils.geo import DistanceStrategy, get_distance_strategy

logger = logging.getLogger(__name__)


def is_infra_request(report_type: str) -> bool:
    """Whether a report type is an infrastructure request (no worker dispatch)."""
    return report_type in settings.infra_report_types


class AssignmentEngine:
    """Nearest-worker assignment for field-dispatch reports."""

    def __init__(
        self,
        store: Optional[ReportStore] = None,
        notifications: Optional[NotificationService] = None,
        distance_strategy: Optional[DistanceStrategy] = None,
    ):
        self.store = store or get_report_store()
        self.notifications = notifications or NotificationService(store=self.store)
        self.distance_strategy = distance_strategy or get_distance_strategy()

    def select_nearest_worker(
        self,
        latitude: float,
        longitude: float,
        locations: List[Dict]
    ) -> Tuple[Dict, float]:
        """
        Pick the worker location closest to a coordinate.

        Args:
            latitude: Report latitude
            longitude: Report longitude
            locations: WorkerLocation dicts

        Returns:
            (location, distance) of the nearest worker

        Raises:
            ResourceUnavailableError: If no locations are known
        """
        if not locations:
            raise ResourceUnavailableError("No workers available")

        ranked = sorted(
            (
                (
                    self.distance_strategy.distance(latitude, longitude, loc["latitude"], loc["longitude"]),
                    loc["worker_id"],
                    loc,
                )
                for loc in locations
            ),
            key=lambda item: (item[0], item[1]),
        )
        distance, _, nearest = ranked[0]
        return nearest, distance

    def assign_nearest_worker(self, report_id: str, assigned_by: str) -> Dict:
        """
        Assign a report to the nearest worker and notify worker and creator.

        Args:
            report_id: Report to assign
            assigned_by: Admin user ID (for the audit trail)

        Returns:
            Updated report dict

        Raises:
            NotFoundError: Report does not exist
            InvalidStateError: Infrastructure request, or report not escalated
            ResourceUnavailableError: No worker locations on file
        """
        report = self.store.get_report(report_id)
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")

        if is_infra_request(report.get("type")):
            raise InvalidStateError(
                "This is an infrastructure request; handle it via the admin working path."
            )

        # Fail fast before scanning worker locations
        StatusWorkflowEngine.next_status(report.get("status"), LifecycleEvent.ASSIGN)

        nearest, distance = self.select_nearest_worker(
            report["latitude"],
            report["longitude"],
            self.store.list_worker_locations(),
        )
        worker_id = nearest["worker_id"]

        def mutator(current: Dict) -> Dict:
            updates = StatusWorkflowEngine.transition_updates(
                current,
                LifecycleEvent.ASSIGN,
                changed_by=assigned_by,
                note=f"Nearest worker {worker_id} ({self.distance_strategy.name} distance {distance:.6f})",
            )
            updates["assigned_worker_id"] = worker_id
            return updates

        updated = self.store.update_report(report_id, mutator)
        logger.info(f"Report {report_id} assigned to worker {worker_id} by {assigned_by}")

        self.notifications.notify(
            worker_id,
            report_id,
            f"A report has been assigned to you: {updated.get('title')}"
        )
        self.notifications.notify(
            updated["created_by_id"],
            report_id,
            f"Your report \"{updated.get('title')}\" has been assigned to a worker and is being processed."
        )
        return updated
