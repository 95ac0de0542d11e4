"""
Status Workflow Engine - strict report state machine.

DESIGN PRINCIPLES:
- No skipping states
- No backward transitions
- All transitions logged in status_history
- Invalid transitions rejected with InvalidStateError, never ignored
"""

from enum import Enum
from typing import Dict, List, Optional
import logging

from app.core.errors import InvalidStateError
from app.models.report import ReportStatus
from app.stores.base import utcnow

logger = logging.getLogger(__name__)


class LifecycleEvent(str, Enum):
    """Events that move a report through its lifecycle."""
    WITHDRAW = "withdraw"
    ESCALATE = "escalate"
    ASSIGN = "assign"
    START_WORKING = "start_working"
    UPLOAD_EVIDENCE = "upload_evidence"
    MARK_RESOLVED = "mark_resolved"
    CONFIRM = "confirm"


class StatusWorkflowEngine:
    """
    Transition table: {event: {from_status: to_status}}.

    Role and relationship guards (creator, assigned worker, report type) live
    in the services that fire the events; this table only answers "may this
    event fire from this state, and where does it lead".
    """

    TRANSITIONS: Dict[LifecycleEvent, Dict[ReportStatus, ReportStatus]] = {
        LifecycleEvent.WITHDRAW: {ReportStatus.PENDING: ReportStatus.WITHDRAWN},
        LifecycleEvent.ESCALATE: {ReportStatus.PENDING: ReportStatus.ESCALATED},
        LifecycleEvent.ASSIGN: {ReportStatus.ESCALATED: ReportStatus.ASSIGNED},
        LifecycleEvent.START_WORKING: {
            ReportStatus.PENDING: ReportStatus.WORKING,
            ReportStatus.ESCALATED: ReportStatus.WORKING,
        },
        LifecycleEvent.UPLOAD_EVIDENCE: {ReportStatus.ASSIGNED: ReportStatus.ASSIGNED},
        LifecycleEvent.MARK_RESOLVED: {ReportStatus.ASSIGNED: ReportStatus.PENDING_CONFIRMATION},
        LifecycleEvent.CONFIRM: {
            ReportStatus.PENDING_CONFIRMATION: ReportStatus.RESOLVED,
            ReportStatus.WORKING: ReportStatus.RESOLVED,
        },
    }

    @classmethod
    def is_valid_transition(cls, from_status: str, event: LifecycleEvent) -> bool:
        try:
            from_enum = ReportStatus(from_status)
        except ValueError:
            return False
        return from_enum in cls.TRANSITIONS.get(event, {})

    @classmethod
    def get_allowed_events(cls, current_status: str) -> List[str]:
        """
        Get the events that may fire from the current status.
        """
        try:
            current_enum = ReportStatus(current_status)
        except ValueError:
            return []
        return [event.value for event, edges in cls.TRANSITIONS.items() if current_enum in edges]

    @classmethod
    def next_status(cls, current_status: str, event: LifecycleEvent) -> ReportStatus:
        """
        Resolve the target status for an event.

        Raises:
            InvalidStateError: If the event may not fire from current_status
        """
        if not cls.is_valid_transition(current_status, event):
            allowed = cls.get_allowed_events(current_status)
            raise InvalidStateError(
                f"Cannot {event.value.replace('_', ' ')} a report in status '{current_status}'. "
                f"Allowed actions from {current_status}: {allowed}"
            )
        return cls.TRANSITIONS[event][ReportStatus(current_status)]

    @classmethod
    def create_status_history_entry(
        cls,
        from_status: str,
        to_status: str,
        event: LifecycleEvent,
        changed_by: str,
        note: Optional[str] = None
    ) -> Dict:
        """
        Create a status history entry for the audit trail.
        """
        return {
            "from_status": from_status,
            "to_status": to_status,
            "event": event.value,
            "changed_by": changed_by,
            "timestamp": utcnow(),
            "note": note or ""
        }

    @classmethod
    def transition_updates(
        cls,
        report: Dict,
        event: LifecycleEvent,
        changed_by: str,
        note: Optional[str] = None
    ) -> Dict:
        """
        Validate an event against a report and build the store updates for it.

        Args:
            report: Current report document
            event: Event being fired
            changed_by: User ID or "system"
            note: Optional note for the history entry

        Returns:
            Dict of fields to write (status, status_history, updated_at)

        Raises:
            InvalidStateError: If the transition is not allowed
        """
        current_status = report.get("status", ReportStatus.PENDING.value)
        new_status = cls.next_status(current_status, event)

        logger.debug(f"Prepared {event.value}: {current_status} -> {new_status.value} by {changed_by}")

        history = list(report.get("status_history") or [])
        history.append(
            cls.create_status_history_entry(
                from_status=current_status,
                to_status=new_status.value,
                event=event,
                changed_by=changed_by,
                note=note,
            )
        )

        return {
            "status": new_status.value,
            "status_history": history,
            "updated_at": utcnow(),
        }
