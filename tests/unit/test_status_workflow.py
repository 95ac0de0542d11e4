"""Unit tests for the report state machine."""

import pytest

from app.core.errors import InvalidStateError
from app.models.report import ReportStatus
from app.services.status_workflow import LifecycleEvent, StatusWorkflowEngine


class TestTransitionTable:

    @pytest.mark.parametrize(
        "from_status,event,to_status",
        [
            (ReportStatus.PENDING, LifecycleEvent.WITHDRAW, ReportStatus.WITHDRAWN),
            (ReportStatus.PENDING, LifecycleEvent.ESCALATE, ReportStatus.ESCALATED),
            (ReportStatus.ESCALATED, LifecycleEvent.ASSIGN, ReportStatus.ASSIGNED),
            (ReportStatus.PENDING, LifecycleEvent.START_WORKING, ReportStatus.WORKING),
            (ReportStatus.ESCALATED, LifecycleEvent.START_WORKING, ReportStatus.WORKING),
            (ReportStatus.ASSIGNED, LifecycleEvent.UPLOAD_EVIDENCE, ReportStatus.ASSIGNED),
            (ReportStatus.ASSIGNED, LifecycleEvent.MARK_RESOLVED, ReportStatus.PENDING_CONFIRMATION),
            (ReportStatus.PENDING_CONFIRMATION, LifecycleEvent.CONFIRM, ReportStatus.RESOLVED),
            (ReportStatus.WORKING, LifecycleEvent.CONFIRM, ReportStatus.RESOLVED),
        ],
    )
    def test_allowed_transitions(self, from_status, event, to_status):
        assert StatusWorkflowEngine.next_status(from_status.value, event) == to_status

    @pytest.mark.parametrize(
        "from_status,event",
        [
            (ReportStatus.ESCALATED, LifecycleEvent.WITHDRAW),
            (ReportStatus.ESCALATED, LifecycleEvent.ESCALATE),
            (ReportStatus.PENDING, LifecycleEvent.ASSIGN),
            (ReportStatus.ASSIGNED, LifecycleEvent.CONFIRM),
            (ReportStatus.RESOLVED, LifecycleEvent.CONFIRM),
            (ReportStatus.RESOLVED, LifecycleEvent.MARK_RESOLVED),
            (ReportStatus.PENDING_CONFIRMATION, LifecycleEvent.MARK_RESOLVED),
        ],
    )
    def test_illegal_transitions_raise(self, from_status, event):
        with pytest.raises(InvalidStateError):
            StatusWorkflowEngine.next_status(from_status.value, event)

    def test_terminal_states_allow_nothing(self):
        assert StatusWorkflowEngine.get_allowed_events(ReportStatus.RESOLVED.value) == []
        assert StatusWorkflowEngine.get_allowed_events(ReportStatus.WITHDRAWN.value) == []

    def test_unknown_status_is_invalid(self):
        assert StatusWorkflowEngine.is_valid_transition("bogus", LifecycleEvent.CONFIRM) is False


class TestTransitionUpdates:

    def test_appends_history_entry(self):
        report = {"status": ReportStatus.PENDING.value, "status_history": []}

        updates = StatusWorkflowEngine.transition_updates(
            report, LifecycleEvent.ESCALATE, changed_by="system", note="5 votes"
        )

        assert updates["status"] == ReportStatus.ESCALATED.value
        assert len(updates["status_history"]) == 1
        entry = updates["status_history"][0]
        assert entry["from_status"] == "pending"
        assert entry["to_status"] == "escalated"
        assert entry["event"] == "escalate"
        assert entry["changed_by"] == "system"
        assert entry["note"] == "5 votes"
        # Input is not mutated
        assert report["status_history"] == []

    def test_error_message_names_allowed_actions(self):
        with pytest.raises(InvalidStateError) as exc_info:
            StatusWorkflowEngine.transition_updates(
                {"status": ReportStatus.PENDING.value}, LifecycleEvent.CONFIRM, changed_by="admin-1"
            )
        assert "pending" in exc_info.value.message
        assert "escalate" in exc_info.value.message
