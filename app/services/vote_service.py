"""
Vote Service - support/oppose ledger for reports.

Rules:
- At most one vote per (report, voter); enforced by the store, not just checked here
- A report's creator can never vote on it
- Votes are never edited; they disappear only when the report is withdrawn
- Every successful vote triggers an escalation re-evaluation
"""

from typing import Dict, Optional
import logging

from app.core.errors import ForbiddenError, InvalidStateError, NotFoundError
from app.models.report import ReportStatus
from app.models.vote import VotePolarity
from app.services.escalation_engine import EscalationEngine
from app.stores.base import ReportStore
from app.stores.registry import get_report_store

logger = logging.getLogger(__name__)


class VoteService:
    """Service for casting and summarising votes on reports."""

    # Votes are accepted while the report is still awaiting action
    VOTABLE_STATUSES = (ReportStatus.PENDING.value, ReportStatus.ESCALATED.value)

    def __init__(self, store: Optional[ReportStore] = None, escalation_engine: Optional[EscalationEngine] = None):
        self.store = store or get_report_store()
        self.escalation_engine = escalation_engine or EscalationEngine(store=self.store)

    def cast_vote(self, report_id: str, voter_id: str, polarity: VotePolarity) -> Dict:
        """
        Record a vote and re-evaluate escalation.

        Args:
            report_id: Report to vote on
            voter_id: Verified voter ID
            polarity: support or oppose

        Returns:
            Dict with the stored vote and the escalation outcome

        Raises:
            NotFoundError: Report does not exist
            ForbiddenError: Voter created the report
            DuplicateVoteError: Voter already voted on the report
            InvalidStateError: Voting is closed for the report's status
        """
        def guard(report: Dict) -> None:
            if report.get("created_by_id") == voter_id:
                raise ForbiddenError("Cannot vote on your own report")
            status = report.get("status", ReportStatus.PENDING.value)
            if status not in self.VOTABLE_STATUSES:
                raise InvalidStateError(f"Voting is closed for reports in status '{status}'")

        vote = self.store.record_vote(report_id, voter_id, polarity.is_support, guard)
        logger.info(f"Vote recorded: report={report_id} voter={voter_id} polarity={polarity.value}")

        outcome = self.escalation_engine.evaluate(report_id)

        return {
            "vote": vote,
            "escalation": outcome,
        }

    def get_vote_summary(self, report_id: str, viewer_id: Optional[str] = None) -> Dict:
        """
        Get vote counts and the viewer's own vote.

        Raises:
            NotFoundError: Report does not exist
        """
        report = self.store.get_report(report_id)
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")

        user_vote = None
        if viewer_id:
            vote = self.store.get_vote(report_id, viewer_id)
            if vote is not None:
                user_vote = VotePolarity.SUPPORT if vote["support"] else VotePolarity.OPPOSE

        return {
            "report_id": report_id,
            "support_count": report.get("support_count", 0),
            "opposition_count": report.get("opposition_count", 0),
            "user_vote": user_vote,
        }
