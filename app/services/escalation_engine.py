"""
Escalation Engine - vote-driven escalation rule.

DESIGN PRINCIPLES:
- Escalation fires when support votes reach ESCALATION_SUPPORT_THRESHOLD
- Only a pending report can escalate; the pending -> escalated transition is
  a conditional write, so it happens at most once per report
- Admins are notified only by the evaluation that actually performed the
  transition, never by later votes
"""

from typing import Dict, Optional
import logging

from app.core.errors import NotFoundError
from app.core.settings import settings
from app.models.report import ReportStatus
from app.services.notification_service import NotificationService
from app.services.status_workflow import LifecycleEvent, StatusWorkflowEngine
from app.stores.base import ReportStore
from app.stores.registry import get_report_store

logger = logging.getLogger(__name__)


class EscalationEngine:
    """
    Evaluates support totals against the threshold after each vote.
    """

    def __init__(
        self,
        store: Optional[ReportStore] = None,
        notifications: Optional[NotificationService] = None,
        threshold: Optional[int] = None,
    ):
        self.store = store or get_report_store()
        self.notifications = notifications or NotificationService(store=self.store)
        self.threshold = threshold if threshold is not None else settings.ESCALATION_SUPPORT_THRESHOLD

    def evaluate(self, report_id: str) -> Dict:
        """
        Escalate a report if it crossed the support threshold.

        Args:
            report_id: Report to evaluate

        Returns:
            Dict with escalated flag, support_count and threshold
        """
        support_count = self.store.count_votes(report_id, support=True)
        result = {
            "escalated": False,
            "support_count": support_count,
            "threshold": self.threshold,
        }

        if support_count < self.threshold:
            logger.debug(f"Report {report_id} below escalation threshold ({support_count}/{self.threshold})")
            return result

        # Set by the mutator on every (re)try; the committed attempt wins.
        fired = {"value": False}

        def mutator(report: Dict) -> Dict:
            fired["value"] = False
            if report.get("status") != ReportStatus.PENDING.value:
                return {}
            fired["value"] = True
            return StatusWorkflowEngine.transition_updates(
                report,
                LifecycleEvent.ESCALATE,
                changed_by="system",
                note=f"{support_count} support votes (threshold {self.threshold})",
            )

        try:
            report = self.store.update_report(report_id, mutator)
        except NotFoundError:
            logger.warning(f"Report {report_id} disappeared before escalation could be evaluated")
            return result

        if not fired["value"]:
            return result

        result["escalated"] = True
        logger.info(f"Report {report_id} escalated: {support_count} support votes >= {self.threshold}")

        self.notifications.notify_admins(
            report_id,
            f"Report {report.get('title')} has reached support threshold and needs review."
        )
        return result

