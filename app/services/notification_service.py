"""
Notification Service - fan-out sink for lifecycle events.

DESIGN PRINCIPLES:
- Notification delivery NEVER blocks or rolls back a state transition
- Sink failures are logged and swallowed (soft-failure policy)
- Duplicates are tolerated by the recipient UI; no deduplication here
"""

from typing import Dict, List, Optional
import logging

from app.core.errors import ForbiddenError, NotFoundError
from app.core.settings import settings
from app.models.user import UserRole
from app.stores.base import ReportStore
from app.stores.registry import get_report_store

logger = logging.getLogger(__name__)


class NotificationService:
    """Persists notifications and serves the recipient's feed."""

    def __init__(self, store: Optional[ReportStore] = None):
        self.store = store or get_report_store()

    def notify(self, user_id: str, report_id: Optional[str], message: str) -> Optional[Dict]:
        """
        Deliver one notification.

        Returns the stored notification, or None if delivery failed.
        """
        try:
            notification = self.store.add_notification(user_id, report_id, message)
            logger.debug(f"Notification sent to {user_id} for report {report_id}")
            return notification
        except Exception as e:
            logger.error(
                f"Failed to notify user {user_id} about report {report_id}: {str(e)}",
                exc_info=True
            )
            return None

    def notify_role(self, role: UserRole, report_id: Optional[str], message: str) -> int:
        """
        Fan out a notification to every user holding a role.

        Returns:
            Number of notifications actually delivered
        """
        try:
            recipients = self.store.list_users_by_role(role.value)
        except Exception as e:
            logger.error(f"Failed to load {role.value} recipients for report {report_id}: {str(e)}", exc_info=True)
            return 0

        delivered = 0
        for user in recipients:
            if self.notify(user["id"], report_id, message) is not None:
                delivered += 1

        logger.info(f"Fan-out to {role.value}: {delivered}/{len(recipients)} delivered for report {report_id}")
        return delivered

    def notify_admins(self, report_id: Optional[str], message: str) -> int:
        return self.notify_role(UserRole.ADMIN, report_id, message)

    # Recipient feed

    def list_notifications(self, user_id: str, limit: Optional[int] = None) -> List[Dict]:
        """Most recent notifications (read and unread), newest first."""
        return self.store.list_notifications(user_id, limit or settings.NOTIFICATION_FEED_LIMIT)

    def unread_count(self, user_id: str) -> int:
        return self.store.count_unread_notifications(user_id)

    def mark_read(self, notification_id: str, user_id: str) -> Dict:
        """
        Mark a single notification as read, ensuring ownership.

        Raises:
            NotFoundError: Notification does not exist
            ForbiddenError: Notification belongs to another user
        """
        notification = self.store.get_notification(notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")

        if notification["user_id"] != user_id:
            raise ForbiddenError("Not authorized to mark this notification as read")

        if notification.get("is_read"):
            return notification

        return self.store.mark_notification_read(notification_id)

    def mark_all_read(self, user_id: str) -> int:
        return self.store.mark_all_notifications_read(user_id)

