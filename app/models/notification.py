"""
Notification models.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class NotificationResponse(BaseModel):
    """A notification addressed to one user."""
    id: str
    user_id: str
    report_id: Optional[str] = Field(None, description="Related report, if any")
    message: str
    is_read: bool = False
    created_at: datetime


class UnreadCountResponse(BaseModel):
    """Badge count for the notification bell."""
    unread_count: int
