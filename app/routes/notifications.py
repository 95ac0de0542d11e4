"""
Notification endpoints - the recipient's feed and read markers.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from app.models.base import BaseResponse
from app.models.notification import NotificationResponse, UnreadCountResponse
from app.models.user import Actor
from app.services.lifecycle_engine import LifecycleEngine, get_lifecycle_engine
from app.utils.security import get_current_actor

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse])
async def my_notifications(
    limit: int = Query(50, ge=1, le=200, description="Maximum number of notifications"),
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    """
    Recent notifications (read and unread), newest first.
    """
    return engine.notifications.list_notifications(actor.user_id, limit)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    return UnreadCountResponse(unread_count=engine.notifications.unread_count(actor.user_id))


@router.post("/read-all", response_model=BaseResponse)
async def mark_all_read(
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    changed = engine.notifications.mark_all_read(actor.user_id)
    return BaseResponse(message=f"{changed} notification(s) marked as read")


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    return engine.notifications.mark_read(notification_id, actor.user_id)
