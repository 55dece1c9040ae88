"""Notifications API — the signed-in user's own notifications."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.auth.dependencies import get_current_user
from constructivo.db.engine import get_db
from constructivo.db.models import User
from constructivo.realtime.invalidation import CacheInvalidator, get_cache_invalidator
from constructivo.realtime.messages import NOTIFICATIONS
from constructivo.schemas.notification import NotificationRead
from constructivo.services.notification_service import (
    NotificationNotFoundError,
    NotificationService,
)

router = APIRouter(prefix="/notifications")


def _svc(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


@router.get("", response_model=list[NotificationRead])
async def list_notifications(
    user: User = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    """Newest first."""
    return await svc.list_for_user(user.id)


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
    invalidate: CacheInvalidator = Depends(get_cache_invalidator),
):
    try:
        notification = await svc.mark_read(notification_id, user_id=user.id)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")

    invalidate(NOTIFICATIONS)
    return notification


@router.post("/mark-all-read")
async def mark_all_notifications_read(
    user: User = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
    invalidate: CacheInvalidator = Depends(get_cache_invalidator),
):
    updated = await svc.mark_all_read(user.id)
    invalidate(NOTIFICATIONS)
    return {"success": True, "updated": updated}
