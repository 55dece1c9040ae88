"""Notification service — per-user dashboard notifications.

Learn: Notifications are written for every admin when something needs
their attention (testimonial moderated or deleted, contact form
received). Routes invalidate the "notifications" resource afterwards so
open dashboards refresh their bell icon.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.db.models import Notification, User


class NotificationNotFoundError(Exception):
    """Raised when a notification doesn't exist or belongs to someone else."""


class NotificationService:
    """Business logic for notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_for_admins(
        self, title: str, message: str, type: str
    ) -> list[Notification]:
        """Stage one notification per admin. The caller commits."""
        result = await self.db.execute(
            select(User.id).where(User.is_admin.is_(True)).order_by(User.id)
        )
        notifications = [
            Notification(user_id=admin_id, title=title, message=message, type=type)
            for admin_id in result.scalars().all()
        ]
        self.db.add_all(notifications)
        await self.db.flush()
        return notifications

    async def notify_admins(
        self, title: str, message: str, type: str
    ) -> list[Notification]:
        notifications = await self.add_for_admins(title, message, type)
        await self.db.commit()
        return notifications

    async def list_for_user(self, user_id: int) -> list[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return list(result.scalars().all())

    async def mark_read(self, notification_id: int, user_id: int) -> Notification:
        notification = await self.db.get(Notification, notification_id)
        if not notification or notification.user_id != user_id:
            raise NotificationNotFoundError(
                f"Notification {notification_id} not found"
            )
        notification.read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    async def mark_all_read(self, user_id: int) -> int:
        """Mark every unread notification of a user as read. Returns the count."""
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        await self.db.commit()
        return result.rowcount or 0
