"""Testimonial service — public submissions and admin moderation.

Learn: Moderation writes the testimonial change and one notification per
admin in the same transaction, so both land (or neither does) before the
route broadcasts the invalidation.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.db.models import Testimonial
from constructivo.services.notification_service import NotificationService


class TestimonialNotFoundError(Exception):
    """Raised when a testimonial id doesn't exist."""


class TestimonialService:
    """Business logic for testimonials."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def submit(self, name: str, role: str, content: str) -> Testimonial:
        testimonial = Testimonial(name=name, role=role, content=content)
        self.db.add(testimonial)
        await self.db.commit()
        await self.db.refresh(testimonial)
        return testimonial

    async def list_all(self) -> list[Testimonial]:
        result = await self.db.execute(
            select(Testimonial).order_by(Testimonial.created_at.desc(), Testimonial.id.desc())
        )
        return list(result.scalars().all())

    async def list_approved(self) -> list[Testimonial]:
        result = await self.db.execute(
            select(Testimonial)
            .where(Testimonial.approved.is_(True))
            .order_by(Testimonial.created_at.desc(), Testimonial.id.desc())
        )
        return list(result.scalars().all())

    async def set_status(
        self, testimonial_id: int, approved: bool, rejected: bool, label: str
    ) -> Testimonial:
        testimonial = await self.db.get(Testimonial, testimonial_id)
        if not testimonial:
            raise TestimonialNotFoundError(f"Testimonial {testimonial_id} not found")

        testimonial.approved = approved
        testimonial.rejected = rejected
        await self.notifications.add_for_admins(
            title="Testimonial Status Update",
            message=f"A testimonial from {testimonial.name} has been {label}",
            type="testimonial",
        )
        await self.db.commit()
        await self.db.refresh(testimonial)
        return testimonial

    async def delete(self, testimonial_id: int) -> Testimonial:
        testimonial = await self.db.get(Testimonial, testimonial_id)
        if not testimonial:
            raise TestimonialNotFoundError(f"Testimonial {testimonial_id} not found")

        await self.db.delete(testimonial)
        await self.notifications.add_for_admins(
            title="Testimonial Deleted",
            message=f"A testimonial from {testimonial.name} has been deleted",
            type="testimonial",
        )
        await self.db.commit()
        return testimonial
