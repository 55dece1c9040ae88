"""Contact form API.

Submissions become a notification for every admin; there is no separate
inbox table.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.db.engine import get_db
from constructivo.realtime.invalidation import CacheInvalidator, get_cache_invalidator
from constructivo.realtime.messages import NOTIFICATIONS
from constructivo.schemas.notification import ContactCreate
from constructivo.services.notification_service import NotificationService

router = APIRouter()


def _contact_message(body: ContactCreate) -> str:
    lines = [
        f"From: {body.name} <{body.email}>",
        f"Phone: {body.phone}",
    ]
    if body.location:
        where = body.location.address or f"{body.location.latitude}, {body.location.longitude}"
        lines.append(f"Location: {where}")
    lines.append("")
    lines.append(body.message)
    return "\n".join(lines)


@router.post("/contact", status_code=201)
async def submit_contact(
    body: ContactCreate,
    db: AsyncSession = Depends(get_db),
    invalidate: CacheInvalidator = Depends(get_cache_invalidator),
):
    svc = NotificationService(db)
    notified = await svc.notify_admins(
        title=f"New inquiry from {body.name}",
        message=_contact_message(body),
        type="contact",
    )
    if notified:
        invalidate(NOTIFICATIONS)
    return {"success": True}
