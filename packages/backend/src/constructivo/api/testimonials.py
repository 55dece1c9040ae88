"""Testimonials API.

Learn: Anyone can submit a testimonial; it stays hidden until an admin
approves it. Moderation (status change, delete) commits first, then
tells every connected admin tab to refetch testimonials and
notifications.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.auth.dependencies import require_admin
from constructivo.db.engine import get_db
from constructivo.realtime.invalidation import CacheInvalidator, get_cache_invalidator
from constructivo.realtime.messages import NOTIFICATIONS, TESTIMONIALS
from constructivo.schemas.testimonial import (
    TestimonialCreate,
    TestimonialRead,
    TestimonialStatusUpdate,
)
from constructivo.services.testimonial_service import (
    TestimonialNotFoundError,
    TestimonialService,
)

router = APIRouter(prefix="/testimonials")


def _svc(db: AsyncSession = Depends(get_db)) -> TestimonialService:
    return TestimonialService(db)


@router.post("", response_model=TestimonialRead, status_code=201)
async def submit_testimonial(body: TestimonialCreate, svc: TestimonialService = Depends(_svc)):
    """Public submission. Starts out neither approved nor rejected."""
    return await svc.submit(name=body.name, role=body.role, content=body.content)


@router.get(
    "",
    response_model=list[TestimonialRead],
    dependencies=[Depends(require_admin)],
)
async def list_testimonials(svc: TestimonialService = Depends(_svc)):
    return await svc.list_all()


@router.get("/approved", response_model=list[TestimonialRead])
async def list_approved_testimonials(svc: TestimonialService = Depends(_svc)):
    return await svc.list_approved()


@router.patch(
    "/{testimonial_id}/status",
    response_model=TestimonialRead,
    dependencies=[Depends(require_admin)],
)
async def update_testimonial_status(
    testimonial_id: int,
    body: TestimonialStatusUpdate,
    svc: TestimonialService = Depends(_svc),
    invalidate: CacheInvalidator = Depends(get_cache_invalidator),
):
    try:
        testimonial = await svc.set_status(
            testimonial_id,
            approved=body.approved,
            rejected=body.rejected,
            label=body.label,
        )
    except TestimonialNotFoundError:
        raise HTTPException(status_code=404, detail="Testimonial not found")

    invalidate(TESTIMONIALS)
    invalidate(NOTIFICATIONS)
    return testimonial


@router.delete(
    "/{testimonial_id}",
    response_model=TestimonialRead,
    dependencies=[Depends(require_admin)],
)
async def delete_testimonial(
    testimonial_id: int,
    svc: TestimonialService = Depends(_svc),
    invalidate: CacheInvalidator = Depends(get_cache_invalidator),
):
    try:
        testimonial = await svc.delete(testimonial_id)
    except TestimonialNotFoundError:
        raise HTTPException(status_code=404, detail="Testimonial not found")

    invalidate(TESTIMONIALS)
    invalidate(NOTIFICATIONS)
    return testimonial
