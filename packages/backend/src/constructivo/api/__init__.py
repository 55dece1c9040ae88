"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Public and admin endpoints share routers (GET /projects is public,
POST /projects is admin-only), so auth is declared per route with
Depends(require_admin) / Depends(get_current_user) instead of at the
include_router level.
"""

from fastapi import APIRouter

from constructivo.api.auth import router as auth_router
from constructivo.api.contact import router as contact_router
from constructivo.api.health import router as health_router
from constructivo.api.notifications import router as notifications_router
from constructivo.api.projects import router as projects_router
from constructivo.api.settings import router as settings_router
from constructivo.api.testimonials import router as testimonials_router
from constructivo.api.users import router as users_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(projects_router, tags=["projects", "reactions"])
api_router.include_router(testimonials_router, tags=["testimonials"])
api_router.include_router(notifications_router, tags=["notifications"])
api_router.include_router(settings_router, tags=["settings"])
api_router.include_router(contact_router, tags=["contact"])
