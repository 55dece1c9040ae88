"""User management API (admin only)."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.auth.dependencies import require_admin
from constructivo.db.engine import get_db
from constructivo.db.models import User
from constructivo.realtime.invalidation import CacheInvalidator, get_cache_invalidator
from constructivo.realtime.messages import USERS
from constructivo.schemas.user import AdminStatusUpdate, UserRead
from constructivo.services.user_service import (
    SelfAdminChangeError,
    UserNotFoundError,
    UserService,
)

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/users", response_model=list[UserRead])
async def list_users(
    _: User = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    return await svc.list_users()


@router.patch("/users/{user_id}/admin-status", response_model=UserRead)
async def update_admin_status(
    user_id: int,
    body: AdminStatusUpdate,
    admin: User = Depends(require_admin),
    svc: UserService = Depends(_svc),
    invalidate: CacheInvalidator = Depends(get_cache_invalidator),
):
    """Grant or revoke admin rights. Admins can't change their own flag."""
    try:
        user = await svc.set_admin_status(user_id, body.is_admin, acting_user_id=admin.id)
    except SelfAdminChangeError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")

    invalidate(USERS)
    return user
