"""Settings API — site theme.

GET is public (the site needs the theme before anyone signs in) and falls
back to the default theme until an admin saves one.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.auth.dependencies import require_admin
from constructivo.db.engine import get_db
from constructivo.realtime.invalidation import CacheInvalidator, get_cache_invalidator
from constructivo.realtime.messages import SETTINGS
from constructivo.schemas.settings import SettingsRead, SettingsUpdate
from constructivo.services.settings_service import SettingsService, default_theme

router = APIRouter(prefix="/settings")


def _svc(db: AsyncSession = Depends(get_db)) -> SettingsService:
    return SettingsService(db)


@router.get("", response_model=SettingsRead)
async def get_settings(svc: SettingsService = Depends(_svc)):
    current = await svc.get_current()
    if current is None:
        return SettingsRead(theme=default_theme())
    return current


@router.patch(
    "",
    response_model=SettingsRead,
    dependencies=[Depends(require_admin)],
)
async def update_settings(
    body: SettingsUpdate,
    svc: SettingsService = Depends(_svc),
    invalidate: CacheInvalidator = Depends(get_cache_invalidator),
):
    updated = await svc.update_theme(body.theme)
    invalidate(SETTINGS)
    return updated
