"""Settings service — the single site-wide theme row."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.config import settings as app_settings
from constructivo.db.models import SiteSettings


def default_theme() -> dict:
    return {"primary": app_settings.default_theme_primary}


class SettingsService:
    """Business logic for site settings."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_current(self) -> SiteSettings | None:
        result = await self.db.execute(
            select(SiteSettings).order_by(SiteSettings.id).limit(1)
        )
        return result.scalars().first()

    async def update_theme(self, theme: dict) -> SiteSettings:
        """Replace the theme, creating the settings row on first use."""
        current = await self.get_current()
        if current:
            current.theme = theme
        else:
            current = SiteSettings(theme=theme)
            self.db.add(current)
        await self.db.commit()
        await self.db.refresh(current)
        return current
