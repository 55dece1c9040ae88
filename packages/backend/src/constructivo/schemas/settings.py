"""Pydantic schemas for site settings (theme)."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from constructivo.schemas.base import CamelModel


class SettingsUpdate(CamelModel):
    theme: dict = Field(..., description="Theme tokens, e.g. {'primary': 'hsl(...)'}")


class SettingsRead(CamelModel):
    id: Optional[int] = None
    theme: dict
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
