"""Pydantic schemas for users."""

from datetime import datetime

from constructivo.schemas.base import CamelModel


class UserRead(CamelModel):
    id: int
    email: str
    name: str
    is_admin: bool
    created_at: datetime


class AdminStatusUpdate(CamelModel):
    is_admin: bool
