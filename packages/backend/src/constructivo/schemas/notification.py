"""Pydantic schemas for notifications and the contact form."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from constructivo.schemas.base import CamelModel


class NotificationRead(CamelModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    read: bool
    created_at: datetime


# ─── Contact form (public → admins' notifications) ─────

class ContactLocation(CamelModel):
    latitude: float
    longitude: float
    address: Optional[str] = None


class ContactCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(..., pattern=r"^\+?[\d\s\-()]+$")
    message: str = Field(..., min_length=10)
    location: Optional[ContactLocation] = None
