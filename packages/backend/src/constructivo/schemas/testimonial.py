"""Pydantic schemas for testimonials.

Lifecycle: submitted (pending) → approved or rejected by an admin.
Only approved testimonials appear on the public site.
"""

from datetime import datetime

from pydantic import Field, model_validator

from constructivo.schemas.base import CamelModel


class TestimonialCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    role: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)


class TestimonialStatusUpdate(CamelModel):
    approved: bool = False
    rejected: bool = False

    @model_validator(mode="after")
    def check_exclusive(self):
        if self.approved and self.rejected:
            raise ValueError("A testimonial can't be both approved and rejected")
        return self

    @property
    def label(self) -> str:
        if self.approved:
            return "approved"
        if self.rejected:
            return "rejected"
        return "updated"


class TestimonialRead(CamelModel):
    id: int
    name: str
    role: str
    content: str
    approved: bool
    rejected: bool
    created_at: datetime
