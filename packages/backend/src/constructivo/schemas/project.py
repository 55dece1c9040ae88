"""Pydantic schemas for projects and their emoji reactions.

Learn: Separate "Create" schemas (input) from "Read" schemas (output).
ProjectUpdate has every field optional, so PATCH only touches what's sent.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from constructivo.schemas.base import CamelModel


# ─── Projects ───────────────────────────────────────────

class ProjectCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=100)
    images: list[str] = Field(default_factory=list)
    featured: bool = False


class ProjectUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    images: Optional[list[str]] = None
    featured: Optional[bool] = None


class ProjectRead(CamelModel):
    id: int
    title: str
    description: str
    category: str
    images: list[str]
    featured: bool
    created_at: datetime


# ─── Reactions ──────────────────────────────────────────

class ReactionCreate(CamelModel):
    emoji: str = Field(..., min_length=1, max_length=32)
    session_id: str = Field(..., min_length=1, max_length=255)


class ReactionRead(CamelModel):
    id: int
    project_id: int
    emoji: str
    session_id: str
    created_at: datetime
