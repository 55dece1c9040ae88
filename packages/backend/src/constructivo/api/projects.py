"""Project portfolio API and emoji reactions.

Reads and reactions are public; create/update/delete need an admin.
Project writes don't broadcast a cache invalidation; admin tabs pick up
the change on their next refetch of /api/projects.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.auth.dependencies import require_admin
from constructivo.db.engine import get_db
from constructivo.schemas.project import (
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
    ReactionCreate,
    ReactionRead,
)
from constructivo.services.project_service import ProjectNotFoundError, ProjectService

router = APIRouter(prefix="/projects")


def _svc(db: AsyncSession = Depends(get_db)) -> ProjectService:
    return ProjectService(db)


# ─── Projects ───────────────────────────────────────────

@router.get("", response_model=list[ProjectRead])
async def list_projects(
    sort: Literal["asc", "desc"] = Query("desc"),
    category: Optional[str] = Query(None),
    svc: ProjectService = Depends(_svc),
):
    return await svc.list_projects(sort=sort, category=category)


@router.post(
    "",
    response_model=ProjectRead,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
async def create_project(body: ProjectCreate, svc: ProjectService = Depends(_svc)):
    return await svc.create_project(
        title=body.title,
        description=body.description,
        category=body.category,
        images=body.images,
        featured=body.featured,
    )


@router.patch(
    "/{project_id}",
    response_model=ProjectRead,
    dependencies=[Depends(require_admin)],
)
async def update_project(
    project_id: int,
    body: ProjectUpdate,
    svc: ProjectService = Depends(_svc),
):
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    try:
        return await svc.update_project(project_id, changes)
    except ProjectNotFoundError:
        raise HTTPException(status_code=404, detail="Project not found")


@router.delete(
    "/{project_id}",
    response_model=ProjectRead,
    dependencies=[Depends(require_admin)],
)
async def delete_project(project_id: int, svc: ProjectService = Depends(_svc)):
    try:
        return await svc.delete_project(project_id)
    except ProjectNotFoundError:
        raise HTTPException(status_code=404, detail="Project not found")


# ─── Reactions ──────────────────────────────────────────

@router.get("/{project_id}/reactions", response_model=list[ReactionRead])
async def list_reactions(project_id: int, svc: ProjectService = Depends(_svc)):
    return await svc.list_reactions(project_id)


@router.post(
    "/{project_id}/reactions",
    response_model=ReactionRead,
    status_code=201,
)
async def add_reaction(
    project_id: int,
    body: ReactionCreate,
    svc: ProjectService = Depends(_svc),
):
    try:
        return await svc.add_reaction(project_id, emoji=body.emoji, session_id=body.session_id)
    except ProjectNotFoundError:
        raise HTTPException(status_code=404, detail="Project not found")
