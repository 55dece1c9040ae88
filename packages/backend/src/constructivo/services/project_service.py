"""Project service — portfolio CRUD and emoji reactions."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.db.models import Project, Reaction


class ProjectNotFoundError(Exception):
    """Raised when a project id doesn't exist."""


class ProjectService:
    """Business logic for the project portfolio."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Projects ───────────────────────────────────────

    async def list_projects(
        self, sort: str = "desc", category: str | None = None
    ) -> list[Project]:
        query = select(Project)
        if category:
            query = query.where(Project.category == category)
        if sort == "asc":
            query = query.order_by(Project.created_at.asc(), Project.id.asc())
        else:
            query = query.order_by(Project.created_at.desc(), Project.id.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_project(self, project_id: int) -> Project:
        project = await self.db.get(Project, project_id)
        if not project:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        return project

    async def create_project(
        self,
        title: str,
        description: str,
        category: str,
        images: list[str] | None = None,
        featured: bool = False,
    ) -> Project:
        project = Project(
            title=title,
            description=description,
            category=category,
            images=images or [],
            featured=featured,
        )
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)
        return project

    async def update_project(self, project_id: int, changes: dict) -> Project:
        """Apply a partial update. Unknown keys are ignored."""
        project = await self.get_project(project_id)
        for field in ("title", "description", "category", "images", "featured"):
            if field in changes:
                setattr(project, field, changes[field])
        await self.db.commit()
        await self.db.refresh(project)
        return project

    async def delete_project(self, project_id: int) -> Project:
        project = await self.get_project(project_id)
        # Reactions first: SQLite doesn't enforce ON DELETE CASCADE by default
        await self.db.execute(delete(Reaction).where(Reaction.project_id == project_id))
        await self.db.delete(project)
        await self.db.commit()
        return project

    # ─── Reactions ──────────────────────────────────────

    async def list_reactions(self, project_id: int) -> list[Reaction]:
        result = await self.db.execute(
            select(Reaction)
            .where(Reaction.project_id == project_id)
            .order_by(Reaction.id)
        )
        return list(result.scalars().all())

    async def add_reaction(self, project_id: int, emoji: str, session_id: str) -> Reaction:
        await self.get_project(project_id)
        reaction = Reaction(project_id=project_id, emoji=emoji, session_id=session_id)
        self.db.add(reaction)
        await self.db.commit()
        await self.db.refresh(reaction)
        return reaction
