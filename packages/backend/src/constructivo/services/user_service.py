"""User service — accounts created by Google sign-in, admin flag management.

Learn: Service layer separates business logic from HTTP routing.
Routes call services, services call the database and commit. Routes
then handle the HTTP concerns (status codes, cache invalidation).
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.db.models import User


class UserNotFoundError(Exception):
    """Raised when a user id doesn't exist."""


class SelfAdminChangeError(Exception):
    """Raised when an admin tries to change their own admin status."""


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def list_admins(self) -> list[User]:
        result = await self.db.execute(
            select(User).where(User.is_admin.is_(True)).order_by(User.id)
        )
        return list(result.scalars().all())

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def get_or_create(self, email: str, name: str) -> User:
        """Find the user for a Google profile, creating it on first sign-in.

        The very first account becomes an admin so a fresh install can be
        administered without touching the database.
        """
        user = await self.get_by_email(email)
        if user:
            return user

        user_count = await self.db.scalar(select(func.count()).select_from(User))
        user = User(email=email, name=name, is_admin=user_count == 0)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def set_admin_status(
        self, user_id: int, is_admin: bool, acting_user_id: int
    ) -> User:
        if user_id == acting_user_id:
            raise SelfAdminChangeError("Cannot modify your own admin status")

        user = await self.db.get(User, user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")

        user.is_admin = is_admin
        await self.db.commit()
        await self.db.refresh(user)
        return user
