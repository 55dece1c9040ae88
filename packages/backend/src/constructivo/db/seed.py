"""Demo data for local development.

Inserts a small, realistic data set through the ORM: an admin and a
regular user, three portfolio projects, two approved testimonials, a
welcome notification for each user, the site theme, and a couple of
reactions. Refuses to run on a database that already has users.
"""

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.db.models import (
    Notification,
    Project,
    Reaction,
    SiteSettings,
    Testimonial,
    User,
)

logger = structlog.get_logger()

DEMO_PROJECTS = [
    {
        "title": "Downtown Houston Office Complex",
        "description": "A modern 20-story office building featuring sustainable "
        "design and smart technology integration.",
        "category": "Commercial",
        "images": [
            "https://images.unsplash.com/photo-1486406146926-c627a92ad1ab",
            "https://images.unsplash.com/photo-1545041552-4d96bc73b740",
        ],
        "featured": True,
    },
    {
        "title": "Luxury Residential Development",
        "description": "High-end residential community with premium amenities "
        "and contemporary architecture.",
        "category": "Residential",
        "images": [
            "https://images.unsplash.com/photo-1600596542815-ffad4c1539a9",
            "https://images.unsplash.com/photo-1600607687939-ce8a6c25118c",
        ],
        "featured": True,
    },
    {
        "title": "Mixed-Use Development Project",
        "description": "Combined retail and office space with modern amenities "
        "and excellent accessibility.",
        "category": "Commercial",
        "images": [
            "https://images.unsplash.com/photo-1577495508048-b635879837f1",
            "https://images.unsplash.com/photo-1577495508326-19a3be51a526",
        ],
        "featured": False,
    },
]

DEMO_TESTIMONIALS = [
    {
        "name": "John Smith",
        "role": "Property Developer",
        "content": "Exceptional work on our downtown project. The team's attention "
        "to detail and commitment to quality was outstanding.",
    },
    {
        "name": "Sarah Johnson",
        "role": "Business Owner",
        "content": "The renovation of our retail space exceeded expectations. "
        "Professional team and excellent communication throughout.",
    },
]

DEMO_THEME = {
    "primary": "#2563eb",
    "variant": "professional",
    "appearance": "system",
    "radius": 0.5,
}


class AlreadySeededError(Exception):
    """The database already contains users."""


async def seed_demo_data(session: AsyncSession) -> dict[str, int]:
    """Insert the demo data set and return row counts per table."""
    existing = await session.scalar(select(func.count()).select_from(User))
    if existing:
        raise AlreadySeededError(f"database already has {existing} user(s)")

    admin = User(email="admin@houston-construction.com", name="Admin User", is_admin=True)
    regular = User(email="user@houston-construction.com", name="Regular User")
    session.add_all([admin, regular])

    projects = [Project(**data) for data in DEMO_PROJECTS]
    session.add_all(projects)

    session.add_all(
        Testimonial(**data, approved=True, rejected=False) for data in DEMO_TESTIMONIALS
    )
    await session.flush()

    session.add_all([
        Notification(
            user_id=admin.id,
            title="New Project Approval",
            message="Downtown Houston Office Complex has been approved for construction.",
            type="system",
        ),
        Notification(
            user_id=regular.id,
            title="Welcome!",
            message="Welcome to Houston Construction Project Management System.",
            type="system",
        ),
    ])
    session.add(SiteSettings(theme=dict(DEMO_THEME)))
    session.add_all([
        Reaction(project_id=projects[0].id, emoji="👍", session_id="sample-session-1"),
        Reaction(project_id=projects[0].id, emoji="❤️", session_id="sample-session-2"),
    ])
    await session.commit()

    counts = {
        "users": 2,
        "projects": len(projects),
        "testimonials": len(DEMO_TESTIMONIALS),
        "notifications": 2,
        "settings": 1,
        "reactions": 2,
    }
    logger.info("seed.completed", **counts)
    return counts
