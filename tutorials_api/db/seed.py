"""
Database seeding utilities for sample tutorials.

Seeds a handful of tutorials with mixed levels and published flags when the
tutorials table is empty. Running it against a populated table is a no-op.

Usage:
  python -m tutorials_api.db.run_migrations upgrade head
  python -m tutorials_api.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from tutorials_api.db.models.tutorial import Tutorial
from tutorials_api.db.session import get_async_session
from tutorials_api.repositories.tutorials import TutorialRepository

logger = logging.getLogger(__name__)

SAMPLE_TUTORIALS = [
    ("Spring Boot Basics", "Getting started with Spring Boot", 1, True),
    ("Java Basics", "Variables, loops and classes", 1, False),
    ("Advanced Java", "Generics, streams and concurrency", 3, True),
    ("SQLAlchemy Queries", "Filtering, ordering and paging with the ORM", 2, True),
    ("FastAPI Routing", "Path, query and body parameters", 2, False),
    ("Async Python", "Coroutines and event loops", 4, False),
    ("Database Migrations", "Schema changes with Alembic", 3, True),
]


def sample_tutorials(now: datetime | None = None) -> List[Tutorial]:
    """Build unsaved sample tutorials, one day apart, oldest first."""
    now = now or datetime.now(tz=timezone.utc)
    start = now - timedelta(days=len(SAMPLE_TUTORIALS))
    return [
        Tutorial(
            title=title,
            description=description,
            level=level,
            published=published,
            created_at=start + timedelta(days=i),
        )
        for i, (title, description, level, published) in enumerate(SAMPLE_TUTORIALS)
    ]


# PUBLIC_INTERFACE
async def seed_tutorials(session: AsyncSession) -> int:
    """
    Insert the sample tutorials if the table is empty.

    Returns:
        Number of tutorials inserted.
    """
    repo = TutorialRepository(session)
    if await repo.count() > 0:
        logger.info("Tutorials already present; skipping seed.")
        return 0
    rows = sample_tutorials()
    await repo.add_all(rows)
    await repo.commit()
    return len(rows)


# PUBLIC_INTERFACE
async def seed_all() -> int:
    """Seed using a standalone session from the configured engine."""
    inserted = 0
    async for session in get_async_session():
        inserted = await seed_tutorials(session)
    return inserted


# PUBLIC_INTERFACE
def main() -> None:
    """Entrypoint to run the asynchronous seeding."""
    asyncio.run(seed_all())


if __name__ == "__main__":
    main()
