import os
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Configure the app for an in-memory database before any tutorials_api import.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("AUTO_SEED", "false")

from tutorials_api.db import Base, enable_sqlite_case_sensitive_like  # noqa: E402
from tutorials_api.repositories.tutorials import TutorialRepository  # noqa: E402

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)

# (title, description, level, published); ids are assigned 1..7 in this order,
# created_at is BASE_TIME + index days.
SAMPLE = [
    ("Java Basics", "Intro to the Java language", 1, False),
    ("Advanced Java", "Generics, streams and lambdas", 3, True),
    ("Abstract Classes", "Modelling with inheritance", 2, True),
    ("Python 100%_Coverage", "Testing tips", 4, False),
    ("SQL Joins", "Combining tables in java apps", 2, False),
    ("Spring Data Paging", "Page and Sort helpers", 5, True),
    ("Docker Intro", "Containers for beginners", 1, True),
]


def ids(rows):
    return [r.id for r in rows]


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    enable_sqlite_case_sensitive_like(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def repo(session):
    return TutorialRepository(session)


@pytest_asyncio.fixture
async def tutorials(repo):
    """Insert the SAMPLE rows and return them in id order."""
    created = []
    for i, (title, description, level, published) in enumerate(SAMPLE):
        created.append(
            await repo.create(
                title=title,
                description=description,
                level=level,
                published=published,
                created_at=BASE_TIME + timedelta(days=i),
            )
        )
    return created
