from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import Settings, get_settings


_SETTINGS = get_settings()
_ENGINE: AsyncEngine | None = None
_SESSION_MAKER: async_sessionmaker[AsyncSession] | None = None


# PUBLIC_INTERFACE
def enable_sqlite_case_sensitive_like(engine: AsyncEngine) -> None:
    """
    Make LIKE case-sensitive on every new SQLite connection of the engine.

    SQLite's LIKE ignores ASCII case by default, unlike PostgreSQL. Case-insensitive
    filters lower() both sides explicitly, so they are unaffected.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_case_sensitive_like(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA case_sensitive_like = ON")
        cursor.close()


# PUBLIC_INTERFACE
def build_engine(settings: Settings) -> AsyncEngine:
    """Create an AsyncEngine for the configured database."""
    engine = create_async_engine(
        settings.async_database_url,
        echo=settings.SQL_ECHO,
        pool_pre_ping=True,
    )
    if settings.is_sqlite:
        enable_sqlite_case_sensitive_like(engine)
    return engine


def _ensure_engine_initialized() -> None:
    """
    Lazily initialize the AsyncEngine and session maker.
    """
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is None:
        _ENGINE = build_engine(_SETTINGS)
    if _SESSION_MAKER is None:
        _SESSION_MAKER = async_sessionmaker(
            bind=_ENGINE, expire_on_commit=False, autoflush=False, autocommit=False
        )


# PUBLIC_INTERFACE
def get_engine() -> AsyncEngine:
    """Return the global AsyncEngine instance."""
    _ensure_engine_initialized()
    assert _ENGINE is not None
    return _ENGINE


# PUBLIC_INTERFACE
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession suitable for FastAPI dependency injection.
    Ensures engine/session factory is initialized.
    """
    _ensure_engine_initialized()
    assert _SESSION_MAKER is not None
    async with _SESSION_MAKER() as session:
        yield session
