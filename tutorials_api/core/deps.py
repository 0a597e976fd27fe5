from __future__ import annotations

from typing import List, Optional

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tutorials_api.core.settings import get_app_settings
from tutorials_api.db.session import get_async_session
from tutorials_api.repositories.query import PageRequest, Sort
from tutorials_api.repositories.tutorials import TutorialRepository

_APP_SETTINGS = get_app_settings()


# PUBLIC_INTERFACE
async def get_tutorial_repository(
    session: AsyncSession = Depends(get_async_session),
) -> TutorialRepository:
    """Return a TutorialRepository bound to the request-scoped session."""
    return TutorialRepository(session)


# PUBLIC_INTERFACE
def get_sort(
    sort: Optional[List[str]] = Query(
        None,
        description="Sort as field[,asc|desc]; repeat the parameter for several fields.",
        examples=["level,desc"],
    ),
) -> Sort:
    """
    Parse the repeatable `sort` query parameter.

    Raises:
        InvalidQuery: for a malformed direction or missing field name. Unknown
        fields are rejected later, when the query is built.
    """
    return Sort.parse(sort)


# PUBLIC_INTERFACE
def get_page_request(
    page: int = Query(0, ge=0, description="Zero-based page index"),
    size: int = Query(
        _APP_SETTINGS.DEFAULT_PAGE_SIZE,
        ge=1,
        le=_APP_SETTINGS.MAX_PAGE_SIZE,
        description="Page size",
    ),
    sort: Sort = Depends(get_sort),
) -> PageRequest:
    """Build a PageRequest from `page`, `size` and `sort` query parameters."""
    return PageRequest.of(page, size, sort)
