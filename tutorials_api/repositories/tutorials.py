from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorials_api.db.models.tutorial import Tutorial
from .base import BaseRepository
from .query import (
    Order,
    Page,
    PageRequest,
    RawQuery,
    SafeQuery,
    Sort,
    all_of,
    any_of,
    between,
    contains,
    eq,
    ge,
)

logger = logging.getLogger(__name__)


class TutorialRepository(BaseRepository[Tutorial]):
    """
    Repository for tutorials.

    Each finder builds a structured query over ``Tutorial`` attributes. Only the
    ``*_native`` finders run literal SQL, and those accept no sort argument.
    Unless a finder states an ordering, results come back in insertion order.
    """

    entity = Tutorial

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    # Plain filters

    async def find_all(self) -> List[Tutorial]:
        return await self.find_many(self.query())

    async def find_all_native(self) -> List[Tutorial]:
        return await self.find_many_raw(
            RawQuery(Tutorial, "SELECT * FROM tutorials ORDER BY id")
        )

    async def find_by_published(self, is_published: bool) -> List[Tutorial]:
        return await self.find_many(self.query(eq("published", is_published)))

    async def find_by_published_native(self, is_published: bool) -> List[Tutorial]:
        return await self.find_many_raw(
            RawQuery(
                Tutorial,
                "SELECT * FROM tutorials t WHERE t.published = :is_published ORDER BY t.id",
                {"is_published": is_published},
            )
        )

    async def find_by_title_like(self, title: str) -> List[Tutorial]:
        """Case-sensitive substring match on title."""
        return await self.find_many(self.query(contains("title", title)))

    async def find_by_title_like_case_insensitive(self, title: str) -> List[Tutorial]:
        return await self.find_many(self.query(contains("title", title, ignore_case=True)))

    # Update

    async def publish_tutorial(self, tutorial_id: int) -> int:
        """
        Mark a tutorial as published.

        Returns:
            Number of affected rows: 1 when the tutorial exists (also when it was
            already published), 0 when no tutorial has this id.
        """
        affected = await self.update_many(eq("id", tutorial_id), {"published": True})
        logger.debug("publish_tutorial id=%s affected=%s", tutorial_id, affected)
        return affected

    # Thresholds and ranges

    async def find_by_level_greater_than_equal(self, level: int) -> List[Tutorial]:
        return await self.find_many(self.query(ge("level", level)))

    async def find_by_date_greater_than_equal(self, date: datetime) -> List[Tutorial]:
        return await self.find_many(self.query(ge("created_at", date)))

    async def find_by_level_between(self, start: int, end: int) -> List[Tutorial]:
        """Inclusive on both ends. Raises InvalidRange when start > end."""
        return await self.find_many(self.query(between("level", start, end)))

    async def find_by_date_between(self, start: datetime, end: datetime) -> List[Tutorial]:
        """Inclusive on both ends. Raises InvalidRange when start > end."""
        return await self.find_many(self.query(between("created_at", start, end)))

    # Combined filters

    async def find_by_level_between_and_published(
        self, *, start: int, end: int, is_published: bool
    ) -> List[Tutorial]:
        criteria = all_of(eq("published", is_published), between("level", start, end))
        return await self.find_many(self.query(criteria))

    async def find_by_title_or_description_containing_case_insensitive(
        self, keyword: str
    ) -> List[Tutorial]:
        criteria = any_of(
            contains("title", keyword, ignore_case=True),
            contains("description", keyword, ignore_case=True),
        )
        return await self.find_many(self.query(criteria))

    async def find_by_title_containing_case_insensitive_and_published(
        self, title: str, is_published: bool, sort: Optional[Sort] = None
    ) -> List[Tutorial]:
        return await self.find_many(self._title_and_published(title, is_published), sort)

    def _title_and_published(self, title: str, is_published: bool) -> SafeQuery:
        return self.query(
            all_of(contains("title", title, ignore_case=True), eq("published", is_published))
        )

    # Fixed ordering

    async def find_all_order_by_level_desc(self) -> List[Tutorial]:
        return await self.find_many(self.query(sort=Sort.by(Order.desc("level"))))

    async def find_by_title_order_by_level_asc(self, title: str) -> List[Tutorial]:
        return await self.find_many(
            self.query(contains("title", title, ignore_case=True), sort=Sort.by(Order.asc("level")))
        )

    async def find_all_published_order_by_created_desc(self) -> List[Tutorial]:
        return await self.find_many(
            self.query(eq("published", True), sort=Sort.by(Order.desc("created_at")))
        )

    # Caller-supplied ordering

    async def find_by_title_and_sort(self, title: str, sort: Sort) -> List[Tutorial]:
        return await self.find_many(self.query(contains("title", title, ignore_case=True)), sort)

    async def find_by_published_and_sort(self, is_published: bool, sort: Sort) -> List[Tutorial]:
        return await self.find_many(self.query(eq("published", is_published)), sort)

    # Pagination

    async def find_all_with_pagination(self, page_request: PageRequest) -> Page[Tutorial]:
        return await self.find_page(self.query(), page_request)

    async def find_by_published_with_pagination(
        self, is_published: bool, page_request: PageRequest
    ) -> Page[Tutorial]:
        return await self.find_page(self.query(eq("published", is_published)), page_request)

    async def find_by_title_with_pagination(
        self, title: str, page_request: PageRequest
    ) -> Page[Tutorial]:
        return await self.find_page(
            self.query(contains("title", title, ignore_case=True)), page_request
        )

    async def find_by_title_and_published_with_pagination(
        self, title: str, is_published: bool, page_request: PageRequest
    ) -> Page[Tutorial]:
        return await self.find_page(self._title_and_published(title, is_published), page_request)

    # CRUD

    async def get_by_id(self, tutorial_id: int) -> Optional[Tutorial]:
        stmt = select(Tutorial).where(Tutorial.id == tutorial_id)
        return await self.scalar_one_or_none(self._fresh(stmt))

    async def exists_by_id(self, tutorial_id: int) -> bool:
        return await self.count(self.query(eq("id", tutorial_id))) > 0

    async def save(self, tutorial: Tutorial) -> Tutorial:
        """Insert (or flush changes to) a tutorial and return it refreshed."""
        await self.add(tutorial)
        await self.commit()
        async with self._translate_errors():
            await self.session.refresh(tutorial)
        return tutorial

    async def create(self, **fields: Any) -> Tutorial:
        return await self.save(Tutorial(**fields))

    async def delete_by_id(self, tutorial_id: int) -> int:
        return await self.delete_many(eq("id", tutorial_id))

    async def delete_all(self) -> int:
        return await self.delete_many()
