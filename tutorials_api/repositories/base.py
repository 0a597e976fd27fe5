from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, Iterable, List, Mapping, Optional, Type, TypeVar

from sqlalchemy import Executable, delete, inspect, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from tutorials_api.core.errors import ConstraintViolation, InvalidQuery, StorageUnavailable
from .query import Criterion, Page, PageRequest, RawQuery, SafeQuery, Sort, page_of

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT")


class BaseRepository(Generic[EntityT]):
    """
    Base class for repositories providing common helpers.

    Subclasses set ``entity`` and express each query as a ``SafeQuery`` (or a
    ``RawQuery`` when literal SQL is needed) handed to the find/update helpers.
    Driver failures are translated into the repository error taxonomy; the
    session is rolled back before the error propagates.
    """

    entity: Type[EntityT]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def _translate_errors(self) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError as exc:
            await self.session.rollback()
            logger.warning("Constraint violation on %s: %s", self._entity_name, exc.orig)
            raise ConstraintViolation(str(exc.orig), details={"entity": self._entity_name}) from exc
        except (OperationalError, InterfaceError, OSError) as exc:
            await self._safe_rollback()
            logger.warning("Storage unavailable for %s: %s", self._entity_name, exc)
            raise StorageUnavailable("Database is unavailable") from exc
        except DBAPIError as exc:
            if not exc.connection_invalidated:
                await self._safe_rollback()
                raise
            await self._safe_rollback()
            logger.warning("Connection invalidated for %s: %s", self._entity_name, exc)
            raise StorageUnavailable("Database connection was lost") from exc

    async def _safe_rollback(self) -> None:
        # The connection may already be gone; the original error is what matters.
        try:
            await self.session.rollback()
        except (DBAPIError, OSError):
            logger.debug("Rollback after storage failure also failed", exc_info=True)

    @property
    def _entity_name(self) -> str:
        entity = getattr(self, "entity", None)
        return entity.__name__ if entity is not None else type(self).__name__

    async def execute(self, statement: Executable, params: Optional[Mapping[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        async with self._translate_errors():
            return await self.session.execute(statement, dict(params or {}))

    async def scalars(self, statement: Executable, params: Optional[Mapping[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[Mapping[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def commit(self) -> None:
        """Commit current transaction."""
        async with self._translate_errors():
            await self.session.commit()

    async def add_all(self, entities: Iterable[Any]) -> None:
        """Add multiple entities to session."""
        self.session.add_all(list(entities))

    async def add(self, entity: Any) -> None:
        """Add a single entity to session."""
        self.session.add(entity)

    @staticmethod
    def _fresh(statement):
        # Reads overwrite identity-map state so bulk updates are visible to later reads.
        return statement.execution_options(populate_existing=True)

    def query(self, where: Optional[Criterion] = None, sort: Optional[Sort] = None) -> SafeQuery:
        """Build a structured query against this repository's entity."""
        return SafeQuery(self.entity, where=where, sort=sort or Sort.unsorted())

    @staticmethod
    def _require_safe(query: Any) -> SafeQuery:
        if isinstance(query, RawQuery):
            raise InvalidQuery(
                "Dynamic sorting and pagination are not supported for raw SQL statements."
            )
        if not isinstance(query, SafeQuery):
            raise InvalidQuery(f"Expected a structured query, got {type(query).__name__}.")
        return query

    async def find_many(self, query: SafeQuery, sort: Optional[Sort] = None) -> List[EntityT]:
        """Run a structured query, optionally appending a caller-supplied sort."""
        stmt = self._require_safe(query).statement(sort)
        return list(await self.scalars(self._fresh(stmt)))

    async def find_page(self, query: SafeQuery, page_request: PageRequest) -> Page[EntityT]:
        """Run a structured query and return one page plus total counts."""
        query = self._require_safe(query)
        total = (await self.execute(query.count_statement())).scalar_one()
        stmt = (
            query.statement(page_request.sort)
            .offset(page_request.offset)
            .limit(page_request.size)
        )
        rows = list(await self.scalars(self._fresh(stmt)))
        return page_of(rows, total, page_request)

    async def find_many_raw(self, query: RawQuery) -> List[EntityT]:
        """Run a literal SQL statement. Ordering is whatever the SQL says."""
        return list(await self.scalars(self._fresh(query.statement()), query.params))

    async def count(self, query: Optional[SafeQuery] = None) -> int:
        query = self._require_safe(query or self.query())
        return (await self.execute(query.count_statement())).scalar_one()

    def _validate_patch(self, patch: Mapping[str, Any]) -> dict:
        if not patch:
            raise InvalidQuery("Update requires at least one field.")
        columns = {attr.key for attr in inspect(self.entity).column_attrs}
        pk = {col.key for col in inspect(self.entity).primary_key}
        unknown = set(patch) - columns
        if unknown:
            raise InvalidQuery(f"Unknown field(s) in update: {sorted(unknown)}")
        if set(patch) & pk:
            raise InvalidQuery("Primary key fields cannot be updated.")
        return dict(patch)

    async def update_many(self, where: Criterion, patch: Mapping[str, Any]) -> int:
        """
        Apply ``patch`` to every row matching ``where`` in a single committed
        transaction. Returns the number of affected rows.
        """
        values = self._validate_patch(patch)
        clause = self.query(where).where_clause()
        stmt = (
            update(self.entity)
            .where(clause)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.execute(stmt)
        await self.commit()
        logger.debug("Updated %s %s row(s) with %s", result.rowcount, self._entity_name, values)
        return result.rowcount

    async def delete_many(self, where: Optional[Criterion] = None) -> int:
        """Delete every row matching ``where`` (all rows when omitted) and commit."""
        stmt = delete(self.entity).execution_options(synchronize_session=False)
        if where is not None:
            stmt = stmt.where(self.query(where).where_clause())
        result = await self.execute(stmt)
        await self.commit()
        logger.debug("Deleted %s %s row(s)", result.rowcount, self._entity_name)
        return result.rowcount
