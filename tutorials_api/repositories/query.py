"""
Structured query model for repositories.

Two statement variants exist:

- ``SafeQuery``: criteria and ordering expressed in terms of the entity's mapped
  attributes. Field names are resolved against a whitelist (the entity's mapped
  columns), so a caller-supplied ``Sort`` or ``PageRequest`` can be composed with
  it safely.
- ``RawQuery``: literal SQL in the storage engine's dialect with named bind
  parameters. It has no sort or paging attribute; reordering opaque SQL text at
  runtime is not supported.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from sqlalchemy import Select, and_, func, inspect, or_, select, text
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import ColumnElement

from tutorials_api.core.errors import InvalidQuery, InvalidRange

T = TypeVar("T")
R = TypeVar("R")

# Wire names accepted in sort specifications in addition to attribute names.
FIELD_ALIASES: Dict[str, str] = {"createdAt": "created_at"}


class Operator(str, Enum):
    EQ = "eq"
    GE = "ge"
    LE = "le"
    BETWEEN = "between"
    CONTAINS = "contains"
    ICONTAINS = "icontains"


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: str) -> "Direction":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidQuery(f"Invalid sort direction '{value}'; expected 'asc' or 'desc'.") from None


@dataclass(frozen=True)
class Condition:
    """A single ``field <operator> value`` predicate."""
    field: str
    operator: Operator
    value: Any


@dataclass(frozen=True)
class AllOf:
    """Conjunction of criteria."""
    criteria: Tuple["Criterion", ...]


@dataclass(frozen=True)
class AnyOf:
    """Disjunction of criteria."""
    criteria: Tuple["Criterion", ...]


Criterion = Union[Condition, AllOf, AnyOf]


def all_of(*criteria: Criterion) -> AllOf:
    return AllOf(tuple(criteria))


def any_of(*criteria: Criterion) -> AnyOf:
    return AnyOf(tuple(criteria))


def eq(field_name: str, value: Any) -> Condition:
    return Condition(field_name, Operator.EQ, value)


def ge(field_name: str, value: Any) -> Condition:
    return Condition(field_name, Operator.GE, value)


def le(field_name: str, value: Any) -> Condition:
    return Condition(field_name, Operator.LE, value)


def between(field_name: str, start: Any, end: Any) -> Condition:
    """Inclusive range on both ends. Fails fast when ``start > end``."""
    if start is None or end is None:
        raise InvalidQuery(f"Range on '{field_name}' requires both bounds.")
    try:
        reversed_bounds = start > end
    except TypeError as exc:
        raise InvalidQuery(
            f"Bounds of '{field_name}' are not comparable.",
            details={"field": field_name, "start": str(start), "end": str(end)},
        ) from exc
    if reversed_bounds:
        raise InvalidRange(
            f"Invalid range on '{field_name}': start {start!r} is after end {end!r}.",
            details={"field": field_name, "start": str(start), "end": str(end)},
        )
    return Condition(field_name, Operator.BETWEEN, (start, end))


def contains(field_name: str, value: str, *, ignore_case: bool = False) -> Condition:
    """Substring match. ``%`` and ``_`` in ``value`` are matched literally."""
    return Condition(field_name, Operator.ICONTAINS if ignore_case else Operator.CONTAINS, value)


@dataclass(frozen=True)
class Order:
    field: str
    direction: Direction = Direction.ASC

    @classmethod
    def asc(cls, field_name: str) -> "Order":
        return cls(field_name, Direction.ASC)

    @classmethod
    def desc(cls, field_name: str) -> "Order":
        return cls(field_name, Direction.DESC)


@dataclass(frozen=True)
class Sort:
    """An ordered list of (field, direction) pairs."""
    orders: Tuple[Order, ...] = ()

    @classmethod
    def by(cls, *orders: Union[Order, str]) -> "Sort":
        return cls(tuple(o if isinstance(o, Order) else Order.asc(o) for o in orders))

    @classmethod
    def unsorted(cls) -> "Sort":
        return cls()

    @classmethod
    def parse(cls, specs: Optional[Iterable[str]]) -> "Sort":
        """
        Parse ``field[,direction]`` strings, e.g. ``["level,desc", "title"]``.

        A single string may also carry several pairs: ``"level,desc,title,asc"``.
        """
        orders: List[Order] = []
        for spec in specs or ():
            parts = [p.strip() for p in spec.split(",") if p.strip()]
            if not parts:
                continue
            i = 0
            while i < len(parts):
                name = parts[i]
                direction = Direction.ASC
                if i + 1 < len(parts) and parts[i + 1].lower() in ("asc", "desc"):
                    direction = Direction.parse(parts[i + 1])
                    i += 1
                if name.lower() in ("asc", "desc"):
                    raise InvalidQuery(f"Sort specification '{spec}' is missing a field name.")
                orders.append(Order(name, direction))
                i += 1
        return cls(tuple(orders))

    def and_(self, other: Optional["Sort"]) -> "Sort":
        if not other:
            return self
        return Sort(self.orders + other.orders)

    def __bool__(self) -> bool:
        return bool(self.orders)

    def __iter__(self):
        return iter(self.orders)


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page index, page size and optional sort."""
    page: int = 0
    size: int = 20
    sort: Sort = field(default_factory=Sort.unsorted)

    def __post_init__(self) -> None:
        if self.page < 0:
            raise InvalidQuery("Page index must not be less than zero.")
        if self.size < 1:
            raise InvalidQuery("Page size must not be less than one.")

    @classmethod
    def of(cls, page: int, size: int, sort: Optional[Sort] = None) -> "PageRequest":
        return cls(page=page, size=size, sort=sort or Sort.unsorted())

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(frozen=True)
class Page(Generic[T]):
    """A slice of a result set plus total-count metadata."""
    content: List[T]
    total_elements: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size) if self.size else 0

    @property
    def number_of_elements(self) -> int:
        return len(self.content)

    @property
    def is_first(self) -> bool:
        return self.page == 0

    @property
    def is_last(self) -> bool:
        return self.page + 1 >= self.total_pages

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    def map(self, fn: Callable[[T], R]) -> "Page[R]":
        return Page([fn(x) for x in self.content], self.total_elements, self.page, self.size)


def _column_attrs(entity: Type[Any]) -> Dict[str, InstrumentedAttribute]:
    mapper = inspect(entity)
    return {attr.key: getattr(entity, attr.key) for attr in mapper.column_attrs}


def _escape_like(value: str, escape: str = "\\") -> str:
    return (
        value.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


@dataclass(frozen=True)
class SafeQuery:
    """
    Structured query over one mapped entity.

    ``where`` and ``sort`` reference attribute names only; they are validated
    against the entity's mapped columns when the statement is built.
    """
    entity: Type[Any]
    where: Optional[Criterion] = None
    sort: Sort = field(default_factory=Sort.unsorted)

    def with_sort(self, sort: Optional[Sort]) -> "SafeQuery":
        """Return a copy with ``sort`` appended after this query's own ordering."""
        return replace(self, sort=self.sort.and_(sort))

    def resolve(self, name: str) -> InstrumentedAttribute:
        columns = _column_attrs(self.entity)
        key = FIELD_ALIASES.get(name, name)
        if key not in columns:
            raise InvalidQuery(
                f"Unknown field '{name}' for {self.entity.__name__}.",
                details={"allowed": sorted(columns)},
            )
        return columns[key]

    def predicate(self, criterion: Criterion) -> ColumnElement[bool]:
        if isinstance(criterion, AllOf):
            return and_(*(self.predicate(c) for c in criterion.criteria))
        if isinstance(criterion, AnyOf):
            return or_(*(self.predicate(c) for c in criterion.criteria))
        if not isinstance(criterion, Condition):
            raise InvalidQuery(f"Unsupported criterion: {criterion!r}")

        column = self.resolve(criterion.field)
        op, value = criterion.operator, criterion.value
        if op is Operator.EQ:
            return column == value
        if op is Operator.GE:
            return column >= value
        if op is Operator.LE:
            return column <= value
        if op is Operator.BETWEEN:
            start, end = value
            return column.between(start, end)
        if op is Operator.CONTAINS:
            return column.like(f"%{_escape_like(str(value))}%", escape="\\")
        if op is Operator.ICONTAINS:
            return column.ilike(f"%{_escape_like(str(value))}%", escape="\\")
        raise InvalidQuery(f"Unsupported operator: {op!r}")

    def order_by(self, extra: Optional[Sort] = None) -> List[ColumnElement[Any]]:
        clauses = []
        seen = set()
        for order in self.sort.and_(extra):
            column = self.resolve(order.field)
            clauses.append(column.desc() if order.direction is Direction.DESC else column.asc())
            seen.add(column.key)
        # Primary key as final tie-breaker keeps ordering (and pages) deterministic.
        for pk in inspect(self.entity).primary_key:
            if pk.key not in seen:
                clauses.append(getattr(self.entity, pk.key).asc())
        return clauses

    def statement(self, extra_sort: Optional[Sort] = None) -> Select:
        stmt = select(self.entity)
        if self.where is not None:
            stmt = stmt.where(self.predicate(self.where))
        return stmt.order_by(*self.order_by(extra_sort))

    def count_statement(self) -> Select:
        stmt = select(func.count()).select_from(self.entity)
        if self.where is not None:
            stmt = stmt.where(self.predicate(self.where))
        return stmt

    def where_clause(self) -> Optional[ColumnElement[bool]]:
        return self.predicate(self.where) if self.where is not None else None


@dataclass(frozen=True)
class RawQuery:
    """
    Literal SQL statement mapped back onto ``entity``.

    Parameters are bound by name (``:is_published``). It has no sort or
    paging attribute.
    """
    entity: Type[Any]
    sql: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def statement(self):
        return select(self.entity).from_statement(text(self.sql))


def page_of(content: Sequence[T], total: int, request: PageRequest) -> Page[T]:
    return Page(list(content), total, request.page, request.size)
