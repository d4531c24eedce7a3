"""페이지네이션 유틸리티 모듈.

Pagination utility module for SQLAlchemy async queries.

- PageRequest: 0부터 시작하는 페이지 번호 + 크기 + 정렬 (zero-based page, size, sort)
- Page: 전체 개수를 함께 조회 (content plus an eagerly counted total)
- Slice: 전체 개수 없이 다음 페이지 존재 여부만 (size + 1 rows fetched, no count query)

Both need a deterministic sort order to paginate stably across calls. This is a
caller obligation; unsorted requests are not rejected.
"""

import math
from enum import Enum
from typing import Any, Callable, Generic, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberdb.query.support import QueryContext
from memberdb.utils.exceptions import InvalidQueryError

T = TypeVar("T")
R = TypeVar("R")


class Direction(str, Enum):
    """정렬 방향 — Sort direction."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def from_string(cls, value: str) -> "Direction":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidQueryError(f"Invalid sort direction '{value}'; use 'asc' or 'desc'") from None


class Order(BaseModel):
    """단일 정렬 조건 — One sort key: property path and direction."""

    model_config = ConfigDict(frozen=True)

    field: str
    direction: Direction = Direction.ASC
    ignore_case: bool = False

    @property
    def is_ascending(self) -> bool:
        return self.direction is Direction.ASC


class Sort(BaseModel):
    """정렬 조건 목록.

    Ordered list of sort keys.

    Example:
        Sort.by("username").descending()
        Sort.parse("username,desc", "age")
    """

    model_config = ConfigDict(frozen=True)

    orders: tuple[Order, ...] = ()

    @classmethod
    def by(cls, *fields: str, direction: Direction = Direction.ASC) -> "Sort":
        return cls(orders=tuple(Order(field=f, direction=direction) for f in fields))

    @classmethod
    def unsorted(cls) -> "Sort":
        return cls()

    @classmethod
    def parse(cls, *values: str) -> "Sort":
        """"prop[,prop...][,asc|desc]" 형식의 문자열을 정렬로 변환합니다.

        Parse web-style sort parameters. A trailing direction applies to every
        property listed before it in the same value.
        """
        orders: list[Order] = []
        for value in values:
            parts: list[str] = [p.strip() for p in value.split(",") if p.strip()]
            if not parts:
                continue
            direction: Direction = Direction.ASC
            if len(parts) > 1 and parts[-1].lower() in ("asc", "desc"):
                direction = Direction.from_string(parts.pop())
            orders.extend(Order(field=p, direction=direction) for p in parts)
        return cls(orders=tuple(orders))

    @property
    def is_sorted(self) -> bool:
        return bool(self.orders)

    def and_(self, other: "Sort") -> "Sort":
        return Sort(orders=self.orders + other.orders)

    def ascending(self) -> "Sort":
        return Sort(orders=tuple(o.model_copy(update={"direction": Direction.ASC}) for o in self.orders))

    def descending(self) -> "Sort":
        return Sort(orders=tuple(o.model_copy(update={"direction": Direction.DESC}) for o in self.orders))

    def get_order_for(self, field: str) -> Order | None:
        return next((o for o in self.orders if o.field == field), None)


class PageRequest(BaseModel):
    """페이지 요청 — Zero-based page index, page size and sort.

    Attributes:
        page: 페이지 번호, 0부터 시작 (Page index, zero-based)
        size: 페이지당 항목 수 (Items per page, at least 1)
        sort: 정렬 조건 (Sort order)
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(0, ge=0)
    size: int = Field(20, ge=1)
    sort: Sort = Field(default_factory=Sort.unsorted)

    @classmethod
    def of(cls, page: int, size: int, sort: Sort | None = None) -> "PageRequest":
        return cls(page=page, size=size, sort=sort or Sort.unsorted())

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    def next(self) -> "PageRequest":
        return self.model_copy(update={"page": self.page + 1})

    def previous_or_first(self) -> "PageRequest":
        return self.model_copy(update={"page": self.page - 1}) if self.has_previous else self

    def first(self) -> "PageRequest":
        return self.model_copy(update={"page": 0})


class Slice(BaseModel, Generic[T]):
    """슬라이스 결과 모델 — 전체 개수 없이 다음 페이지 여부만 제공.

    Slice result: a window of content plus whether more data exists.

    Attributes:
        content: 현재 페이지 항목 목록 (Items for the current window)
        number: 현재 페이지 번호, 0부터 시작 (Page index, zero-based)
        size: 요청한 페이지 크기 (Requested page size)
        has_next: 다음 페이지 존재 여부 (Whether another page follows)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: list[T]
    number: int
    size: int
    has_next: bool

    @computed_field
    @property
    def number_of_elements(self) -> int:
        return len(self.content)

    @computed_field
    @property
    def is_first(self) -> bool:
        return self.number == 0

    @computed_field
    @property
    def is_last(self) -> bool:
        return not self.has_next

    @computed_field
    @property
    def has_previous(self) -> bool:
        return self.number > 0

    @property
    def has_content(self) -> bool:
        return bool(self.content)

    @classmethod
    def of(cls, content: Sequence[Any], pageable: PageRequest, has_next: bool) -> "Slice[Any]":
        return cls(content=list(content), number=pageable.page, size=pageable.size, has_next=has_next)

    def map(self, converter: Callable[[T], R]) -> "Slice[R]":
        """항목 변환 (예: 엔티티 → DTO) — Convert every item, keeping the paging metadata."""
        return Slice(
            content=[converter(item) for item in self.content],
            number=self.number,
            size=self.size,
            has_next=self.has_next,
        )


class Page(Slice[T], Generic[T]):
    """페이지네이션 결과 모델 — 전체 개수 포함.

    Page result: a slice plus the total element count.
    total_pages = ceil(total_elements / size); has_next is false exactly on the last page.
    """

    total_elements: int

    @computed_field
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size)

    @classmethod
    def of(cls, content: Sequence[Any], pageable: PageRequest, total: int) -> "Page[Any]":  # type: ignore[override]
        total_pages: int = math.ceil(total / pageable.size)
        return cls(
            content=list(content),
            number=pageable.page,
            size=pageable.size,
            has_next=pageable.page + 1 < total_pages,
            total_elements=total,
        )

    def map(self, converter: Callable[[T], R]) -> "Page[R]":
        return Page(
            content=[converter(item) for item in self.content],
            number=self.number,
            size=self.size,
            has_next=self.has_next,
            total_elements=self.total_elements,
        )


def _root_entity(stmt: Select) -> type:
    descriptions: list[dict[str, Any]] = stmt.column_descriptions
    entity = descriptions[0].get("entity") if descriptions else None
    if entity is None:
        raise InvalidQueryError("Cannot determine the root entity to sort by")
    return entity


def apply_sort(
    stmt: Select,
    sort: Sort,
    model: type | None = None,
    ctx: QueryContext | None = None,
) -> Select:
    """SELECT 문에 정렬을 적용합니다.

    Apply a Sort to a statement. Property paths are resolved against the root
    entity; unknown properties raise InvalidQueryError. Association paths add
    outer joins unless a QueryContext that already applied them is passed in.
    """
    if not sort.is_sorted:
        return stmt

    local: QueryContext = ctx or QueryContext(model or _root_entity(stmt))
    clauses: list[Any] = []
    for order in sort.orders:
        column: Any = local.column(order.field, outer=True)
        if order.ignore_case:
            column = func.lower(column)
        clauses.append(column.asc() if order.is_ascending else column.desc())

    if ctx is None:
        stmt = local.apply(stmt)
    return stmt.order_by(*clauses)


def _window_rows(result: Any, scalars: bool) -> list[Any]:
    if scalars:
        return list(result.scalars().unique().all())
    return list(result.all())


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    pageable: PageRequest,
    count_query: Select[Any] | None = None,
    scalars: bool = True,
    apply_pageable_sort: bool = True,
) -> Page[Any]:
    """SQLAlchemy 쿼리에 대한 페이지네이션을 수행합니다.

    Execute a paginated query, returning a Page. Runs two queries: one for the
    total count (the given count query, or the base query wrapped in a subquery)
    and one for the window with OFFSET/LIMIT.

    Args:
        db: 비동기 DB 세션 (Async database session)
        query: 기본 SELECT 쿼리 (Base query to paginate)
        pageable: 페이지 요청 (Zero-based page request)
        count_query: 별도 카운트 쿼리, 조인 생략용 (Optional lighter count query)
        scalars: 엔티티 단일 컬럼 여부 (True for entity queries, False for row projections)
        apply_pageable_sort: pageable의 정렬 적용 여부 (Apply pageable.sort to the query)

    Returns:
        Page: 현재 페이지 항목과 전체 개수 (Window content with total count)
    """
    # 전체 개수 조회 — 서브쿼리로 감싸서 COUNT 실행 (Count total via subquery)
    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total: int = (await db.execute(count_query)).scalar() or 0

    if apply_pageable_sort:
        query = apply_sort(query, pageable.sort)

    # 오프셋 계산 및 페이지 적용 — Apply OFFSET/LIMIT window
    result = await db.execute(query.offset(pageable.offset).limit(pageable.size))
    return Page.of(_window_rows(result, scalars), pageable, total)


async def slice_(
    db: AsyncSession,
    query: Select[Any],
    pageable: PageRequest,
    scalars: bool = True,
    apply_pageable_sort: bool = True,
) -> Slice[Any]:
    """전체 개수 없이 슬라이스를 조회합니다.

    Fetch a Slice without a count query: size + 1 rows are requested and the
    extra row only signals that a next page exists; it is trimmed from content.
    """
    if apply_pageable_sort:
        query = apply_sort(query, pageable.sort)

    result = await db.execute(query.offset(pageable.offset).limit(pageable.size + 1))
    rows: list[Any] = _window_rows(result, scalars)
    return Slice.of(rows[: pageable.size], pageable, has_next=len(rows) > pageable.size)
