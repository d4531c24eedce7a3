"""선언형 파생 쿼리 — 필드, 연산자, 파라미터로 구성된 조회 정의.

Declared derived queries.

메소드 이름을 해석하지 않고, 조건을 구조체로 명시합니다.
Nothing is parsed from method names. A finder is a tagged structure (field path,
operator, parameter name) translated deterministically into a SELECT:

    by_username_and_age = Finder(
        Member,
        Criterion("username"),
        Criterion("age", Operator.GT),
    )
    await by_username_and_age.list(db, username="member", age=15)

Finders validate every path, operator and sort key when they are constructed,
so a finder declared as a class attribute fails at import time rather than on
its first call.
"""

from enum import Enum
from typing import Any, Generic, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Select, false, func, not_, select, true
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from memberdb.query.support import QueryContext, fetch_one_or_none, resolve_association, resolve_path
from memberdb.utils.exceptions import InvalidQueryError
from memberdb.utils.pagination import Page, PageRequest, Slice, Sort, apply_sort, paginate, slice_

ModelType = TypeVar("ModelType")


class Operator(str, Enum):
    """비교 연산자 — Comparison operators supported by criteria and specifications."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    NOT_LIKE = "not_like"
    STARTING_WITH = "starting_with"
    ENDING_WITH = "ending_with"
    CONTAINING = "containing"
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    TRUE = "true"
    FALSE = "false"

    @property
    def takes_value(self) -> bool:
        return self not in _NO_VALUE_OPERATORS

    @property
    def is_string_match(self) -> bool:
        return self in _STRING_OPERATORS


_NO_VALUE_OPERATORS: frozenset[Operator] = frozenset(
    {Operator.IS_NULL, Operator.IS_NOT_NULL, Operator.TRUE, Operator.FALSE}
)
_STRING_OPERATORS: frozenset[Operator] = frozenset(
    {Operator.LIKE, Operator.NOT_LIKE, Operator.STARTING_WITH, Operator.ENDING_WITH, Operator.CONTAINING}
)


def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def build_clause(column: Any, operator: Operator, value: Any = None, ignore_case: bool = False) -> Any:
    """컬럼, 연산자, 값을 SQL 조건식으로 변환합니다.

    Translate (column, operator, value) into a SQL boolean expression.

    Raises:
        InvalidQueryError: 연산자와 값이 맞지 않을 때 (Value does not fit the operator)
    """
    if ignore_case and isinstance(value, str):
        column = func.lower(column)
        value = value.lower()

    if operator is Operator.EQ:
        return column.is_(None) if value is None else column == value
    if operator is Operator.NE:
        return column.is_not(None) if value is None else column != value
    if operator is Operator.IS_NULL:
        return column.is_(None)
    if operator is Operator.IS_NOT_NULL:
        return column.is_not(None)
    if operator is Operator.TRUE:
        return column.is_(true())
    if operator is Operator.FALSE:
        return column.is_(false())

    if value is None:
        raise InvalidQueryError(f"Operator '{operator.value}' requires a non-null value")

    if operator is Operator.GT:
        return column > value
    if operator is Operator.GTE:
        return column >= value
    if operator is Operator.LT:
        return column < value
    if operator is Operator.LTE:
        return column <= value

    if operator.is_string_match:
        if not isinstance(value, str):
            raise InvalidQueryError(f"Operator '{operator.value}' requires a string value")
        if operator is Operator.LIKE:
            return column.like(value)
        if operator is Operator.NOT_LIKE:
            return not_(column.like(value))
        if operator is Operator.STARTING_WITH:
            return column.startswith(value, autoescape=True)
        if operator is Operator.ENDING_WITH:
            return column.endswith(value, autoescape=True)
        return column.contains(value, autoescape=True)

    if operator in (Operator.IN, Operator.NOT_IN):
        if not _is_collection(value):
            raise InvalidQueryError(f"Operator '{operator.value}' requires a collection value")
        clause = column.in_(list(value))
        return clause if operator is Operator.IN else not_(clause)

    if operator is Operator.BETWEEN:
        if not _is_collection(value) or len(value) != 2:
            raise InvalidQueryError("Operator 'between' requires a (low, high) pair")
        low, high = tuple(value)
        return column.between(low, high)

    raise InvalidQueryError(f"Unsupported operator '{operator}'")  # pragma: no cover


class Criterion(BaseModel):
    """조회 조건 하나 — One condition of a finder.

    Attributes:
        field: 속성 경로, 예: "age", "team.name" (Property path)
        operator: 비교 연산자 (Comparison operator)
        param: 바인딩 파라미터 이름, 기본값은 경로의 마지막 이름
               (Bound parameter name; defaults to the last path segment)
        ignore_case: 대소문자 무시 (Case-insensitive comparison for strings)
    """

    model_config = ConfigDict(frozen=True)

    field: str
    operator: Operator = Operator.EQ
    param: str | None = None
    ignore_case: bool = False

    def __init__(self, field: str, operator: Operator = Operator.EQ, **data: Any) -> None:
        super().__init__(field=field, operator=operator, **data)

    @property
    def parameter_name(self) -> str | None:
        if not self.operator.takes_value:
            return None
        return self.param or self.field.rsplit(".", 1)[-1]


class Finder(Generic[ModelType]):
    """선언형 파생 쿼리.

    Declared derived query over one mapped class.

    Args:
        model: 조회 대상 매핑 클래스 (Mapped class to select)
        *criteria: AND로 결합되는 조건 (Conditions combined with AND)
        order_by: 고정 정렬 (Fixed sort applied before any pageable sort)
        limit: 최대 건수, 예: Top3 (Maximum rows, e.g. a "top 3" finder)
        fetch: 함께 로드할 연관관계 경로 (Associations eagerly loaded with a join)
        distinct: 중복 제거 여부 (Select distinct rows)

    Raises:
        InvalidQueryError: 선언이 잘못된 경우, 생성 시점에 즉시 발생
                           (Raised immediately on construction for a malformed declaration)
    """

    def __init__(
        self,
        model: type[ModelType],
        *criteria: Criterion,
        order_by: Sort | None = None,
        limit: int | None = None,
        fetch: Sequence[str] = (),
        distinct: bool = False,
    ) -> None:
        self.model: type[ModelType] = model
        self.criteria: tuple[Criterion, ...] = criteria
        self.order_by: Sort = order_by or Sort.unsorted()
        self.limit: int | None = limit
        self.fetch: tuple[str, ...] = tuple(fetch)
        self.distinct: bool = distinct
        self._validate()

    def _validate(self) -> None:
        for criterion in self.criteria:
            resolve_path(self.model, criterion.field)
            if criterion.ignore_case and criterion.operator in (Operator.IN, Operator.NOT_IN, Operator.BETWEEN):
                raise InvalidQueryError(f"ignore_case is not supported with operator '{criterion.operator.value}'")
        for order in self.order_by.orders:
            resolve_path(self.model, order.field)
        for path in self.fetch:
            resolve_association(self.model, path)
        if self.limit is not None and self.limit < 1:
            raise InvalidQueryError("limit must be at least 1")

    @property
    def parameters(self) -> tuple[str, ...]:
        """바인딩할 파라미터 이름 — Names that must be supplied on every call."""
        names: list[str] = []
        for criterion in self.criteria:
            name = criterion.parameter_name
            if name is not None and name not in names:
                names.append(name)
        return tuple(names)

    def _check_params(self, params: dict[str, Any]) -> None:
        expected: tuple[str, ...] = self.parameters
        missing: list[str] = [name for name in expected if name not in params]
        if missing:
            raise InvalidQueryError(f"Missing query parameter(s): {', '.join(missing)}")
        unexpected: list[str] = sorted(set(params) - set(expected))
        if unexpected:
            raise InvalidQueryError(f"Unexpected query parameter(s): {', '.join(unexpected)}")

    def _filtered(self, ctx: QueryContext, stmt: Select, params: dict[str, Any]) -> Select:
        self._check_params(params)
        clauses: list[Any] = [
            build_clause(ctx.column(c.field), c.operator, params.get(c.parameter_name or ""), c.ignore_case)
            for c in self.criteria
        ]
        return stmt.where(*clauses) if clauses else stmt

    def statement(self, sort: Sort | None = None, with_limit: bool = True, **params: Any) -> Select:
        """조회 SELECT 문을 생성합니다 — Build the entity SELECT for the given parameters."""
        effective_sort: Sort = self.order_by.and_(sort) if sort is not None else self.order_by
        ctx: QueryContext = QueryContext(self.model)
        stmt: Select = self._filtered(ctx, select(self.model), params)
        # 정렬 경로의 조인도 한 번에 적용 — Register sort joins before applying them
        for order in effective_sort.orders:
            ctx.column(order.field, outer=True)
        stmt = ctx.apply(stmt)
        stmt = apply_sort(stmt, effective_sort, ctx=ctx)

        for path in self.fetch:
            chain = resolve_association(self.model, path)
            option = joinedload(chain[0])
            for relationship in chain[1:]:
                option = option.joinedload(relationship)
            stmt = stmt.options(option)
        if self.distinct:
            stmt = stmt.distinct()
        if with_limit and self.limit is not None:
            stmt = stmt.limit(self.limit)
        return stmt

    def count_statement(self, **params: Any) -> Select:
        """카운트 SELECT 문 — COUNT over the same filters, without fetch joins or sort."""
        ctx: QueryContext = QueryContext(self.model)
        stmt: Select = self._filtered(ctx, select(func.count()).select_from(self.model), params)
        return ctx.apply(stmt)

    async def window(self, db: AsyncSession, pageable: PageRequest, **params: Any) -> list[ModelType]:
        """내용만 조회 (카운트 없음) — Content of one page only, no count query."""
        stmt: Select = self.statement(sort=pageable.sort, with_limit=False, **params)
        result = await db.execute(stmt.offset(pageable.offset).limit(pageable.size))
        return list(result.scalars().unique().all())

    # 아래 메소드는 내장 list/slice를 가림 — Methods below shadow the builtins list and slice
    async def list(self, db: AsyncSession, **params: Any) -> list[ModelType]:
        result = await db.execute(self.statement(**params))
        return list(result.scalars().unique().all())

    async def one_or_none(self, db: AsyncSession, **params: Any) -> ModelType | None:
        """단건 조회 — None / entity / NonUniqueResultError."""
        return await fetch_one_or_none(db, self.statement(**params))

    async def first(self, db: AsyncSession, **params: Any) -> ModelType | None:
        result = await db.execute(self.statement(with_limit=False, **params).limit(1))
        return result.scalars().unique().first()

    async def page(self, db: AsyncSession, pageable: PageRequest, **params: Any) -> Page[ModelType]:
        return await paginate(
            db,
            self.statement(sort=pageable.sort, with_limit=False, **params),
            pageable,
            count_query=self.count_statement(**params),
            apply_pageable_sort=False,
        )

    async def slice(self, db: AsyncSession, pageable: PageRequest, **params: Any) -> Slice[ModelType]:
        return await slice_(
            db,
            self.statement(sort=pageable.sort, with_limit=False, **params),
            pageable,
            apply_pageable_sort=False,
        )

    async def count(self, db: AsyncSession, **params: Any) -> int:
        return (await db.execute(self.count_statement(**params))).scalar() or 0

    async def exists(self, db: AsyncSession, **params: Any) -> bool:
        result = await db.execute(self.statement(with_limit=False, **params).limit(1))
        return result.scalars().first() is not None
