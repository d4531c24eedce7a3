"""예시 기반 조회(Query by Example).

Query by example: a probe instance plus an ExampleMatcher derive the filter.

- 설정된(None이 아닌) 컬럼 속성 → 동등/LIKE 조건 (set column attributes become filters)
- 설정된 to-one 연관관계 → 내부 조인 + 연관 엔티티의 설정된 속성 조건
  (a set to-one association becomes an inner join plus filters on its set attributes)

Only inner joins are expressible. Anything needing an outer join, OR across
associations, or ranges belongs in a Specification or an explicit statement.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from sqlalchemy import and_, func, inspect, or_, true
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm.base import NO_VALUE

from memberdb.query.criteria import Operator, build_clause
from memberdb.query.specification import Specification
from memberdb.query.support import QueryContext
from memberdb.utils.exceptions import InvalidQueryError

ModelType = TypeVar("ModelType")


class StringMatcher(str, Enum):
    """문자열 매칭 방식 — How string attributes of the probe are compared."""

    DEFAULT = "default"
    EXACT = "exact"
    STARTING = "starting"
    ENDING = "ending"
    CONTAINING = "containing"


class NullHandler(str, Enum):
    """None 속성 처리 — IGNORE skips None attributes, INCLUDE turns them into IS NULL."""

    IGNORE = "ignore"
    INCLUDE = "include"


class MatchMode(str, Enum):
    ALL = "all"
    ANY = "any"


class ExampleMatcher(BaseModel):
    """예시 매칭 설정.

    Immutable match configuration; every ``with_*`` call returns a new matcher.

    Example:
        matcher = ExampleMatcher.matching().with_ignore_paths("age")
    """

    model_config = ConfigDict(frozen=True)

    mode: MatchMode = MatchMode.ALL
    ignored_paths: frozenset[str] = frozenset()
    string_matcher: StringMatcher = StringMatcher.DEFAULT
    ignore_case: bool = False
    null_handler: NullHandler = NullHandler.IGNORE

    @classmethod
    def matching(cls) -> "ExampleMatcher":
        return cls.matching_all()

    @classmethod
    def matching_all(cls) -> "ExampleMatcher":
        return cls(mode=MatchMode.ALL)

    @classmethod
    def matching_any(cls) -> "ExampleMatcher":
        return cls(mode=MatchMode.ANY)

    def with_ignore_paths(self, *paths: str) -> "ExampleMatcher":
        return self.model_copy(update={"ignored_paths": self.ignored_paths | frozenset(paths)})

    def with_string_matcher(self, matcher: StringMatcher) -> "ExampleMatcher":
        return self.model_copy(update={"string_matcher": matcher})

    def with_ignore_case(self, ignore_case: bool = True) -> "ExampleMatcher":
        return self.model_copy(update={"ignore_case": ignore_case})

    def with_include_null_values(self) -> "ExampleMatcher":
        return self.model_copy(update={"null_handler": NullHandler.INCLUDE})

    def with_ignore_null_values(self) -> "ExampleMatcher":
        return self.model_copy(update={"null_handler": NullHandler.IGNORE})

    def is_ignored(self, path: str) -> bool:
        return path in self.ignored_paths


_STRING_OPERATORS: dict[StringMatcher, Operator] = {
    StringMatcher.DEFAULT: Operator.EQ,
    StringMatcher.EXACT: Operator.EQ,
    StringMatcher.STARTING: Operator.STARTING_WITH,
    StringMatcher.ENDING: Operator.ENDING_WITH,
    StringMatcher.CONTAINING: Operator.CONTAINING,
}


class Example(BaseModel, Generic[ModelType]):
    """프로브 엔티티 + 매칭 설정 — A probe entity paired with its matcher."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    probe: Any
    matcher: ExampleMatcher = ExampleMatcher()

    @classmethod
    def of(cls, probe: Any, matcher: ExampleMatcher | None = None) -> "Example[Any]":
        return cls(probe=probe, matcher=matcher or ExampleMatcher.matching())

    @property
    def probe_type(self) -> type:
        return type(self.probe)

    def to_specification(self) -> Specification:
        """Specification으로 변환합니다 — Translate the probe into a specification.

        Raises:
            InvalidQueryError: 프로브가 매핑된 엔티티가 아닐 때 (Probe is not a mapped instance)
        """
        try:
            inspect(self.probe)
        except NoInspectionAvailable as exc:
            raise InvalidQueryError(f"Probe of type {self.probe_type.__name__} is not a mapped entity") from exc

        matcher: ExampleMatcher = self.matcher
        probe: Any = self.probe

        def build(ctx: QueryContext) -> Any:
            clauses: list[Any] = []
            _collect(ctx, probe, "", matcher, clauses, set())
            if not clauses:
                return true()
            return and_(*clauses) if matcher.mode is MatchMode.ALL else or_(*clauses)

        return Specification(build)


def _collect(
    ctx: QueryContext,
    probe: Any,
    prefix: str,
    matcher: ExampleMatcher,
    clauses: list[Any],
    visited: set[int],
) -> None:
    """프로브 속성을 순회하며 조건을 수집 — Walk the probe and collect clauses.

    Foreign key columns backing a relationship are skipped; the association
    itself is matched through an inner join instead.
    """
    if id(probe) in visited:
        return
    visited.add(id(probe))

    state = inspect(probe)
    mapper = state.mapper
    fk_columns: set[str] = {
        column.key for relationship in mapper.relationships for column in relationship.local_columns
    }

    for attr in mapper.column_attrs:
        if attr.key in fk_columns:
            continue
        path: str = f"{prefix}{attr.key}"
        if matcher.is_ignored(path):
            continue
        value: Any = state.attrs[attr.key].loaded_value
        if value is NO_VALUE or value is None:
            if matcher.null_handler is NullHandler.INCLUDE:
                clauses.append(build_clause(ctx.column(path), Operator.IS_NULL))
            continue
        clauses.append(_match(ctx.column(path), value, matcher))

    for relationship in mapper.relationships:
        path = f"{prefix}{relationship.key}"
        if relationship.uselist or matcher.is_ignored(path):
            continue
        related: Any = state.attrs[relationship.key].loaded_value
        if related is NO_VALUE or related is None:
            continue
        ctx.join(path)
        _collect(ctx, related, f"{path}.", matcher, clauses, visited)


def _match(column: Any, value: Any, matcher: ExampleMatcher) -> Any:
    if not isinstance(value, str):
        return build_clause(column, Operator.EQ, value)
    operator: Operator = _STRING_OPERATORS[matcher.string_matcher]
    if matcher.ignore_case:
        return build_clause(func.lower(column), operator, value.lower())
    return build_clause(column, operator, value)
