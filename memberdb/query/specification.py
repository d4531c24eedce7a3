"""조합 가능한 조건 객체(Specification).

Composable predicate objects translated into a SQL WHERE clause.

A Specification wraps a callable that receives a QueryContext and returns a SQL
boolean expression. ``&``, ``|`` and ``~`` combine specifications; nested ANDs
and ORs are flattened, so ``(a & b) & c`` and ``a & (b & c)`` produce the same
clause. Nothing is ever filtered in memory after the fetch.
"""

from typing import Any, Callable, Iterable

from sqlalchemy import Select, and_, not_, or_, select, true

from memberdb.query.criteria import Operator, build_clause
from memberdb.query.support import QueryContext

PredicateBuilder = Callable[[QueryContext], Any]


class Specification:
    """SQL 조건 객체.

    Predicate over one mapped class, evaluated only by the store.

    Example:
        spec = MemberSpec.username("member1") & MemberSpec.team_name("teamA")
        members = await member_repository.find_all_by_spec(db, spec)
    """

    def __init__(self, build: PredicateBuilder) -> None:
        self._build: PredicateBuilder = build

    def to_predicate(self, ctx: QueryContext) -> Any:
        """SQL 조건식으로 변환 — Translate into a SQL expression, registering joins on ctx."""
        return self._build(ctx)

    def __and__(self, other: "Specification") -> "Specification":
        return _Composite("and", _parts(self, "and") + _parts(other, "and"))

    def __or__(self, other: "Specification") -> "Specification":
        return _Composite("or", _parts(self, "or") + _parts(other, "or"))

    def __invert__(self) -> "Specification":
        return Specification(lambda ctx: not_(self.to_predicate(ctx)))

    @classmethod
    def all_of(cls, specs: Iterable["Specification"]) -> "Specification":
        parts: list[Specification] = []
        for spec in specs:
            parts.extend(_parts(spec, "and"))
        return _Composite("and", parts) if parts else cls.unrestricted()

    @classmethod
    def any_of(cls, specs: Iterable["Specification"]) -> "Specification":
        parts: list[Specification] = []
        for spec in specs:
            parts.extend(_parts(spec, "or"))
        return _Composite("or", parts) if parts else cls.unrestricted()

    @classmethod
    def unrestricted(cls) -> "Specification":
        """항상 참 — Matches every row."""
        return cls(lambda ctx: true())

    @classmethod
    def attribute(
        cls,
        path: str,
        operator: Operator = Operator.EQ,
        value: Any = None,
        ignore_case: bool = False,
    ) -> "Specification":
        """속성 경로 조건 — Condition on a property path; dotted paths inner-join to-one associations."""
        return cls(lambda ctx: build_clause(ctx.column(path), operator, value, ignore_case))

    def statement(self, model: type) -> Select:
        """엔티티 SELECT 문 — Entity SELECT filtered by this specification."""
        ctx: QueryContext = QueryContext(model)
        predicate = self.to_predicate(ctx)
        return ctx.apply(select(model)).where(predicate)


class _Composite(Specification):
    """AND/OR 결합 — Flat conjunction or disjunction."""

    def __init__(self, kind: str, parts: list[Specification]) -> None:
        self.kind: str = kind
        self.parts: tuple[Specification, ...] = tuple(parts)
        super().__init__(self._combine)

    def _combine(self, ctx: QueryContext) -> Any:
        clauses: list[Any] = [part.to_predicate(ctx) for part in self.parts]
        return and_(*clauses) if self.kind == "and" else or_(*clauses)


def _parts(spec: Specification, kind: str) -> list[Specification]:
    if isinstance(spec, _Composite) and spec.kind == kind:
        return list(spec.parts)
    return [spec]
