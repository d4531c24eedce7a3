"""쿼리 공통 지원 모듈 — 속성 경로 해석, 조인 수집, 결과 변환.

Query support module.
Resolves dotted property paths (``team.name``) against mapped classes, collects
the joins those paths need, and converts singular results into the repository
error contract.
"""

from enum import Enum
from typing import Any

from sqlalchemy import Select, inspect
from sqlalchemy.exc import MultipleResultsFound
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from memberdb.utils.exceptions import InvalidQueryError, NonUniqueResultError


class LockMode(str, Enum):
    """비관적 락 모드 — Row lock requested by a read.

    PESSIMISTIC_READ: 공유 락 (FOR SHARE on PostgreSQL)
    PESSIMISTIC_WRITE: 배타 락 (FOR UPDATE)
    """

    PESSIMISTIC_READ = "pessimistic_read"
    PESSIMISTIC_WRITE = "pessimistic_write"


def apply_lock(stmt: Select, mode: LockMode | None) -> Select:
    """SELECT 문에 행 락을 적용합니다.

    Apply a row lock to a SELECT. Timeouts and deadlocks are left to the store.
    SQLite renders no lock clause.
    """
    if mode is None:
        return stmt
    return stmt.with_for_update(read=mode is LockMode.PESSIMISTIC_READ)


def resolve_path(model: type, path: str) -> tuple[InstrumentedAttribute, list[tuple[str, InstrumentedAttribute]]]:
    """점 표기 속성 경로를 컬럼 속성과 필요한 조인 목록으로 해석합니다.

    Resolve a dotted property path into the target column attribute plus the
    to-one relationships that must be joined to reach it.

    Args:
        model: 루트 매핑 클래스 (Root mapped class)
        path: 속성 경로, 예: "username", "team.name" (Property path)

    Returns:
        tuple: (컬럼 속성, [(조인 경로, 관계 속성), ...])
               (Column attribute, [(join path, relationship attribute), ...])

    Raises:
        InvalidQueryError: 존재하지 않는 속성이거나 컬렉션 관계를 거칠 때
                           (Unknown property, or the path crosses a collection)
    """
    if not path:
        raise InvalidQueryError("Property path must not be empty")

    parts: list[str] = path.split(".")
    current: type = model
    joins: list[tuple[str, InstrumentedAttribute]] = []

    for index, name in enumerate(parts):
        mapper = inspect(current)
        is_last: bool = index == len(parts) - 1

        if name in mapper.relationships:
            relationship = mapper.relationships[name]
            if is_last:
                raise InvalidQueryError(f"Path '{path}' ends at association '{name}', not a property")
            if relationship.uselist:
                raise InvalidQueryError(f"Path '{path}' crosses collection '{name}'; only to-one paths are supported")
            joins.append((".".join(parts[: index + 1]), getattr(current, name)))
            current = relationship.mapper.class_
        elif name in mapper.column_attrs and is_last:
            return getattr(current, name), joins
        else:
            raise InvalidQueryError(f"No property '{name}' found for type {current.__name__} (path '{path}')")

    raise InvalidQueryError(f"Cannot resolve property path '{path}'")  # pragma: no cover


def resolve_association(model: type, path: str) -> list[InstrumentedAttribute]:
    """관계 경로를 관계 속성 체인으로 해석합니다 — Resolve an association path for fetching."""
    chain: list[InstrumentedAttribute] = []
    current: type = model
    for name in path.split("."):
        mapper = inspect(current)
        if name not in mapper.relationships:
            raise InvalidQueryError(f"No association '{name}' found for type {current.__name__} (path '{path}')")
        chain.append(getattr(current, name))
        current = mapper.relationships[name].mapper.class_
    return chain


class QueryContext:
    """조인 수집기 — Collects the joins required by the paths a query touches.

    Each join path is registered once; a path first registered as inner stays
    inner. ``apply`` adds the joins to a statement in registration order.
    """

    def __init__(self, model: type) -> None:
        self.model: type = model
        self._joins: dict[str, tuple[InstrumentedAttribute, bool]] = {}

    def column(self, path: str, outer: bool = False) -> InstrumentedAttribute:
        attribute, joins = resolve_path(self.model, path)
        for join_path, relationship in joins:
            self._register(join_path, relationship, outer)
        return attribute

    def join(self, path: str, outer: bool = False) -> None:
        """관계 경로만 조인 — Register a join without selecting a column."""
        prefix: list[str] = []
        for relationship in resolve_association(self.model, path):
            prefix.append(relationship.key)
            self._register(".".join(prefix), relationship, outer)

    def _register(self, join_path: str, relationship: InstrumentedAttribute, outer: bool) -> None:
        existing = self._joins.get(join_path)
        if existing is None:
            self._joins[join_path] = (relationship, outer)
        elif existing[1] and not outer:
            # 내부 조인이 우선 — An inner requirement wins over an outer one
            self._joins[join_path] = (relationship, False)

    @property
    def has_joins(self) -> bool:
        return bool(self._joins)

    def apply(self, stmt: Select) -> Select:
        for relationship, outer in self._joins.values():
            stmt = stmt.join(relationship, isouter=outer)
        return stmt


async def fetch_one_or_none(db: AsyncSession, stmt: Any, params: dict[str, Any] | None = None) -> Any:
    """단건 조회 — 없으면 None, 2건 이상이면 NonUniqueResultError.

    Execute a singular query: None when nothing matches, the entity when exactly
    one row matches, NonUniqueResultError otherwise.
    """
    result = await db.execute(stmt, params or {})
    try:
        return result.scalars().unique().one_or_none()
    except MultipleResultsFound as exc:
        raise NonUniqueResultError("Query did not return a unique result") from exc
