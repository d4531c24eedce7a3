"""프로젝션 — 엔티티 일부만 조회하는 읽기 전용 뷰.

Projection module: read-only views derived from a mapped class.

- INTERFACE (closed): ``typing.Protocol`` with annotated attributes. Only those
  columns are selected; result rows are returned as-is, so reading an attribute
  the protocol does not declare raises AttributeError.
- CLASS (closed): pydantic model whose field names match column names. A field
  named after a to-one association is fetched as the full related entity through
  a LEFT OUTER JOIN and validated into the nested model (root columns projected,
  the association itself is not).
- OPEN: ``OpenProjection`` subclass. The full entity is loaded and the view is
  computed in Python by ``from_entity``.

``project(model, type_)`` picks the strategy from the type (dynamic projection).
"""

from enum import Enum
from functools import lru_cache
from typing import Any, get_type_hints

from pydantic import BaseModel
from sqlalchemy import Select, inspect, select
from sqlalchemy.engine import Result

from memberdb.utils.exceptions import InvalidQueryError


class OpenProjection(BaseModel):
    """오픈 프로젝션 기본 클래스 — Base for views computed from a fully loaded entity."""

    @classmethod
    def from_entity(cls, entity: Any) -> "OpenProjection":
        raise NotImplementedError(f"{cls.__name__} must implement from_entity")


class ProjectionKind(str, Enum):
    OPEN = "open"
    CLASS = "class"
    INTERFACE = "interface"


def _is_protocol(type_: type) -> bool:
    return bool(getattr(type_, "_is_protocol", False))


class ProjectionPlan:
    """프로젝션 실행 계획.

    Resolved once per (model, type) pair: which strategy applies, which columns
    to select and which associations to outer-join.

    Raises:
        InvalidQueryError: 매핑되지 않은 속성을 선언한 경우 (Declared name is not mapped)
    """

    def __init__(self, model: type, type_: type) -> None:
        self.model: type = model
        self.type_: type = type_
        self.names: tuple[str, ...] = ()
        self.nested: frozenset[str] = frozenset()

        if isinstance(type_, type) and issubclass(type_, OpenProjection):
            self.kind = ProjectionKind.OPEN
        elif isinstance(type_, type) and issubclass(type_, BaseModel):
            self.kind = ProjectionKind.CLASS
            self.names = tuple(type_.model_fields)
        elif _is_protocol(type_):
            self.kind = ProjectionKind.INTERFACE
            self.names = tuple(get_type_hints(type_))
        else:
            raise InvalidQueryError(f"Unsupported projection type {type_!r}")
        self._validate()

    def _validate(self) -> None:
        mapper = inspect(self.model)
        nested: set[str] = set()
        for name in self.names:
            if name in mapper.column_attrs:
                continue
            relationship = mapper.relationships.get(name)
            if self.kind is ProjectionKind.CLASS and relationship is not None and not relationship.uselist:
                nested.add(name)
                continue
            raise InvalidQueryError(
                f"Projection {self.type_.__name__} declares '{name}', which is not a property of {self.model.__name__}"
            )
        if not self.names and self.kind is not ProjectionKind.OPEN:
            raise InvalidQueryError(f"Projection {self.type_.__name__} declares no attributes")
        self.nested = frozenset(nested)

    def statement(self) -> Select:
        """선언된 컬럼만 SELECT — Select only what the projection needs."""
        if self.kind is ProjectionKind.OPEN:
            return select(self.model)

        mapper = inspect(self.model)
        columns: list[Any] = []
        for name in self.names:
            if name in self.nested:
                columns.append(mapper.relationships[name].mapper.class_)
            else:
                columns.append(getattr(self.model, name).label(name))

        stmt: Select = select(*columns).select_from(self.model)
        for name in self.names:
            if name in self.nested:
                stmt = stmt.outerjoin(getattr(self.model, name))
        return stmt

    def materialize(self, result: Result[Any]) -> list[Any]:
        """실행 결과를 프로젝션으로 변환 — Convert an executed result into views."""
        if self.kind is ProjectionKind.OPEN:
            return [self.type_.from_entity(entity) for entity in result.scalars().unique().all()]
        rows = result.all()
        if self.kind is ProjectionKind.INTERFACE:
            return list(rows)
        return [self.type_.model_validate(dict(zip(self.names, row)), from_attributes=True) for row in rows]


@lru_cache(maxsize=None)
def project(model: type, type_: type) -> ProjectionPlan:
    """동적 프로젝션 — Plan for projecting ``model`` into ``type_``, cached per pair."""
    return ProjectionPlan(model, type_)
