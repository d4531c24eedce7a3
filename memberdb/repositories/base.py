"""기본 CRUD 레포지토리 — 모든 레포지토리의 부모 클래스.

Base CRUD Repository — Parent class for all domain repositories.
Provides generic save/find/count/delete operations plus the specification and
query-by-example families over one mapped class.

Usage:
    class TeamRepository(BaseRepository[Team]):
        def __init__(self) -> None:
            super().__init__(Team)
"""

from typing import Any, Generic, Iterable, Sequence, TypeVar

from sqlalchemy import Select, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberdb.database import Base
from memberdb.query.example import Example
from memberdb.query.specification import Specification
from memberdb.query.support import QueryContext, fetch_one_or_none
from memberdb.utils.exceptions import InvalidQueryError
from memberdb.utils.pagination import Page, PageRequest, Sort, apply_sort, paginate

# 제네릭 타입 변수 — SQLAlchemy 모델을 나타냄
# Generic type variable representing a SQLAlchemy model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """제네릭 CRUD 레포지토리.

    Generic CRUD repository providing common database operations.
    Every method takes the AsyncSession (unit of work) as its first argument.

    Attributes:
        model: SQLAlchemy 모델 클래스 (The SQLAlchemy model class)
    """

    def __init__(self, model: type[ModelType]) -> None:
        """레포지토리를 초기화합니다.

        Initialize the repository with a model class.

        Args:
            model: 이 레포지토리가 관리할 SQLAlchemy 모델 클래스
                   (SQLAlchemy model class this repository manages)
        """
        self.model: type[ModelType] = model
        # 단일 기본키 컬럼 — Single-column primary key attribute
        self.id_attribute: Any = getattr(model, inspect(model).primary_key[0].key)

    def is_new(self, entity: ModelType) -> bool:
        """신규 엔티티 여부를 판단합니다.

        Decide whether an entity has never been stored. Entities defining
        ``is_new()`` decide for themselves; otherwise an unset primary key means new.
        """
        is_new = getattr(entity, "is_new", None)
        if callable(is_new):
            return bool(is_new())
        identity = inspect(self.model).primary_key_from_instance(entity)
        return any(value is None for value in identity)

    # === 저장 (Save) ===

    async def save(self, db: AsyncSession, entity: ModelType) -> ModelType:
        """엔티티를 저장합니다 — 신규면 INSERT, 아니면 병합.

        Save an entity: persist it when new, merge it otherwise. Returns the
        canonical instance tracked by the session (generated identity assigned).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            entity: 저장할 엔티티 (Entity to save)

        Returns:
            ModelType: 세션이 관리하는 인스턴스 (Session-managed instance)
        """
        if self.is_new(entity):
            db.add(entity)
            await db.flush()
            return entity

        # 병합 — 식별자로 조회 후 상태 복사 (Merge: load by identity, copy state)
        merged: ModelType = await db.merge(entity)
        await db.flush()
        return merged

    async def save_all(self, db: AsyncSession, entities: Iterable[ModelType]) -> list[ModelType]:
        return [await self.save(db, entity) for entity in entities]

    # === 조회 (Read) ===

    async def find_by_id(self, db: AsyncSession, record_id: Any) -> ModelType | None:
        """ID로 단일 레코드를 조회합니다.

        Retrieve a single record by its identity; None when absent, never raises.
        """
        return await db.get(self.model, record_id)

    async def exists_by_id(self, db: AsyncSession, record_id: Any) -> bool:
        query: Select = select(func.count()).select_from(self.model).where(self.id_attribute == record_id)
        return ((await db.execute(query)).scalar() or 0) > 0

    async def find_all(self, db: AsyncSession, sort: Sort | None = None) -> list[ModelType]:
        """모든 레코드를 조회합니다 — All rows, an empty list when there are none.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            sort: 정렬 조건 (Optional sort)

        Raises:
            InvalidQueryError: 정렬 속성이 존재하지 않을 때 (Unknown sort property)
        """
        query: Select = apply_sort(select(self.model), sort or Sort.unsorted(), model=self.model)
        result = await db.execute(query)
        return list(result.scalars().unique().all())

    async def find_all_by_id(self, db: AsyncSession, ids: Iterable[Any]) -> list[ModelType]:
        id_list: list[Any] = list(ids)
        if not id_list:
            return []
        result = await db.execute(select(self.model).where(self.id_attribute.in_(id_list)))
        return list(result.scalars().all())

    async def find_all_page(self, db: AsyncSession, pageable: PageRequest) -> Page[ModelType]:
        """전체 목록을 페이지 단위로 조회 — Page over every row, sorted by the pageable."""
        return await paginate(db, select(self.model), pageable)

    async def count(self, db: AsyncSession) -> int:
        return (await db.execute(select(func.count()).select_from(self.model))).scalar() or 0

    # === 삭제 (Delete) ===

    async def delete(self, db: AsyncSession, entity: ModelType) -> None:
        """엔티티를 삭제합니다.

        Delete an entity by identity. Deleting a row that is already gone, or an
        entity that was never stored, is a no-op.
        """
        if self.is_new(entity):
            return
        if entity not in db:
            identity = inspect(self.model).primary_key_from_instance(entity)
            existing: ModelType | None = await db.get(self.model, tuple(identity))
            if existing is None:
                return
            entity = existing
        await db.delete(entity)
        await db.flush()

    async def delete_by_id(self, db: AsyncSession, record_id: Any) -> bool:
        """ID로 삭제합니다 — Returns whether a row was deleted."""
        db_obj: ModelType | None = await self.find_by_id(db, record_id)
        if db_obj is None:
            return False

        await db.delete(db_obj)
        await db.flush()
        return True

    async def delete_all(self, db: AsyncSession, entities: Sequence[ModelType] | None = None) -> None:
        """엔티티를 하나씩 로드 후 삭제 — Load then delete one by one, so the session stays in sync."""
        targets: Sequence[ModelType] = entities if entities is not None else await self.find_all(db)
        for entity in targets:
            await self.delete(db, entity)
        await db.flush()

    # === 작업 단위 (Unit of work) ===

    async def flush(self, db: AsyncSession) -> None:
        """보류 중인 변경을 DB에 반영 — Apply pending writes without committing."""
        await db.flush()

    async def clear(self, db: AsyncSession) -> None:
        """영속성 컨텍스트 초기화 — Detach every tracked instance (identity map is emptied)."""
        db.expunge_all()

    # === Specification ===

    def _spec_statement(self, spec: Specification, sort: Sort | None = None) -> Select:
        sort = sort or Sort.unsorted()
        ctx: QueryContext = QueryContext(self.model)
        predicate = spec.to_predicate(ctx)
        for order in sort.orders:
            ctx.column(order.field, outer=True)
        query: Select = ctx.apply(select(self.model)).where(predicate)
        return apply_sort(query, sort, ctx=ctx)

    def _spec_count_statement(self, spec: Specification) -> Select:
        ctx: QueryContext = QueryContext(self.model)
        predicate = spec.to_predicate(ctx)
        return ctx.apply(select(func.count()).select_from(self.model)).where(predicate)

    async def find_all_by_spec(
        self, db: AsyncSession, spec: Specification, sort: Sort | None = None
    ) -> list[ModelType]:
        result = await db.execute(self._spec_statement(spec, sort))
        return list(result.scalars().unique().all())

    async def find_one_by_spec(self, db: AsyncSession, spec: Specification) -> ModelType | None:
        """단건 조회 — None, the entity, or NonUniqueResultError when several match."""
        return await fetch_one_or_none(db, self._spec_statement(spec))

    async def find_page_by_spec(
        self, db: AsyncSession, spec: Specification, pageable: PageRequest
    ) -> Page[ModelType]:
        return await paginate(
            db,
            self._spec_statement(spec, pageable.sort),
            pageable,
            count_query=self._spec_count_statement(spec),
            apply_pageable_sort=False,
        )

    async def count_by_spec(self, db: AsyncSession, spec: Specification) -> int:
        return (await db.execute(self._spec_count_statement(spec))).scalar() or 0

    async def exists_by_spec(self, db: AsyncSession, spec: Specification) -> bool:
        result = await db.execute(self._spec_statement(spec).limit(1))
        return result.scalars().first() is not None

    # === Query by Example ===

    def _example_spec(self, example: Example) -> Specification:
        if not isinstance(example.probe, self.model):
            raise InvalidQueryError(
                f"Probe of type {example.probe_type.__name__} does not match {self.model.__name__}"
            )
        return example.to_specification()

    async def find_all_by_example(
        self, db: AsyncSession, example: Example, sort: Sort | None = None
    ) -> list[ModelType]:
        return await self.find_all_by_spec(db, self._example_spec(example), sort)

    async def find_one_by_example(self, db: AsyncSession, example: Example) -> ModelType | None:
        return await self.find_one_by_spec(db, self._example_spec(example))

    async def find_page_by_example(
        self, db: AsyncSession, example: Example, pageable: PageRequest
    ) -> Page[ModelType]:
        return await self.find_page_by_spec(db, self._example_spec(example), pageable)

    async def count_by_example(self, db: AsyncSession, example: Example) -> int:
        return await self.count_by_spec(db, self._example_spec(example))

    async def exists_by_example(self, db: AsyncSession, example: Example) -> bool:
        return await self.exists_by_spec(db, self._example_spec(example))
