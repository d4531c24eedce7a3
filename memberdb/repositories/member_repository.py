"""회원 레포지토리 — 회원 CRUD, 파생 조회, 페이징, 벌크 수정, 프로젝션.

Member Repository — CRUD and every member-specific query.
Extends BaseRepository with declared finders, explicit statements, paging,
bulk updates, association fetching, locking, projections and native SQL, and
mixes in the hand-written MemberRepositoryCustomImpl fragment.

Declared finders and statements are built when this module is imported, so a
malformed one fails at startup instead of on its first call.
"""

from typing import Any, Iterable

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from memberdb.models import Member
from memberdb.query.criteria import Criterion, Finder, Operator
from memberdb.query.projection import project
from memberdb.query.support import LockMode, apply_lock, fetch_one_or_none
from memberdb.repositories import named_queries
from memberdb.repositories.base import BaseRepository
from memberdb.repositories.member_repository_custom import MemberRepositoryCustomImpl
from memberdb.schemas.member import MemberDto, MemberProjection, UsernameAgeView, UsernameOnly, UsernameOnlyDto
from memberdb.utils.exceptions import InvalidQueryError
from memberdb.utils.pagination import Page, PageRequest, Slice, Sort, apply_sort, paginate


class MemberRepository(MemberRepositoryCustomImpl, BaseRepository[Member]):
    """회원 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the members table.
    """

    # === 선언형 파생 조회 (Declared finders) ===
    by_username_and_age_greater_than: Finder[Member] = Finder(
        Member,
        Criterion("username"),
        Criterion("age", Operator.GT),
    )
    top3: Finder[Member] = Finder(Member, order_by=Sort.by("id"), limit=3)
    by_username: Finder[Member] = Finder(Member, Criterion("username"))
    by_age: Finder[Member] = Finder(Member, Criterion("age"))
    # 엔티티 그래프 — Team loaded together with the member
    entity_graph_by_username: Finder[Member] = Finder(Member, Criterion("username"), fetch=("team",))

    def __init__(self) -> None:
        """MemberRepository를 초기화합니다.

        Initialize the MemberRepository with the Member model.
        """
        super().__init__(Member)

    # === 파생 조회 (Derived finders) ===

    async def find_by_username_and_age_greater_than(
        self,
        db: AsyncSession,
        username: str,
        age: int,
    ) -> list[Member]:
        """사용자명이 같고 나이가 더 많은 회원 — Members with the username and an age above ``age``."""
        return await self.by_username_and_age_greater_than.list(db, username=username, age=age)

    async def find_top3(self, db: AsyncSession) -> list[Member]:
        """ID 순 상위 3명 — First three members by id."""
        return await self.top3.list(db)

    # === 명시적 쿼리 (Explicit statements) ===

    async def find_by_username(self, db: AsyncSession, username: str) -> list[Member]:
        result = await db.execute(named_queries.FIND_BY_USERNAME, {"username": username})
        return list(result.scalars().all())

    async def find_user(self, db: AsyncSession, username: str, age: int) -> list[Member]:
        """이름 있는 파라미터 조회 — Explicit statement with named parameters."""
        result = await db.execute(named_queries.FIND_USER, {"username": username, "age": age})
        return list(result.scalars().all())

    async def find_username_list(self, db: AsyncSession) -> list[str]:
        result = await db.execute(named_queries.FIND_USERNAME_LIST)
        return list(result.scalars().all())

    async def find_member_dto(self, db: AsyncSession) -> list[MemberDto]:
        """DTO 직접 조회 — Rows built straight into MemberDto; members without a team are excluded."""
        result = await db.execute(named_queries.FIND_MEMBER_DTO)
        return [MemberDto(**row._mapping) for row in result.all()]

    async def find_by_names(self, db: AsyncSession, names: Iterable[str]) -> list[Member]:
        """컬렉션 파라미터 IN 조회 — Members whose username is in ``names``."""
        result = await db.execute(named_queries.FIND_BY_NAMES, {"names": list(names)})
        return list(result.scalars().all())

    # === 반환 타입 (Return types) ===

    async def find_list_by_username(self, db: AsyncSession, username: str) -> list[Member]:
        """컬렉션 반환 — 결과가 없으면 빈 리스트 (Empty list when nothing matches)."""
        return await self.by_username.list(db, username=username)

    async def find_member_by_username(self, db: AsyncSession, username: str) -> Member | None:
        """단건 반환.

        Single result: None when nothing matches, NonUniqueResultError when
        several members share the username.
        """
        return await self.by_username.one_or_none(db, username=username)

    async def find_optional_by_username(self, db: AsyncSession, username: str) -> Member | None:
        return await self.by_username.one_or_none(db, username=username)

    # === 페이징 (Paging) ===

    async def find_by_age(self, db: AsyncSession, age: int, pageable: PageRequest) -> Page[Member]:
        return await self.by_age.page(db, pageable, age=age)

    async def find_slice_by_age(self, db: AsyncSession, age: int, pageable: PageRequest) -> Slice[Member]:
        """카운트 없는 슬라이스 — size + 1 rows fetched, no count query."""
        return await self.by_age.slice(db, pageable, age=age)

    async def find_list_by_age(self, db: AsyncSession, age: int, pageable: PageRequest) -> list[Member]:
        return await self.by_age.window(db, pageable, age=age)

    async def find_by_age_detach_count_query(
        self,
        db: AsyncSession,
        age: int,
        pageable: PageRequest,
    ) -> Page[Member]:
        """카운트 쿼리 분리 페이징.

        Page whose content query outer-joins the team while the count query
        skips the join; an outer join never changes the member count.
        """
        query: Select = select(Member).outerjoin(Member.team).where(Member.age == age)
        return await paginate(db, query, pageable, count_query=named_queries.COUNT_BY_AGE.params(age=age))

    # === 벌크 수정 (Bulk update) ===

    async def bulk_age_plus(self, db: AsyncSession, age: int, clear_automatically: bool = False) -> int:
        """나이가 ``age`` 이상인 회원의 나이를 1 증가시킵니다.

        Add one to the age of every member aged ``age`` or more, directly in the
        database. Returns the number of affected rows.

        주의: 이미 로드된 회원 객체는 갱신되지 않습니다.
        Warning: members already loaded in this session keep their old age until
        the session is cleared (``clear(db)`` or ``clear_automatically=True``) and
        they are fetched again. Pending changes are flushed before the update runs.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            age: 기준 나이 (Minimum age to update)
            clear_automatically: 실행 후 세션 초기화 여부 (Clear the session afterwards)

        Returns:
            int: 수정된 행 수 (Affected row count)
        """
        stmt = (
            update(Member)
            .where(Member.age >= age)
            .values(age=Member.age + 1)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        if clear_automatically:
            db.expunge_all()
        return result.rowcount

    # === 연관관계 조회 (Association fetching) ===

    async def find_member_fetch_join(self, db: AsyncSession) -> list[Member]:
        """페치 조인 — Members with their team loaded by the same query."""
        result = await db.execute(named_queries.FIND_MEMBER_FETCH_JOIN)
        return list(result.scalars().unique().all())

    async def find_all(self, db: AsyncSession, sort: Sort | None = None) -> list[Member]:
        """전체 회원 + 팀 — Every member with the team eagerly loaded."""
        query: Select = apply_sort(select(Member), sort or Sort.unsorted(), model=Member)
        result = await db.execute(query.options(joinedload(Member.team)))
        return list(result.scalars().unique().all())

    async def find_page_with_team(self, db: AsyncSession, pageable: PageRequest) -> Page[Member]:
        """팀을 함께 로드하는 전체 페이징 — Page over every member, team eagerly loaded."""
        query: Select = select(Member).options(joinedload(Member.team))
        count_query: Select = select(func.count()).select_from(Member)
        return await paginate(db, query, pageable, count_query=count_query)

    async def find_entity_graph_by_username(self, db: AsyncSession, username: str) -> list[Member]:
        return await self.entity_graph_by_username.list(db, username=username)

    # === 힌트와 락 (Hints and locks) ===

    async def find_read_only_by_username(self, db: AsyncSession, username: str) -> Member | None:
        """읽기 전용 조회.

        Read-only lookup: the member is detached from the session right after
        loading, so later changes to it are never flushed. A member already
        tracked by this session is detached as well.
        """
        member: Member | None = await self.by_username.one_or_none(db, username=username)
        if member is not None:
            db.expunge(member)
        return member

    def lock_statement(self, username: str, mode: LockMode = LockMode.PESSIMISTIC_WRITE) -> Select:
        """락 조회 SELECT 문 — SELECT ... FOR UPDATE / FOR SHARE for a username."""
        return apply_lock(self.by_username.statement(username=username), mode)

    async def find_lock_by_username(
        self,
        db: AsyncSession,
        username: str,
        mode: LockMode = LockMode.PESSIMISTIC_WRITE,
    ) -> list[Member]:
        result = await db.execute(self.lock_statement(username, mode))
        return list(result.scalars().all())

    # === 프로젝션 (Projections) ===

    async def find_projection_generic_by_username(
        self,
        db: AsyncSession,
        username: str,
        type_: type,
    ) -> list[Any]:
        """동적 프로젝션 — The result shape is chosen by ``type_``."""
        plan = project(Member, type_)
        result = await db.execute(plan.statement().where(Member.username == username))
        return plan.materialize(result)

    async def find_projections_by_username(self, db: AsyncSession, username: str) -> list[UsernameOnly]:
        """닫힌 프로젝션 — Only the username column is selected."""
        return await self.find_projection_generic_by_username(db, username, UsernameOnly)

    async def find_open_projections_by_username(self, db: AsyncSession, username: str) -> list[UsernameAgeView]:
        """오픈 프로젝션 — Full rows loaded, the view computed in Python."""
        return await self.find_projection_generic_by_username(db, username, UsernameAgeView)

    async def find_projections_dto_by_username(self, db: AsyncSession, username: str) -> list[UsernameOnlyDto]:
        return await self.find_projection_generic_by_username(db, username, UsernameOnlyDto)

    # === 네이티브 쿼리 (Native SQL) ===

    async def find_by_native_query(self, db: AsyncSession, username: str) -> Member | None:
        return await fetch_one_or_none(db, named_queries.NATIVE_FIND_BY_USERNAME, {"username": username})

    async def find_by_native_projection(self, db: AsyncSession, pageable: PageRequest) -> Page[Any]:
        """네이티브 프로젝션 페이징.

        Page of MemberProjection rows from native SQL with its own count query.
        The SQL fixes its own order, so a sorted pageable is rejected.
        Rows are typed Page[Any]: a Protocol cannot parametrize the pydantic Page.

        Raises:
            InvalidQueryError: pageable에 정렬이 있을 때 (Pageable carries a sort)
        """
        if pageable.sort.is_sorted:
            raise InvalidQueryError("Native projection queries do not support dynamic sorting")
        total: int = (await db.execute(named_queries.NATIVE_PROJECTION_COUNT)).scalar() or 0
        result = await db.execute(
            named_queries.NATIVE_PROJECTION,
            {"limit": pageable.size, "offset": pageable.offset},
        )
        rows: list[MemberProjection] = list(result.all())
        return Page.of(rows, pageable, total)


# 모듈 레벨 싱글톤 인스턴스 — Module-level singleton instance
member_repository: MemberRepository = MemberRepository()
