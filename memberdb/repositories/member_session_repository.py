"""세션 직접 사용 회원 레포지토리.

Hand-written member repository working on the session directly, without
BaseRepository or declared finders. Offset/limit paging is done by hand and the
caller computes page metadata from ``total_count``.
"""

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from memberdb.models import Member


class MemberSessionRepository:
    """세션 기반 회원 레포지토리 — Member repository written against AsyncSession only."""

    async def save(self, db: AsyncSession, member: Member) -> Member:
        db.add(member)
        await db.flush()
        return member

    async def delete(self, db: AsyncSession, member: Member) -> None:
        await db.delete(member)
        await db.flush()

    async def find_all(self, db: AsyncSession) -> list[Member]:
        result = await db.execute(select(Member).order_by(Member.id))
        return list(result.scalars().all())

    async def find_by_id(self, db: AsyncSession, member_id: int) -> Member | None:
        return await db.get(Member, member_id)

    async def count(self, db: AsyncSession) -> int:
        return (await db.execute(select(func.count()).select_from(Member))).scalar() or 0

    async def find(self, db: AsyncSession, member_id: int) -> Member | None:
        """ID 조회 (find_by_id와 동일) — Same as find_by_id."""
        return await db.get(Member, member_id)

    async def find_by_username_and_age_greater_than(
        self,
        db: AsyncSession,
        username: str,
        age: int,
    ) -> list[Member]:
        query: Select = select(Member).where(Member.username == username, Member.age > age)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def find_by_username(self, db: AsyncSession, username: str) -> list[Member]:
        result = await db.execute(select(Member).where(Member.username == username))
        return list(result.scalars().all())

    async def find_by_page(self, db: AsyncSession, age: int, offset: int, limit: int) -> list[Member]:
        """나이로 필터 후 사용자명 내림차순 페이징 — Members of ``age``, username descending, one window."""
        query: Select = (
            select(Member)
            .where(Member.age == age)
            .order_by(Member.username.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def total_count(self, db: AsyncSession, age: int) -> int:
        query: Select = select(func.count()).select_from(Member).where(Member.age == age)
        return (await db.execute(query)).scalar() or 0

    async def bulk_age_plus(self, db: AsyncSession, age: int) -> int:
        """벌크 나이 증가 — Same contract as MemberRepository.bulk_age_plus without clearing."""
        stmt = (
            update(Member)
            .where(Member.age >= age)
            .values(age=Member.age + 1)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount


# 모듈 레벨 싱글톤 인스턴스 — Module-level singleton instance
member_session_repository: MemberSessionRepository = MemberSessionRepository()
