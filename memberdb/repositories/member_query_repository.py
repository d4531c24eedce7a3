"""회원 조회 전용 레포지토리.

Member query repository for screen/API-specific reads.
Kept apart from MemberRepository because these queries follow the screens that
use them and change on a different schedule than the core business queries.
"""

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberdb.models import Member


class MemberQueryRepository:
    """화면 전용 회원 조회 — Read-only member queries for specific screens."""

    async def find_all_members(self, db: AsyncSession) -> list[Member]:
        query: Select = select(Member).order_by(Member.id)
        result = await db.execute(query)
        return list(result.scalars().all())


# 모듈 레벨 싱글톤 인스턴스 — Module-level singleton instance
member_query_repository: MemberQueryRepository = MemberQueryRepository()
