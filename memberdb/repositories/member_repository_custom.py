"""회원 레포지토리 사용자 정의 조각.

Custom fragment of the member repository.
Hand-written queries live here and are mixed into MemberRepository, so callers
see one repository object while the implementation stays separate.
"""

from typing import Protocol

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberdb.models import Member


class MemberRepositoryCustom(Protocol):
    """사용자 정의 조회 인터페이스 — Operations provided by the custom fragment."""

    async def find_member_custom(self, db: AsyncSession) -> list[Member]: ...


class MemberRepositoryCustomImpl:
    """사용자 정의 조회 구현 — Implementation mixed into MemberRepository."""

    async def find_member_custom(self, db: AsyncSession) -> list[Member]:
        """직접 작성한 전체 회원 조회 — Every member, through a hand-written statement."""
        query: Select = select(Member).order_by(Member.id)
        result = await db.execute(query)
        return list(result.scalars().all())
