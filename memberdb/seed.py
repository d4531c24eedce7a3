"""샘플 데이터 시드 스크립트 — 회원 100명 생성.

Seed script — Creates sample members for trying out the paging API.

Usage:
    python -m memberdb.seed

Creates:
    - 100명의 회원: "member 0" ~ "member 99", 나이 = 번호 (100 members, age equals the index)
"""

import asyncio

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from memberdb.auditing import bind_auditor
from memberdb.database import Base, async_session, create_session_factory, engine
from memberdb.models import Member

SEED_MEMBER_COUNT: int = 100
SEED_AUDITOR: str = "seed"


async def seed(
    bind: AsyncEngine | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> int:
    """데이터베이스를 샘플 데이터로 시드합니다.

    Seed the database with sample members.
    Creates tables if they don't exist, then inserts the members.

    Idempotent: 회원이 이미 있으면 건너뜁니다 (Skips when any member exists).

    Returns:
        int: 생성된 회원 수 (Number of members created)
    """
    bind = bind or engine
    factory: async_sessionmaker[AsyncSession] = session_factory or (
        async_session if bind is engine else create_session_factory(bind)
    )

    # 테이블 생성 — DDL 실행 (Create all tables from ORM metadata)
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with factory() as db:
        existing: int = (await db.execute(select(func.count()).select_from(Member))).scalar() or 0
        if existing:
            print("Already seeded. Skipping.")
            return 0

        bind_auditor(db, SEED_AUDITOR)
        db.add_all([Member(f"member {i}", i) for i in range(SEED_MEMBER_COUNT)])
        await db.commit()

    print(f"Seeded {SEED_MEMBER_COUNT} members.")
    return SEED_MEMBER_COUNT


if __name__ == "__main__":
    asyncio.run(seed())
