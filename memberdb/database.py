"""데이터베이스 엔진 및 세션 설정 모듈.

Database engine and session configuration module.
Sets up the async SQLAlchemy engine, the auditing session factory, and the ORM
base class. One AsyncSession is one unit of work: it owns the identity map used
for dirty checking and is flushed/cleared explicitly where the caller needs it.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from memberdb.auditing import AuditingSession
from memberdb.config import settings


def _engine_options(url: str) -> dict[str, Any]:
    """드라이버별 엔진 옵션 — Driver-specific engine options.

    PostgreSQL(asyncpg)에만 커넥션 풀 크기를 지정합니다.
    Pool sizing only applies to the PostgreSQL (asyncpg) driver.
    """
    options: dict[str, Any] = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        options.update(pool_size=5, max_overflow=10)
    return options


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """감사 훅이 연결된 비동기 세션 팩토리를 생성합니다.

    Build an async session factory whose sessions run the auditing flush hook.
    expire_on_commit=False: 커밋 후에도 객체 속성 접근 가능
    (Allows attribute access after commit without refresh)
    """
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        sync_session_class=AuditingSession,
        expire_on_commit=False,
    )


# 비동기 데이터베이스 엔진 — Async database engine
engine: AsyncEngine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# 비동기 세션 팩토리 — Async session factory
async_session: async_sessionmaker[AsyncSession] = create_session_factory(engine)


class Base(DeclarativeBase):
    """SQLAlchemy 선언적 베이스 클래스.

    Declarative base class for all ORM models.
    """

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """비동기 데이터베이스 세션을 생성하고 요청 종료 시 닫습니다.

    FastAPI dependency that yields an async database session (one unit of work
    per request). The session is closed after the request completes.

    Yields:
        AsyncSession: SQLAlchemy 비동기 세션 인스턴스 (Async session instance)
    """
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
