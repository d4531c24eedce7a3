"""테스트 인프라 — 임시 SQLite DB, 감사 세션, httpx 클라이언트 픽스처.

Test infrastructure — Temporary SQLite DB, auditing session, and httpx client fixtures.
Every test gets a fresh database file with the schema created from the ORM
metadata, so tests never share rows.
"""

import os
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

# 앱 모듈 임포트 전에 테스트 환경 설정 — Set test environment BEFORE importing app modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AXIOM_API_TOKEN"] = ""
os.environ["AXIOM_DATASET"] = ""

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from memberdb.database import Base, create_session_factory, get_db  # noqa: E402
from memberdb.main import app  # noqa: E402
from memberdb.models import *  # noqa: F401,F403,E402 — register all models with metadata
from memberdb.models import Member, Team  # noqa: E402


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 매 테스트마다 새 DB 파일과 스키마를 생성합니다."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """감사 훅이 연결된 세션 팩토리 — 두 번째 작업 단위가 필요할 때 사용."""
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def statements(engine: AsyncEngine) -> Generator[list[str], None, None]:
    """실행된 SQL 문 기록 — Every SQL statement sent to the database, in order."""
    captured: list[str] = []

    def _capture(conn, cursor, statement, parameters, context, executemany) -> None:
        captured.append(statement)

    event.listen(engine.sync_engine, "before_cursor_execute", _capture)
    yield captured
    event.remove(engine.sync_engine, "before_cursor_execute", _capture)


@pytest.fixture
def executions(engine: AsyncEngine) -> Generator[list[tuple[str, tuple]], None, None]:
    """실행된 SQL 문과 바인딩 값 — Every statement with its bound parameters, in order."""
    captured: list[tuple[str, tuple]] = []

    def _capture(conn, cursor, statement, parameters, context, executemany) -> None:
        captured.append((statement, tuple(parameters)))

    event.listen(engine.sync_engine, "before_cursor_execute", _capture)
    yield captured
    event.remove(engine.sync_engine, "before_cursor_execute", _capture)


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def teams(db: AsyncSession) -> dict[str, Team]:
    """teamA, teamB 두 팀을 생성합니다."""
    result = {name: Team(name) for name in ("teamA", "teamB")}
    db.add_all(result.values())
    await db.flush()
    return result


@pytest_asyncio.fixture
async def members_with_teams(db: AsyncSession, teams: dict[str, Team]) -> list[Member]:
    """팀에 소속된 회원 4명 — member1, member2 in teamA; member3, member4 in teamB."""
    members = [
        Member("member1", 10, teams["teamA"]),
        Member("member2", 20, teams["teamA"]),
        Member("member3", 30, teams["teamB"]),
        Member("member4", 40, teams["teamB"]),
    ]
    db.add_all(members)
    await db.flush()
    return members
