"""마이그레이션 및 시드 스크립트 테스트.

Migration and seed tests — the initial Alembic revision is applied and reverted
on a throwaway SQLite file, and the seed script is checked for idempotency.
"""

import importlib.util
from pathlib import Path
from types import ModuleType

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from memberdb.models import Member
from memberdb.seed import SEED_AUDITOR, SEED_MEMBER_COUNT, seed

_VERSIONS: Path = Path(__file__).resolve().parent.parent / "alembic" / "versions"


def _load_revision(name: str) -> ModuleType:
    spec = importlib.util.spec_from_file_location(name, _VERSIONS / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestInitialMigration:
    """초기 스키마 마이그레이션 테스트."""

    def test_upgrade_and_downgrade(self, tmp_path: Path):
        """업그레이드로 테이블 생성, 다운그레이드로 제거."""
        revision = _load_revision("m1a2b3c4d5e6_create_teams_members_items")
        assert revision.down_revision is None

        engine = create_engine(f"sqlite:///{tmp_path / 'migration.db'}")
        with engine.begin() as conn:
            context = MigrationContext.configure(conn)
            with Operations.context(context):
                revision.upgrade()

            inspector = inspect(conn)
            assert set(inspector.get_table_names()) >= {"teams", "members", "items"}
            member_columns = {c["name"] for c in inspector.get_columns("members")}
            assert member_columns == {
                "id",
                "username",
                "age",
                "team_id",
                "created_date",
                "last_modified_date",
                "created_by",
                "last_modified_by",
            }
            assert {c["name"] for c in inspector.get_columns("items")} == {"id", "created_date"}
            assert "ix_members_username" in {i["name"] for i in inspector.get_indexes("members")}

            with Operations.context(context):
                revision.downgrade()
            assert not {"teams", "members", "items"} & set(inspect(conn).get_table_names())
        engine.dispose()


class TestSeed:
    """시드 스크립트 테스트."""

    async def test_seed_is_idempotent(
        self, engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]
    ):
        """첫 실행은 100명 생성, 두 번째는 건너뜀."""
        assert await seed(engine, session_factory) == SEED_MEMBER_COUNT
        assert await seed(engine, session_factory) == 0

        async with session_factory() as db:
            total = (await db.execute(select(func.count()).select_from(Member))).scalar()
            member = (await db.execute(select(Member).where(Member.username == "member 42"))).scalar_one()
        assert total == SEED_MEMBER_COUNT
        assert member.age == 42
        assert member.created_by == SEED_AUDITOR
