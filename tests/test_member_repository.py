"""회원 레포지토리 테스트 — CRUD, 파생 조회, 명시적 쿼리, 반환 타입.

Member repository tests — CRUD, declared finders, explicit statements and
return-type contracts of singular and collection finders.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from memberdb.models import Member, Team
from memberdb.repositories.member_query_repository import member_query_repository
from memberdb.repositories.member_repository import member_repository
from memberdb.repositories.member_session_repository import member_session_repository
from memberdb.repositories.team_repository import team_repository
from memberdb.utils.exceptions import InvalidQueryError, NonUniqueResultError
from memberdb.utils.pagination import Sort


class TestCrud:
    """기본 CRUD 테스트."""

    async def test_save_and_find(self, db: AsyncSession):
        """저장 후 ID로 조회하면 같은 속성."""
        member = Member("memberA")
        saved = await member_repository.save(db, member)

        assert saved is member
        assert saved.id is not None
        found = await member_repository.find_by_id(db, saved.id)
        assert found is not None
        assert found.id == member.id
        assert found.username == member.username
        assert found is member

    async def test_find_after_clear_is_attribute_equal(self, db: AsyncSession):
        """세션 초기화 후 조회해도 속성은 동일."""
        member = await member_repository.save(db, Member("memberA", 33))
        await member_repository.clear(db)

        found = await member_repository.find_by_id(db, member.id)
        assert found is not member
        assert (found.id, found.username, found.age) == (member.id, member.username, member.age)

    async def test_basic_crud(self, db: AsyncSession):
        """단건/목록/카운트/삭제."""
        member1 = await member_repository.save(db, Member("member1"))
        member2 = await member_repository.save(db, Member("member2"))

        assert await member_repository.find_by_id(db, member1.id) is member1
        assert await member_repository.find_by_id(db, member2.id) is member2
        assert len(await member_repository.find_all(db)) == 2
        assert await member_repository.count(db) == 2

        await member_repository.delete(db, member1)
        await member_repository.delete(db, member2)
        assert await member_repository.count(db) == 0

    async def test_count_after_delete(self, db: AsyncSession):
        """N개 저장, M개 삭제 후 count == N - M."""
        saved = await member_repository.save_all(db, [Member(f"m{i}", i) for i in range(5)])
        for member in saved[:2]:
            await member_repository.delete(db, member)
        assert await member_repository.count(db) == 3

    async def test_find_missing_returns_none(self, db: AsyncSession):
        """없는 ID는 None, 예외 없음."""
        assert await member_repository.find_by_id(db, 9999) is None
        assert await member_repository.exists_by_id(db, 9999) is False

    async def test_find_all_empty(self, db: AsyncSession):
        """결과가 없으면 빈 리스트."""
        assert await member_repository.find_all(db) == []

    async def test_delete_absent_is_noop(self, db: AsyncSession):
        """이미 삭제된 엔티티 삭제는 무시."""
        member = await member_repository.save(db, Member("gone"))
        await member_repository.delete(db, member)
        await member_repository.delete(db, member)
        assert await member_repository.count(db) == 0

    async def test_delete_never_saved_is_noop(self, db: AsyncSession):
        """저장된 적 없는 엔티티 삭제는 무시."""
        await member_repository.delete(db, Member("transient"))
        assert await member_repository.count(db) == 0

    async def test_delete_by_id_and_delete_all(self, db: AsyncSession):
        """ID 삭제와 전체 삭제."""
        saved = await member_repository.save_all(db, [Member("a"), Member("b"), Member("c")])
        assert await member_repository.delete_by_id(db, saved[0].id) is True
        assert await member_repository.delete_by_id(db, saved[0].id) is False

        await member_repository.delete_all(db)
        assert await member_repository.count(db) == 0

    async def test_find_all_by_id(self, db: AsyncSession):
        """ID 목록으로 조회."""
        saved = await member_repository.save_all(db, [Member("a"), Member("b"), Member("c")])
        found = await member_repository.find_all_by_id(db, [saved[0].id, saved[2].id])
        assert {m.username for m in found} == {"a", "c"}
        assert await member_repository.find_all_by_id(db, []) == []

    async def test_save_existing_merges(self, db: AsyncSession):
        """식별자가 있는 엔티티는 병합 후 관리 인스턴스 반환."""
        member = await member_repository.save(db, Member("before", 1))
        await member_repository.clear(db)

        detached = member
        detached.username = "after"
        merged = await member_repository.save(db, detached)
        assert merged is not detached
        assert merged.id == member.id

        await member_repository.clear(db)
        reloaded = await member_repository.find_by_id(db, member.id)
        assert reloaded.username == "after"
        assert await member_repository.count(db) == 1

    async def test_find_all_sorted(self, db: AsyncSession):
        """정렬 조회."""
        await member_repository.save_all(db, [Member("b", 2), Member("a", 1), Member("c", 3)])
        members = await member_repository.find_all(db, Sort.by("username").descending())
        assert [m.username for m in members] == ["c", "b", "a"]

    async def test_find_all_unknown_sort_property(self, db: AsyncSession):
        """존재하지 않는 정렬 속성은 InvalidQueryError."""
        with pytest.raises(InvalidQueryError):
            await member_repository.find_all(db, Sort.by("nickname"))

    async def test_change_team(self, db: AsyncSession, teams: dict[str, Team]):
        """팀 변경은 dirty checking으로 반영."""
        member = await member_repository.save(db, Member("member1", 10, teams["teamA"]))
        member.change_team(teams["teamB"])
        await member_repository.flush(db)
        await member_repository.clear(db)

        reloaded = await member_repository.find_by_id(db, member.id)
        assert reloaded.team_id == teams["teamB"].id


class TestDerivedFinders:
    """선언형 파생 조회 테스트."""

    async def test_find_by_username_and_age_greater_than(self, db: AsyncSession):
        """이름 일치 + 나이 초과."""
        await member_repository.save(db, Member("AAA", 10))
        await member_repository.save(db, Member("AAA", 20))

        result = await member_repository.find_by_username_and_age_greater_than(db, "AAA", 15)
        assert len(result) == 1
        assert result[0].username == "AAA"
        assert result[0].age == 20

    async def test_find_top3(self, db: AsyncSession):
        """ID 순 상위 3건."""
        saved = await member_repository.save_all(db, [Member(f"m{i}") for i in range(5)])
        top = await member_repository.find_top3(db)
        assert [m.id for m in top] == [m.id for m in saved[:3]]

    async def test_find_by_username_statement(self, db: AsyncSession):
        """명시적 쿼리로 이름 조회."""
        await member_repository.save(db, Member("AAA", 10))
        await member_repository.save(db, Member("BBB", 20))

        result = await member_repository.find_by_username(db, "AAA")
        assert [m.username for m in result] == ["AAA"]

    async def test_find_user(self, db: AsyncSession):
        """이름 있는 파라미터."""
        await member_repository.save(db, Member("AAA", 10))
        await member_repository.save(db, Member("AAA", 20))

        result = await member_repository.find_user(db, "AAA", 10)
        assert len(result) == 1
        assert result[0].age == 10

    async def test_find_username_list(self, db: AsyncSession):
        """스칼라 컬럼 목록."""
        await member_repository.save_all(db, [Member("AAA"), Member("BBB")])
        assert sorted(await member_repository.find_username_list(db)) == ["AAA", "BBB"]

    async def test_find_member_dto(self, db: AsyncSession, teams: dict[str, Team]):
        """DTO 조회는 내부 조인이므로 팀 없는 회원 제외."""
        await member_repository.save(db, Member("AAA", 10, teams["teamA"]))
        await member_repository.save(db, Member("lonely", 10))

        dtos = await member_repository.find_member_dto(db)
        assert len(dtos) == 1
        assert dtos[0].username == "AAA"
        assert dtos[0].team_name == "teamA"

    async def test_find_by_names(self, db: AsyncSession):
        """컬렉션 IN 조회."""
        await member_repository.save_all(db, [Member("AAA"), Member("BBB"), Member("CCC")])
        result = await member_repository.find_by_names(db, ["AAA", "CCC"])
        assert sorted(m.username for m in result) == ["AAA", "CCC"]


class TestReturnTypes:
    """반환 타입 계약 테스트."""

    async def test_collection_empty(self, db: AsyncSession):
        """컬렉션 반환은 결과 없으면 빈 리스트."""
        assert await member_repository.find_list_by_username(db, "nobody") == []

    async def test_single_none(self, db: AsyncSession):
        """단건 반환은 결과 없으면 None."""
        assert await member_repository.find_member_by_username(db, "nobody") is None
        assert await member_repository.find_optional_by_username(db, "nobody") is None

    async def test_single_found(self, db: AsyncSession):
        """단건 반환은 하나면 엔티티."""
        member = await member_repository.save(db, Member("AAA", 10))
        assert await member_repository.find_member_by_username(db, "AAA") is member

    async def test_single_non_unique(self, db: AsyncSession):
        """2건 이상이면 NonUniqueResultError."""
        await member_repository.save_all(db, [Member("AAA", 10), Member("AAA", 20)])
        with pytest.raises(NonUniqueResultError):
            await member_repository.find_member_by_username(db, "AAA")
        with pytest.raises(NonUniqueResultError):
            await member_repository.find_optional_by_username(db, "AAA")


class TestOtherRepositories:
    """사용자 정의 조각, 조회 전용, 세션 레포지토리 테스트."""

    async def test_find_member_custom(self, db: AsyncSession):
        """사용자 정의 조각 메소드."""
        await member_repository.save_all(db, [Member("a"), Member("b")])
        result = await member_repository.find_member_custom(db)
        assert [m.username for m in result] == ["a", "b"]

    async def test_query_repository(self, db: AsyncSession):
        """조회 전용 레포지토리."""
        await member_repository.save_all(db, [Member("a"), Member("b")])
        result = await member_query_repository.find_all_members(db)
        assert len(result) == 2

    async def test_team_repository(self, db: AsyncSession):
        """팀 레포지토리 CRUD."""
        team = await team_repository.save(db, Team("teamA"))
        assert await team_repository.count(db) == 1
        assert (await team_repository.find_by_id(db, team.id)).name == "teamA"

    async def test_session_repository_crud(self, db: AsyncSession):
        """세션 직접 사용 레포지토리 CRUD."""
        member1 = await member_session_repository.save(db, Member("member1"))
        member2 = await member_session_repository.save(db, Member("member2"))

        assert await member_session_repository.find_by_id(db, member1.id) is member1
        assert await member_session_repository.find(db, member2.id) is member2
        assert len(await member_session_repository.find_all(db)) == 2
        assert await member_session_repository.count(db) == 2

        await member_session_repository.delete(db, member1)
        await member_session_repository.delete(db, member2)
        assert await member_session_repository.count(db) == 0

    async def test_session_repository_queries(self, db: AsyncSession):
        """세션 레포지토리 조회."""
        await member_session_repository.save(db, Member("AAA", 10))
        await member_session_repository.save(db, Member("AAA", 20))

        result = await member_session_repository.find_by_username_and_age_greater_than(db, "AAA", 15)
        assert [m.age for m in result] == [20]
        assert len(await member_session_repository.find_by_username(db, "AAA")) == 2

    async def test_session_repository_paging(self, db: AsyncSession):
        """오프셋/리밋 수동 페이징."""
        for i in range(1, 6):
            await member_session_repository.save(db, Member(f"member{i}", 10))

        page = await member_session_repository.find_by_page(db, age=10, offset=0, limit=3)
        total = await member_session_repository.total_count(db, age=10)
        assert [m.username for m in page] == ["member5", "member4", "member3"]
        assert total == 5
