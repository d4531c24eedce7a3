"""회원 서비스 — 회원/팀 조회 및 생성 비즈니스 로직.

Member Service — Business logic for member lookup, paging and creation, and
team creation. Repository errors are translated into HTTP errors here.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from memberdb.models import Member, Team
from memberdb.repositories.member_repository import member_repository
from memberdb.repositories.team_repository import team_repository
from memberdb.schemas.member import MemberCreate, MemberDto, MemberResponse, TeamCreate, TeamResponse
from memberdb.utils.exceptions import BadRequestError, InvalidQueryError, NotFoundError
from memberdb.utils.pagination import Page, PageRequest


class MemberService:
    """회원 관련 비즈니스 로직을 처리하는 서비스.

    Service handling member and team business logic.
    """

    async def get_username(self, db: AsyncSession, member_id: int) -> str:
        """회원 ID로 사용자명을 조회합니다.

        Return the username of a member.

        Raises:
            NotFoundError: 회원이 없을 때 (Member not found)
        """
        member: Member | None = await member_repository.find_by_id(db, member_id)
        if member is None:
            raise NotFoundError("Member not found")
        return member.username

    async def list_members(self, db: AsyncSession, pageable: PageRequest) -> Page[MemberDto]:
        """회원 목록을 페이지 단위로 조회합니다.

        List members one page at a time, converted to MemberDto.

        Raises:
            BadRequestError: 정렬 속성이 잘못되었을 때 (Unknown sort property)
        """
        try:
            page: Page[Member] = await member_repository.find_page_with_team(db, pageable)
        except InvalidQueryError as exc:
            raise BadRequestError(str(exc)) from exc
        return page.map(MemberDto.from_member)

    async def create_member(self, db: AsyncSession, data: MemberCreate) -> MemberResponse:
        """새 회원을 생성합니다 — Create a member, optionally in an existing team.

        Raises:
            BadRequestError: 존재하지 않는 팀 ID (Unknown team id)
        """
        team: Team | None = None
        if data.team_id is not None:
            team = await team_repository.find_by_id(db, data.team_id)
            if team is None:
                raise BadRequestError(f"Team {data.team_id} does not exist")

        member: Member = await member_repository.save(db, Member(data.username, data.age, team))
        return MemberResponse.model_validate(member)

    async def create_team(self, db: AsyncSession, data: TeamCreate) -> TeamResponse:
        team: Team = await team_repository.save(db, Team(data.name))
        return TeamResponse.model_validate(team)


# 모듈 레벨 싱글톤 인스턴스 — Module-level singleton instance
member_service: MemberService = MemberService()
