"""팀 레포지토리 — 팀 CRUD.

Team Repository — Plain CRUD for teams through BaseRepository.
"""

from memberdb.models import Team
from memberdb.repositories.base import BaseRepository


class TeamRepository(BaseRepository[Team]):
    """팀 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the teams table.
    """

    def __init__(self) -> None:
        super().__init__(Team)


# 모듈 레벨 싱글톤 인스턴스 — Module-level singleton instance
team_repository: TeamRepository = TeamRepository()
