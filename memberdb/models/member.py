"""회원 SQLAlchemy ORM 모델.

Member ORM model. ``username`` is intentionally not unique.

The ``team`` association is declared with ``lazy="raise"``: it is never loaded
implicitly, so reading it requires an explicit join or eager-load option in the
query. Accessing it on a member loaded without one raises instead of issuing a
hidden per-row query (the N+1 problem is the caller's to batch).
"""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memberdb.auditing import BaseEntity
from memberdb.database import Base
from memberdb.models.team import Team


class Member(BaseEntity, Base):
    """회원 모델 — Member entity with audit fields and an optional team.

    Attributes:
        id: 자동 생성 식별자 (Generated surrogate key)
        username: 사용자명, 중복 허용 (Username, duplicates allowed)
        age: 나이 (Age)
        team_id: 소속 팀 FK, 선택 (Optional team foreign key)

    Relationships:
        team: 소속 팀, 명시적 fetch 필요 (Owning team, explicit fetch required)
    """

    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    age: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    team_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("teams.id"), nullable=True)

    team: Mapped[Team | None] = relationship(Team, lazy="raise")

    def __init__(self, username: str, age: int = 0, team: Team | None = None) -> None:
        self.username = username
        self.age = age
        if team is not None:
            self.change_team(team)

    def change_team(self, team: Team) -> None:
        """소속 팀을 변경합니다 — Move the member to another team."""
        self.team = team

    def __repr__(self) -> str:
        return f"Member(id={self.id!r}, username={self.username!r}, age={self.age!r})"
