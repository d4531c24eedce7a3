"""회원 및 팀 관련 Pydantic 스키마와 프로젝션 정의.

Member and Team Pydantic schemas and projection views.
Covers request/response bodies for the HTTP API and the read-only views used
by the member repository (closed, open, class-based and nested projections).
"""

from datetime import datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from memberdb.query.projection import OpenProjection


# === 프로젝션 (Projection) 뷰 ===

class UsernameOnly(Protocol):
    """사용자명만 조회하는 닫힌 프로젝션 — Closed projection selecting only the username column."""

    username: str


class MemberProjection(Protocol):
    """네이티브 쿼리 프로젝션 — Row shape returned by the native paging query.

    Attributes:
        id: 회원 ID (Member identifier)
        username: 사용자명 (Username)
        team_name: 팀 이름, 팀이 없으면 None (Team name, None without a team)
    """

    id: int
    username: str
    team_name: str | None


class UsernameOnlyDto(BaseModel):
    """클래스 기반 프로젝션 — Class-based closed projection, matched by field name."""

    username: str  # 사용자명 (Username)


class UsernameAgeView(OpenProjection):
    """오픈 프로젝션 — "<username> <age>" computed after the full row is loaded."""

    username: str

    @classmethod
    def from_entity(cls, entity: Any) -> "UsernameAgeView":
        return cls(username=f"{entity.username} {entity.age}")


class TeamInfo(BaseModel):
    """중첩 프로젝션의 팀 정보 — Team part of a nested projection."""

    model_config = ConfigDict(from_attributes=True)

    name: str  # 팀 이름 (Team name)


class NestedClosedProjection(BaseModel):
    """중첩 닫힌 프로젝션.

    Nested closed projection: ``username`` is projected, the team is fetched in
    full through a left outer join and then narrowed to TeamInfo.
    """

    username: str
    team: TeamInfo | None = None


# === 회원 (Member) 스키마 ===

class MemberDto(BaseModel):
    """회원 목록 DTO.

    Member list DTO, also built directly by the constructor-style query.

    Attributes:
        id: 회원 ID (Member identifier)
        username: 사용자명 (Username)
        team_name: 팀 이름 (Team name, optional)
    """

    id: int  # 회원 ID (Member identifier)
    username: str  # 사용자명 (Username)
    team_name: str | None = None  # 팀 이름 (Team name, optional)

    @classmethod
    def from_member(cls, member: Any) -> "MemberDto":
        """팀이 로드되지 않았다면 team_name은 None — team_name stays None unless the team was fetched."""
        team = member.__dict__.get("team")
        return cls(id=member.id, username=member.username, team_name=team.name if team is not None else None)


class MemberCreate(BaseModel):
    """회원 생성 요청 스키마.

    Member creation request schema.

    Attributes:
        username: 사용자명 (Username)
        age: 나이 (Age, default 0)
        team_id: 소속 팀 ID (Owning team, optional)
    """

    username: str = Field(min_length=1, max_length=255)  # 사용자명 (Username)
    age: int = Field(0, ge=0)  # 나이 (Age)
    team_id: int | None = None  # 소속 팀 ID (Team identifier, optional)


class MemberResponse(BaseModel):
    """회원 응답 스키마 — 감사 필드 포함.

    Member response schema including audit fields.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int  # 회원 ID (Member identifier)
    username: str  # 사용자명 (Username)
    age: int  # 나이 (Age)
    team_id: int | None = None  # 소속 팀 ID (Team identifier)
    created_date: datetime | None = None  # 생성 일시 (Creation timestamp)
    last_modified_date: datetime | None = None  # 수정 일시 (Last modification timestamp)
    created_by: str | None = None  # 생성자 (Creating actor)
    last_modified_by: str | None = None  # 수정자 (Last modifying actor)


# === 팀 (Team) 스키마 ===

class TeamCreate(BaseModel):
    """팀 생성 요청 스키마 — Team creation request schema."""

    name: str = Field(min_length=1, max_length=255)  # 팀 이름 (Team name)


class TeamResponse(BaseModel):
    """팀 응답 스키마 — Team response schema including audit fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int  # 팀 ID (Team identifier)
    name: str  # 팀 이름 (Team name)
    created_date: datetime | None = None  # 생성 일시 (Creation timestamp)
    created_by: str | None = None  # 생성자 (Creating actor)
