"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package registers every model with the metadata, which is
required for Alembic migrations, ``create_all`` and relationship resolution.

Modules:
    team: 팀 (Team)
    member: 회원 (Member, many-to-one Team)
    item: 상품, 클라이언트 지정 키 (Item with a client-assigned key)
"""

from memberdb.models.team import Team
from memberdb.models.member import Member
from memberdb.models.item import Item

__all__ = ["Team", "Member", "Item"]
