"""팀 SQLAlchemy ORM 모델.

Team ORM model. A team does not track its members; the association is owned
by Member (many-to-one).
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from memberdb.auditing import BaseEntity
from memberdb.database import Base


class Team(BaseEntity, Base):
    """팀 모델 — Team entity with audit fields.

    Attributes:
        id: 자동 생성 식별자 (Generated surrogate key)
        name: 팀 이름 (Team name)
    """

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Team(id={self.id!r}, name={self.name!r})"
