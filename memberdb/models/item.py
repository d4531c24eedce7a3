"""상품 SQLAlchemy ORM 모델.

Item ORM model with a caller-assigned string key.

The key cannot tell a new row from a stored one (it is always set), so newness
is decided by the creation timestamp instead: ``is_new()`` is true until the
auditing hook has stamped ``created_date`` on first flush. BaseRepository.save
relies on it to INSERT directly instead of merging (SELECT then INSERT).
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from memberdb.auditing import CreatedDateMixin
from memberdb.database import Base


class Item(CreatedDateMixin, Base):
    """상품 모델 — Item entity keyed by a client-supplied id."""

    __tablename__ = "items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    def __init__(self, id: str) -> None:
        self.id = id

    def is_new(self) -> bool:
        """신규 여부 — True until the row has been stamped with a creation date."""
        return self.created_date is None

    def __repr__(self) -> str:
        return f"Item(id={self.id!r}, created_date={self.created_date!r})"
