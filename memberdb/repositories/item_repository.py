"""상품 레포지토리 — 호출자가 ID를 지정하는 엔티티의 저장.

Item Repository. Items carry a caller-assigned id, so ``save`` relies on
``Item.is_new()`` (no creation date yet) to INSERT directly instead of merging.
"""

from memberdb.models import Item
from memberdb.repositories.base import BaseRepository


class ItemRepository(BaseRepository[Item]):
    """상품 테이블 레포지토리 — Repository for the items table."""

    def __init__(self) -> None:
        super().__init__(Item)


# 모듈 레벨 싱글톤 인스턴스 — Module-level singleton instance
item_repository: ItemRepository = ItemRepository()
