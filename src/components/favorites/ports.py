"""
Favorites component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import Favorite, Product


class FavoriteRepoPort(Protocol):
    def list_by_user(self, user_id: int) -> list[Favorite]:
        """Oldest first."""
        ...

    def exists(self, user_id: int, product_id: int) -> bool: ...

    def add(self, user_id: int, product_id: int, created_at: datetime) -> Favorite: ...

    def remove(self, user_id: int, product_id: int) -> bool: ...

    def clear(self, user_id: int) -> int: ...


class ProductLookupPort(Protocol):
    def get_product_by_id(self, product_id: int) -> Product | None: ...

    def get_products_by_ids(self, product_ids: list[int]) -> list[Product]: ...
