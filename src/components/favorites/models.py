"""
Favorites component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.entities import Product


@dataclass
class ToggleFavoriteOutput:
    is_favorite: bool = False
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class FavoritesOutput:
    # category_id -> products
    by_category: dict[int, list[Product]] = field(default_factory=dict)

    @property
    def product_ids(self) -> list[int]:
        return [p.id for products in self.by_category.values() for p in products if p.id is not None]


@dataclass
class MergeFavoritesOutput:
    added: int
    total: int
