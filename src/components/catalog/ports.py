"""
Catalog component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import Category, CharacteristicType, Product


class CatalogRepoPort(Protocol):
    """Repository interface for categories, products and characteristics."""

    def list_categories(self) -> list[Category]:
        """Flat list of all categories."""
        ...

    def get_category_by_slug(self, slug: str) -> Category | None: ...

    def get_category_by_id(self, category_id: int) -> Category | None: ...

    def save_category(self, category: Category) -> Category: ...

    def delete_category(self, category_id: int) -> bool: ...

    def list_products(self, category_id: int) -> list[Product]:
        """All products of one category, with characteristics."""
        ...

    def get_product_by_slug(self, slug: str) -> Product | None: ...

    def get_product_by_id(self, product_id: int) -> Product | None: ...

    def get_products_by_ids(self, product_ids: list[int]) -> list[Product]: ...

    def save_product(self, product: Product) -> Product:
        """Insert or update; characteristics are replaced."""
        ...

    def delete_product(self, product_id: int) -> bool: ...

    def search_products(self, terms: list[str]) -> list[Product]:
        """Products where every term matches title, description or brand."""
        ...

    def list_characteristic_types(self) -> list[CharacteristicType]: ...

    def list_filter_characteristics(self, category_id: int) -> list[CharacteristicType]:
        """Filterable characteristic types of a category, in display order."""
        ...
