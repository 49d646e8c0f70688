"""
Catalog component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from src.domain.entities import Category, Product

SortOrder = Literal["asc", "desc"]
SearchSort = Literal["relevance", "price_asc", "price_desc"]

# --- Input Models ---


@dataclass(frozen=True)
class ProductFilters:
    """Filters applied to a category listing."""

    price_min: float | None = None
    price_max: float | None = None
    brands: tuple[str, ...] = ()
    # characteristic type slug -> accepted values
    characteristics: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return (
            self.price_min is None
            and self.price_max is None
            and not self.brands
            and not any(self.characteristics.values())
        )


@dataclass(frozen=True)
class GetCategoryProductsInput:
    category_slug: str
    subcategory_slug: str | None = None
    page: int = 1
    filters: ProductFilters | None = None
    sort_order: SortOrder = "asc"


@dataclass(frozen=True)
class GetProductInput:
    category_slug: str
    product_slug: str


@dataclass(frozen=True)
class SaveProductInput:
    """Create (product_id=None) or update a product."""

    slug: str
    title: str
    price: float
    category_id: int
    brand: str = ""
    image: str | None = None
    description: str | None = None
    # characteristic type id -> value
    characteristics: dict[int, str] = field(default_factory=dict)
    product_id: int | None = None


@dataclass(frozen=True)
class SaveCategoryInput:
    name: str
    slug: str
    parent_id: int | None = None
    icon: str | None = None
    category_id: int | None = None


@dataclass(frozen=True)
class SearchInput:
    query: str
    page: int = 1
    limit: int = 20
    sort: SearchSort = "relevance"


# --- Output Models ---


@dataclass
class ProductPage:
    products: list[Product]
    total_items: int
    total_pages: int
    current_page: int


@dataclass
class CategoryProductsOutput:
    """Either a list of subcategories or a page of products."""

    success: bool = False
    error: str | None = None
    error_code: str | None = None
    category: Category | None = None
    subcategories: list[Category] | None = None
    page: ProductPage | None = None

    @property
    def has_subcategories(self) -> bool:
        return bool(self.subcategories)


@dataclass
class ProductOutput:
    product: Product | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class CategoryOutput:
    category: Category | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class FilterOption:
    value: str
    label: str
    count: int


@dataclass
class CharacteristicFilter:
    id: int
    name: str
    slug: str
    options: list[FilterOption]


@dataclass
class CategoryFilters:
    price_min: float
    price_max: float
    brands: list[FilterOption]
    characteristics: list[CharacteristicFilter]


@dataclass
class SearchOutput:
    items: list[Product]
    total_items: int
    total_pages: int
    current_page: int
    query: str
