"""
Catalog component unit tests.

Tests for category listings, filters, product details, admin CRUD and search.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from src.adapters.kv_store import InMemoryKVStore
from src.components.catalog import (
    GetCategoryProductsInput,
    GetProductInput,
    ProductFilters,
    SaveCategoryInput,
    SaveProductInput,
    SearchInput,
    run_delete_category,
    run_delete_product,
    run_get_category_filters,
    run_get_category_products,
    run_get_product,
    run_list_brands,
    run_list_category_characteristics,
    run_list_characteristic_types,
    run_list_categories,
    run_save_category,
    run_save_product,
    run_search,
    run_suggestions,
)
from src.components.catalog._impl import paginate, relevance_score, strip_product_suffix
from src.domain.entities import Category, CharacteristicType, Product, ProductCharacteristic

# --- Mock Implementations ---


class MockCatalogRepo:
    """In-memory catalog repository for testing."""

    def __init__(self) -> None:
        self.categories: dict[int, Category] = {}
        self.products: dict[int, Product] = {}
        self.types: dict[int, CharacteristicType] = {}
        self.filter_types: dict[int, list[int]] = {}
        self._next_category = 100
        self._next_product = 100

    def list_categories(self) -> list[Category]:
        return list(self.categories.values())

    def get_category_by_slug(self, slug: str) -> Category | None:
        return next((c for c in self.categories.values() if c.slug == slug), None)

    def get_category_by_id(self, category_id: int) -> Category | None:
        return self.categories.get(category_id)

    def save_category(self, category: Category) -> Category:
        if category.id is None:
            category = category.model_copy(update={"id": self._next_category})
            self._next_category += 1
        self.categories[category.id] = category
        return category

    def delete_category(self, category_id: int) -> bool:
        return self.categories.pop(category_id, None) is not None

    def list_products(self, category_id: int) -> list[Product]:
        return [p for p in self.products.values() if p.category_id == category_id]

    def get_product_by_slug(self, slug: str) -> Product | None:
        return next((p for p in self.products.values() if p.slug == slug), None)

    def get_product_by_id(self, product_id: int) -> Product | None:
        return self.products.get(product_id)

    def get_products_by_ids(self, product_ids: list[int]) -> list[Product]:
        return [self.products[i] for i in product_ids if i in self.products]

    def save_product(self, product: Product) -> Product:
        if product.id is None:
            product = product.model_copy(update={"id": self._next_product})
            self._next_product += 1
        self.products[product.id] = product
        return product

    def delete_product(self, product_id: int) -> bool:
        return self.products.pop(product_id, None) is not None

    def search_products(self, terms: list[str]) -> list[Product]:
        def haystack(p: Product) -> str:
            return f"{p.title} {p.description or ''} {p.brand}".lower()

        return [p for p in self.products.values() if all(t in haystack(p) for t in terms)]

    def list_characteristic_types(self) -> list[CharacteristicType]:
        return list(self.types.values())

    def list_filter_characteristics(self, category_id: int) -> list[CharacteristicType]:
        return [self.types[i] for i in self.filter_types.get(category_id, [])]


def _char(type_id: int, slug: str, value: str) -> ProductCharacteristic:
    return ProductCharacteristic(type_id=type_id, type_slug=slug, type_name=slug, value=value)


# --- Fixtures ---


@pytest.fixture
def repo() -> MockCatalogRepo:
    r = MockCatalogRepo()
    for cat in [
        Category(id=1, name="Processors", slug="processors"),
        Category(id=5, name="Storage", slug="storage"),
        Category(id=6, name="M.2 SSD", slug="ssd-m2", parent_id=5),
        Category(id=7, name="SSD", slug="ssd", parent_id=5),
    ]:
        r.categories[cat.id] = cat
    r.types = {
        1: CharacteristicType(id=1, name="Socket", slug="socket"),
        4: CharacteristicType(id=4, name="TDP", slug="tdp"),
    }
    r.filter_types = {1: [1, 4]}
    r.products = {
        1: Product(
            id=1, slug="intel-core-i5-13400f", title="Intel Core i5-13400F", price=18990,
            brand="Intel", category_id=1,
            characteristics=[_char(1, "socket", "LGA1700"), _char(4, "tdp", "65 W")],
        ),
        2: Product(
            id=2, slug="amd-ryzen-7-7800x3d", title="AMD Ryzen 7 7800X3D", price=38990,
            brand="AMD", category_id=1, description="Gaming processor with 3D V-Cache",
            characteristics=[_char(1, "socket", "AM5"), _char(4, "tdp", "")],
        ),
        3: Product(
            id=3, slug="amd-ryzen-5-7600", title="AMD Ryzen 5 7600", price=21990,
            brand="AMD", category_id=1,
            characteristics=[_char(1, "socket", "AM5")],
        ),
        4: Product(
            id=4, slug="samsung-990-pro", title="Samsung 990 PRO 1TB", price=11990,
            brand="Samsung", category_id=6,
        ),
    }
    return r


# --- Helper tests ---


class TestHelpers:
    def test_strip_product_suffix(self) -> None:
        assert strip_product_suffix("amd-ryzen-7-7800x3d-p-12") == "amd-ryzen-7-7800x3d"
        assert strip_product_suffix("plain-slug") == "plain-slug"

    def test_paginate_clamps_page(self) -> None:
        products = [
            Product(slug=f"p{i}", title=f"P{i}", price=i, category_id=1) for i in range(5)
        ]
        page = paginate(products, 9, 2)
        assert page.total_pages == 3
        assert page.current_page == 3
        assert [p.slug for p in page.products] == ["p4"]

    def test_paginate_empty_has_one_page(self) -> None:
        page = paginate([], 0, 30)
        assert page.total_pages == 1
        assert page.current_page == 1
        assert page.products == []

    def test_relevance_prefers_title_matches(self, repo: MockCatalogRepo) -> None:
        intel = repo.products[1]
        amd = repo.products[2]
        assert relevance_score(intel, ["intel"]) > relevance_score(amd, ["intel"])


# --- Categories and listing ---


class TestCategoryProducts:
    def test_category_tree(self, repo: MockCatalogRepo) -> None:
        tree = run_list_categories(repo)
        storage = next(c for c in tree if c.slug == "storage")
        assert {c.slug for c in storage.children} == {"ssd-m2", "ssd"}
        assert all(c.parent_id is None for c in tree)

    def test_unknown_category(self, repo: MockCatalogRepo) -> None:
        out = run_get_category_products(GetCategoryProductsInput(category_slug="nope"), repo)
        assert not out.success
        assert out.error_code == "not_found"

    def test_parent_category_returns_subcategories(self, repo: MockCatalogRepo) -> None:
        out = run_get_category_products(GetCategoryProductsInput(category_slug="storage"), repo)
        assert out.success
        assert out.has_subcategories
        assert out.page is None

    def test_products_sorted_by_price(self, repo: MockCatalogRepo) -> None:
        out = run_get_category_products(GetCategoryProductsInput(category_slug="processors"), repo)
        assert out.page is not None
        assert [p.id for p in out.page.products] == [1, 3, 2]

        desc = run_get_category_products(
            GetCategoryProductsInput(category_slug="processors", sort_order="desc"), repo
        )
        assert desc.page is not None
        assert [p.id for p in desc.page.products] == [2, 3, 1]

    def test_filters(self, repo: MockCatalogRepo) -> None:
        filters = ProductFilters(brands=("AMD",), characteristics={"socket": ["AM5"]}, price_max=30000)
        out = run_get_category_products(
            GetCategoryProductsInput(category_slug="processors", filters=filters), repo
        )
        assert out.page is not None
        assert [p.id for p in out.page.products] == [3]

    def test_subcategory_listing(self, repo: MockCatalogRepo) -> None:
        out = run_get_category_products(
            GetCategoryProductsInput(category_slug="storage", subcategory_slug="ssd-m2"), repo
        )
        assert out.category is not None and out.category.slug == "ssd-m2"
        assert out.page is not None and out.page.total_items == 1

    def test_unknown_subcategory_falls_back_to_parent(self, repo: MockCatalogRepo) -> None:
        out = run_get_category_products(
            GetCategoryProductsInput(category_slug="processors", subcategory_slug="ghost"), repo
        )
        assert out.category is not None and out.category.slug == "processors"
        assert out.page is not None and out.page.total_items == 3


class TestProductDetails:
    def test_suffix_stripped_and_empty_values_dropped(self, repo: MockCatalogRepo) -> None:
        out = run_get_product(
            GetProductInput(category_slug="processors", product_slug="amd-ryzen-7-7800x3d-p-2"),
            repo,
        )
        assert out.success and out.product is not None
        assert [c.type_slug for c in out.product.characteristics] == ["socket"]

    def test_missing_product(self, repo: MockCatalogRepo) -> None:
        out = run_get_product(GetProductInput(category_slug="processors", product_slug="x"), repo)
        assert out.error_code == "not_found"


class TestFilters:
    def test_category_filters(self, repo: MockCatalogRepo) -> None:
        filters = run_get_category_filters(1, repo)
        assert filters.price_min == 18990
        assert filters.price_max == 38990
        assert filters.brands[0].value == "AMD"
        assert filters.brands[0].count == 2
        socket = filters.characteristics[0]
        assert socket.slug == "socket"
        assert {o.value: o.count for o in socket.options} == {"LGA1700": 1, "AM5": 2}

    def test_empty_category_filters(self, repo: MockCatalogRepo) -> None:
        filters = run_get_category_filters(7, repo)
        assert (filters.price_min, filters.price_max) == (0.0, 0.0)
        assert filters.brands == []
        assert filters.characteristics == []

    def test_brands(self, repo: MockCatalogRepo) -> None:
        assert run_list_brands(1, repo) == ["AMD", "Intel"]

    def test_category_characteristics(self, repo: MockCatalogRepo) -> None:
        assert [t.slug for t in run_list_category_characteristics(1, repo)] == ["socket", "tdp"]
        assert run_list_category_characteristics(6, repo) == []
        assert [t.id for t in run_list_characteristic_types(repo)] == [1, 4]


# --- Admin ---


class TestAdminProducts:
    def test_create_product(self, repo: MockCatalogRepo) -> None:
        out = run_save_product(
            SaveProductInput(
                slug="intel-core-i7-14700k", title="Intel Core i7-14700K", price=42990.456,
                category_id=1, brand="Intel", characteristics={1: "LGA1700", 4: " "},
            ),
            repo,
        )
        assert out.success and out.product is not None
        assert out.product.id is not None
        assert out.product.price == 42990.46
        assert [c.value for c in out.product.characteristics] == ["LGA1700"]

    def test_duplicate_slug(self, repo: MockCatalogRepo) -> None:
        out = run_save_product(
            SaveProductInput(slug="amd-ryzen-5-7600", title="Dup", price=1, category_id=1), repo
        )
        assert out.error_code == "conflict"

    def test_unknown_characteristic_type(self, repo: MockCatalogRepo) -> None:
        out = run_save_product(
            SaveProductInput(slug="x", title="X", price=1, category_id=1, characteristics={99: "a"}),
            repo,
        )
        assert out.error_code == "validation"

    def test_update_replaces_characteristics(self, repo: MockCatalogRepo) -> None:
        out = run_save_product(
            SaveProductInput(
                slug="amd-ryzen-5-7600", title="AMD Ryzen 5 7600", price=19990,
                category_id=1, brand="AMD", characteristics={4: "65 W"}, product_id=3,
            ),
            repo,
        )
        assert out.success
        assert repo.products[3].price == 19990
        assert [c.type_slug for c in repo.products[3].characteristics] == ["tdp"]

    def test_delete_product(self, repo: MockCatalogRepo) -> None:
        assert run_delete_product(4, repo).success
        assert run_delete_product(4, repo).error_code == "not_found"


class TestAdminCategories:
    def test_create_category(self, repo: MockCatalogRepo) -> None:
        out = run_save_category(SaveCategoryInput(name="HDD 2.5", slug="hdd-25", parent_id=5), repo)
        assert out.success and out.category is not None
        assert out.category.parent_id == 5

    def test_missing_parent(self, repo: MockCatalogRepo) -> None:
        out = run_save_category(SaveCategoryInput(name="X", slug="x", parent_id=404), repo)
        assert out.error_code == "validation"

    def test_delete_category_with_products(self, repo: MockCatalogRepo) -> None:
        assert run_delete_category(1, repo).error_code == "conflict"
        assert run_delete_category(7, repo).success


# --- Search ---


class TestSearch:
    def test_blank_query(self, repo: MockCatalogRepo) -> None:
        out = run_search(SearchInput(query="   "), repo)
        assert out.items == []
        assert out.total_items == 0
        assert out.query == "   "

    def test_all_terms_must_match(self, repo: MockCatalogRepo) -> None:
        out = run_search(SearchInput(query="amd ryzen 7600"), repo)
        assert [p.id for p in out.items] == [3]

    def test_price_sort_and_limit_cap(self, repo: MockCatalogRepo) -> None:
        out = run_search(SearchInput(query="amd", sort="price_desc", limit=500), repo)
        assert [p.id for p in out.items] == [2, 3]
        assert out.total_pages == 1

    def test_results_cached(self, repo: MockCatalogRepo) -> None:
        cache = InMemoryKVStore()
        first = run_search(SearchInput(query="samsung"), repo, cache=cache)
        repo.products.clear()
        second = run_search(SearchInput(query="samsung"), repo, cache=cache)
        assert [p.id for p in second.items] == [p.id for p in first.items] == [4]

    def test_cache_expires(self, repo: MockCatalogRepo) -> None:
        class Clock:
            now = datetime(2026, 1, 1, 12, 0, 0)

            def now_utc(self) -> datetime:
                return self.now

        clock = Clock()
        cache = InMemoryKVStore(clock)
        run_search(SearchInput(query="samsung"), repo, cache=cache, cache_ttl_seconds=300)
        repo.products.clear()
        clock.now = datetime(2026, 1, 1, 12, 6, 0)
        assert run_search(SearchInput(query="samsung"), repo, cache=cache).items == []


class TestSuggestions:
    def test_short_query(self, repo: MockCatalogRepo) -> None:
        assert run_suggestions("a", repo) == []

    def test_prefix_matches_first(self, repo: MockCatalogRepo) -> None:
        suggestions = run_suggestions("ryz", repo)
        assert suggestions[0] == "Ryzen"
        assert "Ryzen 7 7800X3D" in suggestions
        assert len(suggestions) <= 5

    def test_brand_suggested(self, repo: MockCatalogRepo) -> None:
        assert "Samsung" in run_suggestions("sams", repo)
