"""
Catalog component - Category browsing, product details, filters and search.

Shell Layer - handles I/O and error conversion.
"""

from __future__ import annotations

import json
import logging
import math

from src.core.ports.kv import KVStorePort
from src.domain.entities import Category, CharacteristicType, Product, ProductCharacteristic

from ._impl import (
    build_category_filters,
    build_category_tree,
    filter_products,
    generate_suggestions,
    paginate,
    rank_search_results,
    search_terms,
    sort_products,
    strip_product_suffix,
)
from .models import (
    CategoryFilters,
    CategoryOutput,
    CategoryProductsOutput,
    GetCategoryProductsInput,
    GetProductInput,
    ProductOutput,
    SaveCategoryInput,
    SaveProductInput,
    SearchInput,
    SearchOutput,
)
from .ports import CatalogRepoPort

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 30


def run_list_categories(repo: CatalogRepoPort) -> list[Category]:
    """Category tree; top-level categories carry their children."""
    return build_category_tree(repo.list_categories())


def run_get_category_products(
    inp: GetCategoryProductsInput,
    repo: CatalogRepoPort,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> CategoryProductsOutput:
    category = repo.get_category_by_slug(inp.category_slug)
    if category is None:
        return CategoryProductsOutput(error="Category not found", error_code="not_found")

    categories = repo.list_categories()
    subcategories = [c for c in categories if c.parent_id == category.id]

    target = category
    if inp.subcategory_slug:
        match = next((c for c in subcategories if c.slug == inp.subcategory_slug), None)
        if match is not None:
            target = match
        else:
            logger.debug(
                "Subcategory %s not under %s, listing parent", inp.subcategory_slug, category.slug
            )
    elif subcategories:
        return CategoryProductsOutput(
            success=True, category=category, subcategories=subcategories
        )

    assert target.id is not None
    products = filter_products(repo.list_products(target.id), inp.filters)
    products = sort_products(products, inp.sort_order)
    return CategoryProductsOutput(
        success=True,
        category=target,
        page=paginate(products, inp.page, page_size),
    )


def run_get_product(inp: GetProductInput, repo: CatalogRepoPort) -> ProductOutput:
    slug = strip_product_suffix(inp.product_slug)
    product = repo.get_product_by_slug(slug)
    if product is None:
        return ProductOutput(error=f"Product not found: {slug}", error_code="not_found")

    product = product.model_copy(
        update={"characteristics": [c for c in product.characteristics if c.value]}
    )
    return ProductOutput(product=product, success=True)


def run_get_category_filters(category_id: int, repo: CatalogRepoPort) -> CategoryFilters:
    return build_category_filters(
        repo.list_products(category_id),
        repo.list_filter_characteristics(category_id),
    )


def run_list_brands(category_id: int, repo: CatalogRepoPort) -> list[str]:
    return sorted({p.brand for p in repo.list_products(category_id) if p.brand})


def run_list_category_characteristics(
    category_id: int, repo: CatalogRepoPort
) -> list[CharacteristicType]:
    """Characteristic types used by at least one product of the category."""
    used = {c.type_id for p in repo.list_products(category_id) for c in p.characteristics}
    return [t for t in repo.list_characteristic_types() if t.id in used]


def run_list_characteristic_types(repo: CatalogRepoPort) -> list[CharacteristicType]:
    return repo.list_characteristic_types()


# --- Admin: products ---


def _validate_product(inp: SaveProductInput, repo: CatalogRepoPort) -> str | None:
    if not inp.title.strip():
        return "Title is required"
    if not inp.slug.strip():
        return "Slug is required"
    if inp.price < 0:
        return "Price must not be negative"
    if repo.get_category_by_id(inp.category_id) is None:
        return "Category not found"
    return None


def run_save_product(inp: SaveProductInput, repo: CatalogRepoPort) -> ProductOutput:
    error = _validate_product(inp, repo)
    if error:
        return ProductOutput(error=error, error_code="validation")

    existing = repo.get_product_by_slug(inp.slug)
    if existing is not None and existing.id != inp.product_id:
        return ProductOutput(error="Slug already in use", error_code="conflict")

    base: Product | None = None
    if inp.product_id is not None:
        base = repo.get_product_by_id(inp.product_id)
        if base is None:
            return ProductOutput(error="Product not found", error_code="not_found")

    types = {t.id: t for t in repo.list_characteristic_types()}
    unknown = [type_id for type_id in inp.characteristics if type_id not in types]
    if unknown:
        return ProductOutput(
            error=f"Unknown characteristic types: {unknown}", error_code="validation"
        )

    characteristics = [
        ProductCharacteristic(
            product_id=inp.product_id,
            type_id=type_id,
            type_slug=types[type_id].slug,
            type_name=types[type_id].name,
            value=value.strip(),
        )
        for type_id, value in inp.characteristics.items()
        if value and value.strip()
    ]

    fields = {
        "slug": inp.slug.strip(),
        "title": inp.title.strip(),
        "price": round(inp.price, 2),
        "brand": inp.brand.strip(),
        "image": inp.image,
        "description": inp.description,
        "category_id": inp.category_id,
        "characteristics": characteristics,
    }
    product = base.model_copy(update=fields) if base else Product(**fields)
    saved = repo.save_product(product)
    logger.info("Product saved: %s (id=%s)", saved.slug, saved.id)
    return ProductOutput(product=saved, success=True)


def run_delete_product(product_id: int, repo: CatalogRepoPort) -> ProductOutput:
    if not repo.delete_product(product_id):
        return ProductOutput(error="Product not found", error_code="not_found")
    return ProductOutput(success=True)


# --- Admin: categories ---


def run_save_category(inp: SaveCategoryInput, repo: CatalogRepoPort) -> CategoryOutput:
    if not inp.name.strip() or not inp.slug.strip():
        return CategoryOutput(error="Name and slug are required", error_code="validation")

    existing = repo.get_category_by_slug(inp.slug)
    if existing is not None and existing.id != inp.category_id:
        return CategoryOutput(error="Slug already in use", error_code="conflict")

    if inp.parent_id is not None:
        if inp.parent_id == inp.category_id:
            return CategoryOutput(
                error="Category cannot be its own parent", error_code="validation"
            )
        if repo.get_category_by_id(inp.parent_id) is None:
            return CategoryOutput(error="Parent category not found", error_code="validation")

    if inp.category_id is not None and repo.get_category_by_id(inp.category_id) is None:
        return CategoryOutput(error="Category not found", error_code="not_found")

    saved = repo.save_category(
        Category(
            id=inp.category_id,
            name=inp.name.strip(),
            slug=inp.slug.strip(),
            parent_id=inp.parent_id,
            icon=inp.icon,
        )
    )
    return CategoryOutput(category=saved, success=True)


def run_delete_category(category_id: int, repo: CatalogRepoPort) -> CategoryOutput:
    if repo.list_products(category_id):
        return CategoryOutput(error="Category still has products", error_code="conflict")
    if not repo.delete_category(category_id):
        return CategoryOutput(error="Category not found", error_code="not_found")
    return CategoryOutput(success=True)


# --- Search ---


def run_search(
    inp: SearchInput,
    repo: CatalogRepoPort,
    cache: KVStorePort | None = None,
    cache_ttl_seconds: int = 300,
    max_limit: int = 50,
) -> SearchOutput:
    limit = max(1, min(inp.limit, max_limit))
    page = max(1, inp.page)
    terms = search_terms(inp.query)
    if not terms:
        return SearchOutput(items=[], total_items=0, total_pages=0, current_page=1, query=inp.query)

    cache_key = f"search:{inp.query}:{page}:{limit}:{inp.sort}"
    if cache is not None:
        cached = cache.get(cache_key)
        if cached:
            data = json.loads(cached)
            return SearchOutput(
                items=[Product.model_validate(p) for p in data["items"]],
                total_items=data["total_items"],
                total_pages=data["total_pages"],
                current_page=data["current_page"],
                query=inp.query,
            )

    ranked = rank_search_results(repo.search_products(terms), terms, inp.sort)
    offset = (page - 1) * limit
    result = SearchOutput(
        items=ranked[offset : offset + limit],
        total_items=len(ranked),
        total_pages=math.ceil(len(ranked) / limit),
        current_page=page,
        query=inp.query,
    )

    if cache is not None:
        cache.set(
            cache_key,
            json.dumps(
                {
                    "items": [p.model_dump(mode="json") for p in result.items],
                    "total_items": result.total_items,
                    "total_pages": result.total_pages,
                    "current_page": result.current_page,
                }
            ),
            cache_ttl_seconds,
        )
    return result


def run_suggestions(
    query: str,
    repo: CatalogRepoPort,
    cache: KVStorePort | None = None,
    cache_ttl_seconds: int = 300,
    limit: int = 5,
) -> list[str]:
    query = query.strip()
    if len(query) < 2:
        return []

    cache_key = f"suggestions:{query}"
    if cache is not None:
        cached = cache.get(cache_key)
        if cached:
            return list(json.loads(cached))

    candidates = [
        p
        for p in repo.search_products([query.casefold()])
        if query.casefold() in p.title.casefold() or query.casefold() in (p.brand or "").casefold()
    ][:10]
    suggestions = generate_suggestions(query, candidates, limit)

    if cache is not None:
        cache.set(cache_key, json.dumps(suggestions), cache_ttl_seconds)
    return suggestions
