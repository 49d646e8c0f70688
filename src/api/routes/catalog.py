from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.adapters.images import ImageResolver
from src.adapters.sqlite.repos import SQLiteCatalogRepo
from src.api.deps import get_catalog_repo, get_image_resolver, get_kv_store, get_rules
from src.api.errors import raise_for_output
from src.api.schemas import ProductResponse, SearchSort, SortOrder, product_response
from src.components.catalog import (
    GetCategoryProductsInput,
    GetProductInput,
    ProductFilters,
    SearchInput,
    run_get_category_filters,
    run_get_category_products,
    run_get_product,
    run_list_categories,
    run_search,
    run_suggestions,
)
from src.core.ports.kv import KVStorePort
from src.domain.entities import Category
from src.rules.models import Rules

router = APIRouter()


def _float_param(request: Request, name: str) -> float | None:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid number for {name}") from None


def parse_filters(request: Request) -> ProductFilters:
    """?price_min=&price_max=&brand=A&brand=B&char[socket]=AM5"""
    characteristics: dict[str, list[str]] = {}
    for key, value in request.query_params.multi_items():
        if key.startswith("char[") and key.endswith("]") and value:
            characteristics.setdefault(key[5:-1], []).append(value)
    return ProductFilters(
        price_min=_float_param(request, "price_min"),
        price_max=_float_param(request, "price_max"),
        brands=tuple(b for b in request.query_params.getlist("brand") if b),
        characteristics=characteristics,
    )


def _listing(
    category_slug: str,
    subcategory_slug: str | None,
    page: int,
    sort: SortOrder,
    request: Request,
    repo: SQLiteCatalogRepo,
    images: ImageResolver,
    rules: Rules,
) -> dict[str, Any]:
    inp = GetCategoryProductsInput(
        category_slug=category_slug,
        subcategory_slug=subcategory_slug,
        page=page,
        filters=parse_filters(request),
        sort_order=sort,
    )
    result = run_get_category_products(inp, repo, page_size=rules.catalog.page_size)
    raise_for_output(result)

    if result.has_subcategories:
        return {
            "category": result.category,
            "has_subcategories": True,
            "subcategories": result.subcategories,
        }
    assert result.page is not None
    return {
        "category": result.category,
        "has_subcategories": False,
        "products": [product_response(p, images) for p in result.page.products],
        "total_items": result.page.total_items,
        "total_pages": result.page.total_pages,
        "current_page": result.page.current_page,
    }


@router.get("/categories", response_model=list[Category])
def list_categories(repo: SQLiteCatalogRepo = Depends(get_catalog_repo)) -> list[Category]:
    return run_list_categories(repo)


@router.get("/categories/{category_id}/filters")
def category_filters(
    category_id: int, repo: SQLiteCatalogRepo = Depends(get_catalog_repo)
) -> dict[str, Any]:
    filters = run_get_category_filters(category_id, repo)
    return {
        "price_range": {"min": filters.price_min, "max": filters.price_max},
        "brands": [asdict(b) for b in filters.brands],
        "characteristics": [asdict(c) for c in filters.characteristics],
    }


@router.get("/catalog/{category_slug}")
def category_products(
    category_slug: str,
    request: Request,
    page: int = Query(1, ge=1),
    sort: SortOrder = "asc",
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
    images: ImageResolver = Depends(get_image_resolver),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    return _listing(category_slug, None, page, sort, request, repo, images, rules)


@router.get("/catalog/{category_slug}/{subcategory_slug}")
def subcategory_products(
    category_slug: str,
    subcategory_slug: str,
    request: Request,
    page: int = Query(1, ge=1),
    sort: SortOrder = "asc",
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
    images: ImageResolver = Depends(get_image_resolver),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    return _listing(category_slug, subcategory_slug, page, sort, request, repo, images, rules)


@router.get("/products/{category_slug}/{product_slug}", response_model=ProductResponse)
def product_details(
    category_slug: str,
    product_slug: str,
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
    images: ImageResolver = Depends(get_image_resolver),
) -> ProductResponse:
    result = run_get_product(GetProductInput(category_slug, product_slug), repo)
    raise_for_output(result)
    assert result.product is not None
    return product_response(result.product, images)


# --- Search ---


@router.get("/search")
def search(
    q: str = "",
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    sort: SearchSort = "relevance",
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
    kv: KVStorePort = Depends(get_kv_store),
    images: ImageResolver = Depends(get_image_resolver),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    cfg = rules.catalog.search
    result = run_search(
        SearchInput(query=q, page=page, limit=limit or cfg.default_limit, sort=sort),
        repo,
        cache=kv,
        cache_ttl_seconds=cfg.cache_ttl_seconds,
        max_limit=cfg.max_limit,
    )
    return {
        "items": [product_response(p, images) for p in result.items],
        "total_items": result.total_items,
        "total_pages": result.total_pages,
        "current_page": result.current_page,
        "query": result.query,
    }


@router.get("/search/suggestions", response_model=list[str])
def suggestions(
    q: str = "",
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
    kv: KVStorePort = Depends(get_kv_store),
    rules: Rules = Depends(get_rules),
) -> list[str]:
    cfg = rules.catalog.search
    return run_suggestions(
        q, repo, cache=kv, cache_ttl_seconds=cfg.cache_ttl_seconds, limit=cfg.suggestions_limit
    )
