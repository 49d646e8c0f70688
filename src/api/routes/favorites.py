from typing import Any

from fastapi import APIRouter, Depends

from src.adapters.images import ImageResolver
from src.adapters.sqlite.repos import SQLiteCatalogRepo, SQLiteFavoriteRepo
from src.api.deps import (
    get_catalog_repo,
    get_clock,
    get_current_user,
    get_favorite_repo,
    get_image_resolver,
)
from src.api.errors import raise_for_output
from src.api.schemas import FavoritesMergeRequest, FavoriteToggleRequest, product_response
from src.components.favorites import (
    run_clear_favorites,
    run_is_favorite,
    run_list_favorites,
    run_merge_favorites,
    run_toggle_favorite,
)
from src.domain.entities import User

router = APIRouter()


@router.get("")
def list_favorites(
    current_user: User = Depends(get_current_user),
    repo: SQLiteFavoriteRepo = Depends(get_favorite_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    images: ImageResolver = Depends(get_image_resolver),
) -> dict[str, Any]:
    assert current_user.id is not None
    result = run_list_favorites(current_user.id, repo, catalog)
    return {
        "product_ids": result.product_ids,
        "by_category": {
            str(category_id): [product_response(p, images) for p in products]
            for category_id, products in result.by_category.items()
        },
    }


@router.post("")
def toggle_favorite(
    req: FavoriteToggleRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteFavoriteRepo = Depends(get_favorite_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    clock: Any = Depends(get_clock),
) -> dict[str, bool]:
    assert current_user.id is not None
    result = run_toggle_favorite(current_user.id, req.product_id, repo, catalog, clock)
    raise_for_output(result)
    return {"is_favorite": result.is_favorite}


@router.get("/{product_id}")
def is_favorite(
    product_id: int,
    current_user: User = Depends(get_current_user),
    repo: SQLiteFavoriteRepo = Depends(get_favorite_repo),
) -> dict[str, bool]:
    assert current_user.id is not None
    return {"is_favorite": run_is_favorite(current_user.id, product_id, repo)}


@router.post("/merge")
def merge_favorites(
    req: FavoritesMergeRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteFavoriteRepo = Depends(get_favorite_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    clock: Any = Depends(get_clock),
) -> dict[str, int]:
    """Fold anonymous (cookie) favorites into the account."""
    assert current_user.id is not None
    result = run_merge_favorites(current_user.id, req.product_ids, repo, catalog, clock)
    return {"added": result.added, "total": result.total}


@router.delete("")
def clear_favorites(
    current_user: User = Depends(get_current_user),
    repo: SQLiteFavoriteRepo = Depends(get_favorite_repo),
) -> dict[str, int]:
    assert current_user.id is not None
    return {"removed": run_clear_favorites(current_user.id, repo)}
