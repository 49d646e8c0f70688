"""
Favorites component - Per-user product favorites.
"""

from __future__ import annotations

import logging

from src.core.ports.time import TimePort

from .models import FavoritesOutput, MergeFavoritesOutput, ToggleFavoriteOutput
from .ports import FavoriteRepoPort, ProductLookupPort

logger = logging.getLogger(__name__)


def run_toggle_favorite(
    user_id: int,
    product_id: int,
    repo: FavoriteRepoPort,
    products: ProductLookupPort,
    time: TimePort,
) -> ToggleFavoriteOutput:
    if products.get_product_by_id(product_id) is None:
        return ToggleFavoriteOutput(error="Product not found", error_code="not_found")

    if repo.exists(user_id, product_id):
        repo.remove(user_id, product_id)
        return ToggleFavoriteOutput(is_favorite=False, success=True)

    repo.add(user_id, product_id, time.now_utc())
    return ToggleFavoriteOutput(is_favorite=True, success=True)


def run_list_favorites(
    user_id: int, repo: FavoriteRepoPort, products: ProductLookupPort
) -> FavoritesOutput:
    ids = [f.product_id for f in repo.list_by_user(user_id)]
    out = FavoritesOutput()
    for product in products.get_products_by_ids(ids):
        out.by_category.setdefault(product.category_id, []).append(product)
    return out


def run_is_favorite(user_id: int, product_id: int, repo: FavoriteRepoPort) -> bool:
    return repo.exists(user_id, product_id)


def run_merge_favorites(
    user_id: int,
    product_ids: list[int],
    repo: FavoriteRepoPort,
    products: ProductLookupPort,
    time: TimePort,
) -> MergeFavoritesOutput:
    """Fold an anonymous favorites cookie into the user's favorites."""
    known = {p.id for p in products.get_products_by_ids(list(dict.fromkeys(product_ids)))}
    now = time.now_utc()
    added = 0
    for product_id in dict.fromkeys(product_ids):
        if product_id not in known or repo.exists(user_id, product_id):
            continue
        repo.add(user_id, product_id, now)
        added += 1

    total = len(repo.list_by_user(user_id))
    if added:
        logger.info("Merged %d favorites for user %s", added, user_id)
    return MergeFavoritesOutput(added=added, total=total)


def run_clear_favorites(user_id: int, repo: FavoriteRepoPort) -> int:
    return repo.clear(user_id)
