"""
Favorites component - Per-user product favorites.
"""

from .component import (
    run_clear_favorites,
    run_is_favorite,
    run_list_favorites,
    run_merge_favorites,
    run_toggle_favorite,
)
from .models import FavoritesOutput, MergeFavoritesOutput, ToggleFavoriteOutput
from .ports import FavoriteRepoPort, ProductLookupPort

__all__ = [
    "run_toggle_favorite",
    "run_list_favorites",
    "run_is_favorite",
    "run_merge_favorites",
    "run_clear_favorites",
    "FavoritesOutput",
    "MergeFavoritesOutput",
    "ToggleFavoriteOutput",
    "FavoriteRepoPort",
    "ProductLookupPort",
]
