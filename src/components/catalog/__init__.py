"""
Catalog component - Categories, products, listing filters and search.
"""

from .component import (
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
from .models import (
    CategoryFilters,
    CategoryOutput,
    CategoryProductsOutput,
    GetCategoryProductsInput,
    GetProductInput,
    ProductFilters,
    ProductOutput,
    ProductPage,
    SaveCategoryInput,
    SaveProductInput,
    SearchInput,
    SearchOutput,
)
from .ports import CatalogRepoPort

__all__ = [
    # Entry points
    "run_list_categories",
    "run_get_category_products",
    "run_get_product",
    "run_get_category_filters",
    "run_list_brands",
    "run_list_category_characteristics",
    "run_list_characteristic_types",
    "run_save_product",
    "run_delete_product",
    "run_save_category",
    "run_delete_category",
    "run_search",
    "run_suggestions",
    # Input models
    "GetCategoryProductsInput",
    "GetProductInput",
    "ProductFilters",
    "SaveProductInput",
    "SaveCategoryInput",
    "SearchInput",
    # Output models
    "CategoryProductsOutput",
    "ProductOutput",
    "ProductPage",
    "CategoryOutput",
    "CategoryFilters",
    "SearchOutput",
    # Ports
    "CatalogRepoPort",
]
