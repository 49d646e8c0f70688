"""
Catalog - Functional Core.

Pure helpers for category trees, listing filters, pagination
and search ranking. No I/O.
"""

from __future__ import annotations

import math
import re
from collections import Counter

from src.domain.entities import Category, CharacteristicType, Product

from .models import (
    CategoryFilters,
    CharacteristicFilter,
    FilterOption,
    ProductFilters,
    ProductPage,
    SearchSort,
    SortOrder,
)

# --- Categories ---


def strip_product_suffix(slug: str) -> str:
    """Product links may carry a "-p-<n>" tail; the stored slug does not."""
    return slug.split("-p-")[0]


def build_category_tree(categories: list[Category]) -> list[Category]:
    """Nest categories under their parents. Orphans are treated as roots."""
    by_id = {c.id: c.model_copy(update={"children": []}) for c in categories}
    roots: list[Category] = []
    for cat in by_id.values():
        parent = by_id.get(cat.parent_id) if cat.parent_id is not None else None
        if parent is None:
            roots.append(cat)
        else:
            parent.children.append(cat)
    return roots


def descendant_ids(categories: list[Category], root_id: int) -> set[int]:
    """Ids of root_id and every category below it."""
    children: dict[int | None, list[int]] = {}
    for c in categories:
        if c.id is not None:
            children.setdefault(c.parent_id, []).append(c.id)

    found = {root_id}
    stack = [root_id]
    while stack:
        current = stack.pop()
        for child in children.get(current, []):
            if child not in found:
                found.add(child)
                stack.append(child)
    return found


# --- Listing ---


def filter_products(products: list[Product], filters: ProductFilters | None) -> list[Product]:
    if filters is None or filters.is_empty:
        return list(products)

    result = []
    for product in products:
        if filters.price_min is not None and product.price < filters.price_min:
            continue
        if filters.price_max is not None and product.price > filters.price_max:
            continue
        if filters.brands and product.brand not in filters.brands:
            continue
        if not _matches_characteristics(product, filters.characteristics):
            continue
        result.append(product)
    return result


def _matches_characteristics(product: Product, wanted: dict[str, list[str]]) -> bool:
    for type_slug, values in wanted.items():
        if not values:
            continue
        if product.characteristic(type_slug) not in values:
            return False
    return True


def sort_products(products: list[Product], order: SortOrder = "asc") -> list[Product]:
    return sorted(products, key=lambda p: p.price, reverse=(order == "desc"))


def paginate(products: list[Product], page: int, page_size: int) -> ProductPage:
    total_items = len(products)
    total_pages = max(1, math.ceil(total_items / page_size))
    current_page = min(max(1, page), total_pages)
    start = (current_page - 1) * page_size
    return ProductPage(
        products=products[start : start + page_size],
        total_items=total_items,
        total_pages=total_pages,
        current_page=current_page,
    )


def build_category_filters(
    products: list[Product], filter_types: list[CharacteristicType]
) -> CategoryFilters:
    prices = [p.price for p in products]
    brand_counts = Counter(p.brand for p in products if p.brand)
    brands = [
        FilterOption(value=b, label=b, count=n)
        for b, n in sorted(brand_counts.items(), key=lambda item: (-item[1], item[0]))
    ]

    characteristics = []
    for char_type in filter_types:
        counts = Counter(
            value
            for value in (p.characteristic(char_type.slug) for p in products)
            if value
        )
        if not counts:
            continue
        characteristics.append(
            CharacteristicFilter(
                id=char_type.id or 0,
                name=char_type.name,
                slug=char_type.slug,
                options=[FilterOption(value=v, label=v, count=n) for v, n in counts.items()],
            )
        )

    return CategoryFilters(
        price_min=min(prices) if prices else 0.0,
        price_max=max(prices) if prices else 0.0,
        brands=brands,
        characteristics=characteristics,
    )


# --- Search ---


def search_terms(query: str) -> list[str]:
    return [t for t in query.casefold().split() if t]


def relevance_score(product: Product, terms: list[str]) -> int:
    title = product.title.casefold()
    description = (product.description or "").casefold()
    brand = (product.brand or "").casefold()
    first_word = title.split(" ")[0] if title else ""

    score = 0
    if any(title == t for t in terms):
        score += 100
    if any(title.startswith(t) for t in terms):
        score += 50
    if any(t in first_word for t in terms):
        score += 30

    for term in terms:
        pattern = re.escape(term)
        score += len(re.findall(pattern, title)) * 15
        if term in brand:
            score += 10
        score += len(re.findall(pattern, description)) * 2

    if len(title) < 30:
        score += 5
    if len(title) > 100:
        score -= 5
    if terms and all(t in title for t in terms):
        score += 25
    return score


def rank_search_results(products: list[Product], terms: list[str], sort: SearchSort) -> list[Product]:
    if sort == "price_asc":
        return sorted(products, key=lambda p: p.price)
    if sort == "price_desc":
        return sorted(products, key=lambda p: p.price, reverse=True)
    return sorted(products, key=lambda p: (-relevance_score(p, terms), len(p.title)))


def generate_suggestions(query: str, products: list[Product], limit: int = 5) -> list[str]:
    needle = query.casefold()
    suggestions: dict[str, None] = {}

    for product in products:
        words = product.title.split()
        for i, word in enumerate(words):
            if needle not in word.casefold():
                continue
            suggestions[word] = None
            phrase = word
            for j in range(1, 3):
                if i + j >= len(words):
                    break
                phrase = f"{phrase} {words[i + j]}"
                suggestions[phrase] = None
        if product.brand and needle in product.brand.casefold():
            suggestions[product.brand] = None

    candidates = [s for s in suggestions if len(s) >= len(query)]
    candidates.sort(key=lambda s: (not s.casefold().startswith(needle), len(s)))
    return candidates[:limit]
