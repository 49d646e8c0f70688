"""
Builds - Functional Core.

Slugs, prices, completeness and statistics for saved builds.
"""

from __future__ import annotations

import random
import re
from collections import Counter
from datetime import datetime

from src.domain.entities import Build, Category

from .models import BuildStatistics, MonthlyCount, PopularComponent

_CYRILLIC = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ё": "yo",
    "ж": "zh", "з": "z", "и": "i", "й": "y", "к": "k", "л": "l", "м": "m",
    "н": "n", "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u",
    "ф": "f", "х": "h", "ц": "ts", "ч": "ch", "ш": "sh", "щ": "shch", "ъ": "",
    "ы": "y", "ь": "", "э": "e", "ю": "yu", "я": "ya",
}


def slugify(name: str) -> str:
    text = "".join(_CYRILLIC.get(ch, ch) for ch in name.lower())
    return re.sub(r"[^a-z0-9]+", "-", text).strip("-")


def generate_slug(name: str, now: datetime, rng: random.Random | None = None) -> str:
    """slugify(name)-YYMMDDNNN, NNN being three random digits."""
    base = slugify(name) or "build"
    suffix = (rng or random).randint(0, 999)
    return f"{base}-{now:%y%m%d}{suffix:03d}"


def calculate_total_price(components: dict[str, str], prices: dict[str, float]) -> float:
    """Sum of component prices; unknown product slugs count as zero."""
    return round(sum(prices.get(slug, 0.0) for slug in components.values() if slug), 2)


def missing_categories(components: dict[str, str], categories: list[Category]) -> list[str]:
    """Names of top-level categories with no component in their subtree."""
    by_slug = {c.slug: c for c in categories}
    by_id = {c.id: c for c in categories}

    covered: set[int | None] = set()
    for slug, product in components.items():
        if not product or slug not in by_slug:
            continue
        node: Category | None = by_slug[slug]
        while node is not None:
            covered.add(node.id)
            node = by_id.get(node.parent_id) if node.parent_id is not None else None

    return [c.name for c in categories if c.parent_id is None and c.id not in covered]


def _month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def last_months(now: datetime, count: int = 12) -> list[str]:
    """YYYY-MM keys, oldest first, ending with the current month."""
    keys = []
    year, month = now.year, now.month
    for _ in range(count):
        keys.append(_month_key(year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def build_statistics(builds: list[Build], now: datetime, top: int = 10) -> BuildStatistics:
    prices = [b.total_price for b in builds]
    usage = Counter(
        (category, product)
        for b in builds
        for category, product in b.components.items()
        if product
    )
    months = last_months(now)
    per_month = Counter(_month_key(b.created_at.year, b.created_at.month) for b in builds)

    return BuildStatistics(
        total_builds=len(builds),
        average_price=round(sum(prices) / len(prices), 2) if prices else 0.0,
        most_popular_components=[
            PopularComponent(category=c, product=p, count=n)
            for (c, p), n in usage.most_common(top)
        ],
        builds_by_month=[MonthlyCount(month=m, count=per_month.get(m, 0)) for m in months],
    )
