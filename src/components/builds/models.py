"""
Builds component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.entities import Build

# --- Input Models ---


@dataclass(frozen=True)
class SaveBuildInput:
    """Create a build, or update the user's build when slug is given."""

    name: str
    components: dict[str, str]
    slug: str | None = None


@dataclass(frozen=True)
class ManagerUpdateBuildInput:
    build_id: int
    name: str | None = None
    components: dict[str, str] | None = None


@dataclass(frozen=True)
class ListBuildsInput:
    search: str | None = None
    page: int = 1
    limit: int = 20


# --- Output Models ---


@dataclass
class BuildOutput:
    build: Build | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class ValidateBuildOutput:
    valid: bool
    missing_categories: list[str] = field(default_factory=list)


@dataclass
class BuildPage:
    builds: list[Build]
    total_items: int
    total_pages: int
    current_page: int


@dataclass
class PopularComponent:
    category: str
    product: str
    count: int


@dataclass
class MonthlyCount:
    month: str  # YYYY-MM
    count: int


@dataclass
class BuildStatistics:
    total_builds: int
    average_price: float
    most_popular_components: list[PopularComponent]
    builds_by_month: list[MonthlyCount]
