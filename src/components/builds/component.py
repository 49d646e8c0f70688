"""
Builds component - Saved PC configurations.

Shell Layer - handles I/O and error conversion.
"""

from __future__ import annotations

import logging
import math
import random

from src.components.catalog.ports import CatalogRepoPort
from src.core.ports.time import TimePort
from src.domain.entities import Build, User
from src.domain.policy import PolicyEngine

from ._impl import build_statistics, calculate_total_price, generate_slug, missing_categories
from .models import (
    BuildOutput,
    BuildPage,
    BuildStatistics,
    ListBuildsInput,
    ManagerUpdateBuildInput,
    SaveBuildInput,
    ValidateBuildOutput,
)
from .ports import BuildRepoPort

logger = logging.getLogger(__name__)


def _price_of(components: dict[str, str], catalog: CatalogRepoPort) -> float:
    prices = {}
    for slug in components.values():
        if not slug:
            continue
        product = catalog.get_product_by_slug(slug)
        if product is not None:
            prices[slug] = product.price
    return calculate_total_price(components, prices)


def run_calculate_total_price(components: dict[str, str], catalog: CatalogRepoPort) -> float:
    return _price_of(components, catalog)


def run_validate_build(
    components: dict[str, str], catalog: CatalogRepoPort
) -> ValidateBuildOutput:
    missing = missing_categories(components, catalog.list_categories())
    return ValidateBuildOutput(valid=not missing, missing_categories=missing)


def _unique_slug(name: str, repo: BuildRepoPort, time: TimePort, rng: random.Random | None) -> str:
    for _ in range(5):
        slug = generate_slug(name, time.now_utc(), rng)
        if repo.get_by_slug(slug) is None:
            return slug
    raise RuntimeError(f"Could not allocate a unique slug for build {name!r}")


def run_save_build(
    inp: SaveBuildInput,
    user: User,
    repo: BuildRepoPort,
    catalog: CatalogRepoPort,
    time: TimePort,
    rng: random.Random | None = None,
) -> BuildOutput:
    name = inp.name.strip()
    components = {k: v for k, v in inp.components.items() if v}
    if not name:
        return BuildOutput(error="Build name is required", error_code="validation")
    if not components:
        return BuildOutput(error="A build needs at least one component", error_code="validation")

    now = time.now_utc()
    total = _price_of(components, catalog)

    if inp.slug:
        existing = repo.get_by_slug(inp.slug)
        if existing is None:
            return BuildOutput(error="Build not found", error_code="not_found")
        if existing.user_id != user.id:
            return BuildOutput(error="You can only edit your own builds", error_code="forbidden")
        saved = repo.save(
            existing.model_copy(
                update={"name": name, "components": components, "total_price": total, "updated_at": now}
            )
        )
        logger.info("Build updated: %s", saved.slug)
        return BuildOutput(build=saved, success=True)

    build = Build(
        name=name,
        slug=_unique_slug(name, repo, time, rng),
        user_id=user.id,
        components=components,
        total_price=total,
        created_at=now,
        updated_at=now,
    )
    saved = repo.save(build)
    logger.info("Build created: %s (user=%s)", saved.slug, user.id)
    return BuildOutput(build=saved, success=True)


def run_get_build(slug: str, repo: BuildRepoPort) -> BuildOutput:
    build = repo.get_by_slug(slug)
    if build is None:
        return BuildOutput(error="Build not found", error_code="not_found")
    return BuildOutput(build=build, success=True)


def run_list_user_builds(user: User, repo: BuildRepoPort) -> list[Build]:
    assert user.id is not None
    return repo.list_by_user(user.id)


def run_delete_build(
    slug: str, user: User, repo: BuildRepoPort, policy: PolicyEngine
) -> BuildOutput:
    build = repo.get_by_slug(slug)
    if build is None or build.id is None:
        return BuildOutput(error="Build not found", error_code="not_found")
    if not policy.can_modify_build(user, build):
        return BuildOutput(error="Not allowed to delete this build", error_code="forbidden")
    repo.delete(build.id)
    logger.info("Build deleted: %s by user %s", slug, user.id)
    return BuildOutput(build=build, success=True)


# --- Manager ---


def run_list_builds(inp: ListBuildsInput, repo: BuildRepoPort) -> BuildPage:
    limit = max(1, inp.limit)
    page = max(1, inp.page)
    search = inp.search.strip() if inp.search else None
    builds, total = repo.search(search or None, (page - 1) * limit, limit)
    return BuildPage(
        builds=builds,
        total_items=total,
        total_pages=max(1, math.ceil(total / limit)),
        current_page=page,
    )


def run_manager_update_build(
    inp: ManagerUpdateBuildInput,
    repo: BuildRepoPort,
    catalog: CatalogRepoPort,
    time: TimePort,
) -> BuildOutput:
    build = repo.get_by_id(inp.build_id)
    if build is None:
        return BuildOutput(error="Build not found", error_code="not_found")

    update: dict[str, object] = {"updated_at": time.now_utc()}
    if inp.name is not None:
        if not inp.name.strip():
            return BuildOutput(error="Build name is required", error_code="validation")
        update["name"] = inp.name.strip()
    if inp.components is not None:
        components = {k: v for k, v in inp.components.items() if v}
        if not components:
            return BuildOutput(error="A build needs at least one component", error_code="validation")
        update["components"] = components
        update["total_price"] = _price_of(components, catalog)

    saved = repo.save(build.model_copy(update=update))
    return BuildOutput(build=saved, success=True)


def run_manager_delete_build(build_id: int, repo: BuildRepoPort) -> BuildOutput:
    if not repo.delete(build_id):
        return BuildOutput(error="Build not found", error_code="not_found")
    return BuildOutput(success=True)


def run_build_statistics(repo: BuildRepoPort, time: TimePort) -> BuildStatistics:
    return build_statistics(repo.list_all(), time.now_utc())
