from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends

from src.adapters.images import ImageResolver
from src.adapters.sqlite.repos import SQLiteBuildRepo, SQLiteCatalogRepo, SQLiteRuleRepo
from src.api.deps import (
    get_build_repo,
    get_catalog_repo,
    get_image_resolver,
    get_rule_repo,
    get_rules,
)
from src.api.errors import raise_for_output
from src.api.schemas import (
    CompatibilityCheckRequest,
    CompatibleComponentsRequest,
    ComponentsRequest,
    PairCheckRequest,
    product_response,
)
from src.components.compatibility import (
    ComponentRef,
    run_check_build,
    run_check_components,
    run_check_pair,
    run_check_saved_build,
    run_get_compatible_components,
)
from src.rules.models import Rules

# ComponentNotFoundError -> 404 (handler in main)
router = APIRouter()


@router.post("/check")
def check_components(
    req: CompatibilityCheckRequest,
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    refs = [ComponentRef(c.category_slug, c.product_slug) for c in req.components]
    return asdict(run_check_components(refs, catalog, rule_repo, rules.compatibility))


@router.post("/build")
def check_build(
    req: ComponentsRequest,
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    return asdict(run_check_build(req.components, catalog, rule_repo, rules.compatibility))


@router.get("/build/{build_id}")
def check_saved_build(
    build_id: int,
    builds: SQLiteBuildRepo = Depends(get_build_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    result = run_check_saved_build(build_id, builds, catalog, rule_repo, rules.compatibility)
    raise_for_output(result)
    assert result.result is not None
    return asdict(result.result)


@router.post("/components")
def compatible_components(
    req: CompatibleComponentsRequest,
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
    images: ImageResolver = Depends(get_image_resolver),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    result = run_get_compatible_components(
        req.category_slug, req.components, catalog, rule_repo, rules.compatibility
    )
    raise_for_output(result)
    return {
        "product_ids": result.product_ids,
        "products": [product_response(p, images) for p in result.products],
    }


@router.post("/pair")
def check_pair(
    req: PairCheckRequest,
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    pair = run_check_pair(
        ComponentRef(req.first.category_slug, req.first.product_slug),
        ComponentRef(req.second.category_slug, req.second.product_slug),
        catalog,
        rule_repo,
        rules.compatibility,
    )
    return asdict(pair)
