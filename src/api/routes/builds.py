from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, status

from src.adapters.sqlite.repos import SQLiteBuildRepo, SQLiteCatalogRepo
from src.api.deps import get_build_repo, get_catalog_repo, get_clock, get_current_user, get_policy
from src.api.errors import raise_for_output
from src.api.schemas import BuildSaveRequest, ComponentsRequest
from src.components.builds import (
    SaveBuildInput,
    run_calculate_total_price,
    run_delete_build,
    run_get_build,
    run_list_user_builds,
    run_save_build,
    run_validate_build,
)
from src.domain.entities import Build, User
from src.domain.policy import PolicyEngine

router = APIRouter()


@router.post("", response_model=Build, status_code=status.HTTP_201_CREATED)
def save_build(
    req: BuildSaveRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteBuildRepo = Depends(get_build_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    clock: Any = Depends(get_clock),
) -> Build:
    """Create a build, or update one of the caller's builds when slug is given."""
    result = run_save_build(
        SaveBuildInput(name=req.name, components=req.components, slug=req.slug),
        current_user,
        repo,
        catalog,
        clock,
    )
    raise_for_output(result)
    assert result.build is not None
    return result.build


@router.get("/user", response_model=list[Build])
def list_user_builds(
    current_user: User = Depends(get_current_user),
    repo: SQLiteBuildRepo = Depends(get_build_repo),
) -> list[Build]:
    return run_list_user_builds(current_user, repo)


@router.post("/validate")
def validate_build(
    req: ComponentsRequest, catalog: SQLiteCatalogRepo = Depends(get_catalog_repo)
) -> dict[str, Any]:
    return asdict(run_validate_build(req.components, catalog))


@router.post("/price")
def build_price(
    req: ComponentsRequest, catalog: SQLiteCatalogRepo = Depends(get_catalog_repo)
) -> dict[str, float]:
    return {"total_price": run_calculate_total_price(req.components, catalog)}


@router.get("/{slug}", response_model=Build)
def get_build(slug: str, repo: SQLiteBuildRepo = Depends(get_build_repo)) -> Build:
    result = run_get_build(slug, repo)
    raise_for_output(result)
    assert result.build is not None
    return result.build


@router.delete("/{slug}")
def delete_build(
    slug: str,
    current_user: User = Depends(get_current_user),
    repo: SQLiteBuildRepo = Depends(get_build_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> dict[str, bool]:
    raise_for_output(run_delete_build(slug, current_user, repo, policy))
    return {"success": True}
