"""
Manager API: dashboard analytics, clients, builds, orders and delivery.

Managers and admins may use every route.
"""

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Query, status

from src.adapters.sqlite.repos import (
    SQLiteBuildRepo,
    SQLiteCatalogRepo,
    SQLiteOrderRepo,
    SQLiteReferenceRepo,
    SQLiteUserRepo,
)
from src.api.deps import (
    get_build_repo,
    get_catalog_repo,
    get_clock,
    get_order_repo,
    get_policy,
    get_reference_repo,
    get_rules,
    get_user_repo,
    require_manager,
)
from src.api.errors import raise_for_output
from src.api.schemas import BuildUpdateRequest, DeliveryMethodRequest, StatusUpdateRequest, user_response
from src.components.analytics import (
    ListClientsInput,
    ManagerAnalyticsInput,
    run_list_clients,
    run_manager_analytics,
)
from src.components.builds import (
    ListBuildsInput,
    ManagerUpdateBuildInput,
    run_build_statistics,
    run_list_builds,
    run_manager_delete_build,
    run_manager_update_build,
)
from src.components.orders import (
    DeliveryMethodInput,
    ListOrdersInput,
    run_delete_delivery_method,
    run_delivery_orders,
    run_list_delivery_methods,
    run_list_orders,
    run_save_delivery_method,
    run_update_status,
)
from src.domain.entities import Build, DeliveryMethod, Order, User
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

router = APIRouter()


@router.get("/verify")
def verify_manager(manager: User = Depends(require_manager)) -> dict[str, Any]:
    return {"is_manager": True, "user": user_response(manager)}


@router.get("/analytics")
def analytics(
    period: int = Query(default=30, ge=1, le=366),
    manager: User = Depends(require_manager),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> dict[str, Any]:
    result = run_manager_analytics(
        ManagerAnalyticsInput(period_days=period), orders, refs, rules, clock
    )
    return asdict(result)


@router.get("/clients")
def list_clients(
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    manager: User = Depends(require_manager),
    users: SQLiteUserRepo = Depends(get_user_repo),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    result = run_list_clients(ListClientsInput(search=search, page=page, limit=limit), users, rules)
    return asdict(result)


# --- Builds ---


@router.get("/builds")
def list_builds(
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    manager: User = Depends(require_manager),
    builds: SQLiteBuildRepo = Depends(get_build_repo),
) -> dict[str, Any]:
    return asdict(run_list_builds(ListBuildsInput(search=search, page=page, limit=limit), builds))


@router.get("/builds/statistics")
def build_statistics(
    manager: User = Depends(require_manager),
    builds: SQLiteBuildRepo = Depends(get_build_repo),
    clock: Any = Depends(get_clock),
) -> dict[str, Any]:
    return asdict(run_build_statistics(builds, clock))


@router.put("/builds/{build_id}", response_model=Build)
def update_build(
    build_id: int,
    req: BuildUpdateRequest,
    manager: User = Depends(require_manager),
    builds: SQLiteBuildRepo = Depends(get_build_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    clock: Any = Depends(get_clock),
) -> Build:
    inp = ManagerUpdateBuildInput(build_id=build_id, name=req.name, components=req.components)
    result = run_manager_update_build(inp, builds, catalog, clock)
    raise_for_output(result)
    assert result.build is not None
    return result.build


@router.delete("/builds/{build_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_build(
    build_id: int,
    manager: User = Depends(require_manager),
    builds: SQLiteBuildRepo = Depends(get_build_repo),
) -> None:
    raise_for_output(run_manager_delete_build(build_id, builds))


# --- Orders ---


@router.get("/orders")
def list_orders(
    status_id: int | None = Query(default=None, alias="status"),
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    manager: User = Depends(require_manager),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
) -> dict[str, Any]:
    result = run_list_orders(
        ListOrdersInput(status_id=status_id, search=search, page=page, limit=limit), orders
    )
    return asdict(result)


@router.put("/orders/{order_id}/status", response_model=Order)
def update_order_status(
    order_id: int,
    req: StatusUpdateRequest,
    manager: User = Depends(require_manager),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    policy: PolicyEngine = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Order:
    result = run_update_status(
        manager, order_id, req.status_id, req.comment, orders, refs, policy, clock
    )
    raise_for_output(result)
    assert result.order is not None
    return result.order


# --- Delivery ---


@router.get("/delivery/orders", response_model=list[Order])
def delivery_orders(
    manager: User = Depends(require_manager),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    rules: Rules = Depends(get_rules),
) -> list[Order]:
    return run_delivery_orders(orders, rules.orders)


@router.get("/delivery-methods", response_model=list[DeliveryMethod])
def list_delivery_methods(
    manager: User = Depends(require_manager),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
) -> list[DeliveryMethod]:
    return run_list_delivery_methods(refs, active_only=False)


@router.post("/delivery-methods", response_model=DeliveryMethod, status_code=status.HTTP_201_CREATED)
def create_delivery_method(
    req: DeliveryMethodRequest,
    manager: User = Depends(require_manager),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
) -> DeliveryMethod:
    result = run_save_delivery_method(DeliveryMethodInput(**req.model_dump()), refs)
    raise_for_output(result)
    assert result.method is not None
    return result.method


@router.put("/delivery-methods/{method_id}", response_model=DeliveryMethod)
def update_delivery_method(
    method_id: int,
    req: DeliveryMethodRequest,
    manager: User = Depends(require_manager),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
) -> DeliveryMethod:
    result = run_save_delivery_method(DeliveryMethodInput(**req.model_dump()), refs, method_id)
    raise_for_output(result)
    assert result.method is not None
    return result.method


@router.delete("/delivery-methods/{method_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_delivery_method(
    method_id: int,
    manager: User = Depends(require_manager),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
) -> None:
    """Deletes the method, or deactivates it when orders still reference it."""
    raise_for_output(run_delete_delivery_method(method_id, refs))
