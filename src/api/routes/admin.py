"""
Admin API: users, catalog, compatibility rules and orders.

Every route requires the admin role.
"""

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Query, status

from src.adapters.sqlite.repos import (
    SQLiteAddressRepo,
    SQLiteCatalogRepo,
    SQLiteOrderRepo,
    SQLiteReferenceRepo,
    SQLiteRuleRepo,
    SQLiteUserRepo,
)
from src.api.deps import (
    get_address_repo,
    get_catalog_repo,
    get_clock,
    get_kv_store,
    get_order_repo,
    get_policy,
    get_reference_repo,
    get_rule_repo,
    get_rules,
    get_user_repo,
    require_admin,
)
from src.api.errors import raise_for_output
from src.api.schemas import (
    CategorySaveRequest,
    DeactivateInactiveRequest,
    ProductSaveRequest,
    RuleSaveRequest,
    RulesImportRequest,
    StatusUpdateRequest,
    UserResponse,
    UserUpdateRequest,
    user_response,
)
from src.components.auth import (
    UpdateUserInput,
    run_deactivate_inactive,
    run_delete_user,
    run_list_users,
    run_set_online,
    run_update_user,
)
from src.components.catalog import (
    SaveCategoryInput,
    SaveProductInput,
    run_delete_category,
    run_delete_product,
    run_list_brands,
    run_list_categories,
    run_list_category_characteristics,
    run_list_characteristic_types,
    run_save_category,
    run_save_product,
)
from src.components.compatibility import (
    SaveRuleInput,
    run_delete_rule,
    run_export_rules,
    run_get_rule,
    run_import_rules,
    run_list_rule_categories,
    run_list_rules,
    run_save_rule,
)
from src.components.orders import (
    ListOrdersInput,
    run_get_order,
    run_list_orders,
    run_list_statuses,
    run_order_statistics,
    run_update_status,
)
from src.core.ports.kv import KVStorePort
from src.domain.entities import (
    Category,
    CharacteristicType,
    CompatibilityRule,
    Order,
    OrderStatus,
    Product,
    RuleCharacteristic,
    RuleValuePair,
    User,
)
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/verify")
def verify_admin(admin: User = Depends(require_admin)) -> dict[str, Any]:
    return {"is_admin": True, "user": user_response(admin)}


# --- Users ---


@router.get("/users", response_model=list[UserResponse])
def list_users(
    admin: User = Depends(require_admin),
    repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> list[UserResponse]:
    result = run_list_users(admin, repo, policy)
    raise_for_output(result)
    return [user_response(u) for u in result.users]


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    req: UserUpdateRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
    kv: KVStorePort = Depends(get_kv_store),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> UserResponse:
    inp = UpdateUserInput(
        actor=admin, target_id=user_id, role_id=req.role_id, is_active=req.is_active
    )
    result = run_update_user(inp, repo, policy, kv, rules, clock)
    raise_for_output(result)
    assert result.user is not None
    return user_response(result.user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
    kv: KVStorePort = Depends(get_kv_store),
) -> None:
    result = run_delete_user(admin, user_id, repo, policy, kv, admin_path=True)
    raise_for_output(result)
    logger.info("User %s deleted by admin %s", user_id, admin.id)


@router.post("/users/deactivate-inactive")
def deactivate_inactive(
    req: DeactivateInactiveRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteUserRepo = Depends(get_user_repo),
    kv: KVStorePort = Depends(get_kv_store),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> dict[str, int]:
    return {"deactivated": run_deactivate_inactive(req.days, repo, kv, rules, clock)}


@router.post("/users/{user_id}/online", response_model=UserResponse)
def set_online(
    user_id: int,
    admin: User = Depends(require_admin),
    repo: SQLiteUserRepo = Depends(get_user_repo),
    clock: Any = Depends(get_clock),
) -> UserResponse:
    result = run_set_online(user_id, repo, clock)
    raise_for_output(result)
    assert result.user is not None
    return user_response(result.user)


# --- Products ---


def _save_product(req: ProductSaveRequest, repo: SQLiteCatalogRepo, product_id: int | None) -> Product:
    inp = SaveProductInput(**req.model_dump(), product_id=product_id)
    result = run_save_product(inp, repo)
    raise_for_output(result)
    assert result.product is not None
    return result.product


@router.post("/products", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(
    req: ProductSaveRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> Product:
    return _save_product(req, repo, None)


@router.put("/products/{product_id}", response_model=Product)
def update_product(
    product_id: int,
    req: ProductSaveRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> Product:
    return _save_product(req, repo, product_id)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    admin: User = Depends(require_admin),
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> None:
    raise_for_output(run_delete_product(product_id, repo))


# --- Categories ---


@router.get("/categories", response_model=list[Category])
def list_categories(
    admin: User = Depends(require_admin),
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> list[Category]:
    return run_list_categories(repo)


def _save_category(req: CategorySaveRequest, repo: SQLiteCatalogRepo, category_id: int | None) -> Category:
    result = run_save_category(SaveCategoryInput(**req.model_dump(), category_id=category_id), repo)
    raise_for_output(result)
    assert result.category is not None
    return result.category


@router.post("/categories", response_model=Category, status_code=status.HTTP_201_CREATED)
def create_category(
    req: CategorySaveRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> Category:
    return _save_category(req, repo, None)


@router.put("/categories/{category_id}", response_model=Category)
def update_category(
    category_id: int,
    req: CategorySaveRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> Category:
    return _save_category(req, repo, category_id)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    admin: User = Depends(require_admin),
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> None:
    raise_for_output(run_delete_category(category_id, repo))


@router.get("/categories/{category_id}/brands")
def list_brands(
    category_id: int,
    admin: User = Depends(require_admin),
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> list[str]:
    return run_list_brands(category_id, repo)


@router.get("/categories/{category_id}/characteristics", response_model=list[CharacteristicType])
def list_category_characteristics(
    category_id: int,
    admin: User = Depends(require_admin),
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> list[CharacteristicType]:
    return run_list_category_characteristics(category_id, repo)


# --- Compatibility rules ---


@router.get("/compatibility/rules", response_model=list[CompatibilityRule])
def list_rules(
    admin: User = Depends(require_admin),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
) -> list[CompatibilityRule]:
    return run_list_rules(rule_repo)


@router.get("/compatibility/categories", response_model=list[Category])
def list_rule_categories(
    admin: User = Depends(require_admin),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> list[Category]:
    return run_list_rule_categories(catalog)


@router.get("/compatibility/characteristic-types", response_model=list[CharacteristicType])
def list_characteristic_types(
    admin: User = Depends(require_admin),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> list[CharacteristicType]:
    return run_list_characteristic_types(catalog)


@router.get("/compatibility/rules/export")
def export_rules(
    admin: User = Depends(require_admin),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    clock: Any = Depends(get_clock),
) -> dict[str, Any]:
    return run_export_rules(rule_repo, catalog, clock.now_utc())


@router.post("/compatibility/rules/import")
def import_rules(
    req: RulesImportRequest,
    admin: User = Depends(require_admin),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> dict[str, Any]:
    result = run_import_rules(req.document, rule_repo, catalog, replace=req.replace)
    return asdict(result)


@router.get("/compatibility/rules/{rule_id}", response_model=CompatibilityRule)
def get_rule(
    rule_id: int,
    admin: User = Depends(require_admin),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
) -> CompatibilityRule:
    result = run_get_rule(rule_id, rule_repo)
    raise_for_output(result)
    assert result.rule is not None
    return result.rule


def _save_rule(
    req: RuleSaveRequest,
    rule_repo: SQLiteRuleRepo,
    catalog: SQLiteCatalogRepo,
    rule_id: int | None,
) -> CompatibilityRule:
    inp = SaveRuleInput(
        name=req.name,
        description=req.description,
        categories=[(c.primary_category_id, c.secondary_category_id) for c in req.categories],
        characteristics=[
            RuleCharacteristic(
                primary_characteristic_id=c.primary_characteristic_id,
                secondary_characteristic_id=c.secondary_characteristic_id,
                comparison_type=c.comparison_type,
                values=[RuleValuePair(**v.model_dump()) for v in c.values],
            )
            for c in req.characteristics
        ],
        rule_id=rule_id,
    )
    result = run_save_rule(inp, rule_repo, catalog)
    raise_for_output(result)
    assert result.rule is not None
    return result.rule


@router.post("/compatibility/rules", response_model=CompatibilityRule, status_code=status.HTTP_201_CREATED)
def create_rule(
    req: RuleSaveRequest,
    admin: User = Depends(require_admin),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> CompatibilityRule:
    return _save_rule(req, rule_repo, catalog, None)


@router.put("/compatibility/rules/{rule_id}", response_model=CompatibilityRule)
def update_rule(
    rule_id: int,
    req: RuleSaveRequest,
    admin: User = Depends(require_admin),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
) -> CompatibilityRule:
    return _save_rule(req, rule_repo, catalog, rule_id)


@router.delete("/compatibility/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(
    rule_id: int,
    admin: User = Depends(require_admin),
    rule_repo: SQLiteRuleRepo = Depends(get_rule_repo),
) -> None:
    raise_for_output(run_delete_rule(rule_id, rule_repo))


# --- Orders ---


@router.get("/order-statuses", response_model=list[OrderStatus])
def list_order_statuses(
    admin: User = Depends(require_admin),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
) -> list[OrderStatus]:
    return run_list_statuses(refs)


@router.get("/orders/statistics")
def order_statistics(
    admin: User = Depends(require_admin),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    return asdict(run_order_statistics(orders, rules.orders))


@router.get("/orders")
def list_orders(
    status_id: int | None = Query(default=None, alias="status"),
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    admin: User = Depends(require_admin),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
) -> dict[str, Any]:
    result = run_list_orders(
        ListOrdersInput(status_id=status_id, search=search, page=page, limit=limit), orders
    )
    return asdict(result)


@router.get("/orders/{order_id}")
def get_order(
    order_id: int,
    admin: User = Depends(require_admin),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    addresses: SQLiteAddressRepo = Depends(get_address_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> dict[str, Any]:
    result = run_get_order(admin, order_id, orders, refs, addresses, policy)
    raise_for_output(result)
    assert result.detail is not None
    return asdict(result.detail)


@router.put("/orders/{order_id}/status", response_model=Order)
def update_order_status(
    order_id: int,
    req: StatusUpdateRequest,
    admin: User = Depends(require_admin),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    policy: PolicyEngine = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Order:
    result = run_update_status(admin, order_id, req.status_id, req.comment, orders, refs, policy, clock)
    raise_for_output(result)
    assert result.order is not None
    return result.order
