from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, status

from src.adapters.auth.crypto import JWTAuthAdapter
from src.adapters.sqlite.repos import (
    SQLiteAddressRepo,
    SQLiteOrderRepo,
    SQLiteReferenceRepo,
    SQLiteUserRepo,
)
from src.api.deps import (
    get_address_repo,
    get_auth_adapter,
    get_clock,
    get_current_user,
    get_kv_store,
    get_order_repo,
    get_policy,
    get_reference_repo,
    get_rules,
    get_user_repo,
)
from src.api.errors import raise_for_output
from src.api.schemas import (
    AddressRequest,
    PasswordUpdateRequest,
    ProfileResponse,
    ProfileUpdateRequest,
)
from src.components.auth import (
    UpdatePasswordInput,
    UpdateProfileInput,
    run_get_profile,
    run_update_password,
    run_update_profile,
)
from src.components.orders import (
    AddressInput,
    run_delete_address,
    run_get_user_order_by_number,
    run_list_addresses,
    run_list_user_orders,
    run_save_address,
    run_set_default_address,
)
from src.core.ports.kv import KVStorePort
from src.domain.entities import DeliveryAddress, Order, User
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

router = APIRouter()


@router.get("", response_model=ProfileResponse)
def get_profile(current_user: User = Depends(get_current_user)) -> ProfileResponse:
    result = run_get_profile(current_user)
    return ProfileResponse.model_validate(result.profile)


@router.put("", response_model=ProfileResponse)
def update_profile(
    req: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    kv: KVStorePort = Depends(get_kv_store),
    clock: Any = Depends(get_clock),
) -> ProfileResponse:
    result = run_update_profile(
        current_user, UpdateProfileInput(**req.model_dump()), user_repo, kv, clock
    )
    raise_for_output(result)
    return ProfileResponse.model_validate(result.profile)


@router.post("/password")
def update_password(
    req: PasswordUpdateRequest,
    current_user: User = Depends(get_current_user),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> dict[str, bool]:
    result = run_update_password(
        current_user, UpdatePasswordInput(**req.model_dump()), user_repo, auth_adapter, rules, clock
    )
    raise_for_output(result)
    return {"success": True}


# --- Order history ---


@router.get("/orders", response_model=list[Order])
def list_orders(
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
) -> list[Order]:
    return run_list_user_orders(current_user, orders)


@router.get("/orders/{order_number}")
def get_order_by_number(
    order_number: str,
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    addresses: SQLiteAddressRepo = Depends(get_address_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> dict[str, Any]:
    result = run_get_user_order_by_number(current_user, order_number, orders, refs, addresses, policy)
    raise_for_output(result)
    assert result.detail is not None
    return asdict(result.detail)


# --- Delivery addresses ---


@router.get("/addresses", response_model=list[DeliveryAddress])
def list_addresses(
    current_user: User = Depends(get_current_user),
    repo: SQLiteAddressRepo = Depends(get_address_repo),
) -> list[DeliveryAddress]:
    return run_list_addresses(current_user, repo)


@router.post("/addresses", response_model=DeliveryAddress, status_code=status.HTTP_201_CREATED)
def create_address(
    req: AddressRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteAddressRepo = Depends(get_address_repo),
    clock: Any = Depends(get_clock),
) -> DeliveryAddress:
    result = run_save_address(current_user, AddressInput(**req.model_dump()), repo, clock)
    raise_for_output(result)
    assert result.address is not None
    return result.address


@router.put("/addresses/{address_id}", response_model=DeliveryAddress)
def update_address(
    address_id: int,
    req: AddressRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteAddressRepo = Depends(get_address_repo),
    clock: Any = Depends(get_clock),
) -> DeliveryAddress:
    result = run_save_address(
        current_user, AddressInput(**req.model_dump()), repo, clock, address_id=address_id
    )
    raise_for_output(result)
    assert result.address is not None
    return result.address


@router.post("/addresses/{address_id}/default", response_model=DeliveryAddress)
def set_default_address(
    address_id: int,
    current_user: User = Depends(get_current_user),
    repo: SQLiteAddressRepo = Depends(get_address_repo),
) -> DeliveryAddress:
    result = run_set_default_address(current_user, address_id, repo)
    raise_for_output(result)
    assert result.address is not None
    return result.address


@router.delete("/addresses/{address_id}")
def delete_address(
    address_id: int,
    current_user: User = Depends(get_current_user),
    repo: SQLiteAddressRepo = Depends(get_address_repo),
) -> dict[str, bool]:
    raise_for_output(run_delete_address(current_user, address_id, repo))
    return {"success": True}
