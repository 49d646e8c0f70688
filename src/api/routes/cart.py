from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Request, Response

from src.adapters.images import ImageResolver
from src.adapters.sqlite.repos import SQLiteBuildRepo, SQLiteCatalogRepo
from src.api.deps import (
    Settings,
    get_build_repo,
    get_catalog_repo,
    get_image_resolver,
    get_rules,
    get_settings,
)
from src.api.errors import raise_for_output
from src.api.schemas import AddToCartRequest, UpdateQuantityRequest
from src.components.cart import (
    AddToCartInput,
    CartOutput,
    items_count,
    run_add_to_cart,
    run_clear_cart,
    run_get_cart,
    run_remove_item,
    run_update_quantity,
    total,
)
from src.rules.models import Rules

router = APIRouter()


def cart_payload(result: CartOutput, images: ImageResolver) -> dict[str, Any]:
    items = []
    for item in result.cart.items:
        data = asdict(item)
        if item.type == "product":
            data["image"] = images.resolve(item.image)
        items.append(data)
    return {
        "items": items,
        "total": total(result.cart),
        "items_count": items_count(result.cart),
    }


def _write_cookie(response: Response, result: CartOutput, rules: Rules, settings: Settings) -> None:
    if result.cookie_value is None:
        return
    response.set_cookie(
        key=rules.cookies.cart,
        value=result.cookie_value,
        max_age=rules.cookies.max_age_seconds,
        samesite="lax",
        secure=settings.cookie_secure,
    )


@router.get("")
def get_cart(
    request: Request,
    images: ImageResolver = Depends(get_image_resolver),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    return cart_payload(run_get_cart(request.cookies.get(rules.cookies.cart)), images)


@router.post("")
def add_to_cart(
    req: AddToCartRequest,
    request: Request,
    response: Response,
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    builds: SQLiteBuildRepo = Depends(get_build_repo),
    images: ImageResolver = Depends(get_image_resolver),
    rules: Rules = Depends(get_rules),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    result = run_add_to_cart(
        request.cookies.get(rules.cookies.cart),
        AddToCartInput(product_id=req.product_id, build_slug=req.build_slug, quantity=req.quantity),
        catalog,
        builds,
    )
    raise_for_output(result)
    _write_cookie(response, result, rules, settings)
    return cart_payload(result, images)


@router.patch("/{item_id}")
def update_quantity(
    item_id: str,
    req: UpdateQuantityRequest,
    request: Request,
    response: Response,
    images: ImageResolver = Depends(get_image_resolver),
    rules: Rules = Depends(get_rules),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    result = run_update_quantity(request.cookies.get(rules.cookies.cart), item_id, req.quantity)
    raise_for_output(result)
    _write_cookie(response, result, rules, settings)
    return cart_payload(result, images)


@router.delete("/{item_id}")
def remove_item(
    item_id: str,
    request: Request,
    response: Response,
    images: ImageResolver = Depends(get_image_resolver),
    rules: Rules = Depends(get_rules),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    result = run_remove_item(request.cookies.get(rules.cookies.cart), item_id)
    _write_cookie(response, result, rules, settings)
    return cart_payload(result, images)


@router.delete("")
def clear_cart(
    response: Response,
    images: ImageResolver = Depends(get_image_resolver),
    rules: Rules = Depends(get_rules),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    result = run_clear_cart()
    _write_cookie(response, result, rules, settings)
    return cart_payload(result, images)
