"""
Orders component - Delivery address book.

A user has at most one default address. The first address a user
saves becomes the default; deleting the default promotes the oldest
remaining one.
"""

from __future__ import annotations

import logging

from src.core.ports.time import TimePort
from src.domain.entities import DeliveryAddress, User

from ._impl import validate_address
from .models import AddressInput, AddressOutput
from .ports import AddressRepoPort

logger = logging.getLogger(__name__)


def run_list_addresses(user: User, repo: AddressRepoPort) -> list[DeliveryAddress]:
    assert user.id is not None
    return repo.list_by_user(user.id)


def run_save_address(
    user: User,
    inp: AddressInput,
    repo: AddressRepoPort,
    time: TimePort,
    address_id: int | None = None,
) -> AddressOutput:
    assert user.id is not None
    errors = validate_address(inp)
    if errors:
        return AddressOutput(
            error="Invalid delivery address", error_code="validation", field_errors=errors
        )

    existing = repo.list_by_user(user.id)
    current = None
    if address_id is not None:
        current = next((a for a in existing if a.id == address_id), None)
        if current is None:
            return AddressOutput(error="Address not found", error_code="not_found")

    others = [a for a in existing if a.id != address_id]
    is_default = inp.is_default or not others
    if is_default and any(a.is_default for a in others):
        repo.clear_default(user.id)

    saved = repo.save(
        DeliveryAddress(
            id=address_id,
            user_id=user.id,
            recipient_name=inp.recipient_name.strip(),
            phone=inp.phone.strip(),
            city=inp.city.strip(),
            street=inp.street.strip(),
            house=inp.house.strip(),
            apartment=(inp.apartment or "").strip() or None,
            postal_code=(inp.postal_code or "").strip() or None,
            is_default=is_default or bool(current and current.is_default),
            created_at=current.created_at if current else time.now_utc(),
        )
    )
    return AddressOutput(address=saved, success=True)


def run_set_default_address(user: User, address_id: int, repo: AddressRepoPort) -> AddressOutput:
    address = repo.get(address_id)
    if address is None or address.user_id != user.id:
        return AddressOutput(error="Address not found", error_code="not_found")
    repo.clear_default(address.user_id)
    saved = repo.save(address.model_copy(update={"is_default": True}))
    return AddressOutput(address=saved, success=True)


def run_delete_address(user: User, address_id: int, repo: AddressRepoPort) -> AddressOutput:
    address = repo.get(address_id)
    if address is None or address.user_id != user.id:
        return AddressOutput(error="Address not found", error_code="not_found")
    repo.delete(address_id)

    if address.is_default:
        remaining = sorted(repo.list_by_user(address.user_id), key=lambda a: a.created_at)
        if remaining:
            repo.save(remaining[0].model_copy(update={"is_default": True}))
            logger.debug("Address %s promoted to default", remaining[0].id)
    return AddressOutput(address=address, success=True)
