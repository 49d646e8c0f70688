"""
Cart component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import Build, Product


class ProductLookupPort(Protocol):
    def get_product_by_id(self, product_id: int) -> Product | None: ...


class BuildLookupPort(Protocol):
    def get_by_slug(self, slug: str) -> Build | None: ...
