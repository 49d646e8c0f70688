"""
Builds component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import Build


class BuildRepoPort(Protocol):
    """Repository interface for saved PC builds."""

    def get_by_id(self, build_id: int) -> Build | None: ...

    def get_by_slug(self, slug: str) -> Build | None: ...

    def list_by_user(self, user_id: int) -> list[Build]:
        """Newest first."""
        ...

    def list_all(self) -> list[Build]: ...

    def search(self, query: str | None, offset: int, limit: int) -> tuple[list[Build], int]:
        """Page of builds whose name matches query, plus the total match count."""
        ...

    def save(self, build: Build) -> Build: ...

    def delete(self, build_id: int) -> bool: ...
