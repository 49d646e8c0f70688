"""
Compatibility component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import Build, CompatibilityRule


class RuleRepoPort(Protocol):
    """Repository interface for compatibility rules."""

    def find_rules(
        self, primary_category_id: int, secondary_category_id: int
    ) -> list[CompatibilityRule]:
        """Rules with this exact (primary, secondary) category pair, fully loaded."""
        ...

    def list_rules(self) -> list[CompatibilityRule]: ...

    def get_rule(self, rule_id: int) -> CompatibilityRule | None: ...

    def save_rule(self, rule: CompatibilityRule) -> CompatibilityRule:
        """Insert or update; category pairs and characteristics are replaced."""
        ...

    def delete_rule(self, rule_id: int) -> bool: ...

    def delete_all_rules(self) -> int: ...


class BuildLookupPort(Protocol):
    def get_by_id(self, build_id: int) -> Build | None: ...
