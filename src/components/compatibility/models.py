"""
Compatibility component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.domain.entities import CompatibilityRule, Product, ProductCharacteristic, RuleCharacteristic


class ComponentNotFoundError(Exception):
    """A category or product referenced by a build does not exist."""


# --- Input Models ---


@dataclass(frozen=True)
class ComponentRef:
    category_slug: str
    product_slug: str


@dataclass(frozen=True)
class SaveRuleInput:
    """Create (rule_id=None) or replace a rule with its pairs."""

    name: str
    description: str | None = None
    # (primary_category_id, secondary_category_id)
    categories: list[tuple[int, int]] = field(default_factory=list)
    characteristics: list[RuleCharacteristic] = field(default_factory=list)
    rule_id: int | None = None


# --- Resolved components ---


@dataclass
class ComponentInfo:
    id: int
    category_slug: str
    product_slug: str
    title: str
    category_id: int
    category_name: str
    characteristics: list[ProductCharacteristic] = field(default_factory=list)

    def value(self, type_slug: str) -> str:
        for char in self.characteristics:
            if char.type_slug == type_slug:
                return char.value
        return ""

    def by_type_id(self, type_id: int) -> ProductCharacteristic | None:
        return next((c for c in self.characteristics if c.type_id == type_id), None)


# --- Output Models ---


@dataclass
class CheckResult:
    """Outcome of a single helper check."""

    compatible: bool
    reason: str | None = None


@dataclass
class IssueComponent:
    id: int
    title: str
    category: str


CONFIGURATION = IssueComponent(id=0, title="Configuration", category="Configuration")


@dataclass
class CompatibilityIssue:
    components: list[IssueComponent]
    reason: str


@dataclass
class PairComponent:
    id: int
    category_slug: str
    product_slug: str
    title: str
    category_name: str


@dataclass
class ComponentPair:
    source: PairComponent
    target: PairComponent
    compatible: bool
    reason: str | None = None


@dataclass
class CompatibilityResult:
    compatible: bool = True
    issues: list[CompatibilityIssue] = field(default_factory=list)
    component_pairs: list[ComponentPair] = field(default_factory=list)


@dataclass
class SavedBuildCheckOutput:
    result: CompatibilityResult | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class CompatibleComponentsOutput:
    products: list[Product] = field(default_factory=list)
    success: bool = False
    error: str | None = None
    error_code: str | None = None

    @property
    def product_ids(self) -> list[int]:
        return [p.id for p in self.products if p.id is not None]


@dataclass
class RuleOutput:
    rule: CompatibilityRule | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class ImportRulesOutput:
    imported: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


RulesDocument = dict[str, Any]
