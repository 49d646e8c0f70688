"""
Compatibility - Functional Core.

Pairwise evaluation of resolved components against compatibility
rules. Rule lookup and product resolution happen in the shell.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.domain.entities import CompatibilityRule, ProductCharacteristic, RuleValuePair
from src.rules.models import CategoryRoles, RequiredGroup

from ._checks import check_cooling, check_storage, leading_number
from .models import (
    CONFIGURATION,
    CompatibilityIssue,
    ComponentInfo,
    ComponentPair,
    IssueComponent,
    PairComponent,
)

# Sentinel values that make the cooling check ignore socket and TDP.
UNIVERSAL_SOCKET = "universal"
UNLIMITED_TDP = "9999"
ZERO_TDP = "0"

_RADIATOR_MOUNTS = ("front_radiator", "top_radiator", "rear_radiator")


# --- Required categories ---


def missing_required_groups(
    category_slugs: Iterable[str],
    parent_slugs: dict[str, str],
    groups: list[RequiredGroup],
) -> list[CompatibilityIssue]:
    present: set[str] = set()
    for slug in category_slugs:
        present.add(slug)
        if slug in parent_slugs:
            present.add(parent_slugs[slug])

    return [
        CompatibilityIssue(components=[CONFIGURATION], reason=group.message)
        for group in groups
        if not present.intersection(group.slugs)
    ]


# --- Table comparisons ---


def _numbers(
    primary: ProductCharacteristic, secondary: ProductCharacteristic
) -> tuple[float, float] | None:
    a = leading_number(primary.value)
    b = leading_number(secondary.value)
    if a is None or b is None:
        return None
    return a, b


def compare(
    comparison_type: str,
    primary: ProductCharacteristic,
    secondary: ProductCharacteristic,
    allowed: list[RuleValuePair],
) -> str | None:
    """Return the failure reason, or None when the pair passes."""
    p, s = primary, secondary
    label_p = f"{p.type_name} ({p.value})"
    label_s = f"{s.type_name} ({s.value})"

    if comparison_type == "equality":
        return None if p.value == s.value else f"{label_p} does not match {label_s}"

    if comparison_type == "contains":
        return None if s.value in p.value else f"{label_p} does not support {label_s}"

    if comparison_type == "contains_list":
        options = [v.strip() for v in p.value.split(",")]
        return None if s.value in options else f"{label_p} does not support {label_s}"

    numeric = {
        "greater_equal",
        "greater_than",
        "divisible",
        "count_greater_equal",
        "less_equal",
        "case_dimensions",
    }
    if comparison_type in numeric:
        pair = _numbers(p, s)
        if pair is None:
            return f"Cannot compare {label_p} with {label_s}"
        a, b = pair

        if comparison_type == "greater_equal":
            return None if a >= b else f"{label_p} is below the required {label_s}"
        if comparison_type == "greater_than":
            return None if a > b else f"{label_p} must be greater than {label_s}"
        if comparison_type == "divisible":
            channels, modules = int(a), int(b)
            if channels == 0:
                return f"Cannot compare {label_p} with {label_s}"
            if modules % channels == 0:
                return None
            return f"{modules} memory modules do not fit {channels} memory channels"
        if comparison_type == "count_greater_equal":
            if int(a) >= int(b):
                return None
            return f"Not enough {p.type_name} ({int(a)}) for {s.type_name} (need {int(b)})"
        if comparison_type == "less_equal":
            return None if b <= a else f"{label_s} exceeds the maximum {label_p}"
        # case_dimensions
        return None if a >= b else f"{label_s} is too large for {label_p}"

    if not allowed:
        return None
    if any(v.primary_value == p.value and v.secondary_value == s.value for v in allowed):
        return None
    return f"{label_p} is not compatible with {label_s}"


def evaluate_rules(
    primary: ComponentInfo, secondary: ComponentInfo, rules: list[CompatibilityRule]
) -> str | None:
    """First failing rule characteristic wins."""
    for rule in rules:
        for rule_char in rule.characteristics:
            p = primary.by_type_id(rule_char.primary_characteristic_id)
            s = secondary.by_type_id(rule_char.secondary_characteristic_id)
            if p is None or s is None:
                continue
            reason = compare(rule_char.comparison_type, p, s, rule_char.values)
            if reason:
                return reason
    return None


# --- Specialized checks ---


def role_of(roles: CategoryRoles, category_slug: str) -> str | None:
    for role, slugs in roles.model_dump().items():
        if category_slug in slugs:
            return role
    return None


def _cooler_type(role: str | None) -> str:
    return "liquid" if role == "liquid_cooler" else "air"


def _cooler_size(cooler: ComponentInfo, cooler_type: str) -> str:
    return cooler.value("radiator_size" if cooler_type == "liquid" else "height")


def _radiator_support(case: ComponentInfo | None) -> str:
    if case is None:
        return ""
    return ", ".join(v for v in (case.value(m) for m in _RADIATOR_MOUNTS) if v)


def specialized_check(
    comp1: ComponentInfo,
    comp2: ComponentInfo,
    roles: CategoryRoles,
    build: list[ComponentInfo],
) -> str | None:
    by_role = {role_of(roles, c.category_slug): c for c in (comp1, comp2)}
    coolers = [r for r in ("air_cooler", "liquid_cooler") if r in by_role]

    if "motherboard" in by_role and "storage" in by_role:
        mb, drive = by_role["motherboard"], by_role["storage"]
        result = check_storage(
            drive.value("type"),
            drive.value("interface"),
            mb.value("nvme_support"),
            mb.value("m2_slots"),
            mb.value("sata_ports"),
        )
        return result.reason if not result.compatible else None

    if "cpu" in by_role and coolers:
        cpu, cooler = by_role["cpu"], by_role[coolers[0]]
        case = next((c for c in build if role_of(roles, c.category_slug) == "case"), None)
        cooler_type = _cooler_type(coolers[0])
        result = check_cooling(
            cooler_type,
            cooler.value("socket"),
            cooler.value("tdp_rating"),
            _cooler_size(cooler, cooler_type),
            cpu.value("socket"),
            cpu.value("tdp"),
            case.value("max_cpu_cooler_height") if case else "",
            _radiator_support(case),
        )
        return result.reason if not result.compatible else None

    if "case" in by_role and coolers:
        case, cooler = by_role["case"], by_role[coolers[0]]
        cooler_type = _cooler_type(coolers[0])
        result = check_cooling(
            cooler_type,
            UNIVERSAL_SOCKET,
            UNLIMITED_TDP,
            _cooler_size(cooler, cooler_type),
            UNIVERSAL_SOCKET,
            ZERO_TDP,
            case.value("max_cpu_cooler_height"),
            _radiator_support(case),
        )
        return result.reason if not result.compatible else None

    return None


# --- Pair evaluation ---


def _pair_component(info: ComponentInfo) -> PairComponent:
    return PairComponent(
        id=info.id,
        category_slug=info.category_slug,
        product_slug=info.product_slug,
        title=info.title,
        category_name=info.category_name,
    )


def evaluate_pair(
    primary: ComponentInfo,
    secondary: ComponentInfo,
    rules: list[CompatibilityRule],
    roles: CategoryRoles,
    build: list[ComponentInfo],
) -> ComponentPair:
    """primary/secondary must already be oriented to match the rules."""
    reason = specialized_check(primary, secondary, roles, build)
    if reason is None and rules:
        reason = evaluate_rules(primary, secondary, rules)
    return ComponentPair(
        source=_pair_component(primary),
        target=_pair_component(secondary),
        compatible=reason is None,
        reason=reason,
    )


def pair_issue(pair: ComponentPair) -> CompatibilityIssue:
    return CompatibilityIssue(
        components=[
            IssueComponent(id=c.id, title=c.title, category=c.category_name)
            for c in (pair.source, pair.target)
        ],
        reason=pair.reason or "Incompatible components",
    )
