"""
Compatibility component - Build checks and rule management.

Shell Layer - resolves products and rules through ports, then hands
the pairwise evaluation to the functional core.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from src.components.catalog.ports import CatalogRepoPort
from src.domain.entities import (
    Category,
    CompatibilityRule,
    RuleCategoryPair,
    RuleCharacteristic,
    RuleValuePair,
)
from src.rules.models import CompatibilityRules

from ._impl import evaluate_pair, missing_required_groups, pair_issue
from .models import (
    CompatibilityResult,
    CompatibleComponentsOutput,
    ComponentInfo,
    ComponentNotFoundError,
    ComponentPair,
    ComponentRef,
    ImportRulesOutput,
    RuleOutput,
    RulesDocument,
    SavedBuildCheckOutput,
    SaveRuleInput,
)
from .ports import BuildLookupPort, RuleRepoPort

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


class _RuleLookup:
    """Per-check cache of rules by category pair."""

    def __init__(self, repo: RuleRepoPort) -> None:
        self._repo = repo
        self._cache: dict[tuple[int, int], list[CompatibilityRule]] = {}

    def _find(self, primary: int, secondary: int) -> list[CompatibilityRule]:
        key = (primary, secondary)
        if key not in self._cache:
            self._cache[key] = self._repo.find_rules(primary, secondary)
        return self._cache[key]

    def orient(
        self, first: ComponentInfo, second: ComponentInfo
    ) -> tuple[ComponentInfo, ComponentInfo, list[CompatibilityRule]]:
        rules = self._find(first.category_id, second.category_id)
        if rules:
            return first, second, rules
        reverse = self._find(second.category_id, first.category_id)
        if reverse:
            return second, first, reverse
        return first, second, []


def _resolve(refs: list[ComponentRef], catalog: CatalogRepoPort) -> list[ComponentInfo]:
    infos = []
    for ref in refs:
        category = catalog.get_category_by_slug(ref.category_slug)
        if category is None or category.id is None:
            raise ComponentNotFoundError(f"Category {ref.category_slug} not found")
        product = catalog.get_product_by_slug(ref.product_slug)
        if product is None or product.id is None or product.category_id != category.id:
            raise ComponentNotFoundError(
                f"Product {ref.product_slug} not found in category {ref.category_slug}"
            )
        infos.append(
            ComponentInfo(
                id=product.id,
                category_slug=category.slug,
                product_slug=product.slug,
                title=product.title,
                category_id=category.id,
                category_name=category.name,
                characteristics=list(product.characteristics),
            )
        )
    return infos


def _parent_slugs(categories: list[Category]) -> dict[str, str]:
    by_id = {c.id: c for c in categories}
    parents = {}
    for c in categories:
        if c.parent_id is not None and c.parent_id in by_id:
            parents[c.slug] = by_id[c.parent_id].slug
    return parents


def _refs_from_mapping(components: dict[str, str]) -> list[ComponentRef]:
    return [
        ComponentRef(category_slug=category, product_slug=product)
        for category, product in components.items()
        if product
    ]


# --- Checks ---


def run_check_components(
    refs: list[ComponentRef],
    catalog: CatalogRepoPort,
    rule_repo: RuleRepoPort,
    config: CompatibilityRules,
) -> CompatibilityResult:
    """
    Check every pair of components in a build.

    Raises ComponentNotFoundError when a category or product is unknown.
    """
    if len(refs) < 2:
        return CompatibilityResult()

    issues = missing_required_groups(
        (r.category_slug for r in refs),
        _parent_slugs(catalog.list_categories()),
        config.required_groups,
    )

    infos = _resolve(refs, catalog)
    lookup = _RuleLookup(rule_repo)
    pairs: list[ComponentPair] = []

    for i in range(len(infos)):
        for j in range(i + 1, len(infos)):
            primary, secondary, rules = lookup.orient(infos[i], infos[j])
            pair = evaluate_pair(primary, secondary, rules, config.category_roles, infos)
            pairs.append(pair)
            if not pair.compatible:
                logger.debug(
                    "Incompatible pair %s / %s: %s",
                    primary.product_slug,
                    secondary.product_slug,
                    pair.reason,
                )
                issues.append(pair_issue(pair))

    return CompatibilityResult(compatible=not issues, issues=issues, component_pairs=pairs)


def run_check_build(
    components: dict[str, str],
    catalog: CatalogRepoPort,
    rule_repo: RuleRepoPort,
    config: CompatibilityRules,
) -> CompatibilityResult:
    return run_check_components(_refs_from_mapping(components), catalog, rule_repo, config)


def run_check_saved_build(
    build_id: int,
    builds: BuildLookupPort,
    catalog: CatalogRepoPort,
    rule_repo: RuleRepoPort,
    config: CompatibilityRules,
) -> SavedBuildCheckOutput:
    build = builds.get_by_id(build_id)
    if build is None:
        return SavedBuildCheckOutput(error=f"Build {build_id} not found", error_code="not_found")
    try:
        result = run_check_build(build.components, catalog, rule_repo, config)
    except ComponentNotFoundError as e:
        return SavedBuildCheckOutput(error=str(e), error_code="not_found")
    return SavedBuildCheckOutput(result=result, success=True)


def run_get_compatible_components(
    category_slug: str,
    components: dict[str, str],
    catalog: CatalogRepoPort,
    rule_repo: RuleRepoPort,
    config: CompatibilityRules,
) -> CompatibleComponentsOutput:
    """Products of a category that fit the current selection."""
    category = catalog.get_category_by_slug(category_slug)
    if category is None or category.id is None:
        return CompatibleComponentsOutput(
            error=f"Category {category_slug} not found", error_code="not_found"
        )

    candidates = catalog.list_products(category.id)
    selection = []
    for ref in _refs_from_mapping(components):
        if ref.category_slug == category_slug:
            continue
        try:
            selection.extend(_resolve([ref], catalog))
        except ComponentNotFoundError:
            logger.debug("Ignoring unknown selection %s/%s", ref.category_slug, ref.product_slug)

    if not selection:
        return CompatibleComponentsOutput(products=candidates, success=True)

    lookup = _RuleLookup(rule_repo)
    compatible = []
    for product in candidates:
        assert product.id is not None
        candidate = ComponentInfo(
            id=product.id,
            category_slug=category.slug,
            product_slug=product.slug,
            title=product.title,
            category_id=category.id,
            category_name=category.name,
            characteristics=list(product.characteristics),
        )
        build = [*selection, candidate]
        fits = True
        for selected in selection:
            primary, secondary, rules = lookup.orient(selected, candidate)
            if not evaluate_pair(primary, secondary, rules, config.category_roles, build).compatible:
                fits = False
                break
        if fits:
            compatible.append(product)

    return CompatibleComponentsOutput(products=compatible, success=True)


def run_check_pair(
    first: ComponentRef,
    second: ComponentRef,
    catalog: CatalogRepoPort,
    rule_repo: RuleRepoPort,
    config: CompatibilityRules,
) -> ComponentPair:
    infos = _resolve([first, second], catalog)
    primary, secondary, rules = _RuleLookup(rule_repo).orient(infos[0], infos[1])
    return evaluate_pair(primary, secondary, rules, config.category_roles, infos)


# --- Rule management ---


def run_list_rules(rule_repo: RuleRepoPort) -> list[CompatibilityRule]:
    return rule_repo.list_rules()


def run_get_rule(rule_id: int, rule_repo: RuleRepoPort) -> RuleOutput:
    rule = rule_repo.get_rule(rule_id)
    if rule is None:
        return RuleOutput(error="Rule not found", error_code="not_found")
    return RuleOutput(rule=rule, success=True)


def run_list_rule_categories(catalog: CatalogRepoPort) -> list[Category]:
    """Categories that hold products directly, i.e. have no children."""
    categories = catalog.list_categories()
    parents = {c.parent_id for c in categories if c.parent_id is not None}
    return [c for c in categories if c.id not in parents]


def run_save_rule(
    inp: SaveRuleInput, rule_repo: RuleRepoPort, catalog: CatalogRepoPort
) -> RuleOutput:
    if not inp.name.strip():
        return RuleOutput(error="Rule name is required", error_code="validation")
    if not inp.categories:
        return RuleOutput(error="At least one category pair is required", error_code="validation")

    for primary_id, secondary_id in inp.categories:
        for category_id in (primary_id, secondary_id):
            if catalog.get_category_by_id(category_id) is None:
                return RuleOutput(
                    error=f"Category {category_id} not found", error_code="validation"
                )

    type_ids = {t.id for t in catalog.list_characteristic_types()}
    for char in inp.characteristics:
        if not char.comparison_type:
            return RuleOutput(error="Comparison type is required", error_code="validation")
        for type_id in (char.primary_characteristic_id, char.secondary_characteristic_id):
            if type_id not in type_ids:
                return RuleOutput(
                    error=f"Characteristic type {type_id} not found", error_code="validation"
                )

    existing = None
    if inp.rule_id is not None:
        existing = rule_repo.get_rule(inp.rule_id)
        if existing is None:
            return RuleOutput(error="Rule not found", error_code="not_found")

    rule = CompatibilityRule(
        id=inp.rule_id,
        name=inp.name.strip(),
        description=inp.description,
        categories=[
            RuleCategoryPair(primary_category_id=p, secondary_category_id=s)
            for p, s in inp.categories
        ],
        characteristics=list(inp.characteristics),
    )
    if existing is not None:
        rule = rule.model_copy(update={"created_at": existing.created_at})

    saved = rule_repo.save_rule(rule)
    logger.info("Compatibility rule saved: %s (id=%s)", saved.name, saved.id)
    return RuleOutput(rule=saved, success=True)


def run_delete_rule(rule_id: int, rule_repo: RuleRepoPort) -> RuleOutput:
    if not rule_repo.delete_rule(rule_id):
        return RuleOutput(error="Rule not found", error_code="not_found")
    return RuleOutput(success=True)


def run_export_rules(
    rule_repo: RuleRepoPort, catalog: CatalogRepoPort, now: datetime
) -> RulesDocument:
    """Serialize all rules, referencing categories and types by slug."""
    category_slugs = {c.id: c.slug for c in catalog.list_categories()}
    type_slugs = {t.id: t.slug for t in catalog.list_characteristic_types()}

    rules = []
    for rule in rule_repo.list_rules():
        rules.append(
            {
                "name": rule.name,
                "description": rule.description,
                "categories": [
                    {
                        "primary": category_slugs.get(pair.primary_category_id),
                        "secondary": category_slugs.get(pair.secondary_category_id),
                    }
                    for pair in rule.categories
                ],
                "characteristics": [
                    {
                        "primary": type_slugs.get(char.primary_characteristic_id),
                        "secondary": type_slugs.get(char.secondary_characteristic_id),
                        "comparison_type": char.comparison_type,
                        "values": [v.model_dump() for v in char.values],
                    }
                    for char in rule.characteristics
                ],
            }
        )
    return {"version": EXPORT_VERSION, "exported_at": now.isoformat(), "rules": rules}


def _import_one(
    data: dict[str, Any], category_ids: dict[str, int], type_ids: dict[str, int]
) -> CompatibilityRule:
    """Build a rule from an exported dict; raises ValueError on unknown slugs."""
    name = str(data.get("name") or "").strip()
    if not name:
        raise ValueError("rule without a name")

    pairs = []
    for pair in data.get("categories", []):
        for key in ("primary", "secondary"):
            if pair.get(key) not in category_ids:
                raise ValueError(f"unknown category '{pair.get(key)}'")
        pairs.append(
            RuleCategoryPair(
                primary_category_id=category_ids[pair["primary"]],
                secondary_category_id=category_ids[pair["secondary"]],
            )
        )

    chars = []
    for char in data.get("characteristics", []):
        for key in ("primary", "secondary"):
            if char.get(key) not in type_ids:
                raise ValueError(f"unknown characteristic type '{char.get(key)}'")
        chars.append(
            RuleCharacteristic(
                primary_characteristic_id=type_ids[char["primary"]],
                secondary_characteristic_id=type_ids[char["secondary"]],
                comparison_type=char.get("comparison_type") or "equality",
                values=[RuleValuePair(**v) for v in char.get("values", [])],
            )
        )

    return CompatibilityRule(
        name=name, description=data.get("description"), categories=pairs, characteristics=chars
    )


def run_import_rules(
    document: RulesDocument,
    rule_repo: RuleRepoPort,
    catalog: CatalogRepoPort,
    replace: bool = False,
) -> ImportRulesOutput:
    category_ids = {c.slug: c.id for c in catalog.list_categories() if c.id is not None}
    type_ids = {t.slug: t.id for t in catalog.list_characteristic_types() if t.id is not None}

    out = ImportRulesOutput()
    prepared = []
    for index, data in enumerate(document.get("rules", [])):
        label = data.get("name") or f"#{index + 1}"
        try:
            prepared.append(_import_one(data, category_ids, type_ids))
        except (ValueError, TypeError, KeyError) as e:
            out.skipped += 1
            out.errors.append(f"Rule '{label}': {e}")

    if replace:
        removed = rule_repo.delete_all_rules()
        logger.info("Removed %d compatibility rules before import", removed)

    for rule in prepared:
        rule_repo.save_rule(rule)
        out.imported += 1

    logger.info("Imported %d compatibility rules, skipped %d", out.imported, out.skipped)
    return out
