"""
Compatibility component unit tests.

Tests for pairwise build checks, specialized checks, helper functions
and rule import/export.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from src.components.compatibility import (
    ComponentNotFoundError,
    ComponentRef,
    SaveRuleInput,
    check_cooling,
    check_form_factor,
    check_pcie,
    check_power_connectors,
    check_storage,
    normalize_value,
    run_check_build,
    run_check_components,
    run_check_pair,
    run_check_saved_build,
    run_delete_rule,
    run_export_rules,
    run_get_compatible_components,
    run_import_rules,
    run_list_rule_categories,
    run_save_rule,
)
from src.components.compatibility._impl import compare
from src.domain.entities import (
    Build,
    Category,
    CharacteristicType,
    CompatibilityRule,
    Product,
    ProductCharacteristic,
    RuleCategoryPair,
    RuleCharacteristic,
    RuleValuePair,
)
from src.rules.loader import load_rules
from src.rules.models import CompatibilityRules

TYPES = {
    "socket": 1, "memory_type": 2, "form_factor": 3, "tdp": 4, "tdp_rating": 5,
    "height": 6, "radiator_size": 7, "max_cpu_cooler_height": 8, "front_radiator": 9,
    "supported_form_factors": 10, "max_gpu_length": 11, "length": 12, "power": 13,
    "recommended_psu": 14, "m2_slots": 15, "sata_ports": 16, "nvme_support": 17,
    "type": 18, "interface": 19, "memory_channels": 20, "modules": 21,
}

# --- Mock Implementations ---


class MockCatalogRepo:
    """Just enough catalog for resolving components."""

    def __init__(self) -> None:
        self.categories: dict[int, Category] = {}
        self.products: dict[int, Product] = {}

    def list_categories(self) -> list[Category]:
        return list(self.categories.values())

    def get_category_by_slug(self, slug: str) -> Category | None:
        return next((c for c in self.categories.values() if c.slug == slug), None)

    def get_category_by_id(self, category_id: int) -> Category | None:
        return self.categories.get(category_id)

    def list_products(self, category_id: int) -> list[Product]:
        return [p for p in self.products.values() if p.category_id == category_id]

    def get_product_by_slug(self, slug: str) -> Product | None:
        return next((p for p in self.products.values() if p.slug == slug), None)

    def list_characteristic_types(self) -> list[CharacteristicType]:
        return [CharacteristicType(id=i, name=s.replace("_", " ").title(), slug=s) for s, i in TYPES.items()]

    def add(self, product_id: int, slug: str, category_id: int, **chars: str) -> None:
        self.products[product_id] = Product(
            id=product_id,
            slug=slug,
            title=slug.replace("-", " ").title(),
            price=1000,
            category_id=category_id,
            characteristics=[
                ProductCharacteristic(
                    type_id=TYPES[k], type_slug=k, type_name=k.replace("_", " ").title(), value=v
                )
                for k, v in chars.items()
            ],
        )


class MockRuleRepo:
    """In-memory rule repository for testing."""

    def __init__(self) -> None:
        self.rules: dict[int, CompatibilityRule] = {}
        self._next_id = 1
        self.lookups = 0

    def find_rules(self, primary_category_id: int, secondary_category_id: int) -> list[CompatibilityRule]:
        self.lookups += 1
        return [
            r for r in self.rules.values()
            if any(
                p.primary_category_id == primary_category_id
                and p.secondary_category_id == secondary_category_id
                for p in r.categories
            )
        ]

    def list_rules(self) -> list[CompatibilityRule]:
        return list(self.rules.values())

    def get_rule(self, rule_id: int) -> CompatibilityRule | None:
        return self.rules.get(rule_id)

    def save_rule(self, rule: CompatibilityRule) -> CompatibilityRule:
        if rule.id is None:
            rule = rule.model_copy(update={"id": self._next_id})
            self._next_id += 1
        self.rules[rule.id] = rule
        return rule

    def delete_rule(self, rule_id: int) -> bool:
        return self.rules.pop(rule_id, None) is not None

    def delete_all_rules(self) -> int:
        count = len(self.rules)
        self.rules.clear()
        return count


class MockBuildLookup:
    def __init__(self, builds: dict[int, Build]) -> None:
        self._builds = builds

    def get_by_id(self, build_id: int) -> Build | None:
        return self._builds.get(build_id)


def _rule(name: str, primary: int, secondary: int, *chars: tuple[str, str, str]) -> CompatibilityRule:
    return CompatibilityRule(
        name=name,
        categories=[RuleCategoryPair(primary_category_id=primary, secondary_category_id=secondary)],
        characteristics=[
            RuleCharacteristic(
                primary_characteristic_id=TYPES[p],
                secondary_characteristic_id=TYPES[s],
                comparison_type=cmp,
            )
            for p, s, cmp in chars
        ],
    )


# --- Fixtures ---


@pytest.fixture
def config() -> CompatibilityRules:
    return load_rules().compatibility


@pytest.fixture
def catalog() -> MockCatalogRepo:
    repo = MockCatalogRepo()
    for cat in [
        Category(id=1, name="Processors", slug="processors"),
        Category(id=2, name="Motherboards", slug="motherboards"),
        Category(id=3, name="Memory", slug="memory"),
        Category(id=4, name="Graphics cards", slug="graphics-cards"),
        Category(id=5, name="Storage", slug="storage"),
        Category(id=6, name="M.2 SSD", slug="ssd-m2", parent_id=5),
        Category(id=9, name="Cooling", slug="cooling"),
        Category(id=10, name="CPU coolers", slug="cpu-coolers", parent_id=9),
        Category(id=11, name="Liquid cooling", slug="liquid-cooling", parent_id=9),
        Category(id=12, name="Power supplies", slug="power-supplies"),
        Category(id=13, name="Cases", slug="cases"),
    ]:
        repo.categories[cat.id] = cat

    repo.add(1, "intel-core-i5-13400f", 1, socket="LGA1700", tdp="65 W")
    repo.add(2, "amd-ryzen-7-7800x3d", 1, socket="AM5", tdp="120 W")
    repo.add(
        3, "msi-pro-b760m-a", 2, socket="LGA1700", form_factor="mATX", memory_type="DDR5",
        memory_channels="2", m2_slots="2", sata_ports="4", nvme_support="Yes",
    )
    repo.add(4, "asus-rog-x670e", 2, socket="AM5", form_factor="ATX", m2_slots="0", sata_ports="4")
    repo.add(5, "kingston-fury-ddr5", 3, memory_type="DDR5", modules="2")
    repo.add(6, "rtx-4070-super", 4, length="242 mm", recommended_psu="650 W")
    repo.add(7, "samsung-990-pro", 6, type="M.2", interface="NVMe")
    repo.add(8, "deepcool-ak620", 10, socket="LGA1700, AM5", tdp_rating="260 W", height="160 mm")
    repo.add(9, "small-am4-cooler", 10, socket="AM4", tdp_rating="95 W", height="150 mm")
    repo.add(10, "arctic-lf2-360", 11, socket="LGA1700, AM5", tdp_rating="300 W", radiator_size="360 mm")
    repo.add(11, "aerocool-vx-500", 12, power="500 W")
    repo.add(12, "be-quiet-750", 12, power="750 W")
    repo.add(
        13, "fractal-pop-mini", 13, max_cpu_cooler_height="170 mm", front_radiator="240, 280",
        supported_form_factors="mATX, Mini-ITX", max_gpu_length="405",
    )
    return repo


@pytest.fixture
def rules() -> MockRuleRepo:
    repo = MockRuleRepo()
    repo.save_rule(_rule("Socket", 2, 1, ("socket", "socket", "equality")))
    repo.save_rule(
        _rule(
            "Memory", 2, 3,
            ("memory_type", "memory_type", "equality"),
            ("memory_channels", "modules", "divisible"),
        )
    )
    repo.save_rule(_rule("PSU power", 12, 4, ("power", "recommended_psu", "greater_equal")))
    repo.save_rule(_rule("GPU length", 13, 4, ("max_gpu_length", "length", "less_equal")))
    repo.save_rule(
        _rule("Form factor", 13, 2, ("supported_form_factors", "form_factor", "contains_list"))
    )
    return repo


def refs(*pairs: tuple[str, str]) -> list[ComponentRef]:
    return [ComponentRef(category_slug=c, product_slug=p) for c, p in pairs]


GOOD_BUILD = refs(
    ("processors", "intel-core-i5-13400f"),
    ("motherboards", "msi-pro-b760m-a"),
    ("memory", "kingston-fury-ddr5"),
    ("ssd-m2", "samsung-990-pro"),
    ("cpu-coolers", "deepcool-ak620"),
    ("cases", "fractal-pop-mini"),
)


# --- Build checks ---


class TestCheckComponents:
    def test_fewer_than_two(self, catalog, rules, config) -> None:
        result = run_check_components(GOOD_BUILD[:1], catalog, rules, config)
        assert result.compatible
        assert result.issues == []
        assert result.component_pairs == []

    def test_compatible_build(self, catalog, rules, config) -> None:
        result = run_check_components(GOOD_BUILD, catalog, rules, config)
        assert result.compatible, [i.reason for i in result.issues]
        assert len(result.component_pairs) == 15

    def test_rule_lookups_cached(self, catalog, rules, config) -> None:
        run_check_components(GOOD_BUILD, catalog, rules, config)
        # at most one forward and one reverse lookup per pair
        assert rules.lookups <= 30

    def test_missing_required_groups(self, catalog, rules, config) -> None:
        result = run_check_components(
            refs(("processors", "intel-core-i5-13400f"), ("motherboards", "msi-pro-b760m-a")),
            catalog, rules, config,
        )
        assert not result.compatible
        assert len(result.issues) == 2
        assert all(i.components[0].id == 0 for i in result.issues)
        assert result.component_pairs[0].compatible

    def test_subcategory_satisfies_group_via_parent(self, catalog, rules, config) -> None:
        result = run_check_components(
            refs(("ssd-m2", "samsung-990-pro"), ("liquid-cooling", "arctic-lf2-360")),
            catalog, rules, config,
        )
        assert result.compatible

    def test_reverse_rule_swaps_pair(self, catalog, rules, config) -> None:
        result = run_check_components(
            refs(("processors", "amd-ryzen-7-7800x3d"), ("motherboards", "msi-pro-b760m-a"))
            + GOOD_BUILD[3:5],
            catalog, rules, config,
        )
        pair = result.component_pairs[0]
        assert pair.source.category_slug == "motherboards"
        assert not pair.compatible
        assert "Socket (LGA1700) does not match Socket (AM5)" == pair.reason
        assert not result.compatible

    def test_psu_too_weak(self, catalog, rules, config) -> None:
        pair = run_check_pair(
            ComponentRef("graphics-cards", "rtx-4070-super"),
            ComponentRef("power-supplies", "aerocool-vx-500"),
            catalog, rules, config,
        )
        assert not pair.compatible
        assert pair.source.product_slug == "aerocool-vx-500"
        ok = run_check_pair(
            ComponentRef("graphics-cards", "rtx-4070-super"),
            ComponentRef("power-supplies", "be-quiet-750"),
            catalog, rules, config,
        )
        assert ok.compatible

    def test_form_factor_list(self, catalog, rules, config) -> None:
        pair = run_check_pair(
            ComponentRef("motherboards", "asus-rog-x670e"),
            ComponentRef("cases", "fractal-pop-mini"),
            catalog, rules, config,
        )
        assert not pair.compatible

    def test_unknown_product(self, catalog, rules, config) -> None:
        with pytest.raises(ComponentNotFoundError):
            run_check_components(
                refs(("processors", "ghost"), ("motherboards", "msi-pro-b760m-a")),
                catalog, rules, config,
            )

    def test_product_in_wrong_category(self, catalog, rules, config) -> None:
        with pytest.raises(ComponentNotFoundError):
            run_check_components(
                refs(("memory", "intel-core-i5-13400f"), ("motherboards", "msi-pro-b760m-a")),
                catalog, rules, config,
            )


class TestSpecializedChecks:
    def test_nvme_drive_without_m2_slots(self, catalog, rules, config) -> None:
        pair = run_check_pair(
            ComponentRef("ssd-m2", "samsung-990-pro"),
            ComponentRef("motherboards", "asus-rog-x670e"),
            catalog, rules, config,
        )
        assert not pair.compatible
        assert "M.2" in (pair.reason or "")

    def test_cooler_socket_mismatch(self, catalog, rules, config) -> None:
        pair = run_check_pair(
            ComponentRef("processors", "intel-core-i5-13400f"),
            ComponentRef("cpu-coolers", "small-am4-cooler"),
            catalog, rules, config,
        )
        assert not pair.compatible
        assert "LGA1700" in (pair.reason or "")

    def test_radiator_not_supported_by_case(self, catalog, rules, config) -> None:
        pair = run_check_pair(
            ComponentRef("cases", "fractal-pop-mini"),
            ComponentRef("liquid-cooling", "arctic-lf2-360"),
            catalog, rules, config,
        )
        assert not pair.compatible
        assert "radiator" in (pair.reason or "")

    def test_cpu_cooler_pair_consults_case_in_build(self, catalog, rules, config) -> None:
        result = run_check_components(
            refs(
                ("processors", "intel-core-i5-13400f"),
                ("liquid-cooling", "arctic-lf2-360"),
                ("cases", "fractal-pop-mini"),
                ("ssd-m2", "samsung-990-pro"),
            ),
            catalog, rules, config,
        )
        cpu_pair = result.component_pairs[0]
        assert not cpu_pair.compatible
        assert not result.compatible


class TestBuildOperations:
    def test_check_build_ignores_empty_slugs(self, catalog, rules, config) -> None:
        result = run_check_build(
            {"processors": "intel-core-i5-13400f", "memory": ""}, catalog, rules, config
        )
        assert result.compatible
        assert result.component_pairs == []

    def test_saved_build(self, catalog, rules, config) -> None:
        build = Build(
            id=7, name="Office", slug="office-260101123",
            components={r.category_slug: r.product_slug for r in GOOD_BUILD},
        )
        out = run_check_saved_build(7, MockBuildLookup({7: build}), catalog, rules, config)
        assert out.success and out.result is not None
        assert out.result.compatible

        missing = run_check_saved_build(8, MockBuildLookup({}), catalog, rules, config)
        assert missing.error_code == "not_found"

    def test_compatible_components(self, catalog, rules, config) -> None:
        out = run_get_compatible_components(
            "processors", {"motherboards": "msi-pro-b760m-a"}, catalog, rules, config
        )
        assert out.product_ids == [1]

    def test_compatible_components_without_selection(self, catalog, rules, config) -> None:
        out = run_get_compatible_components("processors", {}, catalog, rules, config)
        assert out.product_ids == [1, 2]

    def test_compatible_components_unknown_category(self, catalog, rules, config) -> None:
        out = run_get_compatible_components("ghost", {}, catalog, rules, config)
        assert out.error_code == "not_found"


# --- Helpers ---


def _pc(slug: str, value: str) -> ProductCharacteristic:
    return ProductCharacteristic(type_id=1, type_slug=slug, type_name=slug, value=value)


class TestCompare:
    def test_numeric_prefix(self) -> None:
        assert compare("greater_equal", _pc("power", "650 W"), _pc("psu", "650"), []) is None
        assert compare("greater_than", _pc("a", "650 W"), _pc("b", "650"), []) is not None

    def test_unparseable_fails(self) -> None:
        reason = compare("greater_equal", _pc("power", "lots"), _pc("psu", "650"), [])
        assert reason is not None and reason.startswith("Cannot compare")

    def test_divisible(self) -> None:
        assert compare("divisible", _pc("channels", "2"), _pc("modules", "4"), []) is None
        assert compare("divisible", _pc("channels", "2"), _pc("modules", "3"), []) is not None

    def test_contains_and_less_equal(self) -> None:
        assert compare("contains", _pc("chipset", "Z790, B760"), _pc("cpu", "B760"), []) is None
        assert compare("less_equal", _pc("max", "405"), _pc("len", "420"), []) is not None
        assert compare("case_dimensions", _pc("case", "305"), _pc("mb", "244"), []) is None
        assert compare("count_greater_equal", _pc("ports", "4"), _pc("need", "6"), []) is not None

    def test_allowed_pairs(self) -> None:
        allowed = [RuleValuePair(primary_value="B760", secondary_value="LGA1700")]
        assert compare("values", _pc("chipset", "B760"), _pc("socket", "LGA1700"), allowed) is None
        assert compare("values", _pc("chipset", "B760"), _pc("socket", "AM5"), allowed) is not None
        assert compare("values", _pc("chipset", "B760"), _pc("socket", "AM5"), []) is None


class TestHelpers:
    def test_normalize_value(self) -> None:
        assert normalize_value("am5 (LGA)", "socket") == "AM5"
        assert normalize_value("DDR5 SDRAM", "memory") == "DDR5"
        assert normalize_value("Micro-ATX", "form_factor") == "MATX"
        assert normalize_value("E-ATX", "form_factor") == "EATX"
        assert normalize_value("305 x 244 mm", "dimensions") == "305"
        assert normalize_value("EPS 8-pins", "power") == "8 pin"

    def test_power_connectors(self) -> None:
        assert check_power_connectors("2 x 6+2-pin", "1 x 8-pin").compatible
        assert check_power_connectors("2 x 6+2-pin", "2 x 8-pin, 1 x 6-pin").compatible is False
        assert check_power_connectors("1 x 6-pin", "12VHPWR").compatible is False
        assert check_power_connectors("12VHPWR 16-pin", "16-pin").compatible

    def test_pcie(self) -> None:
        assert check_pcie("PCIe 5.0 x16", "PCIe 4.0 x16").compatible
        result = check_pcie("PCI-E 3.0 x16", "PCIe 4.0 x16")
        assert not result.compatible
        assert check_pcie("x16 slot", "something").compatible

    def test_form_factor(self) -> None:
        assert check_form_factor("ATX", "Micro-ATX").compatible
        assert not check_form_factor("mATX", "ATX").compatible
        assert check_form_factor("E-ATX, ATX", "Mini-ITX").compatible
        assert not check_form_factor("mATX, Mini-ITX", "ATX").compatible

    def test_storage(self) -> None:
        assert check_storage("M.2", "NVMe", "yes", "2", "4").compatible
        assert not check_storage("M.2", "NVMe", "unsupported", "2", "4").compatible
        assert not check_storage("HDD", "SATA III", "", "", "0").compatible
        assert check_storage("unknown", "", "", "", "").compatible

    def test_cooling(self) -> None:
        assert check_cooling("air", "Universal", "150", "150 mm", "AM5", "120", "170 mm", "").compatible
        assert not check_cooling("air", "AM5", "95 W", "150", "AM5", "120 W", "", "").compatible
        assert not check_cooling("air", "AM5", "", "180 mm", "AM5", "", "170 mm", "").compatible
        assert check_cooling("liquid", "AM5", "", "240 mm", "AM5", "", "", "240, 280").compatible


# --- Rule management ---


class TestRuleManagement:
    def test_save_rule_validation(self, catalog, rules) -> None:
        assert run_save_rule(SaveRuleInput(name=" "), rules, catalog).error_code == "validation"
        out = run_save_rule(SaveRuleInput(name="X", categories=[(1, 404)]), rules, catalog)
        assert out.error_code == "validation"
        out = run_save_rule(
            SaveRuleInput(
                name="X", categories=[(2, 1)],
                characteristics=[
                    RuleCharacteristic(
                        primary_characteristic_id=999, secondary_characteristic_id=1,
                        comparison_type="equality",
                    )
                ],
            ),
            rules, catalog,
        )
        assert out.error_code == "validation"

    def test_update_missing_rule(self, catalog, rules) -> None:
        out = run_save_rule(SaveRuleInput(name="X", categories=[(2, 1)], rule_id=404), rules, catalog)
        assert out.error_code == "not_found"

    def test_delete_rule(self, rules) -> None:
        assert run_delete_rule(1, rules).success
        assert run_delete_rule(1, rules).error_code == "not_found"

    def test_rule_categories_are_leaves(self, catalog) -> None:
        slugs = {c.slug for c in run_list_rule_categories(catalog)}
        assert "storage" not in slugs
        assert "ssd-m2" in slugs

    def test_export_import(self, catalog, rules) -> None:
        doc = run_export_rules(rules, catalog, datetime(2026, 1, 1))
        assert doc["version"] == "1.0"
        assert doc["rules"][0]["categories"] == [{"primary": "motherboards", "secondary": "processors"}]

        doc["rules"].append(
            {"name": "Bad", "categories": [{"primary": "ghost", "secondary": "memory"}]}
        )
        target = MockRuleRepo()
        target.save_rule(_rule("Old", 1, 2))
        out = run_import_rules(doc, target, catalog, replace=True)
        assert out.imported == 5
        assert out.skipped == 1
        assert "ghost" in out.errors[0]
        assert {r.name for r in target.list_rules()} == {
            "Socket", "Memory", "PSU power", "GPU length", "Form factor",
        }
