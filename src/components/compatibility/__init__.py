"""
Compatibility component - Build checks and compatibility rule management.
"""

from ._checks import (
    check_cooling,
    check_form_factor,
    check_pcie,
    check_power_connectors,
    check_storage,
    normalize_value,
)
from .component import (
    run_check_build,
    run_check_components,
    run_check_pair,
    run_check_saved_build,
    run_delete_rule,
    run_export_rules,
    run_get_compatible_components,
    run_get_rule,
    run_import_rules,
    run_list_rule_categories,
    run_list_rules,
    run_save_rule,
)
from .models import (
    CheckResult,
    CompatibilityIssue,
    CompatibilityResult,
    CompatibleComponentsOutput,
    ComponentNotFoundError,
    ComponentPair,
    ComponentRef,
    ImportRulesOutput,
    RuleOutput,
    SavedBuildCheckOutput,
    SaveRuleInput,
)
from .ports import BuildLookupPort, RuleRepoPort

__all__ = [
    # Entry points
    "run_check_components",
    "run_check_build",
    "run_check_saved_build",
    "run_get_compatible_components",
    "run_check_pair",
    "run_list_rules",
    "run_get_rule",
    "run_save_rule",
    "run_delete_rule",
    "run_list_rule_categories",
    "run_export_rules",
    "run_import_rules",
    # Helper checks
    "normalize_value",
    "check_power_connectors",
    "check_pcie",
    "check_form_factor",
    "check_storage",
    "check_cooling",
    # Models
    "ComponentRef",
    "SaveRuleInput",
    "CheckResult",
    "CompatibilityIssue",
    "CompatibilityResult",
    "CompatibleComponentsOutput",
    "ComponentPair",
    "ImportRulesOutput",
    "RuleOutput",
    "SavedBuildCheckOutput",
    # Errors
    "ComponentNotFoundError",
    # Ports
    "RuleRepoPort",
    "BuildLookupPort",
]
