"""
Builds component - Saved PC configurations and manager statistics.
"""

from ._impl import generate_slug, slugify
from .component import (
    run_build_statistics,
    run_calculate_total_price,
    run_delete_build,
    run_get_build,
    run_list_builds,
    run_list_user_builds,
    run_manager_delete_build,
    run_manager_update_build,
    run_save_build,
    run_validate_build,
)
from .models import (
    BuildOutput,
    BuildPage,
    BuildStatistics,
    ListBuildsInput,
    ManagerUpdateBuildInput,
    SaveBuildInput,
    ValidateBuildOutput,
)
from .ports import BuildRepoPort

__all__ = [
    # Entry points
    "run_save_build",
    "run_get_build",
    "run_list_user_builds",
    "run_delete_build",
    "run_validate_build",
    "run_calculate_total_price",
    "run_list_builds",
    "run_manager_update_build",
    "run_manager_delete_build",
    "run_build_statistics",
    # Helpers
    "generate_slug",
    "slugify",
    # Models
    "SaveBuildInput",
    "ManagerUpdateBuildInput",
    "ListBuildsInput",
    "BuildOutput",
    "BuildPage",
    "BuildStatistics",
    "ValidateBuildOutput",
    # Ports
    "BuildRepoPort",
]
