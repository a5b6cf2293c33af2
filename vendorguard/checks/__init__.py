"""Three-way verification of the staged index, the manifest and the imports."""

from vendorguard.checks.consistency import check_consistency
from vendorguard.checks.context import CheckContext
from vendorguard.checks.dependencies import check_dependencies
from vendorguard.checks.patched import check_patched
from vendorguard.checks.pipeline import run_checks

__all__ = [
    "CheckContext",
    "check_consistency",
    "check_dependencies",
    "check_patched",
    "run_checks",
]
