"""The pre-commit verification pipeline."""

from __future__ import annotations

import structlog

from vendorguard.checks.consistency import check_consistency
from vendorguard.checks.context import CheckContext
from vendorguard.checks.dependencies import check_dependencies
from vendorguard.checks.patched import check_patched

log = structlog.get_logger("vendorguard.checks")


def run_checks(ctx: CheckContext) -> None:
    """Run consistency, dependency and patched checks, stopping at the first error."""
    ctx.layout.require()
    check_consistency(ctx)
    check_dependencies(ctx)
    check_patched(ctx)
    log.info("checks.passed", project=str(ctx.layout.project_dir))
