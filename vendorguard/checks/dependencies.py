"""Dependency check: manifest packages vs. the project's import closure."""

from __future__ import annotations

import structlog

from vendorguard.checks.context import CheckContext
from vendorguard.exceptions import ManifestMismatchError
from vendorguard.imports import remove_stdlib, scan_imports, transitive_closure

log = structlog.get_logger("vendorguard.checks")

STASH_LABEL = "vendorguard check-dependencies"


def check_dependencies(ctx: CheckContext) -> None:
    """Verify the staged manifest lists exactly the non-stdlib closure of the
    project's imports, over every platform the manifest names.
    """
    layout = ctx.layout
    # Go sources are scanned on disk, so unstaged edits must be hidden first.
    with ctx.staged.stash_snapshot(STASH_LABEL):
        layout.require()

        project_id = ctx.resolver.project_import_path()
        seed = scan_imports(layout.project_dir, project_id)
        # Only the vendor tree: imports found outside it still show up, just
        # without their own dependencies.
        gopath = str(layout.vendor_abs)
        manifest = ctx.staged_manifest()
        closure = transitive_closure(seed, ctx.resolver, manifest.platforms, gopath)
        detected = sorted(remove_stdlib(closure, ctx.resolver, gopath))

    expected = sorted(manifest.canonical_ids())
    if detected != expected:
        raise ManifestMismatchError(expected, detected, layout.manifest)
    log.info("dependencies.ok", packages=len(detected))
