"""Consistency check: staged vendor tree vs. declared repository roots."""

from __future__ import annotations

import structlog

from vendorguard.checks.context import CheckContext
from vendorguard.exceptions import MissingRootError, StrayPathError
from vendorguard.staging import WalkAction, WalkEntry
from vendorguard.tree import RepoRootTree

log = structlog.get_logger("vendorguard.checks")


def check_consistency(ctx: CheckContext) -> None:
    """Verify that every declared root is staged and nothing else is.

    Only the git index is consulted. Contents below a root are left to the
    patched check.
    """
    layout = ctx.layout
    manifest = ctx.staged_manifest()
    roots = manifest.repository_roots()
    tree = RepoRootTree.from_roots(roots)
    unvisited = set(roots)

    def visit(entry: WalkEntry) -> WalkAction | None:
        if entry.path == layout.ignore_file:
            return None
        node = tree.get(entry.path)
        if node is None:
            raise StrayPathError(entry.path, layout.manifest, is_file=False)
        if not entry.is_dir:
            raise StrayPathError(entry.path, layout.manifest, is_file=True)
        if node.is_leaf:
            unvisited.discard(entry.path)
            log.debug("consistency.root_visited", root=entry.path)
            return WalkAction.SKIP_SUBTREE
        return None

    ctx.staged.walk_staged(layout.vendor_dir, visit)

    if unvisited:
        raise MissingRootError(sorted(unvisited), layout.manifest)
    log.info("consistency.ok", roots=len(roots))
