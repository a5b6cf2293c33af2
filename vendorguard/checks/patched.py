"""Patched check: locally modified vendored repositories must be acknowledged."""

from __future__ import annotations

import structlog

from vendorguard.checks.context import CheckContext
from vendorguard.exceptions import (
    PristineRequiredError,
    RevisionMismatchError,
    UncommentedPatchError,
    UnmatchedFileError,
    UnsupportedVcsError,
)
from vendorguard.manifest import ManifestEntry
from vendorguard.tree import RepoRootTree

log = structlog.get_logger("vendorguard.checks")

STASH_LABEL = "vendorguard check-patched"


def group_by_root(files: list[str], tree: RepoRootTree) -> tuple[set[str], list[str]]:
    """Split changed files into their enclosing roots and unmatched files."""
    roots: set[str] = set()
    unmatched: list[str] = []
    for path in files:
        root = tree.find_enclosing_root(path)
        if root is None:
            unmatched.append(path)
        else:
            roots.add(root)
    return roots, unmatched


def comments_changed(previous: list[ManifestEntry], current: list[ManifestEntry]) -> bool:
    """Whether any package of a root got a different comment since HEAD."""
    before = {entry.canonical: entry.comment for entry in previous}
    return any(entry.comment != before.get(entry.canonical, "") for entry in current)


def check_patched(ctx: CheckContext) -> None:
    """Verify that each vendored root with staged changes is either a clean
    checkout of its recorded revision or carries an updated comment.

    Assumes the consistency check already passed.
    """
    layout = ctx.layout
    # Sub-repository status is read from disk, which must match the index.
    with ctx.staged.stash_snapshot(STASH_LABEL):
        layout.require()

        changed = ctx.staged.staged_changes(layout.vendor_dir)
        if not changed:
            log.info("patched.no_changes")
            return

        manifest = ctx.staged_manifest()
        tree = RepoRootTree.from_roots(manifest.repository_roots())
        roots, unmatched = group_by_root(changed, tree)
        unmatched = [path for path in unmatched if path != layout.ignore_file]
        if unmatched:
            raise UnmatchedFileError(unmatched, layout.manifest)

        previous = ctx.previous_manifest().by_repository_root()
        current = manifest.by_repository_root()
        for root in sorted(roots):
            _verify_root(ctx, root, previous.get(root, []), current[root])


def _verify_root(
    ctx: CheckContext,
    root: str,
    previous: list[ManifestEntry],
    current: list[ManifestEntry],
) -> None:
    manifest_name = ctx.layout.manifest
    handle = ctx.registry.is_root(ctx.layout.path(root))
    if handle is not None:
        local_revision = handle.revision()
        for entry in current:
            if entry.revision != local_revision:
                raise RevisionMismatchError(
                    root=root,
                    canonical=entry.canonical,
                    local_revision=local_revision,
                    recorded_revision=entry.revision,
                    recorded_time=entry.revision_time,
                    comment=entry.comment,
                    marker=handle.backend.marker,
                    manifest=manifest_name,
                )
        if handle.is_clean():
            log.debug("patched.root_clean", root=root, vcs=handle.kind.value)
            return

    # Dirty, or no VCS metadata to tell
    if not previous:
        if handle is not None:
            raise PristineRequiredError(root, manifest_name)
        raise UnsupportedVcsError(root)
    if not comments_changed(previous, current):
        raise UncommentedPatchError(root, manifest_name)
    log.info("patched.acknowledged", root=root)
