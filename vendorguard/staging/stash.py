"""Scoped hiding of unstaged changes, so the working tree equals the index."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import structlog

from vendorguard.command import LogMode, discard_output, output_lines
from vendorguard.exceptions import ExternalToolError, StashRestoreError

log = structlog.get_logger("vendorguard.stash")


def stash_ref(project_dir: str | Path) -> str | None:
    """Object id of the newest stash entry, or None when the stash is empty."""
    try:
        lines = output_lines(
            ["git", "rev-parse", "-q", "--verify", "refs/stash"],
            cwd=project_dir,
            log_mode=LogMode.NEVER,
        )
    except ExternalToolError:
        return None
    return lines[0].strip() if lines else None


def stash_was_created(before: str | None, after: str | None) -> bool:
    """Whether ``git stash push`` actually recorded a new entry.

    ``git stash push`` exits 0 both when it stashes something and when there
    is nothing to stash; only the identity of refs/stash tells them apart.
    """
    return after is not None and after != before


@dataclass
class StashSnapshot:
    """A taken (or no-op) stash; ``restore()`` puts the working tree back."""

    project_dir: Path
    label: str
    created: bool = False
    restored: bool = False

    @classmethod
    def take(cls, project_dir: str | Path, label: str) -> StashSnapshot:
        project_dir = Path(project_dir)
        before = stash_ref(project_dir)
        # --keep-index leaves staged content in place; untracked files are
        # not stashed without --include-untracked.
        discard_output(
            ["git", "stash", "push", "--keep-index", "--quiet", "--message", label],
            cwd=project_dir,
        )
        after = stash_ref(project_dir)
        created = stash_was_created(before, after)
        log.debug("stash.taken", label=label, created=created)
        return cls(project_dir=project_dir, label=label, created=created)

    def restore(self) -> None:
        """Bring back the hidden changes. A no-op snapshot restores nothing."""
        if self.restored:
            return
        self.restored = True
        if not self.created:
            return
        try:
            # The stash holds both index and working tree state on top of
            # HEAD, so it applies cleanly to a pristine HEAD checkout.
            discard_output(["git", "reset", "--hard", "--quiet"], cwd=self.project_dir)
            discard_output(
                ["git", "stash", "pop", "--index", "--quiet"], cwd=self.project_dir
            )
        except ExternalToolError as exc:
            log.critical("stash.restore_failed", label=self.label, error=str(exc))
            raise StashRestoreError(self.label, exc) from exc
        log.debug("stash.restored", label=self.label)


@contextmanager
def stash_unstaged(project_dir: str | Path, label: str) -> Iterator[StashSnapshot]:
    """Hide unstaged edits for the duration of the block.

    Restoration runs on every exit path, including exceptions.
    """
    snapshot = StashSnapshot.take(project_dir, label)
    try:
        yield snapshot
    finally:
        snapshot.restore()
