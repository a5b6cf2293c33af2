"""Read-only view of git's staging area (index) as a virtual file tree."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import structlog

from vendorguard.command import LogMode, output_lines, run_command
from vendorguard.exceptions import ExternalToolError, StatusParseError
from vendorguard.staging.stash import StashSnapshot, stash_unstaged
from vendorguard.staging.status import parse_filename, parse_status

log = structlog.get_logger("vendorguard.staging")


class WalkAction(Enum):
    """Returned by a walk visitor to prune the directory it was given."""

    SKIP_SUBTREE = "skip_subtree"


@dataclass(frozen=True)
class WalkEntry:
    path: str  # slash-separated, relative to the project root
    name: str
    is_dir: bool


Visitor = Callable[[WalkEntry], Optional[WalkAction]]


def is_subdir(subdir: str, directory: str) -> bool:
    """Purely lexical check on slash-separated paths without trailing slashes."""
    return subdir.startswith(directory + "/")


def walk_paths(paths: list[str], subpath: str, visit: Visitor) -> None:
    """Walk a flat, sorted list of file paths as a directory tree.

    Directory entries are synthesized for every directory strictly below
    *subpath*, each reported once before the first file inside it.
    """
    prefix = subpath.rstrip("/") + "/"
    seen_dirs: set[str] = set()
    skip_dir: str | None = None
    previous: str | None = None

    for path in paths:
        # Unmerged paths appear once per stage
        if path == previous:
            continue
        previous = path
        if not path.startswith(prefix):
            continue
        if skip_dir is not None and is_subdir(path, skip_dir):
            continue

        parts = path[len(prefix) :].split("/")
        pruned = False
        for depth in range(1, len(parts)):
            directory = prefix + "/".join(parts[:depth])
            if directory in seen_dirs:
                continue
            seen_dirs.add(directory)
            if visit(WalkEntry(directory, parts[depth - 1], True)) is WalkAction.SKIP_SUBTREE:
                skip_dir = directory
                pruned = True
                break
        if pruned:
            continue
        visit(WalkEntry(path, parts[-1], False))


class StagedView:
    """Staged-index access for one git project.

    Nothing here reads the working tree except ``stash_snapshot``, which
    rewrites it.
    """

    def __init__(self, project_dir: str | Path) -> None:
        self.project_dir = Path(project_dir)

    def _show(self, obj: str) -> bytes:
        try:
            return run_command(["git", "show", obj], cwd=self.project_dir, log_mode=LogMode.NEVER)
        except ExternalToolError as exc:
            # git show exits 128 both for a missing path and a missing HEAD
            raise FileNotFoundError(f"git show {obj}: {exc.stderr.strip()}") from exc

    def read_staged(self, path: str) -> bytes:
        return self._show(":" + path)

    def read_at_last_commit(self, path: str) -> bytes:
        return self._show("HEAD:" + path)

    def staged_files(self) -> list[str]:
        """All paths in the index, sorted as git lists them."""
        lines = output_lines(["git", "ls-files", "--stage"], cwd=self.project_dir)
        files: list[str] = []
        for line in lines:
            _, sep, quoted = line.partition("\t")
            if not sep:
                raise StatusParseError(f"unexpected format of git ls-files output: {line!r}")
            if not quoted.startswith('"'):
                # ls-files leaves names with plain spaces unquoted
                files.append(quoted)
                continue
            path, rest = parse_filename(quoted)
            if rest:
                raise StatusParseError(f"unexpected format of git ls-files output: {line!r}")
            files.append(path)
        return files

    def walk_staged(self, subpath: str, visit: Visitor) -> None:
        walk_paths(self.staged_files(), subpath, visit)

    def staged_changes(self, subpath: str) -> list[str]:
        """Paths under *subpath* with changes to be committed (both rename sides)."""
        lines = output_lines(
            ["git", "status", "--porcelain", "--", subpath], cwd=self.project_dir
        )
        return parse_status(lines)

    def is_clean(self, subpath: str) -> bool:
        """Whether the main repository sees no change at all under *subpath*."""
        return not output_lines(
            ["git", "status", "--porcelain", "--", subpath], cwd=self.project_dir
        )

    def stash_snapshot(self, label: str) -> AbstractContextManager[StashSnapshot]:
        return stash_unstaged(self.project_dir, label)
