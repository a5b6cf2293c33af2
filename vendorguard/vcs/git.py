"""git backend."""

from __future__ import annotations

from email.utils import parsedate_to_datetime
from pathlib import Path

from vendorguard.command import LogMode, discard_output, output_lines, output_one_line
from vendorguard.exceptions import ExternalToolError
from vendorguard.vcs.base import VcsBackend, VcsKind, to_rfc3339


class GitBackend(VcsBackend):
    kind = VcsKind.GIT
    marker = ".git"

    @staticmethod
    def _git(root: str | Path, *args: str, work_tree: bool = False) -> list[str]:
        cmd = ["git", "--git-dir", str(Path(root) / ".git")]
        if work_tree:
            cmd += ["--work-tree", str(root)]
        return cmd + list(args)

    def clone(self, source: str | Path, target: str | Path) -> None:
        discard_output(["git", "clone", "--", str(source), str(target)])

    def checkout(self, root: str | Path, revision: str) -> None:
        discard_output(self._git(root, "checkout", revision, work_tree=True))

    def revision(self, root: str | Path) -> str:
        return output_one_line(self._git(root, "rev-parse", "HEAD"))

    def revision_time(self, root: str | Path) -> str:
        # %aD is RFC 2822, e.g. "Mon, 2 Jan 2006 15:04:05 -0700"
        line = output_one_line(self._git(root, "log", "-1", "--pretty=format:%aD"))
        return to_rfc3339(parsedate_to_datetime(line))

    def head_symbolic_ref(self, root: str | Path) -> str:
        try:
            return output_one_line(
                self._git(root, "symbolic-ref", "-q", "--short", "HEAD"),
                log_mode=LogMode.NEVER,
            )
        except ExternalToolError:
            # Detached HEAD
            return self.revision(root)

    def is_clean(self, root: str | Path) -> bool:
        return not output_lines(self._git(root, "status", "--porcelain", work_tree=True))
