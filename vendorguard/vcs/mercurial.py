"""Mercurial backend."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from vendorguard.command import discard_output, output_lines, output_one_line
from vendorguard.vcs.base import VcsBackend, VcsKind, to_rfc3339


class MercurialBackend(VcsBackend):
    kind = VcsKind.MERCURIAL
    marker = ".hg"

    def clone(self, source: str | Path, target: str | Path) -> None:
        discard_output(["hg", "clone", "--", str(source), str(target)])

    def checkout(self, root: str | Path, revision: str) -> None:
        discard_output(["hg", "-R", str(root), "update", revision])

    def revision(self, root: str | Path) -> str:
        return output_one_line(["hg", "-R", str(root), "parent", "--template", "{node}"])

    def revision_time(self, root: str | Path) -> str:
        line = output_one_line(
            ["hg", "-R", str(root), "parent", "--template", "{date|rfc3339date}"]
        )
        return to_rfc3339(datetime.fromisoformat(line))

    def is_clean(self, root: str | Path) -> bool:
        return not output_lines(["hg", "-R", str(root), "status"])
