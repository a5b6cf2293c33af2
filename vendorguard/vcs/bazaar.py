"""Bazaar backend."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from vendorguard.command import discard_output, output_lines, output_one_line
from vendorguard.vcs.base import VcsBackend, VcsKind, to_rfc3339

# bzr prints "+0000" rather than "Z" for UTC
_BZR_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"


class BazaarBackend(VcsBackend):
    kind = VcsKind.BAZAAR
    marker = ".bzr"

    def clone(self, source: str | Path, target: str | Path) -> None:
        # bzr refuses to clone into an existing directory
        target = Path(target)
        if target.is_dir():
            target.rmdir()
        discard_output(["bzr", "clone", "--", str(source), str(target)])

    def checkout(self, root: str | Path, revision: str) -> None:
        discard_output(["bzr", "update", "-r", "revid:" + revision, str(root)])

    def revision(self, root: str | Path) -> str:
        return output_one_line(
            ["bzr", "version-info", "--custom", "--template", "{revision_id}", str(root)]
        )

    def revision_time(self, root: str | Path) -> str:
        line = output_one_line(
            ["bzr", "version-info", "--custom", "--template", "{date}", str(root)]
        )
        return to_rfc3339(datetime.strptime(line, _BZR_DATE_FORMAT))

    def is_clean(self, root: str | Path) -> bool:
        return not output_lines(["bzr", "status", "--short", str(root)])
