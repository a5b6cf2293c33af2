"""Project layout and environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from vendorguard.exceptions import StructuralError

DEFAULT_MANIFEST = "vendor.json"
DEFAULT_VENDOR_DIR = "_vendor"
TOOL_NAME = "vendorguard"


def command_timeout() -> float | None:
    """Subprocess timeout in seconds from VENDORGUARD_COMMAND_TIMEOUT (unset = none)."""
    raw = os.environ.get("VENDORGUARD_COMMAND_TIMEOUT", "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise StructuralError(
            f"VENDORGUARD_COMMAND_TIMEOUT must be a number of seconds, got {raw!r}"
        ) from None
    return value if value > 0 else None


@dataclass(frozen=True)
class VendorLayout:
    """Where the manifest and the vendor subtree live inside a project.

    ``manifest`` and ``vendor_dir`` are slash-separated and relative to
    ``project_dir``; the same strings are used as git index paths.
    """

    project_dir: Path
    manifest: str = DEFAULT_MANIFEST
    vendor_dir: str = DEFAULT_VENDOR_DIR

    @classmethod
    def from_env(cls, project_dir: str | Path = ".") -> VendorLayout:
        return cls(
            project_dir=Path(project_dir).resolve(),
            manifest=os.environ.get("VENDORGUARD_MANIFEST", DEFAULT_MANIFEST),
            vendor_dir=os.environ.get("VENDORGUARD_VENDOR_DIR", DEFAULT_VENDOR_DIR).rstrip("/"),
        )

    @property
    def ignore_file(self) -> str:
        """The single stray file allowed at the vendor root."""
        return f"{self.vendor_dir}/.gitignore"

    @property
    def vendor_src(self) -> str:
        return f"{self.vendor_dir}/src"

    @property
    def vendor_abs(self) -> Path:
        return self.project_dir / self.vendor_dir

    @property
    def manifest_abs(self) -> Path:
        return self.project_dir / self.manifest

    def path(self, relative: str) -> Path:
        """Absolute on-disk location of a slash-separated project path."""
        return self.project_dir / relative

    def require(self, *, git: bool = True, manifest: bool = True, vendor: bool = True) -> None:
        """Verify that the project root has ``.git/``, the manifest and the vendor dir."""
        if git:
            self._require_dir(self.project_dir / ".git", ".git")
        if manifest:
            target = self.manifest_abs
            if not target.exists():
                raise StructuralError(f"file not found: {self.manifest}")
            if target.is_dir():
                raise StructuralError(f"not a file: {self.manifest}")
        if vendor:
            self._require_dir(self.vendor_abs, self.vendor_dir)

    @staticmethod
    def _require_dir(path: Path, label: str) -> None:
        if not path.exists():
            raise StructuralError(f"directory not found: {label}")
        if not path.is_dir():
            raise StructuralError(f"not a directory: {label}")
