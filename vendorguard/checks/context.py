"""Collaborators shared by the verification checks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from vendorguard.config import VendorLayout
from vendorguard.exceptions import StructuralError
from vendorguard.manifest import Manifest
from vendorguard.resolver import BuildResolver, GoListResolver
from vendorguard.staging import StagedView
from vendorguard.vcs import VcsRegistry, default_registry


@dataclass
class CheckContext:
    layout: VendorLayout
    staged: StagedView
    registry: VcsRegistry
    resolver: BuildResolver

    @classmethod
    def default(cls, project_dir: str | Path = ".") -> CheckContext:
        """Wire the real git, VCS and ``go list`` collaborators for a project."""
        layout = VendorLayout.from_env(project_dir)
        return cls(
            layout=layout,
            staged=StagedView(layout.project_dir),
            registry=default_registry(),
            resolver=GoListResolver(layout.project_dir),
        )

    def staged_manifest(self) -> Manifest:
        """The manifest as it will be committed; absence is an error."""
        try:
            data = self.staged.read_staged(self.layout.manifest)
        except FileNotFoundError:
            raise StructuralError(f"file not found: {self.layout.manifest}") from None
        return Manifest.parse(data, source=f"staged {self.layout.manifest}")

    def previous_manifest(self) -> Manifest:
        """The manifest at HEAD; empty before the first commit that adds it."""
        try:
            data = self.staged.read_at_last_commit(self.layout.manifest)
        except FileNotFoundError:
            return Manifest()
        return Manifest.parse(data, source=f"HEAD:{self.layout.manifest}")
