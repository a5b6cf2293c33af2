"""Backend registry: ordered marker probing over a closed set of backends."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import structlog

from vendorguard.vcs.base import VcsBackend, VcsHandle, VcsKind

log = structlog.get_logger("vendorguard.vcs")


class VcsRegistry:
    """Detects which backend owns a directory.

    Backends are probed in constructor order, so a directory holding several
    metadata markers resolves to the first backend listed.
    """

    def __init__(self, backends: Iterable[VcsBackend]) -> None:
        self._backends: list[VcsBackend] = list(backends)

    @property
    def backends(self) -> list[VcsBackend]:
        return list(self._backends)

    @property
    def markers(self) -> list[str]:
        return [b.marker for b in self._backends]

    def get(self, kind: VcsKind) -> VcsBackend | None:
        for backend in self._backends:
            if backend.kind is kind:
                return backend
        return None

    def is_root(self, path: str | Path) -> VcsHandle | None:
        """Return a handle if *path* itself is a repository root."""
        path = Path(path)
        for backend in self._backends:
            if backend.is_root(path):
                log.debug("vcs.root_detected", path=str(path), backend=backend.kind.value)
                return VcsHandle(backend=backend, root=path)
        return None

    def find_root(self, path: str | Path, boundary: str | Path | None = None) -> VcsHandle | None:
        """Walk up from *path* looking for the nearest repository root.

        The search never goes above *boundary* (inclusive) and, for a relative
        *path*, never above the top of that relative path.
        """
        current = Path(path)
        stop = Path(boundary) if boundary is not None else None
        while True:
            handle = self.is_root(current)
            if handle is not None:
                return handle
            if stop is not None and current == stop:
                return None
            parent = current.parent
            if parent == current:
                return None
            current = parent


def default_registry() -> VcsRegistry:
    """Create a registry with git, Mercurial and Bazaar, in that priority."""
    from vendorguard.vcs.bazaar import BazaarBackend
    from vendorguard.vcs.git import GitBackend
    from vendorguard.vcs.mercurial import MercurialBackend

    return VcsRegistry([GitBackend(), MercurialBackend(), BazaarBackend()])
