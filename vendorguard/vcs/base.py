"""Core types and abstract base class for version control backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path


class VcsKind(Enum):
    """Supported version control systems. The set is closed."""

    GIT = "git"
    MERCURIAL = "hg"
    BAZAAR = "bzr"


@dataclass(frozen=True)
class VcsHandle:
    """A detected repository: which backend owns it and where its root is."""

    backend: VcsBackend
    root: Path

    @property
    def kind(self) -> VcsKind:
        return self.backend.kind

    def revision(self) -> str:
        return self.backend.revision(self.root)

    def is_clean(self) -> bool:
        return self.backend.is_clean(self.root)


def to_rfc3339(moment: datetime) -> str:
    """Render a timestamp as RFC3339, using ``Z`` for a zero UTC offset."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.replace(microsecond=0).isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


class VcsBackend(ABC):
    """
    Uniform capability interface over one version control system.
    No other module embeds backend-specific command lines.
    """

    @property
    @abstractmethod
    def kind(self) -> VcsKind:
        ...

    @property
    @abstractmethod
    def marker(self) -> str:
        """Metadata directory that identifies a repository root, e.g. '.git'."""
        ...

    @abstractmethod
    def clone(self, source: str | Path, target: str | Path) -> None:
        """Copy a repository; *target* must exist and be empty."""
        ...

    @abstractmethod
    def checkout(self, root: str | Path, revision: str) -> None:
        ...

    @abstractmethod
    def revision(self, root: str | Path) -> str:
        """Identifier of the currently checked out revision."""
        ...

    @abstractmethod
    def revision_time(self, root: str | Path) -> str:
        """Commit time of the current revision, as RFC3339."""
        ...

    def head_symbolic_ref(self, root: str | Path) -> str:
        """
        Symbolic name of the checked out revision (branch or tag) if the
        backend can tell; otherwise the same as revision().
        """
        return self.revision(root)

    @abstractmethod
    def is_clean(self, root: str | Path) -> bool:
        """True when there are no uncommitted changes and no untracked files.

        Files excluded by the backend's own ignore rules do not count.
        """
        ...

    def is_root(self, path: str | Path) -> bool:
        return (Path(path) / self.marker).is_dir()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
