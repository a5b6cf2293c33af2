"""Test doubles for vendorguard, for use in unit and scenario tests.

Usage::

    from vendorguard.testing import FakeBackend, FakeResolver, FakeStagedView

    staged = FakeStagedView(staged={"vendor.json": b"{...}", "_vendor/src/a/b/x.go": b""})
    backend = FakeBackend(repos={"/proj/_vendor/src/a/b": "rev1"}, dirty=["/proj/_vendor/src/a/b"])
    resolver = FakeResolver(project="example.com/proj", graph={"a/b": ["fmt", "c/d"]})
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from vendorguard.manifest import Platform
from vendorguard.staging import StashSnapshot
from vendorguard.staging.view import Visitor, is_subdir, walk_paths
from vendorguard.vcs import VcsBackend, VcsKind

_MARKERS = {VcsKind.GIT: ".git", VcsKind.MERCURIAL: ".hg", VcsKind.BAZAAR: ".bzr"}


class FakeStagedView:
    """In-memory staged index.

    Parameters
    ----------
    staged:
        Index contents, path -> bytes.
    head:
        Contents at the last commit, path -> bytes.
    changes:
        Paths reported as changes to be committed.
    dirty:
        Paths the main repository reports as modified (for ``is_clean``).
    """

    def __init__(
        self,
        staged: Mapping[str, bytes] | None = None,
        head: Mapping[str, bytes] | None = None,
        changes: Iterable[str] = (),
        dirty: Iterable[str] = (),
    ) -> None:
        self.project_dir = Path(".")
        self.staged = dict(staged or {})
        self.head = dict(head or {})
        self.changes = list(changes)
        self.dirty = set(dirty)
        self.events: list[tuple[str, str]] = []

    def read_staged(self, path: str) -> bytes:
        try:
            return self.staged[path]
        except KeyError:
            raise FileNotFoundError(f"not staged: {path}") from None

    def read_at_last_commit(self, path: str) -> bytes:
        try:
            return self.head[path]
        except KeyError:
            raise FileNotFoundError(f"not in HEAD: {path}") from None

    def staged_files(self) -> list[str]:
        return sorted(self.staged)

    def walk_staged(self, subpath: str, visit: Visitor) -> None:
        walk_paths(self.staged_files(), subpath, visit)

    def staged_changes(self, subpath: str) -> list[str]:
        return [p for p in self.changes if p == subpath or is_subdir(p, subpath)]

    def is_clean(self, subpath: str) -> bool:
        return not any(p == subpath or is_subdir(p, subpath) for p in self.dirty)

    @contextmanager
    def stash_snapshot(self, label: str) -> Iterator[StashSnapshot]:
        """Records ``("stash", label)`` on enter and ``("restore", label)`` on every exit."""
        self.events.append(("stash", label))
        try:
            yield StashSnapshot(project_dir=self.project_dir, label=label)
        finally:
            self.events.append(("restore", label))


class FakeBackend(VcsBackend):
    """VCS backend whose repositories exist only in memory.

    *repos* maps a repository root to its checked out revision; *dirty*
    lists roots with uncommitted changes. Every call is recorded in ``calls``.
    """

    def __init__(
        self,
        kind: VcsKind = VcsKind.GIT,
        *,
        repos: Mapping[str | Path, str] | None = None,
        dirty: Iterable[str | Path] = (),
        revision_time: str = "2015-07-01T12:00:00Z",
    ) -> None:
        self._kind = kind
        self.repos = {Path(k): v for k, v in (repos or {}).items()}
        self.dirty = {Path(p) for p in dirty}
        self.time = revision_time
        self.calls: list[tuple[str, Path]] = []

    @property
    def kind(self) -> VcsKind:
        return self._kind

    @property
    def marker(self) -> str:
        return _MARKERS[self._kind]

    def is_root(self, path: str | Path) -> bool:
        self.calls.append(("is_root", Path(path)))
        return Path(path) in self.repos

    def clone(self, source: str | Path, target: str | Path) -> None:
        self.calls.append(("clone", Path(target)))
        self.repos[Path(target)] = self.repos.get(Path(source), "")

    def checkout(self, root: str | Path, revision: str) -> None:
        self.calls.append(("checkout", Path(root)))
        self.repos[Path(root)] = revision

    def revision(self, root: str | Path) -> str:
        self.calls.append(("revision", Path(root)))
        return self.repos[Path(root)]

    def revision_time(self, root: str | Path) -> str:
        self.calls.append(("revision_time", Path(root)))
        return self.time

    def is_clean(self, root: str | Path) -> bool:
        self.calls.append(("is_clean", Path(root)))
        return Path(root) not in self.dirty


class FakeResolver:
    """Build Resolver over an in-memory import graph.

    Parameters
    ----------
    project:
        Import path of the project itself.
    graph:
        Direct imports of each package. ``dependencies`` reports the
        transitive closure, excluding the queried packages themselves.
    platform_graph:
        Extra direct imports that apply only to one ``os_arch`` platform.
    available:
        Packages found on any GOPATH; ``None`` means every package is found.
        Standard library packages are always found.
    locations:
        GOPATH root reported by ``roots`` for each package.
    """

    def __init__(
        self,
        project: str = "example.com/project",
        graph: Mapping[str, Iterable[str]] | None = None,
        *,
        platform_graph: Mapping[str, Mapping[str, Iterable[str]]] | None = None,
        available: Iterable[str] | None = None,
        locations: Mapping[str, str] | None = None,
    ) -> None:
        self.project = project
        self.graph = {k: list(v) for k, v in (graph or {}).items()}
        self.platform_graph = {
            p: {k: list(v) for k, v in g.items()} for p, g in (platform_graph or {}).items()
        }
        self.available = set(available) if available is not None else None
        self.locations = dict(locations or {})
        self.calls: list[tuple[str, frozenset[str]]] = []

    @staticmethod
    def is_standard(import_path: str) -> bool:
        # Standard library paths have no dot in their first element
        return "." not in import_path.split("/", 1)[0]

    def project_import_path(self) -> str:
        return self.project

    def dependencies(self, imports: Iterable[str], platform: Platform, gopath: str) -> set[str]:
        seed = frozenset(imports)
        self.calls.append(("dependencies", seed))
        extra = self.platform_graph.get(str(platform), {})
        found: set[str] = set()
        stack = list(seed)
        while stack:
            current = stack.pop()
            for dep in self.graph.get(current, []) + extra.get(current, []):
                if dep not in found:
                    found.add(dep)
                    stack.append(dep)
        return found

    def standard(self, imports: Iterable[str], gopath: str) -> set[str]:
        imports = frozenset(imports)
        self.calls.append(("standard", imports))
        return {imp for imp in imports if self.is_standard(imp)}

    def missing(self, imports: Iterable[str], gopath: str) -> set[str]:
        imports = frozenset(imports)
        self.calls.append(("missing", imports))
        if self.available is None:
            return set()
        return {
            imp for imp in imports if imp not in self.available and not self.is_standard(imp)
        }

    def roots(self, imports: Iterable[str]) -> dict[str, str]:
        imports = frozenset(imports)
        self.calls.append(("roots", imports))
        return {imp: self.locations.get(imp, "") for imp in imports}

    def fetch(self, import_path: str, gopath: str) -> None:
        self.calls.append(("fetch", frozenset([import_path])))
