"""Path-segment trie over declared repository roots."""

from __future__ import annotations

import posixpath
from typing import Iterable

from vendorguard.exceptions import InvalidRepositoryRootError


def check_repository_root(path: str) -> str:
    """Validate a repository root: non-empty, relative, clean, slash-separated."""
    if not path:
        raise InvalidRepositoryRootError(path, "empty path")
    if "\\" in path:
        raise InvalidRepositoryRootError(path, "must use forward slashes")
    if path.startswith("/"):
        raise InvalidRepositoryRootError(path, "absolute path (must be relative)")
    clean = posixpath.normpath(path)
    if clean != path or clean == "." or clean.startswith("../") or clean == "..":
        raise InvalidRepositoryRootError(path, f"not a clean path (did you mean {clean!r}?)")
    return path


class RepoRootTree:
    """A node of the trie; a node without children is a declared root."""

    __slots__ = ("children",)

    def __init__(self) -> None:
        self.children: dict[str, RepoRootTree] = {}

    @classmethod
    def from_roots(cls, roots: Iterable[str]) -> RepoRootTree:
        tree = cls()
        for root in roots:
            tree.put(root)
        return tree

    def put(self, path: str) -> None:
        check_repository_root(path)
        node = self
        for segment in path.split("/"):
            node = node.children.setdefault(segment, RepoRootTree())

    def get(self, path: str) -> RepoRootTree | None:
        node: RepoRootTree | None = self
        for segment in path.split("/"):
            node = node.children.get(segment)
            if node is None:
                return None
        return node

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def find_enclosing_root(self, path: str) -> str | None:
        """Nearest ancestor directory of *path* that is a declared root."""
        directory = posixpath.dirname(path)
        while directory:
            node = self.get(directory)
            if node is not None and node.is_leaf:
                return directory
            directory = posixpath.dirname(directory)
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepoRootTree):
            return NotImplemented
        return self.children == other.children

    def __repr__(self) -> str:
        return f"RepoRootTree({self.children!r})"
