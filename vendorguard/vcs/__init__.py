"""Version control backends (git, Mercurial, Bazaar) behind one interface."""

from vendorguard.vcs.base import VcsBackend, VcsHandle, VcsKind
from vendorguard.vcs.registry import VcsRegistry, default_registry

__all__ = ["VcsBackend", "VcsHandle", "VcsKind", "VcsRegistry", "default_registry"]
