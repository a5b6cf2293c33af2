"""Staged-index access: staged reads, tree walk, status parsing, stash."""

from vendorguard.staging.stash import StashSnapshot, stash_unstaged
from vendorguard.staging.status import StatusEntry, parse_filename, parse_status
from vendorguard.staging.view import StagedView, WalkAction, WalkEntry

__all__ = [
    "StagedView",
    "StashSnapshot",
    "StatusEntry",
    "WalkAction",
    "WalkEntry",
    "parse_filename",
    "parse_status",
    "stash_unstaged",
]
