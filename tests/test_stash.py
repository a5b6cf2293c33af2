"""Tests for the scoped stash of unstaged changes; needs a git binary."""

from __future__ import annotations

from pathlib import Path

import pytest

from vendorguard.exceptions import StashRestoreError
from vendorguard.staging import StagedView, StashSnapshot, stash_unstaged
from vendorguard.staging.stash import stash_ref, stash_was_created

from conftest import run_git


def _snapshot_tree(repo: Path) -> dict[str, bytes]:
    return {
        str(p.relative_to(repo)): p.read_bytes()
        for p in sorted(repo.rglob("*"))
        if p.is_file() and ".git" not in p.relative_to(repo).parts
    }


class TestStashWasCreated:
    def test_new_entry(self):
        assert stash_was_created(None, "abc")
        assert stash_was_created("abc", "def")

    def test_nothing_stashed(self):
        assert not stash_was_created(None, None)
        assert not stash_was_created("abc", "abc")


class TestStashUnstaged:
    def test_hides_unstaged_and_restores_byte_for_byte(self, git_repo: Path):
        (git_repo / "staged.txt").write_text("staged\n")
        run_git(git_repo, "add", "staged.txt")
        (git_repo / "staged.txt").write_text("staged\nplus unstaged\n")
        (git_repo / "README").write_text("unstaged edit\n")
        (git_repo / "untracked.txt").write_text("left alone\n")
        before = _snapshot_tree(git_repo)

        with stash_unstaged(git_repo, "vendorguard test") as snap:
            assert snap.created
            assert (git_repo / "staged.txt").read_text() == "staged\n"
            assert (git_repo / "README").read_text() == "hello\n"
            assert (git_repo / "untracked.txt").exists()

        assert snap.restored
        assert _snapshot_tree(git_repo) == before
        assert "AM staged.txt" in run_git(git_repo, "status", "--porcelain")
        assert stash_ref(git_repo) is None

    def test_noop_when_nothing_to_hide(self, git_repo: Path):
        (git_repo / "untracked.txt").write_text("x\n")
        before = _snapshot_tree(git_repo)
        with stash_unstaged(git_repo, "vendorguard test") as snap:
            assert not snap.created
        assert _snapshot_tree(git_repo) == before

    def test_noop_keeps_older_stash_entries(self, git_repo: Path):
        (git_repo / "README").write_text("older\n")
        run_git(git_repo, "stash", "push", "-q", "-m", "user's own")
        older = stash_ref(git_repo)
        with stash_unstaged(git_repo, "vendorguard test") as snap:
            assert not snap.created
        assert stash_ref(git_repo) == older

    def test_restores_after_error(self, git_repo: Path):
        (git_repo / "README").write_text("unstaged edit\n")
        before = _snapshot_tree(git_repo)
        with pytest.raises(RuntimeError):
            with stash_unstaged(git_repo, "vendorguard test"):
                assert (git_repo / "README").read_text() == "hello\n"
                raise RuntimeError("check failed")
        assert _snapshot_tree(git_repo) == before

    def test_restore_is_idempotent(self, git_repo: Path):
        (git_repo / "README").write_text("unstaged edit\n")
        snap = StashSnapshot.take(git_repo, "vendorguard test")
        snap.restore()
        snap.restore()
        assert (git_repo / "README").read_text() == "unstaged edit\n"

    def test_failed_restore_names_label(self, git_repo: Path):
        (git_repo / "README").write_text("unstaged edit\n")
        snap = StashSnapshot.take(git_repo, "vendorguard test")
        run_git(git_repo, "stash", "drop", "-q")
        with pytest.raises(StashRestoreError, match="vendorguard test"):
            snap.restore()

    def test_staged_view_entry_point(self, git_repo: Path):
        (git_repo / "README").write_text("unstaged edit\n")
        with StagedView(git_repo).stash_snapshot("vendorguard test") as snap:
            assert snap.label == "vendorguard test"
            assert (git_repo / "README").read_text() == "hello\n"
        assert (git_repo / "README").read_text() == "unstaged edit\n"
