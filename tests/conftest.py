"""Shared pytest fixtures for vendorguard tests."""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path

import pytest

from vendorguard.checks import CheckContext
from vendorguard.config import VendorLayout
from vendorguard.testing import FakeBackend, FakeResolver, FakeStagedView
from vendorguard.vcs import VcsRegistry


def manifest_json(*packages: dict, platforms: list[str] | None = None, comment: str = "") -> bytes:
    """Serialize a vendor.json document; packages take manifest JSON keys."""
    doc: dict = {"tool": "vendorguard", "package": list(packages)}
    if comment:
        doc["comment"] = comment
    doc["platforms"] = [
        {"os": p.split("_", 1)[0], "arch": p.split("_", 1)[1]}
        for p in (platforms if platforms is not None else ["linux_amd64"])
    ]
    return json.dumps(doc).encode()


def package(canonical: str, root: str, revision: str = "rev1", comment: str = "") -> dict:
    data = {
        "canonical": canonical,
        "local": f"_vendor/src/{canonical}",
        "revision": revision,
        "revisionTime": "2015-07-01T12:00:00Z",
        "repositoryRoot": root,
    }
    if comment:
        data["comment"] = comment
    return data


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project dir with the layout every check requires."""
    (tmp_path / ".git").mkdir()
    (tmp_path / "_vendor").mkdir()
    (tmp_path / "vendor.json").write_text("{}")
    return tmp_path


@pytest.fixture
def layout(project: Path) -> VendorLayout:
    return VendorLayout(project_dir=project)


@pytest.fixture
def make_ctx(layout: VendorLayout):
    """Build a CheckContext over fakes."""

    def _make(
        staged: FakeStagedView | None = None,
        backend: FakeBackend | None = None,
        resolver: FakeResolver | None = None,
    ) -> CheckContext:
        return CheckContext(
            layout=layout,
            staged=staged or FakeStagedView(),
            registry=VcsRegistry([backend or FakeBackend()]),
            resolver=resolver or FakeResolver(),
        )

    return _make


def run_git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, check=True, capture_output=True, text=True
    )
    return result.stdout


@pytest.fixture
def git_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An initialized git repository with one commit."""
    if shutil.which("git") is None:
        pytest.skip("git binary not available")
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")

    repo = tmp_path / "repo"
    repo.mkdir()
    run_git(repo, "init", "-q")
    (repo / "README").write_text("hello\n")
    run_git(repo, "add", "README")
    run_git(repo, "commit", "-q", "-m", "initial")
    return repo
