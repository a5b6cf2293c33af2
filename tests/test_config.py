"""Tests for VendorLayout and its layout pre-check."""

from __future__ import annotations

from pathlib import Path

import pytest

from vendorguard.config import VendorLayout
from vendorguard.exceptions import StructuralError


class TestFromEnv:
    def test_defaults(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("VENDORGUARD_MANIFEST", raising=False)
        monkeypatch.delenv("VENDORGUARD_VENDOR_DIR", raising=False)
        layout = VendorLayout.from_env(tmp_path)
        assert layout.manifest == "vendor.json"
        assert layout.vendor_dir == "_vendor"
        assert layout.ignore_file == "_vendor/.gitignore"
        assert layout.vendor_src == "_vendor/src"
        assert layout.project_dir == tmp_path.resolve()

    def test_overrides(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("VENDORGUARD_MANIFEST", "deps.json")
        monkeypatch.setenv("VENDORGUARD_VENDOR_DIR", "third_party/")
        layout = VendorLayout.from_env(tmp_path)
        assert layout.manifest == "deps.json"
        assert layout.vendor_src == "third_party/src"
        assert layout.vendor_abs == tmp_path.resolve() / "third_party"


class TestRequire:
    def test_complete_layout(self, layout: VendorLayout):
        layout.require()

    def test_missing_git(self, project: Path, layout: VendorLayout):
        (project / ".git").rmdir()
        with pytest.raises(StructuralError, match="directory not found: .git"):
            layout.require()
        layout.require(git=False)

    def test_missing_manifest(self, project: Path, layout: VendorLayout):
        (project / "vendor.json").unlink()
        with pytest.raises(StructuralError, match="file not found: vendor.json"):
            layout.require()

    def test_manifest_is_dir(self, project: Path, layout: VendorLayout):
        (project / "vendor.json").unlink()
        (project / "vendor.json").mkdir()
        with pytest.raises(StructuralError, match="not a file"):
            layout.require()

    def test_vendor_is_file(self, project: Path, layout: VendorLayout):
        (project / "_vendor").rmdir()
        (project / "_vendor").write_text("")
        with pytest.raises(StructuralError, match="not a directory: _vendor"):
            layout.require()
        layout.require(vendor=False)
