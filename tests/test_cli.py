"""Tests for CLI commands (workflows are mocked)."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from vendorguard.cli import main
from vendorguard.exceptions import MissingRootError, StructuralError
from vendorguard.manifest import Manifest, ManifestEntry, Platform


class TestCheck:
    def test_success(self, project: Path):
        with patch("vendorguard.cli.run_checks") as run:
            result = CliRunner().invoke(main, ["-C", str(project), "check"])
        assert result.exit_code == 0, result.output
        ctx = run.call_args.args[0]
        assert ctx.layout.project_dir == project.resolve()

    def test_failure_prints_error_and_exits_1(self, project: Path):
        err = MissingRootError(["_vendor/src/a.com/x"], "vendor.json")
        with patch("vendorguard.cli.run_checks", side_effect=err):
            result = CliRunner().invoke(main, ["-C", str(project), "check"])
        assert result.exit_code == 1
        assert "error: following vendor.json repositoryRoots not found in git" in result.output

    def test_env_overrides_layout(self, project: Path, monkeypatch):
        monkeypatch.setenv("VENDORGUARD_MANIFEST", "deps.json")
        monkeypatch.setenv("VENDORGUARD_VENDOR_DIR", "third_party/")
        with patch("vendorguard.cli.run_checks") as run:
            CliRunner().invoke(main, ["-C", str(project), "check"])
        layout = run.call_args.args[0].layout
        assert layout.manifest == "deps.json"
        assert layout.vendor_dir == "third_party"
        assert layout.ignore_file == "third_party/.gitignore"


class TestRecreate:
    def test_platforms_parsed(self, project: Path):
        with patch("vendorguard.cli.recreate_vendor", return_value=Manifest()) as run:
            result = CliRunner().invoke(
                main,
                [
                    "-C",
                    str(project),
                    "recreate",
                    "--platforms",
                    "linux_amd64,darwin_arm64",
                    "--no-clone",
                ],
            )
        assert result.exit_code == 0, result.output
        _, platforms = run.call_args.args
        assert platforms == [
            Platform(os="linux", arch="amd64"),
            Platform(os="darwin", arch="arm64"),
        ]
        assert run.call_args.kwargs == {"clone": False}
        assert "vendor.json: 0 packages" in result.output

    def test_platforms_required(self, project: Path):
        result = CliRunner().invoke(main, ["-C", str(project), "recreate"])
        assert result.exit_code == 2
        assert "--platforms" in result.output

    def test_empty_platforms(self, project: Path):
        result = CliRunner().invoke(main, ["-C", str(project), "recreate", "--platforms", ""])
        assert result.exit_code == 2
        assert "non-empty '--platforms' argument must be provided" in result.output

    def test_workflow_error(self, project: Path):
        with patch("vendorguard.cli.recreate_vendor", side_effect=StructuralError("boom")):
            result = CliRunner().invoke(
                main, ["-C", str(project), "recreate", "--platforms", "linux_amd64"]
            )
        assert result.exit_code == 1
        assert "error: boom" in result.output


class TestUpdate:
    def test_flags(self, project: Path):
        updated = Manifest(
            packages=[
                ManifestEntry(
                    canonical="a.com/x",
                    repository_root="_vendor/src/a.com/x",
                    revision="rev2",
                    revision_time="2016-01-01T00:00:00Z",
                )
            ]
        )
        with patch("vendorguard.cli.update_vendor", return_value=updated) as run:
            result = CliRunner().invoke(
                main,
                [
                    "-C",
                    str(project),
                    "update",
                    "a.com/x",
                    "-f",
                    "--delete-patch",
                    "--platforms",
                    "linux_386",
                ],
            )
        assert result.exit_code == 0, result.output
        assert run.call_args.args[1] == "a.com/x"
        assert run.call_args.kwargs == {"force": True, "delete_patch": True}
        assert "a.com/x: rev2 2016-01-01T00:00:00Z" in result.output

    def test_import_path_required(self, project: Path):
        result = CliRunner().invoke(main, ["-C", str(project), "update", "--platforms", "linux_386"])
        assert result.exit_code == 2
