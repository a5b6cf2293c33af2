"""Tests for the subprocess layer (subprocess.run is mocked)."""

from __future__ import annotations

import os
import subprocess
from unittest.mock import patch

import pytest

from vendorguard.command import (
    LogMode,
    format_cmdline,
    merge_env,
    output_lines,
    output_one_line,
    run_command,
)
from vendorguard.config import command_timeout
from vendorguard.exceptions import ExternalToolError, StructuralError


def _completed(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestRunCommand:
    def test_returns_stdout(self):
        with patch("vendorguard.command.subprocess.run", return_value=_completed(b"out\n")) as run:
            assert run_command(["git", "status"], cwd="/tmp") == b"out\n"
        kwargs = run.call_args.kwargs
        assert kwargs["cwd"] == "/tmp"
        assert kwargs["capture_output"] is True
        assert kwargs["env"] is None

    def test_env_overrides_are_merged(self):
        with patch("vendorguard.command.subprocess.run", return_value=_completed()) as run:
            run_command(["go", "list"], env={"GOOS": "plan9"})
        env = run.call_args.kwargs["env"]
        assert env["GOOS"] == "plan9"
        assert env["PATH"] == os.environ["PATH"]

    def test_nonzero_exit_raises(self):
        result = _completed(b"partial", b"fatal: bad", returncode=128)
        with patch("vendorguard.command.subprocess.run", return_value=result):
            with pytest.raises(ExternalToolError) as exc_info:
                run_command(["git", "show", ":x"])
        err = exc_info.value
        assert err.returncode == 128
        assert err.stderr == "fatal: bad"
        assert err.stdout == "partial"
        assert "git show :x" in str(err)
        assert "fatal: bad" in str(err)

    def test_nonzero_exit_raises_even_when_not_logged(self):
        with patch("vendorguard.command.subprocess.run", return_value=_completed(returncode=1)):
            with pytest.raises(ExternalToolError):
                run_command(["git", "rev-parse"], log_mode=LogMode.NEVER)

    def test_missing_executable(self):
        with patch(
            "vendorguard.command.subprocess.run",
            side_effect=FileNotFoundError(2, "No such file", "bzr"),
        ):
            with pytest.raises(ExternalToolError, match="executable not found") as exc_info:
                run_command(["bzr", "status"])
        assert exc_info.value.returncode is None

    def test_timeout(self, monkeypatch):
        monkeypatch.setenv("VENDORGUARD_COMMAND_TIMEOUT", "5")
        with patch(
            "vendorguard.command.subprocess.run",
            side_effect=subprocess.TimeoutExpired(["hg"], 5),
        ) as run:
            with pytest.raises(ExternalToolError, match="timed out"):
                run_command(["hg", "status"])
        assert run.call_args.kwargs["timeout"] == 5.0


class TestOutputHelpers:
    def test_output_lines_keeps_leading_spaces(self):
        with patch("vendorguard.command.subprocess.run", return_value=_completed(b" M a\nA  b\n\n")):
            assert output_lines(["git", "status", "--porcelain"]) == [" M a", "A  b"]

    def test_output_lines_empty(self):
        with patch("vendorguard.command.subprocess.run", return_value=_completed(b"\n")):
            assert output_lines(["git", "status"]) == []

    def test_output_one_line(self):
        with patch("vendorguard.command.subprocess.run", return_value=_completed(b"abc123\n")):
            assert output_one_line(["git", "rev-parse", "HEAD"]) == "abc123"

    def test_output_one_line_rejects_many(self):
        with patch("vendorguard.command.subprocess.run", return_value=_completed(b"a\nb\n")):
            with pytest.raises(ExternalToolError, match="expected one line"):
                output_one_line(["go", "list"])

    def test_output_one_line_rejects_none(self):
        with patch("vendorguard.command.subprocess.run", return_value=_completed(b"")):
            with pytest.raises(ExternalToolError, match="got 0"):
                output_one_line(["go", "list"])


class TestFormatting:
    def test_format_cmdline_with_env(self):
        assert (
            format_cmdline(["go", "list", "a b"], {"GOPATH": "/v", "GOOS": "linux"})
            == "GOOS=linux GOPATH=/v go list 'a b'"
        )

    def test_merge_env(self):
        assert merge_env({"A": "1", "B": "2"}, {"B": "3"}) == {"A": "1", "B": "3"}
        assert merge_env({"A": "1"}, None) == {"A": "1"}


class TestCommandTimeout:
    def test_unset(self, monkeypatch):
        monkeypatch.delenv("VENDORGUARD_COMMAND_TIMEOUT", raising=False)
        assert command_timeout() is None

    def test_zero_means_none(self, monkeypatch):
        monkeypatch.setenv("VENDORGUARD_COMMAND_TIMEOUT", "0")
        assert command_timeout() is None

    def test_invalid(self, monkeypatch):
        monkeypatch.setenv("VENDORGUARD_COMMAND_TIMEOUT", "soon")
        with pytest.raises(StructuralError, match="VENDORGUARD_COMMAND_TIMEOUT"):
            command_timeout()
