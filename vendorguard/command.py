"""Blocking subprocess invocation for VCS tools and the Go toolchain."""

from __future__ import annotations

import os
import shlex
import subprocess
from enum import Enum
from pathlib import Path
from typing import Mapping, Sequence

import structlog

from vendorguard.config import command_timeout
from vendorguard.exceptions import ExternalToolError

log = structlog.get_logger("vendorguard.command")


class LogMode(Enum):
    """What gets logged for a command.

    ON_ERROR: the command line and its captured output, only on failure.
    ALWAYS:   the command line at info level, output on failure.
    NEVER:    nothing; used for probes whose failure is an expected answer.
    """

    ON_ERROR = "on_error"
    ALWAYS = "always"
    NEVER = "never"


def merge_env(
    original: Mapping[str, str], overrides: Mapping[str, str] | None
) -> dict[str, str]:
    """Return a copy of *original* with *overrides* applied on top."""
    env = dict(original)
    if overrides:
        env.update(overrides)
    return env


def format_cmdline(args: Sequence[str], env: Mapping[str, str] | None = None) -> str:
    """Render a command line with changed env vars, e.g. ``GOOS=linux go list``."""
    prefix = ""
    if env:
        prefix = "".join(f"{k}={shlex.quote(v)} " for k, v in sorted(env.items()))
    return prefix + " ".join(shlex.quote(a) for a in args)


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", "surrogateescape")


def run_command(
    args: Sequence[str],
    *,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    log_mode: LogMode = LogMode.ON_ERROR,
) -> bytes:
    """Run *args* to completion and return its raw stdout.

    *env* holds only the variables to override; the rest of the current
    environment is inherited.  Raises ``ExternalToolError`` on a non-zero
    exit, a missing executable or a timeout.
    """
    cmdline = format_cmdline(args, env)
    if log_mode is LogMode.ALWAYS:
        log.info("command.run", cmd=cmdline, cwd=str(cwd) if cwd else None)
    else:
        log.debug("command.run", cmd=cmdline, cwd=str(cwd) if cwd else None)

    try:
        result = subprocess.run(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            env=merge_env(os.environ, env) if env else None,
            capture_output=True,
            timeout=command_timeout(),
        )
    except FileNotFoundError as exc:
        if log_mode is not LogMode.NEVER:
            log.error("command.not_found", cmd=cmdline)
        raise ExternalToolError(cmdline, None, reason=f"executable not found: {exc.filename}") from exc
    except subprocess.TimeoutExpired as exc:
        if log_mode is not LogMode.NEVER:
            log.error("command.timeout", cmd=cmdline, timeout=exc.timeout)
        raise ExternalToolError(
            cmdline,
            None,
            _decode(exc.stdout),
            _decode(exc.stderr),
            reason=f"timed out after {exc.timeout}s",
        ) from exc

    if result.returncode != 0:
        stdout = _decode(result.stdout)
        stderr = _decode(result.stderr)
        if log_mode is not LogMode.NEVER:
            log.error(
                "command.failed",
                cmd=cmdline,
                returncode=result.returncode,
                stdout=stdout.strip(),
                stderr=stderr.strip(),
            )
        raise ExternalToolError(cmdline, result.returncode, stdout, stderr)
    return result.stdout


def output_lines(args: Sequence[str], **kwargs) -> list[str]:
    """Run a command and return its stdout split into lines.

    Only trailing whitespace is trimmed: leading spaces are significant in
    porcelain status output.  Empty output yields an empty list.
    """
    text = _decode(run_command(args, **kwargs)).rstrip()
    if not text:
        return []
    return text.split("\n")


def output_one_line(args: Sequence[str], **kwargs) -> str:
    """Run a command that must print exactly one line, and return it."""
    lines = output_lines(args, **kwargs)
    if len(lines) != 1:
        cmdline = format_cmdline(args, kwargs.get("env"))
        raise ExternalToolError(
            cmdline,
            0,
            "\n".join(lines),
            reason=f"expected one line of output from {args[0]}, got {len(lines)}",
        )
    return lines[0].strip()


def discard_output(args: Sequence[str], **kwargs) -> None:
    """Run a command for its side effects only."""
    run_command(args, **kwargs)
