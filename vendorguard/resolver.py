"""Build Resolver: dependency closure and package classification via ``go list``."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

from vendorguard.command import LogMode, discard_output, output_lines, output_one_line
from vendorguard.exceptions import ExternalToolError
from vendorguard.manifest import Platform


@runtime_checkable
class BuildResolver(Protocol):
    """Interface every Build Resolver must satisfy.

    *gopath* is the package search path used for the query.
    """

    def project_import_path(self) -> str: ...

    def dependencies(
        self, imports: Iterable[str], platform: Platform, gopath: str
    ) -> set[str]: ...

    def standard(self, imports: Iterable[str], gopath: str) -> set[str]: ...

    def missing(self, imports: Iterable[str], gopath: str) -> set[str]: ...

    def roots(self, imports: Iterable[str]) -> dict[str, str]: ...

    def fetch(self, import_path: str, gopath: str) -> None: ...


def gopath_env(gopath: str, **extra: str) -> dict[str, str]:
    """Child environment for GOPATH-mode queries."""
    return {"GOPATH": gopath, "GO111MODULE": "off", **extra}


class GoListResolver:
    """Resolver backed by the Go toolchain (``go list -e`` and ``go get -d``)."""

    def __init__(self, project_dir: str | Path, go: str = "go") -> None:
        self.project_dir = Path(project_dir)
        self.go = go

    def _list(
        self,
        template: str,
        imports: Iterable[str],
        env: dict[str, str] | None = None,
        *,
        tolerate_failed: bool = True,
    ) -> list[str]:
        args = sorted(set(imports))
        if not args:
            # With no arguments go list would describe the current directory
            return []
        cmd = [self.go, "list"]
        if tolerate_failed:
            cmd.append("-e")
        cmd += ["-f", template, "--", *args]
        lines = output_lines(cmd, cwd=self.project_dir, env=env)
        # Tabs are kept: they separate fields in multi-column templates
        return [line.strip(" \r") for line in lines if line.strip()]

    def project_import_path(self) -> str:
        return output_one_line(
            [self.go, "list", "-e", "-f", "{{.ImportPath}}", "."], cwd=self.project_dir
        )

    def dependencies(self, imports: Iterable[str], platform: Platform, gopath: str) -> set[str]:
        env = gopath_env(gopath, GOOS=platform.os, GOARCH=platform.arch)
        return set(self._list("{{range .Deps}}{{. | println}}{{end}}", imports, env))

    def standard(self, imports: Iterable[str], gopath: str) -> set[str]:
        return set(self._list("{{if .Standard}}{{.ImportPath}}{{end}}", imports, gopath_env(gopath)))

    def missing(self, imports: Iterable[str], gopath: str) -> set[str]:
        return set(self._list("{{if not .Root}}{{.ImportPath}}{{end}}", imports, gopath_env(gopath)))

    def roots(self, imports: Iterable[str]) -> dict[str, str]:
        """Map each import path to the GOPATH entry it was found in."""
        result: dict[str, str] = {}
        lines = self._list(
            "{{.ImportPath}}\t{{.Root}}", imports, {"GO111MODULE": "off"}, tolerate_failed=False
        )
        for lineno, line in enumerate(lines, 1):
            imp, sep, root = line.partition("\t")
            if not sep:
                raise ExternalToolError(
                    f"{self.go} list",
                    0,
                    "\n".join(lines),
                    reason=f"cannot parse line {lineno} {line!r}",
                )
            result[imp] = root
        return result

    def fetch(self, import_path: str, gopath: str) -> None:
        discard_output(
            [self.go, "get", "-d", "--", import_path],
            cwd=self.project_dir,
            env=gopath_env(gopath),
            log_mode=LogMode.ALWAYS,
        )
