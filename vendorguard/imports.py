"""Import closure: Go import scanning and resolver-backed set transformations.

Every phase takes an import set and returns a new ``frozenset``; nothing is
mutated between phases.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable

import structlog

from vendorguard.exceptions import StructuralError
from vendorguard.manifest import Platform
from vendorguard.resolver import BuildResolver

log = structlog.get_logger("vendorguard.imports")

ImportSet = frozenset[str]

# Directories ignored by `go build` as well
_SKIP_DIR_NAMES = frozenset({"testdata"})
_SKIP_DIR_PREFIXES = (".", "_")

# String literals are matched first so that comment markers inside them survive.
_TOKEN_RE = re.compile(
    r'(?P<str>"(?:\\.|[^"\\\n])*"|`[^`]*`)|(?P<line>//[^\n]*)|(?P<block>/\*.*?\*/)',
    re.DOTALL,
)

_PACKAGE_RE = re.compile(r"^\s*package\s+\w+", re.MULTILINE)

# First top-level declaration that is not an import ends the import section.
_DECL_RE = re.compile(r"^\s*(?:func|var|const|type)\b", re.MULTILINE)

# import "x" / import name "x" / import . "x" / import _ "x"
_SINGLE_RE = re.compile(r'\bimport\s+(?:[\w.]+\s+)?("[^"\n]*"|`[^`]*`)')

# import ( ... )
_BLOCK_RE = re.compile(r"\bimport\s*\((.*?)\)", re.DOTALL)

_SPEC_RE = re.compile(r'(?:[\w.]+\s+)?("[^"\n]*"|`[^`]*`)')


def _strip_comments(source: str) -> str:
    def replace(match: re.Match[str]) -> str:
        if match.group("str") is not None:
            return match.group("str")
        if match.group("block") is not None:
            # Keep line structure for the declaration regexes
            return "\n" * match.group("block").count("\n") or " "
        return ""

    return _TOKEN_RE.sub(replace, source)


def parse_imports(source: str) -> list[str]:
    """Return the import paths declared by one Go source file.

    Raises ``ValueError`` when the file has no package clause or an
    unterminated import block.
    """
    text = _strip_comments(source)
    if not _PACKAGE_RE.search(text):
        raise ValueError("expected 'package' clause")
    decl = _DECL_RE.search(text)
    if decl is not None:
        text = text[: decl.start()]

    imports: list[str] = []
    for block in _BLOCK_RE.finditer(text):
        imports.extend(spec.strip('"`') for spec in _SPEC_RE.findall(block.group(1)))
    remainder = _BLOCK_RE.sub(" ", text)
    if re.search(r"\bimport\s*\(", remainder):
        raise ValueError("unterminated import block")
    imports.extend(spec.strip('"`') for spec in _SINGLE_RE.findall(remainder))
    return imports


def has_import_prefix(import_path: str, prefix: str) -> bool:
    """Whether *import_path* is *prefix* itself or a package below it."""
    return import_path == prefix or import_path.startswith(prefix + "/")


def _skip_dir(name: str) -> bool:
    return name in _SKIP_DIR_NAMES or name.startswith(_SKIP_DIR_PREFIXES)


def scan_imports(project_dir: str | Path, project_id: str) -> ImportSet:
    """Collect every import of the project's ``*.go`` files, regardless of build
    tags or target platform, excluding the project's own packages.
    """
    root = Path(project_dir)
    found: set[str] = set()
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not _skip_dir(d))
        for name in sorted(filenames):
            if not name.endswith(".go") or _skip_dir(name):
                continue
            path = Path(dirpath) / name
            source = path.read_text(encoding="utf-8", errors="replace")
            try:
                imports = parse_imports(source)
            except ValueError as exc:
                log.warning("imports.parse_failed", path=str(path), error=str(exc))
                continue
            found.update(imp for imp in imports if not has_import_prefix(imp, project_id))
    log.debug("imports.scanned", project=project_id, count=len(found))
    return frozenset(found)


def transitive_closure(
    seed: Iterable[str],
    resolver: BuildResolver,
    platforms: list[Platform],
    gopath: str,
) -> ImportSet:
    """Seed plus its dependencies on every platform.

    Each platform is queried with the initial seed, so packages found for one
    platform never widen the query for the next.
    """
    if not platforms:
        raise StructuralError("no platforms listed; at least one OS_ARCH is required")
    seed = frozenset(seed)
    closure = set(seed)
    for platform in platforms:
        deps = resolver.dependencies(seed, platform, gopath)
        log.debug("imports.closure", platform=str(platform), deps=len(deps))
        closure.update(deps)
    return frozenset(closure)


def remove_stdlib(imports: Iterable[str], resolver: BuildResolver, gopath: str) -> ImportSet:
    imports = frozenset(imports)
    return imports - frozenset(resolver.standard(imports, gopath))


def find_missing(imports: Iterable[str], resolver: BuildResolver, gopath: str) -> ImportSet:
    """Identifiers the resolver cannot locate on *gopath*."""
    return frozenset(resolver.missing(frozenset(imports), gopath))
