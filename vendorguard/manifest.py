"""The vendor manifest (``vendor.json``): models, parsing and atomic writing.

Format follows kardianos/vendor-spec, extended with ``repositoryRoot`` on each
package and a top-level ``platforms`` list.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vendorguard.config import TOOL_NAME
from vendorguard.exceptions import InvalidRepositoryRootError, ManifestError, StructuralError
from vendorguard.tree import check_repository_root


class Platform(BaseModel):
    """A build target for the Build Resolver, e.g. linux/amd64."""

    model_config = ConfigDict(frozen=True)

    os: str
    arch: str

    @classmethod
    def parse(cls, text: str) -> Platform:
        """Parse ``OS_ARCH``."""
        goos, sep, goarch = text.strip().partition("_")
        if not goos or not sep or not goarch:
            raise StructuralError(f"invalid platform {text!r}, expected format: OS_ARCH")
        return cls(os=goos, arch=goarch)

    @classmethod
    def parse_list(cls, text: str) -> list[Platform]:
        """Parse ``OS_ARCH[,OS_ARCH...]``; an empty list is an error."""
        entries = [e for e in (text or "").split(",") if e.strip()]
        if not entries:
            raise StructuralError("non-empty '--platforms' argument must be provided")
        return [cls.parse(e) for e in entries]

    def __str__(self) -> str:
        return f"{self.os}_{self.arch}"


class ManifestEntry(BaseModel):
    """A single vendored package."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    canonical: str
    # Package path relative to the manifest, forward slashes only.
    local: str = ""
    revision: str = ""
    # RFC3339
    revision_time: str = Field(default="", alias="revisionTime")
    # Free text; editing it is how a local patch gets acknowledged.
    comment: str = ""
    # Directory holding the package's VCS metadata; may be shared by entries.
    repository_root: str = Field(alias="repositoryRoot")

    @field_validator("repository_root")
    @classmethod
    def check_root(cls, value: str) -> str:
        try:
            return check_repository_root(value)
        except InvalidRepositoryRootError as exc:
            raise ValueError(exc.reason) from exc


class Manifest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    tool: str = ""
    comment: str = ""
    platforms: list[Platform] = Field(default_factory=list)
    packages: list[ManifestEntry] = Field(default_factory=list, alias="package")

    # ── loading ──────────────────────────────────────────────────────────

    @classmethod
    def parse(cls, data: bytes | str, source: str = "manifest") -> Manifest:
        try:
            return cls.model_validate_json(data)
        except ValidationError as exc:
            raise ManifestError(f"cannot parse {source}: {exc}") from exc

    @classmethod
    def load(cls, path: str | Path) -> Manifest:
        """Read a manifest from disk; a missing file reads as an empty manifest."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return cls()
        return cls.parse(data, source=str(path))

    # ── writing ──────────────────────────────────────────────────────────

    def normalized(self) -> Manifest:
        return self.model_copy(
            update={"packages": sorted(self.packages, key=lambda p: p.canonical)}
        )

    def to_json(self) -> str:
        data = self.normalized().model_dump(by_alias=True, exclude_defaults=True)
        data = {"tool": self.tool or TOOL_NAME, **data}
        # Entry fields other than comment are always written.
        data["package"] = [
            {
                k: v
                for k, v in entry.model_dump(by_alias=True).items()
                if k != "comment" or v
            }
            for entry in self.normalized().packages
        ]
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    def write(self, path: str | Path) -> None:
        """Write atomically: temp file in the same directory, then rename."""
        path = Path(path)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent or ".")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(self.to_json())
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp, 0o644)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    # ── lookups ──────────────────────────────────────────────────────────

    def canonical_ids(self) -> list[str]:
        return [p.canonical for p in self.packages]

    def repository_roots(self) -> list[str]:
        return sorted({p.repository_root for p in self.packages})

    def by_canonical(self) -> dict[str, ManifestEntry]:
        return {p.canonical: p for p in self.packages}

    def by_repository_root(self) -> dict[str, list[ManifestEntry]]:
        """Entries grouped by repository root, each group sorted by canonical id."""
        groups: dict[str, list[ManifestEntry]] = {}
        for p in sorted(self.packages, key=lambda p: p.canonical):
            groups.setdefault(p.repository_root, []).append(p)
        return groups
