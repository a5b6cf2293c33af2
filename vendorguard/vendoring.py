"""Vendoring workflows: rebuild the vendor tree and update one repository."""

from __future__ import annotations

import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

import structlog

from vendorguard.command import LogMode, discard_output
from vendorguard.config import TOOL_NAME, VendorLayout
from vendorguard.exceptions import (
    LocalPatchError,
    MissingPackagesError,
    StructuralError,
    UnsupportedVcsError,
)
from vendorguard.imports import (
    ImportSet,
    find_missing,
    remove_stdlib,
    scan_imports,
    transitive_closure,
)
from vendorguard.manifest import Manifest, ManifestEntry, Platform
from vendorguard.resolver import BuildResolver, GoListResolver
from vendorguard.staging import StagedView
from vendorguard.vcs import VcsHandle, VcsRegistry, default_registry

log = structlog.get_logger("vendorguard.vendoring")


def _git(layout: VendorLayout, *args: str) -> None:
    discard_output(["git", *args], cwd=layout.project_dir, log_mode=LogMode.ALWAYS)


def forget(layout: VendorLayout) -> None:
    """Drop the vendor tree from the index and delete the vendor ignore file."""
    _git(layout, "rm", "--cached", "-r", "--ignore-unmatch", "-q", "--", layout.vendor_dir)
    layout.path(layout.ignore_file).unlink(missing_ok=True)


def write_vcs_ignore(layout: VendorLayout, registry: VcsRegistry) -> None:
    """Create the vendor ignore file listing every VCS metadata directory.

    Vendored repositories are committed as snapshots, without history.
    """
    with open(layout.path(layout.ignore_file), "x", encoding="utf-8") as fh:
        for marker in registry.markers:
            fh.write(marker + "\n")
        fh.flush()
        os.fsync(fh.fileno())


def finalize_ignore(layout: VendorLayout) -> None:
    """Ignore everything else under the vendor dir, then stage the ignore file."""
    with open(layout.path(layout.ignore_file), "a", encoding="utf-8") as fh:
        fh.write("/\n!.gitignore\n")
        fh.flush()
        os.fsync(fh.fileno())
    _git(layout, "add", "--", layout.ignore_file)


def _vendored_root(
    layout: VendorLayout, registry: VcsRegistry, import_path: str
) -> VcsHandle | None:
    """Repository enclosing a vendored package, never the vendor src dir itself."""
    boundary = layout.path(layout.vendor_src)
    handle = registry.find_root(boundary / import_path, boundary=boundary)
    if handle is None or handle.root == boundary:
        return None
    return handle


def clone_package(
    import_path: str,
    source_gopath: Path,
    layout: VendorLayout,
    registry: VcsRegistry,
    cloned: set[Path],
) -> None:
    """Clone the repository holding *import_path* from a GOPATH into the vendor dir.

    *cloned* tracks source repositories already copied, so packages sharing a
    repository are cloned once.
    """
    source_src = source_gopath / "src"
    package_dir = source_src / import_path
    handle = registry.find_root(package_dir, boundary=source_gopath)
    if handle is None or handle.root == source_src or source_src not in handle.root.parents:
        raise UnsupportedVcsError(str(package_dir))
    if handle.root in cloned:
        return

    target = layout.path(layout.vendor_src) / handle.root.relative_to(source_src)
    log.info(
        "vendoring.clone",
        package=import_path,
        source=str(handle.root),
        target=str(target),
        vcs=handle.kind.value,
    )
    target.mkdir(parents=True, exist_ok=True)
    handle.backend.clone(handle.root, target)
    cloned.add(handle.root)


def clone_non_vendored(
    imports: ImportSet,
    layout: VendorLayout,
    resolver: BuildResolver,
    registry: VcsRegistry,
) -> None:
    pending = find_missing(imports, resolver, str(layout.vendor_abs))
    if not pending:
        return
    # Resolved against the caller's own GOPATH, not the vendor dir
    locations = resolver.roots(pending)
    cloned: set[Path] = set()
    for import_path in sorted(locations):
        source = locations[import_path]
        if not source:
            raise MissingPackagesError([import_path], "GOPATH")
        clone_package(import_path, Path(source), layout, registry, cloned)


def build_manifest(
    imports: Iterable[str],
    previous: Manifest,
    layout: VendorLayout,
    registry: VcsRegistry,
    platforms: list[Platform],
) -> Manifest:
    """Describe every package: provenance from its on-disk repository when there
    is one, otherwise carried over from the previous manifest.
    """
    known = previous.by_canonical()
    entries: list[ManifestEntry] = []
    for import_path in sorted(imports):
        local = f"{layout.vendor_src}/{import_path}"
        old = known.get(import_path)
        handle = _vendored_root(layout, registry, import_path)
        if handle is None:
            if old is None:
                raise StructuralError(
                    f"cannot find repository root for pkg {import_path} either in "
                    f"{layout.vendor_dir}/ or in {layout.manifest}"
                )
            log.debug("vendoring.reuse_entry", package=import_path)
            entries.append(old)
            continue

        fields = {
            "local": local,
            "repository_root": handle.root.relative_to(layout.project_dir).as_posix(),
            "revision": handle.revision(),
            "revision_time": handle.backend.revision_time(handle.root),
        }
        if old is not None:
            entries.append(old.model_copy(update=fields))
        else:
            entries.append(ManifestEntry(canonical=import_path, **fields))

    return Manifest(
        tool=TOOL_NAME,
        comment=previous.comment,
        platforms=list(platforms),
        packages=entries,
    )


@contextmanager
def _metadata_aside(layout: VendorLayout, root: Path, marker: str) -> Iterator[None]:
    """Park a vendored repository's metadata dir under the project's ``.git/``.

    git stages a directory holding ``.git`` as a single gitlink entry, so the
    marker must be out of the work tree while the files are added.
    """
    source = root / marker
    if not source.exists():
        yield
        return
    holding = Path(tempfile.mkdtemp(prefix="vendorguard-", dir=layout.path(".git")))
    parked = holding / marker
    os.replace(source, parked)
    log.debug("vendoring.metadata_parked", root=str(root), holding=str(holding))
    try:
        yield
    finally:
        os.replace(parked, source)
        holding.rmdir()


def stage_roots(layout: VendorLayout, manifest: Manifest, registry: VcsRegistry) -> None:
    """Add every repository root's files to the index as regular entries."""
    for root in manifest.repository_roots():
        path = layout.path(root)
        handle = registry.is_root(path)
        if handle is None:
            _git(layout, "add", "--", root)
            continue
        with _metadata_aside(layout, path, handle.backend.marker):
            _git(layout, "add", "--", root)


def recreate(
    layout: VendorLayout,
    platforms: list[Platform],
    *,
    clone: bool = True,
    resolver: BuildResolver | None = None,
    registry: VcsRegistry | None = None,
) -> Manifest:
    """Rebuild the vendor tree and the manifest from the project's imports.

    Disk changes made before a failure are not rolled back; the manifest is
    written only after every earlier step succeeded.
    """
    resolver = resolver or GoListResolver(layout.project_dir)
    registry = registry or default_registry()
    layout.require(manifest=False, vendor=False)

    previous = Manifest.load(layout.manifest_abs)
    forget(layout)
    layout.vendor_abs.mkdir(parents=True, exist_ok=True)

    project_id = resolver.project_import_path()
    seed = scan_imports(layout.project_dir, project_id)

    vendor_gopath = str(layout.vendor_abs)
    gopath = os.pathsep.join(p for p in (vendor_gopath, os.environ.get("GOPATH", "")) if p)
    closure = transitive_closure(seed, resolver, platforms, gopath)
    imports = remove_stdlib(closure, resolver, gopath)

    missing = sorted(find_missing(imports, resolver, gopath))
    if missing:
        raise MissingPackagesError(
            missing, f"GOPATH={gopath}", hint=f"Try running:\n\tgo get {' '.join(missing)}"
        )

    write_vcs_ignore(layout, registry)
    if clone:
        clone_non_vendored(imports, layout, resolver, registry)

    missing = sorted(find_missing(imports, resolver, vendor_gopath))
    if missing:
        raise MissingPackagesError(missing, vendor_gopath)

    manifest = build_manifest(imports, previous, layout, registry, platforms)
    stage_roots(layout, manifest, registry)
    manifest.write(layout.manifest_abs)
    _git(layout, "add", "--", layout.manifest)
    finalize_ignore(layout)
    log.info("vendoring.recreated", packages=len(manifest.packages))
    return manifest


def verify_not_patched(
    layout: VendorLayout,
    entry: ManifestEntry,
    registry: VcsRegistry,
    staged: StagedView,
) -> None:
    """Check out the recorded revision and make sure the index sees no change.

    The fetched branch or tag is checked out again afterwards.
    """
    handle = _vendored_root(layout, registry, entry.canonical)
    if handle is None:
        raise StructuralError(
            f"cannot find repository root for {layout.vendor_src}/{entry.canonical}"
        )
    found = handle.root.relative_to(layout.project_dir).as_posix()
    if found != entry.repository_root:
        raise StructuralError(
            f"found repository root different than stored in {layout.manifest}: "
            f"{found!r} != {entry.repository_root!r}"
        )
    if not entry.revision:
        raise StructuralError(f'empty "revision" for {entry.canonical} in {layout.manifest}')

    fetched_ref = handle.backend.head_symbolic_ref(handle.root)
    log.info("update.checkout", root=found, revision=entry.revision)
    handle.backend.checkout(handle.root, entry.revision)
    if not staged.is_clean(entry.repository_root):
        raise LocalPatchError(entry.repository_root, entry.revision, layout.manifest)
    log.info("update.checkout", root=found, revision=fetched_ref)
    handle.backend.checkout(handle.root, fetched_ref)


def update(
    layout: VendorLayout,
    import_path: str,
    platforms: list[Platform],
    *,
    force: bool = False,
    delete_patch: bool = False,
    resolver: BuildResolver | None = None,
    registry: VcsRegistry | None = None,
    staged: StagedView | None = None,
) -> Manifest:
    """Fetch a newer upstream of one vendored repository and re-vendor."""
    resolver = resolver or GoListResolver(layout.project_dir)
    registry = registry or default_registry()
    staged = staged or StagedView(layout.project_dir)
    layout.require()

    manifest = Manifest.load(layout.manifest_abs)
    entry = manifest.by_canonical().get(import_path)
    if entry is None:
        raise StructuralError(f"import path {import_path!r} not found in {layout.manifest}")
    root = entry.repository_root

    # git status below and the final recreate both need it gone
    layout.path(layout.ignore_file).unlink(missing_ok=True)

    if not force and not staged.is_clean(root):
        raise LocalPatchError(root, entry.revision, layout.manifest)

    # Removed from disk only; the index still holds the old files
    if layout.path(root).exists():
        log.info("update.remove", root=root)
        shutil.rmtree(layout.path(root))

    resolver.fetch(entry.canonical, str(layout.vendor_abs))

    if not delete_patch:
        verify_not_patched(layout, entry, registry, staged)

    return recreate(layout, platforms, clone=False, resolver=resolver, registry=registry)
