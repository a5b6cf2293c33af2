"""CLI entry point: vendorguard.

Subcommands:
    vendorguard check                                   # pre-commit verification
    vendorguard recreate --platforms linux_amd64        # rebuild _vendor/ and vendor.json
    vendorguard update IMPORT_PATH --platforms ...      # re-fetch one vendored repository
"""

from __future__ import annotations

import functools
import sys
from typing import Callable

import click
import structlog

from vendorguard.checks import CheckContext, run_checks
from vendorguard.config import VendorLayout
from vendorguard.core.logging import setup_logging
from vendorguard.exceptions import VendorGuardError
from vendorguard.manifest import Platform
from vendorguard.vendoring import recreate as recreate_vendor
from vendorguard.vendoring import update as update_vendor

log = structlog.get_logger("vendorguard.cli")


def _report_errors(func: Callable[..., None]) -> Callable[..., None]:
    """Turn a VendorGuardError into ``error: <message>`` on stderr and exit 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> None:
        try:
            func(*args, **kwargs)
        except VendorGuardError as exc:
            log.debug("cli.failed", error_type=type(exc).__name__)
            click.echo(f"error: {exc}", err=True)
            sys.exit(1)

    return wrapper


def _parse_platforms(ctx: click.Context, param: click.Parameter, value: str) -> list[Platform]:
    try:
        return Platform.parse_list(value)
    except VendorGuardError as exc:
        raise click.BadParameter(str(exc), ctx=ctx, param=param) from exc


_platforms_option = click.option(
    "--platforms",
    required=True,
    callback=_parse_platforms,
    help="Target platforms, format: OS_ARCH[,OS_ARCH...]",
)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option(
    "-C",
    "--project-dir",
    default=".",
    type=click.Path(file_okay=False),
    help="Project root holding .git/, the manifest and the vendor dir",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, project_dir: str) -> None:
    """vendorguard: vendor Go dependencies and verify them before each commit."""
    setup_logging("DEBUG" if verbose else None)
    ctx.obj = VendorLayout.from_env(project_dir)


@main.command()
@click.pass_obj
@_report_errors
def check(layout: VendorLayout) -> None:
    """Verify staged vendor tree, manifest and imports agree (pre-commit hook)."""
    ctx = CheckContext.default(layout.project_dir)
    run_checks(ctx)


@main.command()
@_platforms_option
@click.option(
    "--clone/--no-clone",
    default=True,
    help="Clone dependencies missing from the vendor dir from GOPATH",
)
@click.pass_obj
@_report_errors
def recreate(layout: VendorLayout, platforms: list[Platform], clone: bool) -> None:
    """Rebuild the vendor tree and the manifest from the project's imports."""
    manifest = recreate_vendor(layout, platforms, clone=clone)
    click.echo(f"{layout.manifest}: {len(manifest.packages)} packages")


@main.command()
@click.argument("import_path")
@_platforms_option
@click.option("-f", "--force", is_flag=True, help="Update even if the repository is not clean")
@click.option("--delete-patch", is_flag=True, help="Discard local patches in the repository")
@click.pass_obj
@_report_errors
def update(
    layout: VendorLayout,
    import_path: str,
    platforms: list[Platform],
    force: bool,
    delete_patch: bool,
) -> None:
    """Fetch a newer upstream of IMPORT_PATH's repository and re-vendor."""
    manifest = update_vendor(
        layout, import_path, platforms, force=force, delete_patch=delete_patch
    )
    entry = manifest.by_canonical().get(import_path)
    if entry is not None:
        click.echo(f"{import_path}: {entry.revision} {entry.revision_time}")


if __name__ == "__main__":
    main()
