"""Custom exceptions for vendorguard."""

from __future__ import annotations


class VendorGuardError(Exception):
    """Base exception for all vendorguard errors."""


class StructuralError(VendorGuardError):
    """Raised when the project layout or the manifest is unusable."""


class ManifestError(StructuralError):
    """Raised when the manifest cannot be parsed or violates its invariants."""


class InvalidRepositoryRootError(StructuralError):
    """Raised when a repository root is empty, absolute or not clean."""

    def __init__(self, root: str, reason: str):
        self.root = root
        self.reason = reason
        super().__init__(f'invalid "repositoryRoot" {root!r}: {reason}')


class StrayPathError(VendorGuardError):
    """Raised when a staged path lies outside every declared repository root."""

    def __init__(self, path: str, manifest: str, *, is_file: bool):
        self.path = path
        self.is_file = is_file
        if is_file:
            msg = f"unexpected file in git, not in any {manifest} repositoryRoot: {path}"
        else:
            msg = f"unexpected file/directory in git, but not in {manifest}: {path}"
        super().__init__(msg)


class MissingRootError(VendorGuardError):
    """Raised when declared repository roots are absent from the staged tree."""

    def __init__(self, roots: list[str], manifest: str):
        self.roots = roots
        super().__init__(
            f"following {manifest} repositoryRoots not found in git: {' '.join(roots)}"
        )


def divergence_marker(a: str, b: str) -> str:
    """Return spaces followed by an arrow pointing at the first differing offset."""
    if len(a) > len(b):
        a = a[: len(b)]
    for i, ch in enumerate(a):
        if ch != b[i]:
            return " " * i + "↑"
    return " " * len(a) + "↑"


class ManifestMismatchError(VendorGuardError):
    """Raised when the manifest packages differ from the detected dependencies."""

    def __init__(self, expected: list[str], detected: list[str], manifest: str):
        self.expected = expected
        self.detected = detected
        expected_list = " ".join(expected)
        detected_list = " ".join(detected)
        self.marker = divergence_marker(expected_list, detected_list)
        super().__init__(
            f"the list of packages in {manifest} differs from the list of "
            f"dependencies in crawled disk files:\n"
            f"{manifest}:\n\t{expected_list}\n"
            f"crawled dependencies:\n\t{detected_list}\n\t{self.marker}"
        )


class UnmatchedFileError(VendorGuardError):
    """Raised when staged changes fall outside every declared repository root."""

    def __init__(self, files: list[str], manifest: str):
        self.files = files
        super().__init__(
            f'cannot find matching "repositoryRoot" in {manifest} '
            f"for following files: {' '.join(files)}"
        )


class RevisionMismatchError(VendorGuardError):
    """Raised when a vendored repository is checked out at an unrecorded revision."""

    def __init__(
        self,
        *,
        root: str,
        canonical: str,
        local_revision: str,
        recorded_revision: str,
        recorded_time: str,
        comment: str,
        marker: str,
        manifest: str,
    ):
        self.root = root
        self.local_revision = local_revision
        self.recorded_revision = recorded_revision
        super().__init__(
            f"The revision in local repository at {root}:\n"
            f"  {local_revision}\n"
            f"is inconsistent with information stored in '{manifest}' for package {canonical}:\n"
            f"  {recorded_revision} {recorded_time}\n"
            f"  comment: {comment}\n"
            f"To fix the inconsistency, you are advised do one of the following actions,\n"
            f"depending on which is most appropriate in your case:\n"
            f"  a) revert {root} to {recorded_revision};\n"
            f'  b) update "revision" in \'{manifest}\' to {local_revision};\n'
            f"  c) delete {root}/{marker}"
        )


class UncommentedPatchError(VendorGuardError):
    """Raised when a locally patched root has no updated manifest comment."""

    def __init__(self, root: str, manifest: str, message: str | None = None):
        self.root = root
        super().__init__(
            message
            or (
                f"local patch detected in: {root}; please edit \"comment\" in "
                f"{manifest} to add note describing the patch"
            )
        )


class PristineRequiredError(UncommentedPatchError):
    """Raised when a newly added root is not a clean checkout."""

    def __init__(self, root: str, manifest: str):
        super().__init__(
            root,
            manifest,
            f"sub-repository in: {root} not clean in git index; please add pristine "
            f"repository first, then add any local patches in separate commit later",
        )


class UnsupportedVcsError(VendorGuardError):
    """Raised when no VCS backend recognizes a root that needs one."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"cannot detect Version Control System in: {path}")


class ExternalToolError(VendorGuardError):
    """Raised when an invoked process exits non-zero or cannot be run."""

    def __init__(
        self,
        cmdline: str,
        returncode: int | None,
        stdout: str = "",
        stderr: str = "",
        reason: str | None = None,
    ):
        self.cmdline = cmdline
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = reason or f"exit {returncode}"
        output = "\n".join(part for part in (stdout.strip(), stderr.strip()) if part)
        msg = f"command failed ({detail}): {cmdline}"
        if output:
            msg += "\n" + output
        super().__init__(msg)


class StatusParseError(VendorGuardError):
    """Raised when VCS status output cannot be parsed."""


class StashRestoreError(VendorGuardError):
    """Raised when hidden working tree changes could not be restored."""

    def __init__(self, label: str, cause: Exception):
        self.label = label
        super().__init__(
            f"failed to restore unstaged changes hidden in stash {label!r}: {cause}\n"
            f"Your edits are kept in 'git stash list'; restore them manually with "
            f"'git stash pop --index'."
        )


class MissingPackagesError(VendorGuardError):
    """Raised when dependency packages cannot be found on the search path."""

    def __init__(self, packages: list[str], where: str, hint: str = ""):
        self.packages = packages
        msg = f"cannot find dependency packages: {' '.join(packages)} in {where}"
        if hint:
            msg += "\n" + hint
        super().__init__(msg)


class LocalPatchError(VendorGuardError):
    """Raised when an update would discard local modifications of a vendored root."""

    def __init__(self, root: str, revision: str, manifest: str):
        self.root = root
        super().__init__(
            f"repository at {root} looks patched locally from upstream revision "
            f"{revision} listed in {manifest}"
        )
