"""Parser for git's porcelain status and quoted path output.

git prints a path bare unless it contains special characters, in which case
the path is double-quoted with C-style escapes, non-ASCII bytes written as
three-digit octal escapes::

     M bingo
    AD foobar
    R  "b\\305\\272dzi\\304\\205gwa" -> ->
    R  foo -> foz
    A  "with\\nnewline"
    ?? notrak

Octal escapes are individual bytes of a UTF-8 sequence, so they are collected
as raw bytes and decoded once at the end.
"""

from __future__ import annotations

from dataclasses import dataclass

from vendorguard.exceptions import StatusParseError

RENAME_SEPARATOR = " -> "

# Index status characters meaning "nothing staged for this path":
# unmodified in index, untracked, ignored.
_NOT_STAGED = frozenset(" ?!")

_SIMPLE_ESCAPES: dict[str, int] = {
    "a": 0x07,
    "b": 0x08,
    "t": 0x09,
    "n": 0x0A,
    "v": 0x0B,
    "f": 0x0C,
    "r": 0x0D,
    '"': 0x22,
    "\\": 0x5C,
}

_OCTAL_DIGITS = frozenset("01234567")


def decode_path(raw: bytes) -> str:
    """Decode raw path bytes, keeping invalid UTF-8 losslessly."""
    return raw.decode("utf-8", "surrogateescape")


def parse_filename(text: str) -> tuple[str, str]:
    """Parse one (possibly quoted) filename from the start of *text*.

    Returns ``(filename, rest)`` where *rest* is everything after the name,
    including any leading space.
    """
    if not text:
        raise StatusParseError("cannot parse empty string as filename in git output")

    if text[0] != '"':
        pos = text.find(" ")
        if pos == -1:
            return text, ""
        return text[:pos], text[pos:]

    buf = bytearray()
    i = 1
    n = len(text)
    while True:
        if i >= n:
            raise StatusParseError(f"cannot parse filename in git output: {text}")
        ch = text[i]
        if ch == '"':
            return decode_path(bytes(buf)), text[i + 1 :]
        if ch != "\\":
            buf += ch.encode("utf-8", "surrogateescape")
            i += 1
            continue
        # Escape sequence
        if i + 1 >= n:
            raise StatusParseError(
                f"cannot parse filename in git output (invalid syntax): {text}"
            )
        esc = text[i + 1]
        if esc in _SIMPLE_ESCAPES:
            buf.append(_SIMPLE_ESCAPES[esc])
            i += 2
            continue
        digits = text[i + 1 : i + 4]
        if len(digits) == 3 and all(d in _OCTAL_DIGITS for d in digits):
            value = int(digits, 8)
            if value > 0xFF:
                raise StatusParseError(
                    f"cannot parse filename in git output (invalid syntax): {text}"
                )
            buf.append(value)
            i += 4
            continue
        raise StatusParseError(f"cannot parse filename in git output (invalid syntax): {text}")


@dataclass(frozen=True)
class StatusEntry:
    """One staged entry of ``git status --porcelain``."""

    index_status: str
    worktree_status: str
    path: str
    orig_path: str | None = None

    @property
    def paths(self) -> list[str]:
        """All paths touched by the entry; renames report both sides."""
        if self.orig_path is None:
            return [self.path]
        return [self.orig_path, self.path]


def parse_status_line(line: str) -> StatusEntry | None:
    """Parse one porcelain line; returns None for entries with nothing staged."""
    if len(line) < 4 or line[2] != " ":
        raise StatusParseError(f"unexpected format of git output: {line!r}")
    index_status, worktree_status = line[0], line[1]
    if index_status in _NOT_STAGED:
        return None

    body = line[3:]
    first, rest = parse_filename(body)
    if not rest:
        return StatusEntry(index_status, worktree_status, first)

    if not rest.startswith(RENAME_SEPARATOR):
        raise StatusParseError(f"unexpected format of git output: {line!r}")
    second, rest = parse_filename(rest[len(RENAME_SEPARATOR) :])
    if rest:
        raise StatusParseError(f"unexpected format of git output: {line!r}")
    return StatusEntry(index_status, worktree_status, second, orig_path=first)


def parse_status(lines: list[str]) -> list[str]:
    """Return every path with staged changes, in output order.

    A single malformed line aborts the whole parse.
    """
    changed: list[str] = []
    for line in lines:
        if not line:
            continue
        entry = parse_status_line(line)
        if entry is not None:
            changed.extend(entry.paths)
    return changed
