"""Tests for the git quoted-path and porcelain status parser."""

from __future__ import annotations

import pytest

from vendorguard.exceptions import StatusParseError
from vendorguard.staging.status import StatusEntry, parse_filename, parse_status, parse_status_line


class TestParseFilename:
    def test_octal_utf8_bytes(self):
        name, rest = parse_filename(r'"b\305\272dzi\304\205gwa"')
        assert name == "bździągwa"
        assert name.encode("utf-8") == b"b\xc5\xbadzi\xc4\x85gwa"
        assert rest == ""

    def test_bare_name_stops_at_space(self):
        assert parse_filename("foo bar") == ("foo", " bar")

    def test_bare_name_whole_string(self):
        assert parse_filename("baz/boo") == ("baz/boo", "")

    def test_c_escapes(self):
        name, rest = parse_filename(r'"with\nnewline\t\"q\"\\"')
        assert name == 'with\nnewline\t"q"\\'
        assert rest == ""

    def test_quoted_name_with_space_and_rest(self):
        assert parse_filename('"with space" -> x') == ("with space", " -> x")

    def test_invalid_utf8_kept_losslessly(self):
        name, _ = parse_filename(r'"\377x"')
        assert name.encode("utf-8", "surrogateescape") == b"\xffx"

    def test_empty_is_error(self):
        with pytest.raises(StatusParseError, match="empty string"):
            parse_filename("")

    def test_unterminated_quote(self):
        with pytest.raises(StatusParseError):
            parse_filename('"abc')

    def test_unknown_escape(self):
        with pytest.raises(StatusParseError, match="invalid syntax"):
            parse_filename(r'"a\qb"')

    def test_short_octal(self):
        with pytest.raises(StatusParseError, match="invalid syntax"):
            parse_filename(r'"a\30"')

    def test_trailing_backslash(self):
        with pytest.raises(StatusParseError, match="invalid syntax"):
            parse_filename('"a\\')


class TestParseStatusLine:
    def test_rename(self):
        entry = parse_status_line("R  old -> new")
        assert entry == StatusEntry("R", " ", "new", orig_path="old")
        assert entry.paths == ["old", "new"]

    def test_rename_of_file_named_arrow(self):
        entry = parse_status_line(r'R  "b\305\272dzi\304\205gwa" -> ->')
        assert entry.paths == ["bździągwa", "->"]

    def test_modified_in_index(self):
        assert parse_status_line("M  bingo").paths == ["bingo"]

    def test_added_then_deleted(self):
        assert parse_status_line("AD foobar").paths == ["foobar"]

    @pytest.mark.parametrize("line", [" M bingo", "?? notrak", "!! ignored"])
    def test_nothing_staged(self, line):
        assert parse_status_line(line) is None

    def test_garbage_after_filename(self):
        with pytest.raises(StatusParseError, match="unexpected format"):
            parse_status_line("M  foo bar")

    def test_garbage_after_rename(self):
        with pytest.raises(StatusParseError, match="unexpected format"):
            parse_status_line("R  a -> b c")

    def test_too_short(self):
        with pytest.raises(StatusParseError):
            parse_status_line("M")


class TestParseStatus:
    def test_collects_staged_paths_in_order(self):
        lines = [
            " M bingo",
            "AD foobar",
            "R  foo -> foz",
            'A  "with\\nnewline"',
            "?? notrak",
        ]
        assert parse_status(lines) == ["foobar", "foo", "foz", "with\nnewline"]

    def test_empty_output(self):
        assert parse_status([]) == []

    def test_one_bad_line_fails_whole_parse(self):
        with pytest.raises(StatusParseError):
            parse_status(["A  good", r'A  "bad\x"', "A  also-good"])
