"""Tests for the structural scanner."""

from __future__ import annotations

import pytest

from templatemerge.engine.scanner import (
    line_number,
    line_offsets,
    line_start,
    match_brace,
    next_line_start,
    statement_end,
)


class TestMatchBrace:
    def test_simple(self) -> None:
        assert match_brace("{ }", 0) == 2

    def test_nested(self) -> None:
        text = "{ if (x) { y(); } }"
        assert match_brace(text, 0) == len(text) - 1
        assert match_brace(text, 9) == 16

    def test_brace_in_string(self) -> None:
        text = '{ var s = "}"; }'
        assert match_brace(text, 0) == len(text) - 1

    def test_escaped_quote_in_string(self) -> None:
        text = '{ var s = "\\"}"; }'
        assert match_brace(text, 0) == len(text) - 1

    def test_brace_in_char_literal(self) -> None:
        text = "{ var c = '}'; }"
        assert match_brace(text, 0) == len(text) - 1

    def test_brace_in_line_comment(self) -> None:
        text = "{ // }\n}"
        assert match_brace(text, 0) == len(text) - 1

    def test_brace_in_block_comment(self) -> None:
        text = "{ /* { } } */ }"
        assert match_brace(text, 0) == len(text) - 1

    def test_verbatim_string_doubled_quote(self) -> None:
        text = '{ var s = @"a""}"; }'
        assert match_brace(text, 0) == len(text) - 1

    def test_interpolated_hole(self) -> None:
        text = '{ var s = $"{name} }}"; }'
        assert match_brace(text, 0) == len(text) - 1

    def test_interpolated_nested_braces_in_hole(self) -> None:
        text = '{ var s = $"{new { A = 1 }.A}"; }'
        assert match_brace(text, 0) == len(text) - 1

    def test_interpolated_string_inside_hole(self) -> None:
        text = '{ var s = $"{Format("}")}"; }'
        assert match_brace(text, 0) == len(text) - 1

    def test_verbatim_interpolated(self) -> None:
        text = '{ var s = $@"{a}""}"; }'
        assert match_brace(text, 0) == len(text) - 1

    def test_verbatim_string_inside_hole(self) -> None:
        text = '{ var p = $"{Path.Combine(@"C:\\", x)}"; }'
        assert match_brace(text, 0) == 40

    def test_interpolated_string_inside_hole_with_brace(self) -> None:
        text = '{ var s = $"{(ok ? $"{a}" : "}")}"; }'
        assert match_brace(text, 0) == len(text) - 1

    def test_verbatim_interpolated_inside_hole(self) -> None:
        text = '{ var s = $"{Load($@"{dir}\\")}"; }'
        assert match_brace(text, 0) == len(text) - 1

    def test_unbalanced_returns_none(self) -> None:
        assert match_brace("{ if (x) { }", 0) is None

    def test_not_a_brace(self) -> None:
        with pytest.raises(ValueError):
            match_brace("abc", 0)


class TestStatementEnd:
    def test_simple(self) -> None:
        text = " 5; next"
        assert statement_end(text, 0) == 2

    def test_collection_initializer(self) -> None:
        text = " new List<int> { 1, 2 }; x"
        assert statement_end(text, 0) == text.index(";")

    def test_semicolon_in_string(self) -> None:
        text = ' "a;b"; x'
        assert statement_end(text, 0) == 6

    def test_semicolon_in_parens(self) -> None:
        text = " Build(a => { return 1; }); x"
        assert statement_end(text, 0) == text.rindex(";")

    def test_verbatim_string_ending_in_backslash(self) -> None:
        text = ' @"C:\\"; x'
        assert statement_end(text, 0) == 7

    def test_missing(self) -> None:
        assert statement_end(" 5", 0) is None


class TestLineHelpers:
    TEXT = "ab\ncd\n\nef"

    def test_line_number(self) -> None:
        assert line_number(self.TEXT, 0) == 1
        assert line_number(self.TEXT, 3) == 2
        assert line_number(self.TEXT, 7) == 4

    def test_line_start(self) -> None:
        assert line_start(self.TEXT, 4) == 3
        assert line_start(self.TEXT, 0) == 0

    def test_next_line_start(self) -> None:
        assert next_line_start(self.TEXT, 0) == 3
        assert next_line_start(self.TEXT, 8) == len(self.TEXT)

    def test_line_offsets(self) -> None:
        assert line_offsets(self.TEXT) == [0, 3, 6, 7]
