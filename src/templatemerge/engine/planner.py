"""Insertion planning: where new and replacement members are spliced.

Pure functions over the current text and the unit parsed from that same
text. New methods always go after the last existing method and new
properties after the last existing property, never interleaved, so the
resulting diff stays reviewable.
"""

from __future__ import annotations

from templatemerge.engine._types import Member, ParsedMethod, ParsedProperty, ParsedUnit
from templatemerge.engine.parser import USING_DIRECTIVE_RE, leading_block_start
from templatemerge.engine.scanner import (
    line_start,
    match_brace,
    next_line_start,
)

DEFAULT_INDENT_STEP = "    "


def _type_close(text: str, unit: ParsedUnit) -> int | None:
    if unit.type_open is None:
        return None
    return match_brace(text, unit.type_open)


def _before_closing_brace(text: str, close: int) -> int:
    """Start of the closing-brace line when the brace is alone on it, else the brace."""
    start = line_start(text, close)
    if text[start:close].strip():
        return close
    return start


def _skip_blank_lines(text: str, pos: int) -> int:
    while pos < len(text):
        nxt = next_line_start(text, pos)
        if text[pos:nxt].strip():
            break
        if nxt == len(text) and not text.endswith("\n"):
            break
        pos = nxt
    return pos


def find_method_insertion_point(
    text: str,
    existing_methods: list[ParsedMethod],
    unit: ParsedUnit,
) -> int:
    """Offset at which a new method is spliced.

    After the last method's closing-brace line, advanced past the blank
    lines that follow it. With no methods, just before the type's closing
    brace (end of text when the type body cannot be located).
    """
    if not existing_methods:
        close = _type_close(text, unit)
        if close is None:
            return len(text)
        return _before_closing_brace(text, close)

    last = max(existing_methods, key=lambda m: m.end_offset)
    return _skip_blank_lines(text, next_line_start(text, last.end_offset - 1))


def find_property_insertion_point(
    text: str,
    existing_properties: list[ParsedProperty],
    existing_methods: list[ParsedMethod],
    unit: ParsedUnit,
) -> int:
    """Offset at which a new property is spliced.

    Right after the last property's declaration; otherwise before the first
    method's leading attributes/comments; otherwise before the type's
    closing brace.
    """
    if existing_properties:
        last = max(existing_properties, key=lambda p: p.end_offset)
        nl = text.find("\n", last.end_offset)
        return len(text) if nl == -1 else nl

    if existing_methods:
        first = min(existing_methods, key=lambda m: m.start_offset)
        return replacement_span(text, first)[0]

    close = _type_close(text, unit)
    if close is None:
        return len(text)
    return _before_closing_brace(text, close)


def replacement_span(text: str, member: Member) -> tuple[int, int]:
    """``[before, after)`` span covering a member and its leading block.

    The leading block is found with the parser's own upward walk, so the
    span always covers every attribute the member was parsed with. The end
    of a method is confirmed with the structural scanner.
    """
    lines = text.split("\n")
    idx = leading_block_start(lines, member.start_line - 1)
    before = sum(len(line) + 1 for line in lines[:idx])

    after = member.end_offset
    if isinstance(member, ParsedMethod):
        if text[member.body_offset : member.body_offset + 1] == "{":
            close = match_brace(text, member.body_offset)
            if close is not None:
                after = close + 1
    return before, after


def member_indent(text: str, unit: ParsedUnit, members: list[Member]) -> str:
    """Indentation used for members of the type in *text*."""
    for m in members:
        if m.indent:
            return m.indent
    for m in [*unit.properties, *unit.methods]:
        if m.indent:
            return m.indent

    close = _type_close(text, unit)
    if close is None:
        return DEFAULT_INDENT_STEP
    start = line_start(text, close)
    brace_indent = text[start:close]
    if brace_indent.strip():
        brace_indent = ""
    step = "\t" if brace_indent.startswith("\t") else DEFAULT_INDENT_STEP
    return brace_indent + step


def find_import_insertion_point(text: str, unit: ParsedUnit) -> tuple[int, str] | None:
    """Start of the line after the last using directive, with its indentation.

    Only directives before the type's opening brace count. None when the
    file has no using directives.
    """
    limit = unit.type_open if unit.type_open is not None else len(text)
    last = None
    for m in USING_DIRECTIVE_RE.finditer(text):
        if m.start() >= limit:
            break
        last = m
    if last is None:
        return None
    indent = text[last.start() : last.start() + len(last.group(0)) - len(last.group(0).lstrip())]
    return next_line_start(text, last.end() - 1), indent
