"""Content mutation: one splice at a time, re-parsed after every splice.

Every function returns the new text together with a unit parsed from that
text. Callers must plan the next splice against the returned unit; offsets
from an earlier unit are stale the moment the text changes.
"""

from __future__ import annotations

import logging
import re
import textwrap

from templatemerge.engine._types import Member, ParsedMethod, ParsedProperty, ParsedUnit
from templatemerge.engine.parser import parse_source
from templatemerge.engine.planner import (
    find_import_insertion_point,
    find_method_insertion_point,
    find_property_insertion_point,
    member_indent,
    replacement_span,
)

logger = logging.getLogger(__name__)

_ENDS_WITH_BLANK_LINE = re.compile(r"\n[ \t\r]*\n\Z")

Mutation = tuple[str, ParsedUnit]


def reindent(text: str, indent: str) -> str:
    """Re-base a member's text (which starts at a line start) onto *indent*."""
    return textwrap.indent(textwrap.dedent(text), indent)


def _splice(text: str, pos: int, insert: str) -> Mutation:
    new_text = text[:pos] + insert + text[pos:]
    return new_text, parse_source(new_text)


def _method_prefix(before: str) -> str:
    """Newlines needed so the inserted method starts on its own line after a blank line.

    The blank line is emitted even directly after the type's opening brace.
    """
    prefix = "" if not before or before.endswith("\n") else "\n"
    joined = before + prefix
    if joined and not _ENDS_WITH_BLANK_LINE.search(joined):
        prefix += "\n"
    return prefix


def insert_method(text: str, unit: ParsedUnit, method: ParsedMethod) -> Mutation:
    """Append *method* after the last existing method (or at the end of the type body)."""
    pos = find_method_insertion_point(text, unit.methods, unit)
    indent = member_indent(text, unit, list(reversed(unit.methods)))
    block = reindent(method.full_text, indent)
    insert = _method_prefix(text[:pos]) + block + "\n"
    logger.debug("Inserting method %s at offset %d", method.name, pos)
    return _splice(text, pos, insert)


def insert_property(text: str, unit: ParsedUnit, prop: ParsedProperty) -> Mutation:
    """Add *prop* after the last property, before the first method, or at the end of the type body."""
    pos = find_property_insertion_point(text, unit.properties, unit.methods, unit)
    neighbours: list[Member] = list(reversed(unit.properties)) or list(unit.methods)
    block = reindent(prop.full_text, member_indent(text, unit, neighbours))
    logger.debug("Inserting property %s at offset %d", prop.name, pos)

    if unit.properties:
        return _splice(text, pos, "\n" + block)
    if unit.methods:
        return _splice(text, pos, block + "\n\n")
    prefix = "" if not text[:pos] or text[:pos].endswith("\n") else "\n"
    return _splice(text, pos, prefix + block + "\n")


def replace_member(text: str, unit: ParsedUnit, existing: Member, generated: Member) -> Mutation:
    """Swap *existing* (with its attributes and leading comments) for *generated*."""
    before, after = replacement_span(text, existing)
    indent = existing.indent or member_indent(text, unit, [])
    block = reindent(generated.full_text, indent)
    logger.debug("Replacing %s at [%d, %d)", existing.name, before, after)
    new_text = text[:before] + block + text[after:]
    return new_text, parse_source(new_text)


def insert_imports(text: str, unit: ParsedUnit, imports: list[str]) -> Mutation:
    """Append missing using directives after the existing ones, leaving those untouched."""
    if not imports:
        return text, unit

    point = find_import_insertion_point(text, unit)
    if point is None:
        block = "".join(f"using {name};\n" for name in imports)
        return _splice(text, 0, block + "\n")

    pos, indent = point
    block = "".join(f"{indent}using {name};\n" for name in imports)
    if pos == len(text) and not text.endswith("\n"):
        block = "\n" + block
    return _splice(text, pos, block)
