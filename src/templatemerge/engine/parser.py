"""Declaration parsing: namespace, type, imports, methods and auto-properties.

A bounded pattern matcher over a constrained C# subset. Anything outside the
subset (expression bodies, accessor bodies, unbalanced blocks) is simply not
discovered, which leaves it untouched by every later stage.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from templatemerge.engine._types import (
    ParsedMethod,
    ParsedProperty,
    ParsedUnit,
    SourceText,
    normalize_signature,
)
from templatemerge.engine.scanner import (
    line_number,
    line_offsets,
    match_brace,
    statement_end,
)
from templatemerge.errors import ParseFailure

logger = logging.getLogger(__name__)

__all__ = ["load_source", "parse_file", "parse_source", "read_source"]

_ACCESS = r"(?:public|private|protected|internal)(?:[ \t]+(?:protected|internal|private))?"
_TYPE = r"[\w.]+(?:\s*<[^(){};=]*?>)?(?:\s*\[[\s,]*\])*\??"
_INLINE_ATTRS = r"(?P<inline>(?:\[[^\]\n]*\][ \t]*)*)"

_METHOD_RE = re.compile(
    r"^(?P<indent>[ \t]*)"
    + _INLINE_ATTRS
    + rf"(?P<access>{_ACCESS})\s+"
    r"(?P<mods>(?:(?:static|async|virtual|override|sealed|new|abstract|partial|extern|unsafe)\s+)*)"
    rf"(?P<rtype>{_TYPE})\s+"
    r"(?P<name>[A-Z]\w*)\s*"
    r"(?:<[^<>(){};]*>\s*)?"
    r"\((?P<params>[^(){};]*(?:\([^(){};]*\)[^(){};]*)*)\)\s*"
    r"(?:where\s[^{};]+)?"
    r"\{",
    re.MULTILINE,
)

_PROPERTY_RE = re.compile(
    r"^(?P<indent>[ \t]*)"
    + _INLINE_ATTRS
    + rf"(?P<access>{_ACCESS})\s+"
    r"(?P<mods>(?:(?:static|readonly|required|virtual|override|sealed|new|abstract)\s+)*)"
    rf"(?P<ptype>{_TYPE})\s+"
    r"(?P<name>[A-Z]\w*)\s*"
    r"\{\s*(?P<getter>(?:(?:private|protected|internal)\s+)?get\s*;)\s*"
    r"(?P<setter>(?:(?:private|protected|internal)\s+)?(?:set|init)\s*;)?\s*\}",
    re.MULTILINE,
)

_NAMESPACE_RE = re.compile(r"^[ \t]*namespace\s+(?P<name>[\w.]+)", re.MULTILINE)
_TYPE_MODIFIERS = r"(?:(?:public|internal|private|protected|static|sealed|abstract|partial|file|readonly)\s+)*"
_CLASS_RE = re.compile(
    rf"^[ \t]*(?:\[[^\]\n]*\][ \t]*)*{_TYPE_MODIFIERS}class\s+(?P<name>[A-Za-z_]\w*)",
    re.MULTILINE,
)
_ANY_TYPE_RE = re.compile(
    rf"^[ \t]*(?:\[[^\]\n]*\][ \t]*)*{_TYPE_MODIFIERS}(?:record|struct|interface)\s+(?P<name>[A-Za-z_]\w*)",
    re.MULTILINE,
)
USING_DIRECTIVE_RE = re.compile(
    r"^[ \t]*(?:global[ \t]+)?using[ \t]+"
    r"(?P<target>(?:static[ \t]+)?[\w.]+(?:[ \t]*=[ \t]*[\w.<>, ]+?)?)[ \t]*;",
    re.MULTILINE,
)

# Framework helpers that show up as bare calls in controller bodies.
RETURN_HELPER_NAMES: frozenset[str] = frozenset(
    {
        "Ok",
        "NotFound",
        "BadRequest",
        "StatusCode",
        "CreatedAtAction",
        "Redirect",
        "RedirectToAction",
        "View",
        "PartialView",
        "Json",
        "Unauthorized",
        "Forbid",
        "NoContent",
        "File",
        "Content",
    }
)


def load_source(path: str | Path) -> SourceText:
    """Read a source file as UTF-8 without newline translation.

    A leading BOM is stripped and remembered; a file that uses ``\\r\\n``
    throughout is folded to ``\\n`` so :meth:`SourceText.render` restores
    the exact bytes.
    """
    try:
        raw = Path(path).read_bytes().decode("utf-8")
    except FileNotFoundError as e:
        msg = f"File not found: {path}"
        raise ParseFailure(msg) from e
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Cannot read {path}: {e}"
        raise ParseFailure(msg) from e

    bom = raw.startswith("\ufeff")
    if bom:
        raw = raw[1:]
    folded = raw.replace("\r\n", "\n")
    if "\r\n" in raw and folded.count("\n") == raw.count("\r\n"):
        return SourceText(folded, newline="\r\n", bom=bom)
    return SourceText(raw, bom=bom)


def read_source(path: str | Path) -> str:
    """Read a source file as UTF-8 text with ``\\n`` line endings (BOM tolerated)."""
    return load_source(path).text.replace("\r\n", "\n")


def parse_file(path: str | Path) -> ParsedUnit | None:
    """Parse a file from disk. Returns None when it cannot be read."""
    try:
        text = read_source(path)
    except ParseFailure as e:
        logger.warning("%s", e)
        return None
    return parse_source(text)


def parse_source(text: str) -> ParsedUnit:
    """Parse source text into a fresh :class:`ParsedUnit`."""
    lines = text.split("\n")
    offsets = line_offsets(text)

    ns_match = _NAMESPACE_RE.search(text)
    namespace = ns_match.group("name") if ns_match else ""

    type_name, type_open, type_close = _find_type(text)
    import_limit = type_open if type_open is not None else len(text)
    imports = [
        " ".join(m.group("target").split())
        for m in USING_DIRECTIVE_RE.finditer(text)
        if m.start() < import_limit
    ]

    return ParsedUnit(
        name=type_name,
        methods=_extract_methods(text, lines, offsets),
        properties=_extract_properties(text, lines, offsets),
        imports=imports,
        namespace=namespace,
        raw_text=text,
        type_open=type_open,
        type_close=type_close,
    )


def _find_type(text: str) -> tuple[str, int | None, int | None]:
    """Locate the first type declaration and its body braces."""
    match = _CLASS_RE.search(text) or _ANY_TYPE_RE.search(text)
    if match is None:
        return "", None, None

    brace = text.find("{", match.end())
    semi = text.find(";", match.end())
    if brace == -1 or (semi != -1 and semi < brace):
        # Positional record or similar without a body
        return match.group("name"), None, None

    close = match_brace(text, brace)
    if close is None:
        logger.debug("Unbalanced body for type %s", match.group("name"))
    return match.group("name"), brace, close


# ---------------------------------------------------------------------------
# Upward walk helpers (shared with the planner)
# ---------------------------------------------------------------------------


def is_attribute_line(stripped: str) -> bool:
    return stripped.startswith("[") and "]" in stripped


def is_comment_line(stripped: str) -> bool:
    return stripped.startswith(("//", "/*", "*"))


def _leading_lines(lines: list[str], header_idx: int) -> list[int]:
    """Indices above the header that belong to its leading block, bottom-up.

    The walk crosses attribute, comment and blank lines and stops at the
    first code line. Every attribute reached belongs to the member; a
    comment belongs to it only when it touches a line already in the block,
    so a section comment set off by a blank line stays outside.
    """
    taken: list[int] = []
    top = header_idx
    for i in range(header_idx - 1, -1, -1):
        stripped = lines[i].strip()
        if is_attribute_line(stripped) or (is_comment_line(stripped) and i == top - 1):
            taken.append(i)
            top = i
        elif stripped and not is_comment_line(stripped):
            break
    return taken


def collect_attributes(lines: list[str], header_idx: int) -> list[str]:
    """``[...]`` lines of the leading block, top to bottom."""
    return [
        lines[i].strip()
        for i in reversed(_leading_lines(lines, header_idx))
        if is_attribute_line(lines[i].strip())
    ]


def leading_block_start(lines: list[str], header_idx: int) -> int:
    """Index of the first line of the leading block above *header_idx*.

    Blank lines between that line and the header are part of the block.
    """
    taken = _leading_lines(lines, header_idx)
    return taken[-1] if taken else header_idx


def _previous_nonblank(lines: list[str], idx: int) -> str:
    for i in range(idx - 1, -1, -1):
        stripped = lines[i].strip()
        if stripped:
            return stripped
    return ""


def _split_inline_attributes(inline: str) -> list[str]:
    return re.findall(r"\[[^\]\n]*\]", inline)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


def _extract_methods(text: str, lines: list[str], offsets: list[int]) -> list[ParsedMethod]:
    methods: list[ParsedMethod] = []

    for match in _METHOD_RE.finditer(text):
        name = match.group("name")
        header_offset = match.start()
        header_idx = line_number(text, header_offset) - 1

        if _previous_nonblank(lines, header_idx).startswith("return "):
            continue
        if name in RETURN_HELPER_NAMES:
            continue

        open_brace = match.end() - 1
        close = match_brace(text, open_brace)
        if close is None:
            logger.debug("Could not determine extent of method %s at line %d", name, header_idx + 1)
            continue

        block_idx = leading_block_start(lines, header_idx)
        start_offset = offsets[block_idx]
        attributes = collect_attributes(lines, header_idx)
        attributes.extend(_split_inline_attributes(match.group("inline")))

        return_type = " ".join(match.group("rtype").split())
        parameters = match.group("params").strip()
        signature = f"{return_type} {name}({parameters})"
        modifiers = match.group("mods").split()

        methods.append(
            ParsedMethod(
                name=name,
                signature=signature,
                normalized_signature=normalize_signature(signature),
                start_line=header_idx + 1,
                end_line=line_number(text, close),
                full_text=text[start_offset : close + 1],
                attributes=attributes,
                is_public="public" in match.group("access").split(),
                is_async="async" in modifiers,
                return_type=return_type,
                parameters=parameters,
                start_offset=start_offset,
                header_offset=header_offset,
                body_offset=open_brace,
                end_offset=close + 1,
                indent=match.group("indent"),
            )
        )

    return methods


def _extract_properties(
    text: str, lines: list[str], offsets: list[int]
) -> list[ParsedProperty]:
    properties: list[ParsedProperty] = []

    for match in _PROPERTY_RE.finditer(text):
        name = match.group("name")
        header_offset = match.start()
        header_idx = line_number(text, header_offset) - 1

        end_offset = match.end()
        initializer: str | None = None
        rest = text[end_offset:]
        stripped_rest = rest.lstrip(" \t")
        if stripped_rest.startswith("="):
            eq = end_offset + (len(rest) - len(stripped_rest))
            semi = statement_end(text, eq + 1)
            if semi is None:
                logger.debug("Unterminated initializer for property %s", name)
                continue
            initializer = text[eq + 1 : semi].strip()
            end_offset = semi + 1

        block_idx = leading_block_start(lines, header_idx)
        start_offset = offsets[block_idx]
        attributes = collect_attributes(lines, header_idx)
        attributes.extend(_split_inline_attributes(match.group("inline")))
        modifiers = match.group("mods").split()
        access = match.group("access")

        properties.append(
            ParsedProperty(
                name=name,
                type=" ".join(match.group("ptype").split()),
                attributes=attributes,
                accessibility=" ".join(access.split()),
                is_read_only="readonly" in modifiers or match.group("setter") is None,
                has_getter=match.group("getter") is not None,
                has_setter=match.group("setter") is not None,
                full_text=text[start_offset:end_offset],
                start_line=header_idx + 1,
                initializer=initializer,
                start_offset=start_offset,
                header_offset=header_offset,
                end_offset=end_offset,
                indent=match.group("indent"),
            )
        )

    return properties
