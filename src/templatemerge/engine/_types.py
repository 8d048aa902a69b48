"""Shared types for the templatemerge engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

_WS_RE = re.compile(r"\s+")


def normalize_signature(signature: str) -> str:
    """Strip all whitespace so reformatting alone never looks like a change."""
    return _WS_RE.sub("", signature)


@dataclass(frozen=True)
class SourceText:
    """A file's text as the engine sees it, plus what it takes to write it back.

    When every line ends in ``\\r\\n`` the text is folded to ``\\n`` and
    ``newline`` records the original style; LF and mixed files are kept
    exactly as read. ``bom`` is set when the file started with a UTF-8 BOM.
    """

    text: str
    newline: str = "\n"
    bom: bool = False

    def render(self, text: str) -> str:
        """*text* in this file's own newline style."""
        if self.newline == "\n":
            return text
        return text.replace("\n", self.newline)


@dataclass(frozen=True)
class ParsedMethod:
    """A method declaration with a brace body."""

    name: str
    signature: str  # "<return type> <Name>(<params>)"
    normalized_signature: str
    start_line: int  # header line, 1-indexed
    end_line: int  # closing brace line, inclusive
    full_text: str  # leading attributes/comments through the closing brace
    attributes: list[str] = field(default_factory=list)
    is_public: bool = False
    is_async: bool = False
    return_type: str = ""
    parameters: str = ""
    start_offset: int = 0  # start of the line opening the leading block
    header_offset: int = 0
    body_offset: int = 0  # the opening brace of the body
    end_offset: int = 0  # one past the closing brace
    indent: str = ""

    @property
    def body(self) -> str:
        """Text from the header to the closing brace, without leading attributes."""
        return self.full_text[self.header_offset - self.start_offset :]


@dataclass(frozen=True)
class ParsedProperty:
    """An auto-property (``{ get; }`` / ``{ get; set; }`` / ``{ get; init; }``)."""

    name: str
    type: str
    attributes: list[str] = field(default_factory=list)
    accessibility: str = "private"
    is_read_only: bool = False
    has_getter: bool = True
    has_setter: bool = False
    full_text: str = ""
    start_line: int = 0
    initializer: str | None = None  # captured, never compared
    start_offset: int = 0
    header_offset: int = 0
    end_offset: int = 0
    indent: str = ""


Member = ParsedMethod | ParsedProperty


@dataclass(frozen=True)
class ParsedUnit:
    """Semantic model of one source file. Rebuilt from text, never mutated."""

    name: str
    methods: list[ParsedMethod] = field(default_factory=list)
    properties: list[ParsedProperty] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    namespace: str = ""
    raw_text: str = ""
    type_open: int | None = None  # offset of the type's "{"
    type_close: int | None = None  # offset of the matching "}"

    def find_method(self, name: str) -> ParsedMethod | None:
        for m in self.methods:
            if m.name == name:
                return m
        return None

    def find_property(self, name: str) -> ParsedProperty | None:
        for p in self.properties:
            if p.name == name:
                return p
        return None


@dataclass(frozen=True)
class MethodPair:
    generated: ParsedMethod
    existing: ParsedMethod


@dataclass(frozen=True)
class PropertyPair:
    generated: ParsedProperty
    existing: ParsedProperty


@dataclass(frozen=True)
class MergeAnalysis:
    """Classification of every member of a generated/existing unit pair."""

    new_methods: tuple[ParsedMethod, ...] = ()
    changed_methods: tuple[MethodPair, ...] = ()
    removed_methods: tuple[ParsedMethod, ...] = ()
    unchanged_methods: tuple[ParsedMethod, ...] = ()
    new_properties: tuple[ParsedProperty, ...] = ()
    changed_properties: tuple[PropertyPair, ...] = ()
    conflicts: tuple[str, ...] = ()
    missing_imports: tuple[str, ...] = ()

    @property
    def has_work(self) -> bool:
        return bool(
            self.new_methods
            or self.changed_methods
            or self.new_properties
            or self.changed_properties
            or self.missing_imports
        )


class Decision(str, Enum):
    """Terminal choice for one new or conflicting member."""

    ACCEPT = "accept"
    SKIP = "skip"
    REPLACE = "replace"
    KEEP_EXISTING = "keep-existing"


class ItemKind(str, Enum):
    NEW_METHOD = "new-method"
    NEW_PROPERTY = "new-property"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class DecisionRequest:
    """One new or conflicting member awaiting a decision.

    ``render_code`` and ``render_diff`` call back into the engine, so a
    decider can show either any number of times before deciding.
    """

    kind: ItemKind
    name: str
    path: str
    generated: Member
    existing: Member | None = None

    def render_code(self) -> str:
        from templatemerge.engine.summarizer import render_member

        return render_member(self.generated)

    def render_diff(self) -> str:
        from templatemerge.engine.summarizer import render_member_diff

        before = self.existing.full_text if self.existing is not None else ""
        return render_member_diff(before, self.generated.full_text, self.name)
