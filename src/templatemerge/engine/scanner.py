"""Structural scanner: comment- and literal-aware brace matching.

Standalone module, no engine imports. The scanner knows nothing about
declarations; it only answers "where does this block end" and a few
offset/line conversions the parser and planner share.
"""

from __future__ import annotations

# Lexical states
_CODE = 0
_STRING = 1
_VERBATIM = 2
_CHAR = 3
_LINE_COMMENT = 4
_BLOCK_COMMENT = 5


def _skip_quoted(text: str, pos: int, quote: str) -> int:
    """Return the index of the quote closing the literal opened at *pos*."""
    i = pos + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote or ch == "\n":
            return i
        i += 1
    return n - 1


def _skip_verbatim(text: str, pos: int) -> int:
    """Closing quote of the ``@"..."`` literal whose opening quote is at *pos*.

    A doubled quote is the only escape; backslashes are plain characters.
    """
    i = pos + 1
    n = len(text)
    while i < n:
        if text[i] == '"':
            if text[i + 1 : i + 2] != '"':
                return i
            i += 1
        i += 1
    return n - 1


def _skip_interpolated(text: str, pos: int, verbatim: bool) -> int:
    """Closing quote of the interpolated literal whose opening quote is at *pos*.

    Holes keep their own depth counter so ``$"{a{b}}"`` never perturbs the
    caller, and literals inside a hole are skipped with their own rules.
    """
    depth = 0
    i = pos + 1
    n = len(text)
    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""
        if depth == 0:
            if ch == "{":
                if nxt == "{":
                    i += 1  # literal brace
                else:
                    depth = 1
            elif ch == "}" and nxt == "}":
                i += 1
            elif ch == "\\" and not verbatim:
                i += 1
            elif ch == '"':
                if not (verbatim and nxt == '"'):
                    return i
                i += 1
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        elif ch in "\"'@$":
            i = _skip_literal(text, i)
        i += 1
    return n - 1


def _skip_literal(text: str, pos: int) -> int:
    """Last index of the string or char literal starting at *pos*.

    *pos* may sit on the quote itself or on an ``@``/``$`` prefix. Returns
    *pos* unchanged when no literal starts there (``@identifier``).
    """
    ch = text[pos]
    if ch in "\"'":
        return _skip_quoted(text, pos, ch)
    prefix = text[pos : pos + 3]
    if prefix.startswith('@"'):
        return _skip_verbatim(text, pos + 1)
    if prefix.startswith('$"'):
        return _skip_interpolated(text, pos + 1, verbatim=False)
    if prefix in ('$@"', '@$"'):
        return _skip_interpolated(text, pos + 2, verbatim=True)
    return pos


def match_brace(text: str, open_pos: int) -> int | None:
    """Find the ``}`` matching the ``{`` at *open_pos*.

    Braces inside regular, verbatim and interpolated strings, char literals
    and both comment styles are ignored, including literals nested inside
    interpolation holes such as ``$"{Path.Combine(@"C:\\", x)}"``.

    Returns:
        Offset of the matching closing brace, or None when the text ends
        first (unbalanced input).
    """
    if open_pos < 0 or open_pos >= len(text) or text[open_pos] != "{":
        msg = f"No opening brace at offset {open_pos}"
        raise ValueError(msg)

    depth = 1
    state = _CODE
    n = len(text)
    i = open_pos + 1

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if state == _LINE_COMMENT:
            if ch == "\n":
                state = _CODE
        elif state == _BLOCK_COMMENT:
            if ch == "*" and nxt == "/":
                state = _CODE
                i += 1
        elif state == _STRING:
            if ch == "\\":
                i += 1
            elif ch == '"' or ch == "\n":
                state = _CODE
        elif state == _CHAR:
            if ch == "\\":
                i += 1
            elif ch == "'" or ch == "\n":
                state = _CODE
        elif state == _VERBATIM:
            if ch == '"':
                if nxt == '"':
                    i += 1
                else:
                    state = _CODE
        else:
            if ch == "/" and nxt == "/":
                state = _LINE_COMMENT
                i += 1
            elif ch == "/" and nxt == "*":
                state = _BLOCK_COMMENT
                i += 1
            elif ch == '"':
                state = _STRING
            elif ch == "'":
                state = _CHAR
            elif ch == "@" and nxt == '"':
                state = _VERBATIM
                i += 1
            elif ch == "$" or (ch == "@" and nxt == "$"):
                i = _skip_literal(text, i)
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return i
        i += 1

    return None


def statement_end(text: str, pos: int) -> int | None:
    """Find the ``;`` ending the statement that continues at *pos*.

    Nested parentheses, brackets, brace blocks and string literals are
    skipped. Returns None when no terminating semicolon is found.
    """
    depth = 0
    i = pos
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "{":
            close = match_brace(text, i)
            if close is None:
                return None
            i = close
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
        elif ch in "\"'@$":
            i = _skip_literal(text, i)
        elif ch == ";" and depth <= 0:
            return i
        i += 1
    return None


def line_number(text: str, offset: int) -> int:
    """1-indexed line containing *offset*."""
    return text.count("\n", 0, offset) + 1


def line_start(text: str, offset: int) -> int:
    """Offset of the first character of the line containing *offset*."""
    return text.rfind("\n", 0, offset) + 1


def next_line_start(text: str, offset: int) -> int:
    """Offset just past the newline ending the line that contains *offset*."""
    nl = text.find("\n", offset)
    return len(text) if nl == -1 else nl + 1


def line_offsets(text: str) -> list[int]:
    """Start offset of every line; index 0 is line 1."""
    offsets = [0]
    for i, ch in enumerate(text):
        if ch == "\n":
            offsets.append(i + 1)
    return offsets
