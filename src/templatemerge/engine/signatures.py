"""Signature comparison for conflict descriptions.

Standalone module, no engine imports, just string analysis over
``"<return type> <Name>(<params>)"`` signatures as built by the parser.
Conservative: when nothing specific can be said, report "SIGNATURE CHANGED".
"""

from __future__ import annotations

import re

_PARAM_MODIFIERS = frozenset({"ref", "out", "in", "params", "this", "scoped"})
_ATTR_RE = re.compile(r"^\s*\[[^\]]*\]\s*")


def _extract_balanced_params(signature: str) -> str | None:
    """Extract content between the first balanced parentheses in signature."""
    start = signature.find("(")
    if start == -1:
        return None
    depth = 0
    for i in range(start, len(signature)):
        ch = signature[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return signature[start + 1 : i]
    return None


def split_params(params_str: str) -> list[str]:
    """Split a raw parameter list on top-level commas.

    Commas inside generics, attribute arguments, tuples and default values are
    kept with their parameter:
        Dictionary<string, int> map, [FromQuery(Name = "a,b")] string q
    """
    if not params_str.strip():
        return []

    params: list[str] = []
    depth = 0
    in_string = False
    current: list[str] = []
    prev = ""
    for ch in params_str:
        if ch == '"' and prev != "\\":
            in_string = not in_string
        elif not in_string:
            if ch in "(<[{":
                depth += 1
            elif ch in ")>]}":
                depth -= 1
        if ch == "," and depth == 0 and not in_string:
            params.append(" ".join("".join(current).split()))
            current = []
        else:
            current.append(ch)
        prev = ch
    last = " ".join("".join(current).split())
    if last:
        params.append(last)
    return params


def extract_params(signature: str) -> list[str]:
    """Extract the parameter list from a signature string."""
    params_str = _extract_balanced_params(signature)
    if params_str is None:
        return []
    return split_params(params_str)


def _strip_attributes(param: str) -> str:
    while True:
        stripped = _ATTR_RE.sub("", param, count=1)
        if stripped == param:
            return param.strip()
        param = stripped


def _strip_default(param: str) -> str:
    return param.split("=", 1)[0].strip()


def _param_has_default(param: str) -> bool:
    return "=" in param


def param_type(param: str) -> str:
    """Declared type of a parameter, without attributes, modifiers or name."""
    decl = _strip_default(_strip_attributes(param))
    parts = decl.rsplit(None, 1)
    type_part = parts[0] if len(parts) == 2 else decl  # noqa: PLR2004
    words = [w for w in type_part.split() if w not in _PARAM_MODIFIERS]
    return "".join(words)


def extract_return_type(signature: str) -> str | None:
    """Everything before the method name in ``"<type> <Name>(...)"``."""
    head = signature.split("(", 1)[0].strip()
    parts = head.rsplit(None, 1)
    if len(parts) != 2:  # noqa: PLR2004
        return None
    return "".join(parts[0].split())


def classify_signature_change(old_signature: str, new_signature: str) -> str:
    """Return a category label for a signature change.

    Returns one of:
        "PARAMETER REMOVED"
        "PARAMETER ADDED (BREAKING)"
        "PARAMETER ADDED"
        "PARAMETER TYPE CHANGED"
        "RETURN TYPE CHANGED"
        "SIGNATURE CHANGED"
    """
    old_params = extract_params(old_signature)
    new_params = extract_params(new_signature)

    if len(new_params) < len(old_params):
        return "PARAMETER REMOVED"

    for old_p, new_p in zip(old_params, new_params):
        if param_type(old_p) != param_type(new_p):
            return "PARAMETER TYPE CHANGED"

    if len(new_params) > len(old_params):
        added = new_params[len(old_params) :]
        if any(not _param_has_default(p) for p in added):
            return "PARAMETER ADDED (BREAKING)"
        return "PARAMETER ADDED"

    old_ret = extract_return_type(old_signature)
    new_ret = extract_return_type(new_signature)
    if old_ret != new_ret and old_ret is not None and new_ret is not None:
        return "RETURN TYPE CHANGED"

    return "SIGNATURE CHANGED"
