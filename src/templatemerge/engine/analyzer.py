"""Merge analysis: name-keyed classification of generated vs existing members."""

from __future__ import annotations

import logging

from templatemerge.engine._types import (
    MergeAnalysis,
    MethodPair,
    ParsedMethod,
    ParsedProperty,
    ParsedUnit,
    PropertyPair,
    normalize_signature,
)
from templatemerge.engine.signatures import classify_signature_change

logger = logging.getLogger(__name__)


def _first_by_name(members: list[ParsedMethod]) -> dict[str, ParsedMethod]:
    """First declaration of a name wins; later overloads are ignored for lookup."""
    index: dict[str, ParsedMethod] = {}
    for m in members:
        index.setdefault(m.name, m)
    return index


def _bodies_differ(generated: ParsedMethod, existing: ParsedMethod) -> bool:
    return normalize_signature(generated.body) != normalize_signature(existing.body)


def analyze_merge(
    generated: ParsedUnit,
    existing: ParsedUnit,
    *,
    compare_bodies: bool = True,
) -> MergeAnalysis:
    """Classify every member of *generated* against *existing*.

    Methods are new, unchanged, changed (paired, with a conflict message) or
    removed. Removed means hand-written code absent from the template; it is
    reported so a human knows it is preserved, never deleted. Properties are
    compared by declared type only and have no removed partition.

    With *compare_bodies* (the default) a method whose signature matches but
    whose whitespace-free body differs is also a conflict.
    """
    existing_methods = _first_by_name(existing.methods)
    generated_names = {m.name for m in generated.methods}

    new_methods: list[ParsedMethod] = []
    changed_methods: list[MethodPair] = []
    unchanged_methods: list[ParsedMethod] = []
    conflicts: list[str] = []
    seen: set[str] = set()

    for gen in generated.methods:
        if gen.name in seen:
            continue
        seen.add(gen.name)

        ex = existing_methods.get(gen.name)
        if ex is None:
            new_methods.append(gen)
            continue
        if gen.normalized_signature != ex.normalized_signature:
            category = classify_signature_change(ex.signature, gen.signature)
            changed_methods.append(MethodPair(generated=gen, existing=ex))
            conflicts.append(f"Method signature changed: {gen.name} ({category})")
        elif compare_bodies and _bodies_differ(gen, ex):
            changed_methods.append(MethodPair(generated=gen, existing=ex))
            conflicts.append(f"Method body changed: {gen.name}")
        else:
            unchanged_methods.append(gen)

    removed_methods = [m for m in existing.methods if m.name not in generated_names]

    existing_props: dict[str, ParsedProperty] = {}
    for p in existing.properties:
        existing_props.setdefault(p.name, p)
    new_properties: list[ParsedProperty] = []
    changed_properties: list[PropertyPair] = []
    seen.clear()

    for gen_prop in generated.properties:
        if gen_prop.name in seen:
            continue
        seen.add(gen_prop.name)

        ex_prop = existing_props.get(gen_prop.name)
        if ex_prop is None:
            new_properties.append(gen_prop)
            continue
        if normalize_signature(gen_prop.type) != normalize_signature(ex_prop.type):
            changed_properties.append(PropertyPair(generated=gen_prop, existing=ex_prop))
            conflicts.append(f"Property type changed: {gen_prop.name}")

    existing_imports = set(existing.imports)
    missing_imports = list(dict.fromkeys(i for i in generated.imports if i not in existing_imports))

    logger.debug(
        "Analysis %s: %d new, %d changed, %d removed, %d unchanged methods; %d new properties",
        existing.name or "<unnamed>",
        len(new_methods),
        len(changed_methods),
        len(removed_methods),
        len(unchanged_methods),
        len(new_properties),
    )

    return MergeAnalysis(
        new_methods=tuple(new_methods),
        changed_methods=tuple(changed_methods),
        removed_methods=tuple(removed_methods),
        unchanged_methods=tuple(unchanged_methods),
        new_properties=tuple(new_properties),
        changed_properties=tuple(changed_properties),
        conflicts=tuple(conflicts),
        missing_imports=tuple(missing_imports),
    )
