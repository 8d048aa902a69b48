"""End-to-end merge: generated file + existing file -> FileMergeResult."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Iterator

from templatemerge.backup import create_backup, restore_from_backup
from templatemerge.engine._types import (
    Decision,
    DecisionRequest,
    ItemKind,
    MergeAnalysis,
    ParsedUnit,
    SourceText,
)
from templatemerge.engine.analyzer import analyze_merge
from templatemerge.engine.mutator import insert_imports, insert_method, insert_property, replace_member
from templatemerge.engine.parser import load_source, parse_source, read_source
from templatemerge.errors import (
    BackupFailure,
    MergeQuit,
    ParseFailure,
    TemplateMergeError,
    WriteFailure,
)
from templatemerge.schema import FileMergeResult

if TYPE_CHECKING:
    from templatemerge.decisions import Decider

logger = logging.getLogger(__name__)

MODES = ("interactive", "auto", "dry-run")


@dataclass(frozen=True)
class MergeOptions:
    mode: str = "interactive"
    conflict_strategy: str = "prompt"
    add_imports: bool = True
    compare_bodies: bool = True


@dataclass
class _Buffer:
    """The in-memory text being merged and the unit parsed from it."""

    text: str
    unit: ParsedUnit


@dataclass
class _PathLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


# One lock per resolved target path while any merge of it is in flight, so
# two merges never race on the same target or its backup.
_path_locks: dict[Path, _PathLock] = {}
_registry_lock = threading.Lock()


@contextmanager
def _locked(path: str | Path) -> Iterator[None]:
    key = Path(path).resolve()
    with _registry_lock:
        entry = _path_locks.setdefault(key, _PathLock())
        entry.users += 1
    try:
        with entry.lock:
            yield
    finally:
        with _registry_lock:
            entry.users -= 1
            if entry.users == 0:
                del _path_locks[key]


def merge_file(
    generated_path: str,
    existing_path: str,
    decider: Decider,
    options: MergeOptions | None = None,
) -> FileMergeResult:
    """Merge one generated file into one existing file.

    Never raises for per-file problems: parse, backup and write failures
    come back as ``status="error"``. Hand-written members absent from the
    generated file are left untouched.
    """
    options = options or MergeOptions()
    with _locked(existing_path):
        return _merge_locked(generated_path, existing_path, decider, options)


def merge_batch(
    pairs: Iterable[tuple[str, str]],
    decider: Decider,
    options: MergeOptions | None = None,
    max_workers: int = 1,
) -> list[FileMergeResult]:
    """Run :func:`merge_file` for every ``(generated, existing)`` pair.

    Results come back in input order. A failure in one file never stops
    the others.
    """
    options = options or MergeOptions()
    pairs = list(pairs)

    def _one(pair: tuple[str, str]) -> FileMergeResult:
        generated_path, existing_path = pair
        try:
            return merge_file(generated_path, existing_path, decider, options)
        except Exception as exc:
            logger.exception("Unexpected failure merging %s", existing_path)
            return FileMergeResult(file_path=existing_path, status="error", error=str(exc))

    if max_workers <= 1 or len(pairs) <= 1:
        return [_one(p) for p in pairs]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(_one, pairs))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _merge_locked(
    generated_path: str,
    existing_path: str,
    decider: Decider,
    options: MergeOptions,
) -> FileMergeResult:
    result = FileMergeResult(file_path=existing_path)

    try:
        generated = parse_source(read_source(generated_path))
        source = load_source(existing_path)
    except ParseFailure as e:
        logger.warning("%s", e)
        result.status = "error"
        result.error = str(e)
        return result

    original_text = source.text
    existing = parse_source(original_text)
    analysis = analyze_merge(generated, existing, compare_bodies=options.compare_bodies)
    result.conflicts = list(analysis.conflicts)
    result.methods_preserved = len(analysis.removed_methods)

    if options.mode == "dry-run":
        result.methods_added = len(analysis.new_methods)
        result.properties_added = len(analysis.new_properties)
        if options.add_imports:
            result.imports_added = len(analysis.missing_imports)
        return result

    if not _has_work(analysis, options):
        logger.info("No changes needed for %s", existing_path)
        return result

    try:
        backup = create_backup(existing_path)
    except BackupFailure as e:
        logger.error("%s", e)
        result.status = "error"
        result.error = str(e)
        return result
    result.backup_path = str(backup)

    buf = _Buffer(original_text, existing)
    try:
        _apply_decisions(buf, analysis, existing_path, decider, result)
    except MergeQuit as e:
        logger.info("Merge of %s stopped early: %s", existing_path, e)
        result.quit = True

    if options.add_imports and not result.quit and analysis.missing_imports:
        present = set(buf.unit.imports)
        missing = [i for i in analysis.missing_imports if i not in present]
        buf.text, buf.unit = insert_imports(buf.text, buf.unit, missing)
        result.imports_added = len(missing)

    if buf.text == original_text:
        return result

    try:
        _write(existing_path, buf.text, source)
    except WriteFailure as e:
        logger.error("%s", e)
        result.status = "error"
        result.error = str(e)
        try:
            restore_from_backup(existing_path)
        except TemplateMergeError as restore_err:
            result.error = f"{e}; restore also failed: {restore_err}"
        return result

    result.status = "merged"
    logger.info("Merged %s", existing_path)
    return result


def _has_work(analysis: MergeAnalysis, options: MergeOptions) -> bool:
    if options.add_imports:
        return analysis.has_work
    return bool(
        analysis.new_methods
        or analysis.changed_methods
        or analysis.new_properties
        or analysis.changed_properties
    )


def _apply_decisions(
    buf: _Buffer,
    analysis: MergeAnalysis,
    path: str,
    decider: Decider,
    result: FileMergeResult,
) -> None:
    """Walk the decision queue, splicing and re-parsing after every accepted item.

    Order: new methods, new properties, conflicting methods, conflicting
    properties. Mutations applied before a :class:`MergeQuit` stay in *buf*
    and are already counted in *result* when the exception propagates.
    """
    for method in analysis.new_methods:
        request = DecisionRequest(ItemKind.NEW_METHOD, method.name, path, method)
        if decider.decide(request) is Decision.ACCEPT:
            buf.text, buf.unit = insert_method(buf.text, buf.unit, method)
            result.methods_added += 1

    for prop in analysis.new_properties:
        request = DecisionRequest(ItemKind.NEW_PROPERTY, prop.name, path, prop)
        if decider.decide(request) is Decision.ACCEPT:
            buf.text, buf.unit = insert_property(buf.text, buf.unit, prop)
            result.properties_added += 1

    for pair in analysis.changed_methods:
        name = pair.generated.name
        request = DecisionRequest(ItemKind.CONFLICT, name, path, pair.generated, pair.existing)
        if decider.decide(request) is not Decision.REPLACE:
            continue
        current = buf.unit.find_method(name)
        if current is None:
            logger.warning("Method %s no longer found in %s; not replaced", name, path)
            continue
        buf.text, buf.unit = replace_member(buf.text, buf.unit, current, pair.generated)
        result.methods_replaced += 1

    for pp in analysis.changed_properties:
        name = pp.generated.name
        request = DecisionRequest(ItemKind.CONFLICT, name, path, pp.generated, pp.existing)
        if decider.decide(request) is not Decision.REPLACE:
            continue
        current_prop = buf.unit.find_property(name)
        if current_prop is None:
            logger.warning("Property %s no longer found in %s; not replaced", name, path)
            continue
        buf.text, buf.unit = replace_member(buf.text, buf.unit, current_prop, pp.generated)
        result.properties_replaced += 1


def _write(path: str, text: str, source: SourceText) -> None:
    """Write *text* back in the newline style and BOM the file was read with."""
    encoding = "utf-8-sig" if source.bom else "utf-8"
    try:
        Path(path).write_text(source.render(text), encoding=encoding, newline="")
    except OSError as e:
        msg = f"Failed to write {path}: {e}"
        raise WriteFailure(msg) from e
