"""Human-readable rendering of analyses, member diffs and batch outcomes.

Nothing here prints; callers decide where the text goes.
"""

from __future__ import annotations

import difflib
import textwrap

from templatemerge.engine._types import (
    DecisionRequest,
    ItemKind,
    MergeAnalysis,
    Member,
    ParsedMethod,
)
from templatemerge.schema import (
    AnalysisReport,
    FileMergeResult,
    MergeSummary,
    RollbackReport,
)

_RULE = "=" * 80
_THIN_RULE = "-" * 80


def render_member(member: Member) -> str:
    """Full member text framed for display."""
    return "\n".join([_THIN_RULE, textwrap.dedent(member.full_text), _THIN_RULE])


def render_member_diff(existing_text: str, generated_text: str, name: str) -> str:
    """Unified diff from the existing member text to the generated one."""
    diff = difflib.unified_diff(
        textwrap.dedent(existing_text).splitlines(),
        textwrap.dedent(generated_text).splitlines(),
        fromfile=f"existing/{name}",
        tofile=f"generated/{name}",
        lineterm="",
    )
    body = "\n".join(diff)
    return body or f"No textual difference for {name}"


def describe_request(request: DecisionRequest) -> str:
    """Header shown before asking for a decision."""
    item = request.generated
    lines = [_THIN_RULE]
    if request.kind is ItemKind.NEW_METHOD:
        lines.append(f"NEW METHOD: {item.name}")
    elif request.kind is ItemKind.NEW_PROPERTY:
        lines.append(f"NEW PROPERTY: {item.name}")
    else:
        lines.append(f"CONFLICT: {item.name}")
    lines.append(_THIN_RULE)
    lines.append(f"File: {request.path}")

    if isinstance(item, ParsedMethod):
        if request.existing is not None:
            lines.append(f"Existing:  {_signature_of(request.existing)}")
            lines.append(f"Generated: {item.signature}")
        else:
            lines.append(f"Signature: {item.signature}")
        lines.append(f"Public: {item.is_public}, Async: {item.is_async}")
    else:
        if request.existing is not None:
            lines.append(f"Existing type:  {_signature_of(request.existing)}")
            lines.append(f"Generated type: {item.type}")
        else:
            lines.append(f"Type: {item.type}")
        lines.append(f"Accessibility: {item.accessibility}")
    lines.append(f"Attributes: {', '.join(item.attributes) or 'none'}")
    return "\n".join(lines)


def _signature_of(member: Member) -> str:
    if isinstance(member, ParsedMethod):
        return member.signature
    return member.type


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


def build_analysis_report(
    analysis: MergeAnalysis,
    generated_path: str,
    existing_path: str,
    type_name: str = "",
) -> AnalysisReport:
    return AnalysisReport(
        generated_path=generated_path,
        existing_path=existing_path,
        type_name=type_name,
        new_methods=[m.name for m in analysis.new_methods],
        changed_methods=[p.generated.name for p in analysis.changed_methods],
        removed_methods=[m.name for m in analysis.removed_methods],
        unchanged_methods=[m.name for m in analysis.unchanged_methods],
        new_properties=[p.name for p in analysis.new_properties],
        changed_properties=[p.generated.name for p in analysis.changed_properties],
        missing_imports=list(analysis.missing_imports),
        conflicts=list(analysis.conflicts),
    )


def format_analysis(analysis: MergeAnalysis, generated_path: str, existing_path: str) -> str:
    """Multi-section analysis report with a feasibility verdict."""
    lines = [
        _RULE,
        "MERGE ANALYSIS",
        _RULE,
        f"Generated: {generated_path}",
        f"Existing:  {existing_path}",
        "",
        f"  New methods:        {len(analysis.new_methods)}",
        f"  Changed methods:    {len(analysis.changed_methods)}",
        f"  Preserved methods:  {len(analysis.removed_methods)}",
        f"  Unchanged methods:  {len(analysis.unchanged_methods)}",
        f"  New properties:     {len(analysis.new_properties)}",
        f"  Changed properties: {len(analysis.changed_properties)}",
        f"  Missing usings:     {len(analysis.missing_imports)}",
        f"  Conflicts:          {len(analysis.conflicts)}",
    ]

    if analysis.new_methods:
        lines += ["", "NEW METHODS (would be added):"]
        for m in analysis.new_methods:
            lines.append(f"  + {m.signature}  [lines {m.start_line}-{m.end_line}]")

    if analysis.changed_methods:
        lines += ["", "CHANGED METHODS:"]
        for pair in analysis.changed_methods:
            lines.append(f"  ~ {pair.generated.name}")
            lines.append(f"      generated: {pair.generated.signature}")
            lines.append(f"      existing:  {pair.existing.signature}")

    if analysis.removed_methods:
        lines += ["", "CUSTOM METHODS (not in template, will be preserved):"]
        for m in analysis.removed_methods:
            lines.append(f"  = {m.signature}")

    if analysis.new_properties:
        lines += ["", "NEW PROPERTIES (would be added):"]
        for p in analysis.new_properties:
            lines.append(f"  + {p.type} {p.name}")

    if analysis.changed_properties:
        lines += ["", "CHANGED PROPERTIES:"]
        for pp in analysis.changed_properties:
            lines.append(f"  ~ {pp.generated.name}: {pp.existing.type} -> {pp.generated.type}")

    if analysis.missing_imports:
        lines += ["", "MISSING USINGS:"]
        lines += [f"  + using {name};" for name in analysis.missing_imports]

    if analysis.conflicts:
        lines += ["", "CONFLICTS (require a decision):"]
        lines += [f"  ! {c}" for c in analysis.conflicts]

    lines += ["", _RULE]
    if analysis.conflicts:
        lines.append(f"MERGE REQUIRES REVIEW: {len(analysis.conflicts)} conflict(s)")
    elif analysis.has_work:
        lines.append(
            f"MERGE IS FEASIBLE: {len(analysis.new_methods)} method(s), "
            f"{len(analysis.new_properties)} property(ies) to add, "
            f"{len(analysis.removed_methods)} custom method(s) preserved"
        )
    else:
        lines.append("NO CHANGES NEEDED")
    lines.append(_RULE)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Batch and rollback
# ---------------------------------------------------------------------------


def build_merge_summary(results: list[FileMergeResult]) -> MergeSummary:
    return MergeSummary(
        merged=sum(1 for r in results if r.status == "merged"),
        skipped=sum(1 for r in results if r.status == "skipped"),
        errors=sum(1 for r in results if r.status == "error"),
        methods_added=sum(r.methods_added for r in results),
        methods_replaced=sum(r.methods_replaced for r in results),
        properties_added=sum(r.properties_added for r in results),
        conflicts=sum(len(r.conflicts) for r in results),
        results=list(results),
    )


def _result_line(r: FileMergeResult) -> str:
    if r.status == "error":
        return f"  [error]   {r.file_path}: {r.error}"
    detail = (
        f"+{r.methods_added} methods, ~{r.methods_replaced} replaced, "
        f"+{r.properties_added} properties, +{r.imports_added} usings"
    )
    suffix = " (stopped early)" if r.quit else ""
    return f"  [{r.status}] {r.file_path}: {detail}{suffix}"


def format_merge_summary(summary: MergeSummary) -> str:
    lines = [_RULE, "MERGE SUMMARY", _RULE]
    lines += [_result_line(r) for r in summary.results]
    lines += [
        "",
        f"  Merged:            {summary.merged} file(s)",
        f"  Skipped:           {summary.skipped} file(s)",
        f"  Errors:            {summary.errors} file(s)",
        f"  Methods added:     {summary.methods_added}",
        f"  Methods replaced:  {summary.methods_replaced}",
        f"  Properties added:  {summary.properties_added}",
        f"  Conflicts:         {summary.conflicts}",
        _RULE,
    ]
    if summary.merged:
        lines.append("Review the merged files; undo with: templatemerge rollback <path>...")
    return "\n".join(lines)


def format_rollback_report(report: RollbackReport) -> str:
    lines = [_RULE, "ROLLBACK SUMMARY", _RULE]
    lines += [f"  restored   {p}" for p in report.restored]
    lines += [f"  no backup  {p}" for p in report.missing]
    lines += [f"  FAILED     {p}: {err}" for p, err in report.failed.items()]
    lines += [
        "",
        f"  Restored: {len(report.restored)} file(s)",
        f"  No backup found: {len(report.missing)} file(s)",
        f"  Failed: {len(report.failed)} file(s)",
        _RULE,
    ]
    return "\n".join(lines)
