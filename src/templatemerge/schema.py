"""templatemerge output schema: Pydantic v2 models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

MergeStatus = Literal["merged", "skipped", "error"]


class FileMergeResult(BaseModel):
    """Outcome of merging one generated file into one existing file."""

    file_path: str
    status: MergeStatus = "skipped"
    methods_added: int = 0
    methods_replaced: int = 0
    methods_preserved: int = 0
    properties_added: int = 0
    properties_replaced: int = 0
    imports_added: int = 0
    conflicts: list[str] = []
    backup_path: str | None = None
    quit: bool = False  # the queue was cut short by the decider
    error: str | None = None


class MergeSummary(BaseModel):
    """Aggregate over a batch of file merges."""

    merged: int = 0
    skipped: int = 0
    errors: int = 0
    methods_added: int = 0
    methods_replaced: int = 0
    properties_added: int = 0
    conflicts: int = 0
    results: list[FileMergeResult] = []


class AnalysisReport(BaseModel):
    """Member names per partition of one analysis, in report order."""

    generated_path: str
    existing_path: str
    type_name: str = ""
    new_methods: list[str] = []
    changed_methods: list[str] = []
    removed_methods: list[str] = []
    unchanged_methods: list[str] = []
    new_properties: list[str] = []
    changed_properties: list[str] = []
    missing_imports: list[str] = []
    conflicts: list[str] = []


class RollbackReport(BaseModel):
    """Result of restoring a set of candidate paths from their backups."""

    restored: list[str] = []
    missing: list[str] = []
    failed: dict[str, str] = Field(default_factory=dict)
