"""templatemerge CLI entry point."""

from __future__ import annotations

import logging
import sys

import click

from templatemerge import __version__
from templatemerge.backup import rollback_entity
from templatemerge.decisions import CONFLICT_STRATEGIES, AutoDecider, PromptDecider
from templatemerge.engine.analyzer import analyze_merge
from templatemerge.engine.parser import parse_source, read_source
from templatemerge.engine.pipeline import MODES, MergeOptions, merge_batch
from templatemerge.engine.summarizer import (
    build_analysis_report,
    build_merge_summary,
    format_analysis,
    format_merge_summary,
    format_rollback_report,
)

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFLICTS = 1  # analyze: conflicts need a human decision
EXIT_ERROR = 2  # Something went wrong


@click.group()
@click.version_option(__version__, "--version", "-V")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging on stderr.")
def main(verbose: bool) -> None:
    """templatemerge: merge regenerated C# classes into hand-edited ones without losing custom code."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ---------------------------------------------------------------------------
# analyze command
# ---------------------------------------------------------------------------


@main.command()
@click.argument("generated")
@click.argument("existing")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.option(
    "--signature-only",
    is_flag=True,
    default=False,
    help="Treat methods with equal signatures as unchanged even when bodies differ.",
)
def analyze(generated: str, existing: str, fmt: str, signature_only: bool) -> None:
    """Report what a merge of GENERATED into EXISTING would do, without writing."""
    try:
        gen_unit = parse_source(read_source(generated))
        existing_unit = parse_source(read_source(existing))
        analysis = analyze_merge(gen_unit, existing_unit, compare_bodies=not signature_only)

        if fmt == "json":
            report = build_analysis_report(analysis, generated, existing, existing_unit.name)
            click.echo(report.model_dump_json(indent=2))
        else:
            click.echo(format_analysis(analysis, generated, existing))

        sys.exit(EXIT_CONFLICTS if analysis.conflicts else EXIT_SUCCESS)

    except Exception as exc:
        logger.debug("CLI error", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)


# ---------------------------------------------------------------------------
# merge command
# ---------------------------------------------------------------------------


@main.command()
@click.argument("generated", required=False, default=None)
@click.argument("existing", required=False, default=None)
@click.option(
    "--pair",
    "extra_pairs",
    type=(str, str),
    multiple=True,
    metavar="GENERATED EXISTING",
    help="Another file pair to merge; repeatable.",
)
@click.option(
    "--mode",
    type=click.Choice(list(MODES)),
    default="interactive",
    help="interactive asks per member, auto accepts new members, dry-run writes nothing.",
)
@click.option(
    "--conflict-strategy",
    type=click.Choice(list(CONFLICT_STRATEGIES)),
    default="prompt",
    help="How changed members are resolved (default: prompt).",
)
@click.option("--no-imports", is_flag=True, default=False, help="Do not add missing using directives.")
@click.option(
    "--signature-only",
    is_flag=True,
    default=False,
    help="Only signature changes count as conflicts.",
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=1,
    help="Files merged in parallel (auto and dry-run modes only).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def merge(
    generated: str | None,
    existing: str | None,
    extra_pairs: tuple[tuple[str, str], ...],
    mode: str,
    conflict_strategy: str,
    no_imports: bool,
    signature_only: bool,
    jobs: int,
    fmt: str,
) -> None:
    """Merge GENERATED into EXISTING in place, keeping a .backup beside it."""
    pairs: list[tuple[str, str]] = []
    if generated is not None:
        if existing is None:
            raise click.UsageError("EXISTING is required when GENERATED is given.")
        pairs.append((generated, existing))
    pairs.extend(extra_pairs)
    if not pairs:
        raise click.UsageError("Nothing to merge: give GENERATED EXISTING or --pair.")

    try:
        options = MergeOptions(
            mode=mode,
            conflict_strategy=conflict_strategy,
            add_imports=not no_imports,
            compare_bodies=not signature_only,
        )
        if mode == "interactive":
            decider = PromptDecider(conflict_strategy)
            # Prompts cannot interleave.
            jobs = 1
        else:
            decider = AutoDecider(conflict_strategy)

        results = merge_batch(pairs, decider, options, max_workers=jobs)
        summary = build_merge_summary(results)

        if fmt == "json":
            click.echo(summary.model_dump_json(indent=2))
        else:
            click.echo(format_merge_summary(summary))

        sys.exit(EXIT_ERROR if summary.errors else EXIT_SUCCESS)

    except Exception as exc:
        logger.debug("CLI error", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)


# ---------------------------------------------------------------------------
# rollback command
# ---------------------------------------------------------------------------


@main.command()
@click.argument("paths", nargs=-1, required=True)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def rollback(paths: tuple[str, ...], fmt: str) -> None:
    """Restore each PATH from its .backup sibling.

    Paths without a backup are reported and skipped.
    """
    report = rollback_entity(paths)
    if fmt == "json":
        click.echo(report.model_dump_json(indent=2))
    else:
        click.echo(format_rollback_report(report))
    sys.exit(EXIT_ERROR if report.failed else EXIT_SUCCESS)
