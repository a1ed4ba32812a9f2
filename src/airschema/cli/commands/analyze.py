"""Analyze command - run relationship inference against a database."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table as RichTable

from airschema.analysis.relationships.models import ConstraintError, RelationshipCandidate
from airschema.cli.common import LogFormatOption, VerboseOption, console, setup_logging


def analyze(
    database_url: Annotated[
        str | None,
        typer.Argument(
            help="Database URL (SQLAlchemy URL, duckdb:///file.duckdb); default from AIRSCHEMA_DATABASE_URL",
        ),
    ] = None,
    anchor_column: Annotated[
        str | None,
        typer.Option("--anchor", "-a", help="Anchor column used as the join target"),
    ] = None,
    schema: Annotated[
        str | None,
        typer.Option("--schema", "-s", help="Schema holding the imported tables"),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", "-w", help="Worker threads for pairwise scoring"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Stop after junction detection; change nothing"),
    ] = False,
    verbose: VerboseOption = 0,
    log_format: LogFormatOption = "console",
) -> None:
    """Infer relationships and create junction tables and foreign keys.

    Examples:

        airschema analyze postgresql+psycopg2://localhost/airtable_import

        airschema analyze duckdb:///import.duckdb --anchor id --dry-run

        airschema analyze -vv  # URL from AIRSCHEMA_DATABASE_URL, DEBUG logs
    """
    setup_logging(verbosity=verbose, log_format=log_format)

    from airschema.analysis.relationships.config import AnalysisConfig
    from airschema.cli.common import get_executor
    from airschema.core.config import get_settings
    from airschema.core.errors import IntrospectionError
    from airschema.pipeline.workflow import RelationshipWorkflow

    settings = get_settings()
    config = AnalysisConfig.from_settings(settings)
    overrides = {
        "anchor_column": anchor_column,
        "db_schema": schema,
        "max_workers": workers,
    }
    config = config.model_copy(update={k: v for k, v in overrides.items() if v is not None})

    executor = get_executor(database_url or settings.database_url, settings.statement_timeout_seconds)
    workflow = RelationshipWorkflow(executor, config)

    try:
        analysis = workflow.run_confidence_analysis()
    except IntrospectionError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    session_id = analysis.session_id
    stats = analysis.statistics

    console.print("\n[bold]Confidence Analysis[/bold]")
    console.print("=" * 60)
    console.print(f"Session: {session_id}")
    console.print(f"Tables: {stats.total_tables}  Records: {stats.total_records:,}")
    console.print(
        f"Relationships: {stats.potential_relationships} "
        f"(high {stats.high_confidence}, medium {stats.medium_confidence}, "
        f"low {stats.low_confidence})"
    )
    if stats.scoring_failures:
        console.print(f"[yellow]Scoring failures: {stats.scoring_failures}[/yellow]")
    _print_candidates(analysis.relationships)

    detection = workflow.detect_junction_needs(session_id)

    console.print("\n[bold]Junction Detection[/bold]")
    console.print("-" * 60)
    for plan in detection.junction_table_needs:
        console.print(
            f"  [cyan]{plan.junction_table_name}[/cyan]  "
            f"{plan.from_table}.{plan.from_field} <-> {plan.to_table} ({plan.confidence:.2f})"
        )
    console.print(
        f"  Junction tables: {len(detection.junction_table_needs)}  "
        f"Direct: {len(detection.one_to_many_relationships)}"
    )

    if dry_run:
        console.print("\n[yellow]Dry run: no tables or constraints created[/yellow]\n")
        return

    junctions = workflow.create_junction_tables(session_id)
    console.print("\n[bold]Junction Tables[/bold]")
    console.print("-" * 60)
    for created in junctions.created_junction_tables:
        console.print(f"  [green]✓[/green] {created.table_name} ({created.row_count:,} rows)")
    _print_errors(junctions.errors)

    foreign_keys = workflow.create_foreign_keys(session_id)
    console.print("\n[bold]Foreign Keys[/bold]")
    console.print("-" * 60)
    for fk in foreign_keys.created_foreign_keys:
        console.print(f"  [green]✓[/green] {fk.constraint_name}  {fk.label}")
    _print_errors(foreign_keys.errors)

    summary = foreign_keys.summary
    console.print("\n[bold]Summary[/bold]")
    console.print("-" * 60)
    console.print(f"  Junction tables: {junctions.summary['successful']}/{junctions.summary['total']}")
    console.print(
        f"  Foreign keys: {summary['successful']} "
        f"(direct {summary['direct']}, junction {summary['junction']}), "
        f"failed {summary['failed']}"
    )
    console.print()


def _print_candidates(candidates: list[RelationshipCandidate]) -> None:
    if not candidates:
        console.print("[dim]No relationships above the confidence threshold[/dim]")
        return

    table = RichTable(show_header=True, header_style="bold")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Confidence", justify="right")
    table.add_column("Type")
    table.add_column("Integrity", justify="right")

    for candidate in candidates:
        rel_type = candidate.relationship_type.value
        if candidate.cardinality_error:
            rel_type = f"[red]{rel_type}[/red]"
        table.add_row(
            f"{candidate.from_table}.{candidate.from_field}",
            f"{candidate.to_table}.{candidate.to_field}",
            f"{candidate.confidence:.2f}",
            rel_type,
            f"{candidate.statistics.referential_integrity_percent:.1f}%",
        )
    console.print(table)


def _print_errors(errors: list[ConstraintError]) -> None:
    for error in errors:
        console.print(f"  [red]✗[/red] {escape(error.target)}: {escape(error.error)}")
