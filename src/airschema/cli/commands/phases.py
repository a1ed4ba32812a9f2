"""Phases command - list the analysis state machine."""

from __future__ import annotations

from rich.table import Table as RichTable

from airschema.cli.common import console


def phases() -> None:
    """List the analysis phases in the order they must run."""
    from airschema.pipeline.session import PHASE_DEFINITIONS

    console.print("\n[bold]Analysis Phases[/bold]\n")

    table = RichTable(show_header=True, header_style="bold")
    table.add_column("Phase")
    table.add_column("Operation")
    table.add_column("Description")
    table.add_column("Requires")
    table.add_column("Produces")
    table.add_column("Writes Schema")

    for phase_def in PHASE_DEFINITIONS:
        writes = "Yes" if phase_def.writes_schema else "No"
        table.add_row(
            phase_def.name,
            phase_def.operation,
            phase_def.description,
            phase_def.requires.value,
            phase_def.produces.value,
            writes,
        )

    console.print(table)
    console.print()
