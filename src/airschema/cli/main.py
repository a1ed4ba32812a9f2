"""Main CLI application entry point."""

from __future__ import annotations

import typer

from airschema.cli.commands import analyze, phases

app = typer.Typer(
    name="airschema",
    help="Infer and materialize relationships between imported Airtable tables.",
    no_args_is_help=True,
)

# Register commands
app.command()(analyze.analyze)
app.command()(phases.phases)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
