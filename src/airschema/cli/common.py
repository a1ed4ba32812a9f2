"""Shared CLI utilities and constants."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console

from airschema.core.logging import configure_logging

if TYPE_CHECKING:
    from airschema.core.connections import SQLExecutor

# Load .env file from current directory (AIRSCHEMA_* settings)
load_dotenv()

# Shared console instance
console = Console()

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-v=INFO, -vv=DEBUG)",
    ),
]

LogFormatOption = Annotated[
    str,
    typer.Option(
        "--log-format",
        help="Log output format (console or json)",
    ),
]


def setup_logging(verbosity: int = 0, log_format: str = "console") -> None:
    """Configure structured logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2+=DEBUG
        log_format: "console" for development, "json" for production/cloud
    """
    if verbosity >= 2:
        level = "DEBUG"
    elif verbosity >= 1:
        level = "INFO"
    else:
        level = "WARNING"

    configure_logging(
        log_level=level,
        log_format=log_format,
        show_timestamps=verbosity >= 1,
        color=log_format == "console",
    )


def get_executor(database_url: str, timeout_seconds: float) -> SQLExecutor:
    """Create an executor for a database URL or a DuckDB file path.

    ``duckdb:///path/to/file.duckdb`` and bare ``*.duckdb`` paths open a
    DuckDB connection; anything else is handed to SQLAlchemy.
    """
    from airschema.core.connections import DuckDBExecutor, SQLAlchemyExecutor

    if database_url.startswith("duckdb:") or database_url.endswith(".duckdb"):
        import duckdb

        path = database_url.removeprefix("duckdb:").removeprefix("///") or ":memory:"
        return DuckDBExecutor(duckdb.connect(path), timeout_seconds=timeout_seconds)

    return SQLAlchemyExecutor.from_url(database_url, statement_timeout_seconds=timeout_seconds)
