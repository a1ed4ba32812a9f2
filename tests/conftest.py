"""Shared pytest fixtures for all tests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import duckdb
import pytest

from airschema.analysis.relationships.config import AnalysisConfig, clear_config_cache
from airschema.core.connections import DuckDBExecutor


class RecordingExecutor:
    """Fake executor that records statements and answers from a script.

    Args:
        dialect: SQL dialect the engine should write statements in
        responses: (fragment, rows) pairs; the first fragment found in a
            statement decides its rows. Unmatched statements return [].
        fail_on: {fragment: message}; statements containing the fragment
            raise RuntimeError(message).
    """

    def __init__(
        self,
        dialect: str = "postgresql",
        responses: list[tuple[str, list[dict[str, Any]]]] | None = None,
        fail_on: dict[str, str] | None = None,
    ):
        self.dialect = dialect
        self.responses = responses or []
        self.fail_on = fail_on or {}
        self.statements: list[str] = []
        self.params: list[dict[str, Any] | None] = []

    def execute(self, query: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        self.statements.append(query)
        self.params.append(dict(params) if params else None)
        for fragment, message in self.fail_on.items():
            if fragment in query:
                raise RuntimeError(message)
        for fragment, rows in self.responses:
            if fragment in query:
                return [dict(row) for row in rows]
        return []

    def statements_containing(self, fragment: str) -> list[str]:
        return [s for s in self.statements if fragment in s]


@pytest.fixture(autouse=True)
def _reset_config_cache():
    """Keep relationships.yaml loading independent between tests."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def duckdb_conn():
    """Create an in-memory DuckDB connection for testing."""
    conn = duckdb.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def airtable_db(duckdb_conn):
    """Imported base: orders link to customers through an array field.

    orders.customer_ids references customers.id; o2 links to both
    customers and each customer is referenced twice. The derived columns
    hold values that would otherwise match customer ids.
    """
    duckdb_conn.execute("CREATE TABLE customers (id VARCHAR, name VARCHAR)")
    duckdb_conn.execute("INSERT INTO customers VALUES ('c1', 'Ada'), ('c2', 'Grace')")
    duckdb_conn.execute(
        """
        CREATE TABLE orders (
            id VARCHAR,
            customer_ids VARCHAR[],
            "Total (Rollup)" VARCHAR,
            calculated_total VARCHAR
        )
        """
    )
    duckdb_conn.execute(
        """
        INSERT INTO orders VALUES
            ('o1', ['c1'], 'c1', 'c1'),
            ('o2', ['c1', 'c2'], 'c2', 'c2'),
            ('o3', ['c2'], 'c1', 'c1')
        """
    )
    return duckdb_conn


@pytest.fixture
def make_executor() -> type[RecordingExecutor]:
    """Factory for RecordingExecutor instances."""
    return RecordingExecutor


@pytest.fixture
def duckdb_executor(airtable_db) -> DuckDBExecutor:
    return DuckDBExecutor(airtable_db)


@pytest.fixture
def analysis_config() -> AnalysisConfig:
    """Engine configuration for the airtable_db fixture (anchor column "id")."""
    return AnalysisConfig(anchor_column="id")
