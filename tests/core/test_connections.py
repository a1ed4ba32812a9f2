"""Tests for query executors and result normalization."""

from types import SimpleNamespace

import duckdb
import pytest
from sqlalchemy import create_engine

from airschema.core.connections import (
    CallableExecutor,
    DuckDBExecutor,
    SQLAlchemyExecutor,
    SQLExecutor,
    normalize_rows,
    statement_timeout_listener,
)


class TestNormalizeRows:
    """Both collaborator result shapes normalize to a plain list."""

    def test_bare_list(self):
        assert normalize_rows([{"a": 1}]) == [{"a": 1}]

    def test_rows_key(self):
        assert normalize_rows({"rows": [{"a": 1}], "rowCount": 1}) == [{"a": 1}]

    def test_rows_attribute(self):
        assert normalize_rows(SimpleNamespace(rows=[{"a": 1}])) == [{"a": 1}]

    def test_none_and_empty(self):
        assert normalize_rows(None) == []
        assert normalize_rows({"rows": None}) == []

    def test_sqlalchemy_style_rows(self):
        row = SimpleNamespace(_mapping={"a": 1})

        assert normalize_rows([row]) == [{"a": 1}]

    def test_unsupported(self):
        with pytest.raises(TypeError):
            normalize_rows(42)


class TestCallableExecutor:
    def test_wraps_foreign_callable(self):
        calls = []

        def execute_sql(query, params):
            calls.append((query, params))
            return {"rows": [{"one": 1}]}

        executor = CallableExecutor(execute_sql)

        assert executor.execute("SELECT 1 AS one") == [{"one": 1}]
        assert calls == [("SELECT 1 AS one", None)]
        assert executor.dialect == "postgresql"
        assert isinstance(executor, SQLExecutor)


class TestDuckDBExecutor:
    def test_select_returns_dicts(self, duckdb_conn):
        executor = DuckDBExecutor(duckdb_conn)

        assert executor.execute("SELECT 1 AS one, 'x' AS two") == [{"one": 1, "two": "x"}]

    def test_ddl_returns_empty(self, duckdb_conn):
        assert DuckDBExecutor(duckdb_conn).execute("CREATE TABLE t (a INTEGER)") == []

    def test_named_params(self, duckdb_conn):
        rows = DuckDBExecutor(duckdb_conn).execute("SELECT $value AS v", {"value": 5})

        assert rows == [{"v": 5}]

    def test_worker_executor_sees_same_database(self, duckdb_conn):
        executor = DuckDBExecutor(duckdb_conn)
        executor.execute("CREATE TABLE t AS SELECT 1 AS a")

        assert executor.for_worker().execute("SELECT a FROM t") == [{"a": 1}]

    def test_errors_propagate(self, duckdb_conn):
        with pytest.raises(Exception, match="missing"):
            DuckDBExecutor(duckdb_conn).execute("SELECT * FROM missing")

    def test_close_worker_cursor(self, duckdb_conn):
        executor = DuckDBExecutor(duckdb_conn)
        worker = executor.for_worker()

        worker.close()

        assert executor.execute("SELECT 1 AS one") == [{"one": 1}]


class TestStatementTimeout:
    """A statement running past the timeout fails; the connection survives."""

    def test_duckdb_statement_interrupted(self, duckdb_conn):
        executor = DuckDBExecutor(duckdb_conn, timeout_seconds=0.2)

        with pytest.raises(duckdb.InterruptException):
            executor.execute(
                "SELECT SUM(a.range * b.range) AS total FROM range(1000000) a, range(1000000) b"
            )

        assert executor.execute("SELECT 1 AS one") == [{"one": 1}]

    def test_fast_statement_not_interrupted(self, duckdb_conn):
        executor = DuckDBExecutor(duckdb_conn, timeout_seconds=0.2)

        assert executor.execute("SELECT COUNT(*) AS n FROM range(1000)") == [{"n": 1000}]

    def test_postgres_listener_sets_statement_timeout(self):
        executed = []

        class FakeCursor:
            closed = False

            def execute(self, sql):
                executed.append(sql)

            def close(self):
                FakeCursor.closed = True

        dbapi_conn = SimpleNamespace(cursor=FakeCursor)

        statement_timeout_listener(2.5)(dbapi_conn, None)

        assert executed == ["SET statement_timeout = 2500"]
        assert FakeCursor.closed

    def test_no_listener_outside_postgres(self):
        executor = SQLAlchemyExecutor.from_url("sqlite://", statement_timeout_seconds=1.0)

        assert executor.execute("SELECT 1 AS one") == [{"one": 1}]
        executor.dispose()


class TestSQLAlchemyExecutor:
    def test_executes_text(self):
        executor = SQLAlchemyExecutor(create_engine("sqlite://"))

        assert executor.dialect == "sqlite"
        assert executor.execute("SELECT :v AS v", {"v": 3}) == [{"v": 3}]
        assert executor.execute("CREATE TABLE t (a INTEGER)") == []
        assert executor.for_worker() is executor
        executor.dispose()
