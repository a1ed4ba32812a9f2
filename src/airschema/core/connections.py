"""Query execution against the target database.

The relationship engine needs exactly one capability from the database:
run a statement and get rows back. Every adapter here returns a plain
``list[dict]`` so analysis code never sees driver-specific result shapes.

Usage:
    from airschema.core.connections import SQLAlchemyExecutor, DuckDBExecutor

    executor = SQLAlchemyExecutor.from_url("postgresql+psycopg2://.../import")
    rows = executor.execute("SELECT 1 AS one")   # [{"one": 1}]

    executor = DuckDBExecutor(duckdb.connect(":memory:"))

    # Wrap a foreign callable that may return rows or {"rows": rows}
    executor = CallableExecutor(execute_sql, dialect="postgresql")
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import create_engine, event, text

from airschema.core.logging import get_logger, increment_db_query

if TYPE_CHECKING:
    import duckdb
    from sqlalchemy.engine import Engine

logger = get_logger(__name__)

Row = dict[str, Any]


@runtime_checkable
class SQLExecutor(Protocol):
    """Anything that can run one SQL statement and return rows.

    ``dialect`` names the SQL flavour the statements must be written in
    ("postgresql" or "duckdb").
    """

    dialect: str

    def execute(self, query: str, params: Mapping[str, Any] | None = None) -> list[Row]:
        """Execute a single statement and return its rows (empty for DDL)."""
        ...


def _row_to_dict(row: Any) -> Row:
    if isinstance(row, Mapping):
        return dict(row)
    mapping = getattr(row, "_mapping", None)
    if mapping is not None:
        return dict(mapping)
    raise TypeError(f"Cannot convert row of type {type(row).__name__} to a mapping")


def normalize_rows(result: Any) -> list[Row]:
    """Normalize a driver result to a list of row dicts.

    Accepts None, a bare sequence of rows, a mapping with a ``rows`` key,
    or an object exposing a ``rows`` attribute.
    """
    if result is None:
        return []
    if isinstance(result, Mapping):
        rows = result.get("rows") or []
    elif isinstance(result, (list, tuple)):
        rows = result
    elif hasattr(result, "rows"):
        rows = result.rows or []
    else:
        raise TypeError(f"Unsupported query result type: {type(result).__name__}")
    return [_row_to_dict(row) for row in rows]


class CallableExecutor:
    """Adapter for an external ``execute_sql(query, params)`` callable."""

    def __init__(
        self,
        fn: Callable[[str, Mapping[str, Any] | None], Any],
        dialect: str = "postgresql",
    ):
        self._fn = fn
        self.dialect = dialect

    def execute(self, query: str, params: Mapping[str, Any] | None = None) -> list[Row]:
        increment_db_query()
        return normalize_rows(self._fn(query, params))


def statement_timeout_listener(timeout_seconds: float) -> Callable[[Any, Any], None]:
    """Connect hook setting PostgreSQL's statement_timeout on each new connection."""
    timeout_ms = int(timeout_seconds * 1000)

    def set_statement_timeout(dbapi_conn: Any, connection_record: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute(f"SET statement_timeout = {timeout_ms}")
        cursor.close()

    return set_statement_timeout


class SQLAlchemyExecutor:
    """Executor backed by a SQLAlchemy engine.

    Each statement checks out its own connection and runs in AUTOCOMMIT,
    so every CREATE/ALTER is committed on its own.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.dialect = engine.dialect.name

    @classmethod
    def from_url(
        cls,
        database_url: str,
        statement_timeout_seconds: float | None = 30.0,
        echo: bool = False,
    ) -> SQLAlchemyExecutor:
        """Create an executor with its own engine.

        Args:
            database_url: SQLAlchemy database URL
            statement_timeout_seconds: Server-side timeout per statement (PostgreSQL)
            echo: Whether to echo SQL statements (for debugging)
        """
        engine = create_engine(
            database_url,
            echo=echo,
            isolation_level="AUTOCOMMIT",
            pool_pre_ping=True,
        )

        if engine.dialect.name == "postgresql" and statement_timeout_seconds:
            event.listen(engine, "connect", statement_timeout_listener(statement_timeout_seconds))

        return cls(engine)

    def execute(self, query: str, params: Mapping[str, Any] | None = None) -> list[Row]:
        increment_db_query()
        with self.engine.connect() as conn:
            result = conn.execute(text(query), dict(params or {}))
            if not result.returns_rows:
                return []
            return [dict(row._mapping) for row in result]

    def for_worker(self) -> SQLAlchemyExecutor:
        """The engine's pool is thread-safe, so workers share this executor."""
        return self

    def dispose(self) -> None:
        self.engine.dispose()


class DuckDBExecutor:
    """Executor backed by a DuckDB connection.

    DuckDB has no server-side statement timeout, so a timer interrupts the
    connection when a statement runs longer than ``timeout_seconds``.
    """

    dialect = "duckdb"

    def __init__(
        self,
        conn: duckdb.DuckDBPyConnection,
        timeout_seconds: float | None = 30.0,
    ):
        self._conn = conn
        self.timeout_seconds = timeout_seconds

    def execute(self, query: str, params: Mapping[str, Any] | None = None) -> list[Row]:
        increment_db_query()
        timer: threading.Timer | None = None
        if self.timeout_seconds:
            timer = threading.Timer(self.timeout_seconds, self._conn.interrupt)
            timer.daemon = True
            timer.start()
        try:
            cursor = self._conn.execute(query, dict(params) if params else None)
            if cursor.description is None:
                return []
            columns = [d[0] for d in cursor.description]
            return [dict(zip(columns, row, strict=True)) for row in cursor.fetchall()]
        finally:
            if timer is not None:
                timer.cancel()

    def for_worker(self) -> DuckDBExecutor:
        """Executor on a fresh cursor, safe to use from another thread."""
        return DuckDBExecutor(self._conn.cursor(), self.timeout_seconds)

    def close(self) -> None:
        self._conn.close()
