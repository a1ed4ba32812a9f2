"""Schema introspection of the imported tables.

Enumerates tables and their columns, classifies columns as array-valued
or scalar, and drops the anchor column and derived fields from
candidate generation.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from airschema.analysis.relationships.config import AnalysisConfig
from airschema.analysis.relationships.dialects import SqlDialect, get_dialect
from airschema.analysis.relationships.models import ColumnDescriptor, TableInfo
from airschema.core.connections import SQLExecutor
from airschema.core.errors import IntrospectionError
from airschema.core.logging import get_logger, record_columns_processed, record_tables_processed

logger = get_logger(__name__)


class SchemaIntrospector:
    """Reads candidate tables and columns from the live target database.

    Args:
        executor: Query executor for the target database
        config: Analysis configuration (anchor column, schema, exclusions)
        dialect: SQL dialect; defaults to the executor's
        column_filter: Predicate returning True for derived columns.
            Defaults to the configured DerivedFieldFilter.
        array_columns: Optional explicit {table: {column, ...}} of array
            columns, overriding catalog-based classification for those tables
    """

    def __init__(
        self,
        executor: SQLExecutor,
        config: AnalysisConfig | None = None,
        dialect: SqlDialect | None = None,
        column_filter: Callable[[str], bool] | None = None,
        array_columns: Mapping[str, set[str]] | None = None,
    ):
        self.executor = executor
        self.config = config or AnalysisConfig()
        self.dialect = dialect or get_dialect(executor.dialect)
        self.column_filter = column_filter or self.config.column_filter()
        self.array_columns = array_columns

    @property
    def schema(self) -> str:
        return self.config.db_schema or self.dialect.default_schema

    def list_tables(self) -> list[tuple[str, int]]:
        """Return (table_name, row_count) ordered by row count descending.

        Raises:
            IntrospectionError: If the catalog cannot be read
        """
        try:
            rows = self.executor.execute(
                self.dialect.list_tables_sql(), {"schema": self.schema}
            )
        except Exception as e:
            raise IntrospectionError(str(e)) from e

        tables = [
            (str(row["table_name"]), int(row["row_count"] or 0))
            for row in rows
            if not self.config.is_excluded_table(str(row["table_name"]))
        ]
        logger.debug("tables_listed", schema=self.schema, count=len(tables))
        return tables

    def describe_table(self, table_name: str, row_count: int = 0) -> TableInfo:
        """Return candidate columns of one table.

        Raises:
            IntrospectionError: If the columns cannot be read
        """
        try:
            rows = self.executor.execute(
                self.dialect.list_columns_sql(),
                {"schema": self.schema, "table": table_name},
            )
        except Exception as e:
            raise IntrospectionError(str(e), table=table_name) from e

        columns: list[ColumnDescriptor] = []
        excluded: list[str] = []
        for row in rows:
            name = str(row["column_name"])
            if name == self.config.anchor_column:
                continue
            if self.column_filter(name):
                excluded.append(name)
                continue

            data_type = str(row["data_type"])
            udt_name = row.get("udt_name")
            if self.array_columns is not None and table_name in self.array_columns:
                is_array = name in self.array_columns[table_name]
            else:
                is_array = self.dialect.is_array_type(data_type, udt_name)

            columns.append(
                ColumnDescriptor(
                    table=table_name,
                    column=name,
                    sql_type=self.dialect.sql_type(data_type, udt_name),
                    is_array=is_array,
                )
            )

        if excluded:
            logger.debug("derived_columns_excluded", table=table_name, columns=excluded)

        return TableInfo(
            table_name=table_name,
            row_count=row_count,
            columns=columns,
            excluded_columns=excluded,
        )

    def introspect(self) -> list[TableInfo]:
        """Enumerate every candidate table with its candidate columns.

        Raises:
            IntrospectionError: If tables or columns cannot be enumerated
        """
        tables = [self.describe_table(name, count) for name, count in self.list_tables()]

        record_tables_processed(len(tables))
        record_columns_processed(sum(len(t.columns) for t in tables))
        logger.info(
            "schema_introspected",
            tables=len(tables),
            columns=sum(len(t.columns) for t in tables),
            excluded_columns=sum(len(t.excluded_columns) for t in tables),
        )
        return tables
