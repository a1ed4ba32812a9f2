"""SQL text for relationship inference.

All statements the engine issues are built here. Two dialects are
supported: PostgreSQL (the import target) and DuckDB (embedded targets
and tests). They differ in parameter placeholders, array functions,
catalog queries and how the junction table id is generated.

Identifiers are always double-quoted; values that come from the catalog
are passed as bound parameters.
"""

from __future__ import annotations

from airschema.analysis.relationships.models import FieldKind


def quote_ident(name: str) -> str:
    """Quote an identifier, doubling embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class SqlDialect:
    """Base dialect. Subclasses provide the flavour-specific fragments."""

    name: str = "generic"
    default_schema: str = "public"

    def param(self, name: str) -> str:
        """Placeholder for a named parameter."""
        raise NotImplementedError

    def is_array_type(self, data_type: str, udt_name: str | None) -> bool:
        raise NotImplementedError

    def sql_type(self, data_type: str, udt_name: str | None) -> str:
        return data_type

    def array_length(self, expr: str) -> str:
        raise NotImplementedError

    def array_references_table(self, array_expr: str, table: str, column: str) -> str:
        """Predicate: at least one array element exists in table.column."""
        raise NotImplementedError

    def array_contains(self, array_expr: str, value_expr: str) -> str:
        """Predicate: value_expr is an element of array_expr."""
        raise NotImplementedError

    def array_distinct(self, expr: str) -> str:
        """The array with repeated elements removed."""
        raise NotImplementedError

    def list_tables_sql(self) -> str:
        raise NotImplementedError

    def list_columns_sql(self) -> str:
        raise NotImplementedError

    def create_junction_table_sql(
        self, table_name: str, from_column: str, to_column: str
    ) -> list[str]:
        raise NotImplementedError

    # Shared statements

    def array_statistics_sql(
        self, source_table: str, source_column: str, target_table: str, anchor_column: str
    ) -> str:
        src = quote_ident(source_table)
        col = quote_ident(source_column)
        tgt = quote_ident(target_table)
        anchor = quote_ident(anchor_column)
        references = self.array_references_table(f"s.{col}", tgt, anchor)
        return f"""
            WITH source_analysis AS (
                SELECT
                    COUNT(*) AS total_rows,
                    COUNT({col}) AS non_null_count
                FROM {src}
            ),
            element_analysis AS (
                SELECT COALESCE(SUM({self.array_length(col)}), 0) AS total_array_elements
                FROM {src}
                WHERE {col} IS NOT NULL
            ),
            target_analysis AS (
                SELECT COUNT(DISTINCT {anchor}) AS target_distinct_count
                FROM {tgt}
            ),
            match_analysis AS (
                SELECT COUNT(*) AS rows_with_valid_references
                FROM {src} s
                WHERE s.{col} IS NOT NULL AND {references}
            )
            SELECT
                sa.total_rows,
                sa.non_null_count,
                ea.total_array_elements,
                ta.target_distinct_count,
                ma.rows_with_valid_references
            FROM source_analysis sa, element_analysis ea, target_analysis ta, match_analysis ma
        """

    def scalar_statistics_sql(
        self, source_table: str, source_column: str, target_table: str, anchor_column: str
    ) -> str:
        src = quote_ident(source_table)
        col = quote_ident(source_column)
        tgt = quote_ident(target_table)
        anchor = quote_ident(anchor_column)
        return f"""
            WITH source_analysis AS (
                SELECT
                    COUNT(*) AS total_rows,
                    COUNT({col}) AS non_null_count,
                    COUNT(DISTINCT {col}) AS distinct_count
                FROM {src}
            ),
            target_analysis AS (
                SELECT COUNT(DISTINCT {anchor}) AS target_distinct_count
                FROM {tgt}
            ),
            match_analysis AS (
                SELECT
                    COUNT(DISTINCT s.{col}) AS source_distinct_values,
                    COUNT(DISTINCT t.{anchor}) AS matched_values
                FROM {src} s
                LEFT JOIN {tgt} t ON s.{col} = t.{anchor}
                WHERE s.{col} IS NOT NULL
            )
            SELECT
                sa.total_rows,
                sa.non_null_count,
                sa.distinct_count,
                ta.target_distinct_count,
                ma.source_distinct_values,
                ma.matched_values
            FROM source_analysis sa, target_analysis ta, match_analysis ma
        """

    def max_links_from_sql(self, source_table: str, source_column: str) -> str:
        col = quote_ident(source_column)
        return f"""
            SELECT MAX({self.array_length(col)}) AS max_links_from
            FROM {quote_ident(source_table)}
            WHERE {col} IS NOT NULL
        """

    def max_links_to_sql(self, source_table: str, source_column: str, kind: FieldKind) -> str:
        src = quote_ident(source_table)
        col = quote_ident(source_column)
        if kind == FieldKind.ARRAY:
            # One row per (source row, distinct element) so a repeated
            # element counts its row once.
            return f"""
                SELECT MAX(reference_count) AS max_links_to
                FROM (
                    SELECT COUNT(*) AS reference_count
                    FROM (
                        SELECT UNNEST({self.array_distinct(col)}) AS referenced_id
                        FROM {src}
                        WHERE {col} IS NOT NULL
                    ) AS elements
                    GROUP BY referenced_id
                ) AS counts
            """
        return f"""
            SELECT MAX(reference_count) AS max_links_to
            FROM (
                SELECT COUNT(*) AS reference_count
                FROM {src}
                WHERE {col} IS NOT NULL
                GROUP BY {col}
            ) AS counts
        """

    def populate_junction_table_sql(
        self,
        junction_table: str,
        from_column: str,
        to_column: str,
        source_table: str,
        source_field: str,
        target_table: str,
        source_anchor: str,
        target_anchor: str,
        kind: FieldKind,
    ) -> str:
        fc = quote_ident(from_column)
        tc = quote_ident(to_column)
        field = quote_ident(source_field)
        s_anchor = quote_ident(source_anchor)
        t_anchor = quote_ident(target_anchor)
        if kind == FieldKind.ARRAY:
            membership = self.array_contains(f"s.{field}", f"t.{t_anchor}")
        else:
            membership = f"s.{field} = t.{t_anchor}"
        return f"""
            INSERT INTO {quote_ident(junction_table)} ({fc}, {tc})
            SELECT DISTINCT
                CAST(s.{s_anchor} AS TEXT),
                CAST(t.{t_anchor} AS TEXT)
            FROM {quote_ident(source_table)} s
            JOIN {quote_ident(target_table)} t ON {membership}
            WHERE s.{field} IS NOT NULL AND s.{s_anchor} IS NOT NULL
            ON CONFLICT ({fc}, {tc}) DO NOTHING
        """

    def count_rows_sql(self, table_name: str) -> str:
        return f"SELECT COUNT(*) AS row_count FROM {quote_ident(table_name)}"

    def add_foreign_key_sql(
        self,
        constraint_name: str,
        from_table: str,
        from_field: str,
        to_table: str,
        to_field: str,
    ) -> str:
        return (
            f"ALTER TABLE {quote_ident(from_table)} "
            f"ADD CONSTRAINT {quote_ident(constraint_name)} "
            f"FOREIGN KEY ({quote_ident(from_field)}) "
            f"REFERENCES {quote_ident(to_table)} ({quote_ident(to_field)})"
        )


class PostgresDialect(SqlDialect):
    name = "postgresql"
    default_schema = "public"

    def param(self, name: str) -> str:
        return f":{name}"

    def is_array_type(self, data_type: str, udt_name: str | None) -> bool:
        return data_type.upper() == "ARRAY" or bool(udt_name and udt_name.startswith("_"))

    def sql_type(self, data_type: str, udt_name: str | None) -> str:
        if self.is_array_type(data_type, udt_name) and udt_name:
            return f"{udt_name.lstrip('_').upper()}[]"
        return data_type

    def array_length(self, expr: str) -> str:
        return f"cardinality({expr})"

    def array_references_table(self, array_expr: str, table: str, column: str) -> str:
        return (
            f"EXISTS (SELECT 1 FROM unnest({array_expr}) AS elem "
            f"WHERE elem IN (SELECT {column} FROM {table}))"
        )

    def array_contains(self, array_expr: str, value_expr: str) -> str:
        return f"{value_expr} = ANY({array_expr})"

    def array_distinct(self, expr: str) -> str:
        return f"ARRAY(SELECT DISTINCT elem FROM unnest({expr}) AS elem)"

    def list_tables_sql(self) -> str:
        return f"""
            SELECT
                t.table_name AS table_name,
                COALESCE(s.n_live_tup, 0) AS row_count
            FROM information_schema.tables t
            LEFT JOIN pg_stat_user_tables s
                ON s.relname = t.table_name AND s.schemaname = t.table_schema
            WHERE t.table_schema = {self.param("schema")}
              AND t.table_type = 'BASE TABLE'
            ORDER BY COALESCE(s.n_live_tup, 0) DESC, t.table_name
        """

    def list_columns_sql(self) -> str:
        return f"""
            SELECT column_name, data_type, udt_name
            FROM information_schema.columns
            WHERE table_schema = {self.param("schema")}
              AND table_name = {self.param("table")}
            ORDER BY ordinal_position
        """

    def create_junction_table_sql(
        self, table_name: str, from_column: str, to_column: str
    ) -> list[str]:
        fc = quote_ident(from_column)
        tc = quote_ident(to_column)
        return [
            f"""
            CREATE TABLE IF NOT EXISTS {quote_ident(table_name)} (
                id SERIAL PRIMARY KEY,
                {fc} TEXT NOT NULL,
                {tc} TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE ({fc}, {tc})
            )
            """
        ]


class DuckDBDialect(SqlDialect):
    name = "duckdb"
    default_schema = "main"

    def param(self, name: str) -> str:
        return f"${name}"

    def is_array_type(self, data_type: str, udt_name: str | None) -> bool:
        return data_type.endswith("[]")

    def array_length(self, expr: str) -> str:
        return f"len({expr})"

    def array_references_table(self, array_expr: str, table: str, column: str) -> str:
        return f"list_has_any({array_expr}, (SELECT list({column}) FROM {table}))"

    def array_contains(self, array_expr: str, value_expr: str) -> str:
        return f"list_contains({array_expr}, {value_expr})"

    def array_distinct(self, expr: str) -> str:
        return f"list_distinct({expr})"

    def list_tables_sql(self) -> str:
        return f"""
            SELECT table_name, estimated_size AS row_count
            FROM duckdb_tables()
            WHERE schema_name = {self.param("schema")}
              AND NOT internal
              AND NOT temporary
            ORDER BY estimated_size DESC, table_name
        """

    def list_columns_sql(self) -> str:
        return f"""
            SELECT column_name, data_type, data_type AS udt_name
            FROM information_schema.columns
            WHERE table_schema = {self.param("schema")}
              AND table_name = {self.param("table")}
            ORDER BY ordinal_position
        """

    def create_junction_table_sql(
        self, table_name: str, from_column: str, to_column: str
    ) -> list[str]:
        sequence = f"{table_name}_id_seq"
        fc = quote_ident(from_column)
        tc = quote_ident(to_column)
        return [
            f"CREATE SEQUENCE IF NOT EXISTS {quote_ident(sequence)}",
            f"""
            CREATE TABLE IF NOT EXISTS {quote_ident(table_name)} (
                id BIGINT PRIMARY KEY DEFAULT nextval({quote_literal(sequence)}),
                {fc} TEXT NOT NULL,
                {tc} TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE ({fc}, {tc})
            )
            """,
        ]


_DIALECTS: dict[str, type[SqlDialect]] = {
    "postgresql": PostgresDialect,
    "postgres": PostgresDialect,
    "duckdb": DuckDBDialect,
}


def get_dialect(name: str) -> SqlDialect:
    """Resolve a dialect by name (as reported by SQLAlchemy or an executor)."""
    try:
        return _DIALECTS[name.lower()]()
    except KeyError:
        raise ValueError(f"Unsupported SQL dialect: {name}") from None
