"""Tests for schema introspection."""

import pytest

from airschema.analysis.relationships.config import AnalysisConfig
from airschema.analysis.relationships.introspection import SchemaIntrospector
from airschema.core.errors import IntrospectionError


class TestSchemaIntrospectorDuckDB:
    """Introspection of a live DuckDB database."""

    def test_lists_imported_tables(self, duckdb_executor, analysis_config):
        introspector = SchemaIntrospector(duckdb_executor, analysis_config)

        names = {name for name, _ in introspector.list_tables()}

        assert names == {"customers", "orders"}

    def test_anchor_and_derived_columns_skipped(self, duckdb_executor, analysis_config):
        introspector = SchemaIntrospector(duckdb_executor, analysis_config)

        orders = introspector.describe_table("orders")

        assert [c.column for c in orders.columns] == ["customer_ids"]
        assert set(orders.excluded_columns) == {"Total (Rollup)", "calculated_total"}

    def test_array_columns_classified(self, duckdb_executor, analysis_config):
        introspector = SchemaIntrospector(duckdb_executor, analysis_config)

        tables = {t.table_name: t for t in introspector.introspect()}

        assert tables["orders"].columns[0].is_array
        assert tables["orders"].columns[0].sql_type == "VARCHAR[]"
        assert not tables["customers"].columns[0].is_array

    def test_junction_tables_excluded(self, duckdb_executor, analysis_config, airtable_db):
        airtable_db.execute("CREATE TABLE orders_customers_junction (orders_id VARCHAR)")
        airtable_db.execute("CREATE TABLE pg_internal_notes (note VARCHAR)")

        names = {name for name, _ in SchemaIntrospector(duckdb_executor, analysis_config).list_tables()}

        assert names == {"customers", "orders"}

    def test_explicit_array_columns_override_catalog(self, duckdb_executor, analysis_config):
        introspector = SchemaIntrospector(
            duckdb_executor, analysis_config, array_columns={"customers": {"name"}}
        )

        customers = introspector.describe_table("customers")

        assert customers.columns[0].is_array


class TestSchemaIntrospectorFailures:
    def test_catalog_failure_raises(self, make_executor):
        executor = make_executor(fail_on={"information_schema.tables": "permission denied"})

        with pytest.raises(IntrospectionError, match="permission denied"):
            SchemaIntrospector(executor).introspect()

    def test_column_failure_names_table(self, make_executor):
        executor = make_executor(
            responses=[("information_schema.tables", [{"table_name": "orders", "row_count": 3}])],
            fail_on={"information_schema.columns": "connection reset"},
        )

        with pytest.raises(IntrospectionError) as exc_info:
            SchemaIntrospector(executor).introspect()

        assert exc_info.value.table == "orders"

    def test_postgres_schema_parameter(self, make_executor):
        executor = make_executor()

        SchemaIntrospector(executor, AnalysisConfig(db_schema="airtable")).list_tables()

        assert executor.params[0] == {"schema": "airtable"}

    def test_postgres_array_by_udt_name(self, make_executor):
        executor = make_executor(
            responses=[
                (
                    "information_schema.columns",
                    [
                        {"column_name": "airtable_id", "data_type": "text", "udt_name": "text"},
                        {"column_name": "Customers", "data_type": "ARRAY", "udt_name": "_text"},
                        {"column_name": "Owner", "data_type": "text", "udt_name": "text"},
                    ],
                )
            ]
        )

        table = SchemaIntrospector(executor).describe_table("orders", 10)

        assert [(c.column, c.is_array) for c in table.columns] == [
            ("Customers", True),
            ("Owner", False),
        ]
        assert table.row_count == 10
