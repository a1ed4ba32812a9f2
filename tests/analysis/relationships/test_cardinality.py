"""Tests for exact cardinality classification."""

import pytest

from airschema.analysis.relationships.cardinality import (
    CardinalityClassifier,
    classify_cardinality,
)
from airschema.analysis.relationships.models import (
    FieldKind,
    RelationshipCandidate,
    RelationshipStatistics,
    RelationshipType,
)
from airschema.core.connections import DuckDBExecutor


def _candidate(kind=FieldKind.ARRAY, from_field="customer_ids"):
    return RelationshipCandidate(
        from_table="orders",
        from_field=from_field,
        to_table="customers",
        to_field="id",
        confidence=0.9,
        relationship_type=RelationshipType.MANY_TO_MANY_ARRAY,
        statistics=RelationshipStatistics(field_kind=kind),
    )


class TestClassifyCardinality:
    """relationship type is a pure function of the two maxima."""

    @pytest.mark.parametrize(
        ("max_from", "max_to", "expected"),
        [
            (1, 1, RelationshipType.ONE_TO_ONE),
            (0, 0, RelationshipType.ONE_TO_ONE),
            (3, 1, RelationshipType.MANY_TO_ONE),
            (1, 4, RelationshipType.ONE_TO_MANY),
            (2, 2, RelationshipType.MANY_TO_MANY),
        ],
    )
    def test_labels(self, max_from, max_to, expected):
        assert classify_cardinality(max_from, max_to).relationship_type == expected

    def test_side_descriptions(self):
        result = classify_cardinality(2, 1, "orders", "customers")

        assert result.from_cardinality == "many"
        assert result.to_cardinality == "one"
        assert result.from_side == "One orders record can link to 2 customers records"
        assert result.to_side == "One customers record can be referenced by 1 orders record"


class TestCardinalityClassifier:
    def test_array_candidate_on_duckdb(self, duckdb_executor):
        candidate = _candidate()

        CardinalityClassifier(duckdb_executor).classify(candidate)

        assert candidate.cardinality is not None
        assert candidate.cardinality.max_links_from == 2
        assert candidate.cardinality.max_links_to == 2
        assert candidate.relationship_type == RelationshipType.MANY_TO_MANY

    def test_repeated_element_counts_its_row_once(self, duckdb_conn):
        duckdb_conn.execute("CREATE TABLE orders (id VARCHAR, customer_ids VARCHAR[])")
        duckdb_conn.execute(
            "INSERT INTO orders VALUES ('o1', ['c1', 'c1']), ('o2', ['c2']), ('o3', ['c3'])"
        )
        candidate = _candidate()

        CardinalityClassifier(DuckDBExecutor(duckdb_conn)).classify(candidate)

        assert candidate.cardinality.max_links_to == 1
        assert candidate.cardinality.to_cardinality == "one"
        assert candidate.relationship_type == RelationshipType.MANY_TO_ONE

    def test_scalar_from_side_is_one(self, make_executor):
        executor = make_executor(responses=[("max_links_to", [{"max_links_to": 7}])])
        candidate = _candidate(kind=FieldKind.SCALAR, from_field="customer")

        CardinalityClassifier(executor).classify(candidate)

        assert candidate.cardinality.max_links_from == 1
        assert candidate.relationship_type == RelationshipType.ONE_TO_MANY
        assert executor.statements_containing("max_links_from") == []

    def test_null_maximum_counts_as_zero(self, make_executor):
        executor = make_executor(responses=[("max_links", [{"max_links_from": None, "max_links_to": None}])])
        candidate = _candidate()

        CardinalityClassifier(executor).classify(candidate)

        assert candidate.cardinality.max_links_from == 0
        assert candidate.relationship_type == RelationshipType.ONE_TO_ONE

    def test_failure_keeps_candidate_with_error(self, make_executor):
        executor = make_executor(fail_on={"max_links_to": 'invalid input syntax for type uuid: "x"'})
        candidates = [_candidate(), _candidate(from_field="other_ids")]

        result = CardinalityClassifier(executor).classify_all(candidates)

        assert len(result) == 2
        assert all(c.relationship_type == RelationshipType.ERROR for c in result)
        assert result[0].cardinality is None
        assert result[0].cardinality_error == 'invalid input syntax for type uuid: "x"'
