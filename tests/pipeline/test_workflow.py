"""Tests for the phase-scoped relationship workflow."""

import pytest

from airschema.analysis.relationships.models import RelationshipType
from airschema.core.errors import IntrospectionError, PhaseSequenceError, SessionNotFoundError
from airschema.pipeline.session import AnalysisPhase
from airschema.pipeline.workflow import RelationshipWorkflow


class TestEndToEnd:
    """orders.customer_ids -> customers.id on DuckDB."""

    def test_confidence_analysis(self, duckdb_executor, analysis_config):
        workflow = RelationshipWorkflow(duckdb_executor, analysis_config)

        result = workflow.run_confidence_analysis()

        assert len(result.relationships) == 1
        candidate = result.relationships[0]
        assert candidate.statistics.referential_integrity_percent == 100.0
        assert candidate.statistics.matched_or_valid_count == 3
        assert candidate.confidence == 0.99
        assert candidate.cardinality.max_links_from == 2
        assert candidate.cardinality.max_links_to == 2
        assert candidate.relationship_type == RelationshipType.MANY_TO_MANY

        assert result.statistics.total_tables == 2
        assert result.statistics.potential_relationships == 1
        assert result.confidence_distribution == {"high": 1, "medium": 0, "low": 0}
        assert result.cardinality_distribution["many-to-many"] == 1
        assert workflow.get_session(result.session_id).phase == AnalysisPhase.CONFIDENCE_ANALYZED

    def test_all_phases(self, duckdb_executor, analysis_config, airtable_db):
        workflow = RelationshipWorkflow(duckdb_executor, analysis_config)
        session_id = workflow.run_confidence_analysis().session_id

        detection = workflow.detect_junction_needs(session_id)
        assert [p.junction_table_name for p in detection.junction_table_needs] == [
            "orders_customers_junction"
        ]
        assert detection.one_to_many_relationships == []

        junctions = workflow.create_junction_tables(session_id)
        assert junctions.errors == []
        assert junctions.created_junction_tables[0].row_count == 4
        assert junctions.summary == {"successful": 1, "failed": 0, "total": 1}
        assert airtable_db.execute(
            "SELECT COUNT(*) FROM (SELECT DISTINCT orders_id, customers_id FROM orders_customers_junction)"
        ).fetchone()[0] == 4

        # DuckDB cannot add constraints to existing tables: both sides fail
        # independently and are reported, not raised.
        foreign_keys = workflow.create_foreign_keys(session_id)
        assert foreign_keys.created_foreign_keys == []
        assert [e.constraint_name for e in foreign_keys.errors] == [
            "fk_orders_customers_junction_orders",
            "fk_orders_customers_junction_customers",
        ]

        session = workflow.get_session(session_id)
        assert session.phase == AnalysisPhase.COMPLETED
        assert len(session.relationships) == 1
        assert len(session.created_junction_tables) == 1
        assert len(session.errors) == 2

    def test_junction_tables_not_reanalyzed(self, duckdb_executor, analysis_config):
        first = RelationshipWorkflow(duckdb_executor, analysis_config)
        session_id = first.run_confidence_analysis().session_id
        first.detect_junction_needs(session_id)
        first.create_junction_tables(session_id)

        second = RelationshipWorkflow(duckdb_executor, analysis_config).run_confidence_analysis()

        assert second.statistics.total_tables == 2
        assert {c.from_table for c in second.relationships} == {"orders"}


class TestForeignKeyPhase:
    """Phase 4 against a fake executor that accepts ALTER TABLE."""

    def test_direct_and_junction_keys(self, make_executor):
        executor = make_executor(
            responses=[
                (
                    "information_schema.tables",
                    [
                        {"table_name": "tasks", "row_count": 20},
                        {"table_name": "people", "row_count": 5},
                    ],
                ),
                (
                    "information_schema.columns",
                    [{"column_name": "owner", "data_type": "text", "udt_name": "text"}],
                ),
                (
                    "matched_values",
                    [
                        {
                            "total_rows": 20,
                            "non_null_count": 20,
                            "distinct_count": 5,
                            "target_distinct_count": 5,
                            "source_distinct_values": 5,
                            "matched_values": 5,
                        }
                    ],
                ),
                ("max_links_to", [{"max_links_to": 4}]),
            ]
        )
        workflow = RelationshipWorkflow(executor)
        session_id = workflow.run_confidence_analysis().session_id
        workflow.detect_junction_needs(session_id)
        workflow.create_junction_tables(session_id)

        result = workflow.create_foreign_keys(session_id)

        names = {fk.constraint_name for fk in result.created_foreign_keys}
        assert names == {"fk_tasks_owner_people", "fk_people_owner_tasks"}
        assert result.summary == {"successful": 2, "failed": 0, "direct": 2, "junction": 0}
        assert len(executor.statements_containing("ADD CONSTRAINT")) == 2


class TestPhaseSequencing:
    def test_detect_before_analysis_fails_without_mutation(self, duckdb_executor, analysis_config):
        workflow = RelationshipWorkflow(duckdb_executor, analysis_config)
        session = workflow.open_session()
        before = session.model_dump()

        with pytest.raises(PhaseSequenceError) as exc_info:
            workflow.detect_junction_needs(session.session_id)

        assert exc_info.value.actual == "pending"
        assert exc_info.value.expected == "confidence-analyzed"
        assert workflow.get_session(session.session_id).model_dump() == before

    def test_phases_cannot_repeat(self, duckdb_executor, analysis_config):
        workflow = RelationshipWorkflow(duckdb_executor, analysis_config)
        session_id = workflow.run_confidence_analysis().session_id
        workflow.detect_junction_needs(session_id)

        with pytest.raises(PhaseSequenceError):
            workflow.detect_junction_needs(session_id)
        with pytest.raises(PhaseSequenceError):
            workflow.run_confidence_analysis(session_id)

    def test_cannot_skip_junction_creation(self, duckdb_executor, analysis_config):
        workflow = RelationshipWorkflow(duckdb_executor, analysis_config)
        session_id = workflow.run_confidence_analysis().session_id
        workflow.detect_junction_needs(session_id)

        with pytest.raises(PhaseSequenceError, match="junction-tables-created"):
            workflow.create_foreign_keys(session_id)

    def test_unknown_session(self, duckdb_executor):
        with pytest.raises(SessionNotFoundError):
            RelationshipWorkflow(duckdb_executor).detect_junction_needs("missing")

    def test_introspection_failure_propagates(self, make_executor, analysis_config):
        executor = make_executor(fail_on={"information_schema": "connection refused"})
        workflow = RelationshipWorkflow(executor, analysis_config)
        session = workflow.open_session()

        with pytest.raises(IntrospectionError):
            workflow.run_confidence_analysis(session.session_id)

        assert workflow.get_session(session.session_id).phase == AnalysisPhase.PENDING

    def test_introspection_failure_leaves_no_new_session(self, make_executor, analysis_config):
        executor = make_executor(fail_on={"information_schema": "connection refused"})
        workflow = RelationshipWorkflow(executor, analysis_config)

        with pytest.raises(IntrospectionError):
            workflow.run_confidence_analysis()

        assert workflow.store.list_ids() == []


class TestStatus:
    def test_status_reports_progress(self, duckdb_executor, analysis_config):
        workflow = RelationshipWorkflow(duckdb_executor, analysis_config)
        session_id = workflow.run_confidence_analysis().session_id

        status = workflow.get_status(session_id)

        assert status.phase == "confidence-analyzed"
        assert status.progress["confidence_analyzed"]
        assert not status.progress["junction_detected"]
        assert status.statistics["potential_relationships"] == 1

    def test_cardinality_can_be_skipped(self, duckdb_executor, analysis_config):
        config = analysis_config.model_copy(update={"classify_cardinality": False})

        result = RelationshipWorkflow(duckdb_executor, config).run_confidence_analysis()

        candidate = result.relationships[0]
        assert candidate.cardinality is None
        assert candidate.relationship_type == RelationshipType.MANY_TO_MANY_ARRAY
