"""Many-to-many detection and junction table synthesis.

A candidate needs a junction table when it is an array field whose exact
cardinality is many on both sides. When cardinality was not computed for
a candidate, a distinctness heuristic stands in: a low-distinctness
scalar column with many matched values.

Junction tables are created with CREATE TABLE IF NOT EXISTS and filled
with ON CONFLICT DO NOTHING, so running the same plan twice leaves the
table unchanged.
"""

from __future__ import annotations

from airschema.analysis.relationships.dialects import SqlDialect, get_dialect
from airschema.analysis.relationships.models import (
    ConstraintError,
    CreatedJunctionTable,
    FieldKind,
    JunctionTablePlan,
    RelationshipCandidate,
)
from airschema.core.connections import SQLExecutor
from airschema.core.logging import get_logger, increment_db_write, record_phase_error
from airschema.core.models import Result

logger = get_logger(__name__)

HEURISTIC_MAX_DISTINCTNESS = 30.0
HEURISTIC_MIN_MATCHED = 10


def needs_junction_table(candidate: RelationshipCandidate) -> bool:
    """Decide whether a candidate is many-to-many."""
    if candidate.cardinality is not None:
        return (
            candidate.field_kind == FieldKind.ARRAY
            and candidate.cardinality.max_links_from > 1
            and candidate.cardinality.max_links_to > 1
        )

    stats = candidate.statistics
    return (
        stats.distinctness is not None
        and stats.distinctness < HEURISTIC_MAX_DISTINCTNESS
        and stats.matched_or_valid_count > HEURISTIC_MIN_MATCHED
    )


def detect_junction_needs(
    candidates: list[RelationshipCandidate],
    min_confidence: float = 0.7,
) -> tuple[list[JunctionTablePlan], list[RelationshipCandidate]]:
    """Split qualifying candidates into junction plans and direct relationships.

    Args:
        candidates: Confidence-analyzed candidates
        min_confidence: Candidates below this confidence are ignored

    Returns:
        Tuple of (junction table plans, direct relationship candidates)
    """
    plans: list[JunctionTablePlan] = []
    direct: list[RelationshipCandidate] = []

    for candidate in candidates:
        if candidate.confidence < min_confidence:
            continue
        if needs_junction_table(candidate):
            plans.append(JunctionTablePlan.for_candidate(candidate))
        else:
            direct.append(candidate.model_copy(deep=True))

    logger.info(
        "junction_needs_detected",
        junction_tables=len(plans),
        direct_relationships=len(direct),
        min_confidence=min_confidence,
    )
    return plans, direct


class JunctionTableSynthesizer:
    """Creates and populates junction tables, one plan at a time."""

    def __init__(
        self,
        executor: SQLExecutor,
        dialect: SqlDialect | None = None,
        anchor_column: str = "airtable_id",
    ):
        self.executor = executor
        self.dialect = dialect or get_dialect(executor.dialect)
        self.anchor_column = anchor_column

    def create(self, plan: JunctionTablePlan) -> Result[CreatedJunctionTable]:
        """Create and populate one junction table.

        Returns:
            Result containing the created table, or the error text
        """
        try:
            for statement in self.dialect.create_junction_table_sql(
                plan.junction_table_name, plan.from_column, plan.to_column
            ):
                self.executor.execute(statement)
                increment_db_write()

            self.executor.execute(
                self.dialect.populate_junction_table_sql(
                    junction_table=plan.junction_table_name,
                    from_column=plan.from_column,
                    to_column=plan.to_column,
                    source_table=plan.from_table,
                    source_field=plan.from_field,
                    target_table=plan.to_table,
                    source_anchor=self.anchor_column,
                    target_anchor=plan.to_field,
                    kind=plan.field_kind,
                )
            )
            increment_db_write()

            rows = self.executor.execute(self.dialect.count_rows_sql(plan.junction_table_name))
            row_count = int(rows[0]["row_count"]) if rows else 0
        except Exception as e:
            logger.warning(
                "junction_table_failed",
                table=plan.junction_table_name,
                error=str(e),
            )
            record_phase_error(f"{plan.junction_table_name}: {e}")
            return Result.fail(str(e))

        logger.info(
            "junction_table_created",
            table=plan.junction_table_name,
            rows=row_count,
        )
        return Result.ok(
            CreatedJunctionTable(
                table_name=plan.junction_table_name,
                from_table=plan.from_table,
                to_table=plan.to_table,
                from_field=plan.from_field,
                confidence=plan.confidence,
                row_count=row_count,
            )
        )

    def create_all(
        self, plans: list[JunctionTablePlan]
    ) -> tuple[list[CreatedJunctionTable], list[ConstraintError]]:
        """Create every planned junction table; one failure does not stop the rest."""
        created: list[CreatedJunctionTable] = []
        errors: list[ConstraintError] = []

        for plan in plans:
            result = self.create(plan)
            if result.success and result.value is not None:
                created.append(result.value)
            else:
                errors.append(
                    ConstraintError(
                        kind="junction_table",
                        target=plan.junction_table_name,
                        error=result.error or "unknown error",
                    )
                )

        return created, errors
