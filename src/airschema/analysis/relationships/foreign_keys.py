"""Foreign-key constraint planning and application.

Direct candidates get one constraint on the source column. Each created
junction table gets one constraint per side, referencing that side's
anchor column. Every constraint is its own autocommitted statement; a
failure is recorded and the batch continues.
"""

from __future__ import annotations

from airschema.analysis.relationships.dialects import SqlDialect, get_dialect
from airschema.analysis.relationships.models import (
    ConstraintError,
    CreatedJunctionTable,
    ForeignKeyKind,
    ForeignKeyPlan,
    RelationshipCandidate,
)
from airschema.core.connections import SQLExecutor
from airschema.core.logging import get_logger, increment_db_write, record_phase_error
from airschema.core.models import Result

logger = get_logger(__name__)


def plan_direct_foreign_key(candidate: RelationshipCandidate) -> ForeignKeyPlan:
    return ForeignKeyPlan(
        constraint_name=f"fk_{candidate.from_table}_{candidate.from_field}_{candidate.to_table}",
        from_table=candidate.from_table,
        from_field=candidate.from_field,
        to_table=candidate.to_table,
        to_field=candidate.to_field,
        kind=ForeignKeyKind.DIRECT,
        confidence=candidate.confidence,
    )


def plan_junction_foreign_keys(
    junction: CreatedJunctionTable, anchor_column: str
) -> list[ForeignKeyPlan]:
    """One constraint per junction side, in (from side, to side) order."""
    return [
        ForeignKeyPlan(
            constraint_name=f"fk_{junction.table_name}_{side}",
            from_table=junction.table_name,
            from_field=f"{side}_id",
            to_table=side,
            to_field=anchor_column,
            kind=ForeignKeyKind.JUNCTION,
            confidence=junction.confidence,
        )
        for side in (junction.from_table, junction.to_table)
    ]


class ForeignKeyApplier:
    """Adds named foreign-key constraints to the target database."""

    def __init__(self, executor: SQLExecutor, dialect: SqlDialect | None = None):
        self.executor = executor
        self.dialect = dialect or get_dialect(executor.dialect)

    def apply(self, plan: ForeignKeyPlan) -> Result[ForeignKeyPlan]:
        try:
            self.executor.execute(
                self.dialect.add_foreign_key_sql(
                    plan.constraint_name,
                    plan.from_table,
                    plan.from_field,
                    plan.to_table,
                    plan.to_field,
                )
            )
            increment_db_write()
        except Exception as e:
            logger.warning(
                "foreign_key_failed",
                constraint=plan.constraint_name,
                relationship=plan.label,
                error=str(e),
            )
            record_phase_error(f"{plan.constraint_name}: {e}")
            return Result.fail(str(e), value=plan)

        logger.info("foreign_key_created", constraint=plan.constraint_name, kind=plan.kind.value)
        return Result.ok(plan)

    def apply_all(
        self, plans: list[ForeignKeyPlan]
    ) -> tuple[list[ForeignKeyPlan], list[ConstraintError]]:
        """Apply every plan; failures are returned as ConstraintError records."""
        created: list[ForeignKeyPlan] = []
        errors: list[ConstraintError] = []

        for plan in plans:
            result = self.apply(plan)
            if result.success:
                created.append(plan)
            else:
                errors.append(
                    ConstraintError(
                        kind="foreign_key",
                        target=plan.label,
                        error=result.error or "unknown error",
                        constraint_name=plan.constraint_name,
                    )
                )

        return created, errors
