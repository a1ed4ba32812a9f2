"""Exact cardinality classification for retained candidates.

maxLinksFrom: how many target rows one source row links to (array
length; always 1 for scalar columns).
maxLinksTo: how many source rows reference the same target value.

A side is "many" when its maximum exceeds 1. A candidate whose counts
cannot be computed keeps its place in the list with type "error" and
the driver message, so an operator can inspect it.
"""

from __future__ import annotations

from typing import Any

from airschema.analysis.relationships.dialects import SqlDialect, get_dialect
from airschema.analysis.relationships.models import (
    CardinalityResult,
    FieldKind,
    RelationshipCandidate,
    RelationshipType,
)
from airschema.core.connections import SQLExecutor
from airschema.core.logging import get_logger, record_phase_error

logger = get_logger(__name__)


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def classify_cardinality(
    max_links_from: int,
    max_links_to: int,
    from_table: str = "source",
    to_table: str = "target",
) -> CardinalityResult:
    """Classify a relationship from its maximum linkage counts."""
    return CardinalityResult(
        max_links_from=max_links_from,
        max_links_to=max_links_to,
        from_cardinality="many" if max_links_from > 1 else "one",
        to_cardinality="many" if max_links_to > 1 else "one",
        from_side=(
            f"One {from_table} record can link to {max_links_from} "
            f"{to_table} record{_plural(max_links_from)}"
        ),
        to_side=(
            f"One {to_table} record can be referenced by {max_links_to} "
            f"{from_table} record{_plural(max_links_to)}"
        ),
    )


def _first_value(rows: list[dict[str, Any]], key: str) -> int:
    if not rows or rows[0].get(key) is None:
        return 0
    return int(rows[0][key])


class CardinalityClassifier:
    """Computes exact cardinality, one candidate at a time."""

    def __init__(self, executor: SQLExecutor, dialect: SqlDialect | None = None):
        self.executor = executor
        self.dialect = dialect or get_dialect(executor.dialect)

    def measure(self, candidate: RelationshipCandidate) -> CardinalityResult:
        """Query the linkage counts for a candidate. Raises on SQL failure."""
        if candidate.field_kind == FieldKind.ARRAY:
            max_from = _first_value(
                self.executor.execute(
                    self.dialect.max_links_from_sql(candidate.from_table, candidate.from_field)
                ),
                "max_links_from",
            )
        else:
            max_from = 1

        max_to = _first_value(
            self.executor.execute(
                self.dialect.max_links_to_sql(
                    candidate.from_table, candidate.from_field, candidate.field_kind
                )
            ),
            "max_links_to",
        )
        return classify_cardinality(max_from, max_to, candidate.from_table, candidate.to_table)

    def classify(self, candidate: RelationshipCandidate) -> RelationshipCandidate:
        """Refine a candidate in place with its exact cardinality."""
        try:
            result = self.measure(candidate)
        except Exception as e:
            logger.warning(
                "cardinality_analysis_failed",
                relationship=candidate.label,
                error=str(e),
            )
            record_phase_error(f"{candidate.label}: {e}")
            candidate.relationship_type = RelationshipType.ERROR
            candidate.cardinality = None
            candidate.cardinality_error = str(e)
            return candidate

        candidate.cardinality = result
        candidate.cardinality_error = None
        candidate.relationship_type = result.relationship_type
        logger.debug(
            "cardinality_classified",
            relationship=candidate.label,
            relationship_type=result.relationship_type.value,
            max_links_from=result.max_links_from,
            max_links_to=result.max_links_to,
        )
        return candidate

    def classify_all(self, candidates: list[RelationshipCandidate]) -> list[RelationshipCandidate]:
        """Classify every candidate; failures are kept with type "error"."""
        for candidate in candidates:
            self.classify(candidate)

        errors = sum(1 for c in candidates if c.relationship_type == RelationshipType.ERROR)
        logger.info("cardinality_classified_all", candidates=len(candidates), errors=errors)
        return candidates
