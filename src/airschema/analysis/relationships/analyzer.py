"""Pairwise relationship scoring.

For every ordered pair of distinct tables and every candidate column of
the source table, measures how well the column's values resolve against
the target table's anchor column and turns that into a confidence.

A failing statement (type mismatch, timeout, ...) only affects its own
candidate: it is scored 0 with type "unknown" and dropped by the
confidence filter.
"""

from __future__ import annotations

import contextvars
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from airschema.analysis.relationships.config import AnalysisConfig
from airschema.analysis.relationships.dialects import SqlDialect, get_dialect
from airschema.analysis.relationships.models import (
    ColumnDescriptor,
    FieldKind,
    RelationshipCandidate,
    RelationshipStatistics,
    RelationshipType,
    TableInfo,
)
from airschema.analysis.relationships.scoring import (
    compute_confidence,
    percent,
    provisional_relationship_type,
)
from airschema.core.connections import SQLExecutor
from airschema.core.logging import get_logger, record_operation_timing, record_phase_error

logger = get_logger(__name__)

ScoringTask = tuple[ColumnDescriptor, str]


def _as_int(value: Any) -> int:
    return int(value) if value is not None else 0


def candidate_sort_key(candidate: RelationshipCandidate) -> tuple[float, str, str, str]:
    """Confidence descending, then a stable identity order."""
    return (-candidate.confidence, candidate.from_table, candidate.from_field, candidate.to_table)


class ColumnRelationshipAnalyzer:
    """Scores source columns against target anchor columns.

    With max_workers > 1 the pairwise statements run on a thread pool;
    each worker thread uses its own executor (``for_worker()`` when the
    executor provides it). Worker executors are closed when the
    pool finishes. Output does not depend on completion order.
    """

    def __init__(
        self,
        executor: SQLExecutor,
        config: AnalysisConfig | None = None,
        dialect: SqlDialect | None = None,
    ):
        self.executor = executor
        self.config = config or AnalysisConfig()
        self.dialect = dialect or get_dialect(executor.dialect)
        self._local = threading.local()
        self._lock = threading.Lock()
        self._worker_executors: list[SQLExecutor] = []
        self.failures = 0

    def analyze(self, tables: list[TableInfo]) -> list[RelationshipCandidate]:
        """Score all (source column, target table) pairs.

        Returns:
            Candidates with confidence above config.min_confidence,
            sorted by confidence descending
        """
        tasks: list[ScoringTask] = [
            (column, target.table_name)
            for source in tables
            for target in tables
            if source.table_name != target.table_name
            for column in source.columns
        ]

        logger.info(
            "pairwise_scoring_started",
            tables=len(tables),
            pairs=len(tables) * (len(tables) - 1),
            column_checks=len(tasks),
            workers=self.config.max_workers,
        )
        start = time.time()

        if self.config.max_workers > 1 and len(tasks) > 1:
            scored = self._score_parallel(tasks)
        else:
            scored = [self.score_column(self.executor, column, target) for column, target in tasks]

        self.failures = sum(1 for c in scored if c.relationship_type == RelationshipType.UNKNOWN)
        retained = [c for c in scored if c.confidence > self.config.min_confidence]
        retained.sort(key=candidate_sort_key)

        record_operation_timing("pairwise_scoring", time.time() - start)
        logger.info(
            "pairwise_scoring_completed",
            scored=len(scored),
            retained=len(retained),
            failures=self.failures,
        )
        return retained

    def _score_parallel(self, tasks: list[ScoringTask]) -> list[RelationshipCandidate]:
        self._local = threading.local()
        try:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                futures = [
                    pool.submit(contextvars.copy_context().run, self._score_in_worker, column, target)
                    for column, target in tasks
                ]
                return [future.result() for future in futures]
        finally:
            for executor in self._worker_executors:
                close = getattr(executor, "close", None)
                if callable(close):
                    close()
            self._worker_executors = []

    def _score_in_worker(self, column: ColumnDescriptor, target_table: str) -> RelationshipCandidate:
        executor = getattr(self._local, "executor", None)
        if executor is None:
            for_worker = getattr(self.executor, "for_worker", None)
            executor = for_worker() if callable(for_worker) else self.executor
            self._local.executor = executor
            if executor is not self.executor:
                with self._lock:
                    self._worker_executors.append(executor)
        return self.score_column(executor, column, target_table)

    def score_column(
        self,
        executor: SQLExecutor,
        column: ColumnDescriptor,
        target_table: str,
    ) -> RelationshipCandidate:
        """Score one source column against one target table's anchor column."""
        anchor = self.config.anchor_column
        try:
            if column.is_array:
                return self._score_array(executor, column, target_table, anchor)
            return self._score_scalar(executor, column, target_table, anchor)
        except Exception as e:
            logger.warning(
                "confidence_analysis_failed",
                source=f"{column.table}.{column.column}",
                target=f"{target_table}.{anchor}",
                error=str(e),
            )
            record_phase_error(f"{column.table}.{column.column} -> {target_table}: {e}")
            return RelationshipCandidate(
                from_table=column.table,
                from_field=column.column,
                to_table=target_table,
                to_field=anchor,
                confidence=0.0,
                relationship_type=RelationshipType.UNKNOWN,
                statistics=RelationshipStatistics(field_kind=column.field_kind, error=str(e)),
                reasoning=f"Analysis failed: {e}",
            )

    def _score_array(
        self,
        executor: SQLExecutor,
        column: ColumnDescriptor,
        target_table: str,
        anchor: str,
    ) -> RelationshipCandidate:
        rows = executor.execute(
            self.dialect.array_statistics_sql(column.table, column.column, target_table, anchor)
        )
        stats = rows[0] if rows else {}

        total_rows = _as_int(stats.get("total_rows"))
        non_null = _as_int(stats.get("non_null_count"))
        valid_refs = _as_int(stats.get("rows_with_valid_references"))
        integrity = percent(valid_refs, non_null)

        confidence = compute_confidence(FieldKind.ARRAY, integrity, valid_refs, non_null, total_rows)

        return RelationshipCandidate(
            from_table=column.table,
            from_field=column.column,
            to_table=target_table,
            to_field=anchor,
            confidence=confidence,
            relationship_type=provisional_relationship_type(FieldKind.ARRAY, None),
            statistics=RelationshipStatistics(
                field_kind=FieldKind.ARRAY,
                referential_integrity_percent=integrity,
                total_rows=total_rows,
                non_null_count=non_null,
                matched_or_valid_count=valid_refs,
                completeness=round(non_null / total_rows, 2) if total_rows else 0.0,
                target_distinct_count=_as_int(stats.get("target_distinct_count")),
                total_array_elements=_as_int(stats.get("total_array_elements")),
            ),
            reasoning=(
                f"Array field: {integrity}% referential integrity "
                f"({valid_refs}/{non_null} rows have valid references)"
            ),
        )

    def _score_scalar(
        self,
        executor: SQLExecutor,
        column: ColumnDescriptor,
        target_table: str,
        anchor: str,
    ) -> RelationshipCandidate:
        rows = executor.execute(
            self.dialect.scalar_statistics_sql(column.table, column.column, target_table, anchor)
        )
        stats = rows[0] if rows else {}

        total_rows = _as_int(stats.get("total_rows"))
        non_null = _as_int(stats.get("non_null_count"))
        distinct = _as_int(stats.get("distinct_count"))
        source_distinct = _as_int(stats.get("source_distinct_values"))
        matched = _as_int(stats.get("matched_values"))
        integrity = percent(matched, source_distinct)
        distinctness = percent(distinct, non_null)

        confidence = compute_confidence(FieldKind.SCALAR, integrity, matched, non_null, total_rows)

        return RelationshipCandidate(
            from_table=column.table,
            from_field=column.column,
            to_table=target_table,
            to_field=anchor,
            confidence=confidence,
            relationship_type=provisional_relationship_type(FieldKind.SCALAR, distinctness),
            statistics=RelationshipStatistics(
                field_kind=FieldKind.SCALAR,
                referential_integrity_percent=integrity,
                total_rows=total_rows,
                non_null_count=non_null,
                matched_or_valid_count=matched,
                completeness=round(non_null / total_rows, 2) if total_rows else 0.0,
                target_distinct_count=_as_int(stats.get("target_distinct_count")),
                distinct_count=distinct,
                source_distinct_values=source_distinct,
                distinctness=distinctness,
            ),
            reasoning=(
                f"{integrity}% referential integrity "
                f"({matched}/{source_distinct} values match)"
            ),
        )
