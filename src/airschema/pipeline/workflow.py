"""Relationship inference workflow.

Exposes the four phase-scoped operations over a SessionStore:

1. run_confidence_analysis  -> candidates, statistics, distributions
2. detect_junction_needs    -> junction plans, direct relationships
3. create_junction_tables   -> created junction tables, errors
4. create_foreign_keys      -> created foreign keys, errors

Only IntrospectionError, PhaseSequenceError and SessionNotFoundError
propagate. Everything that fails per item is returned as data.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from airschema.analysis.relationships.analyzer import ColumnRelationshipAnalyzer
from airschema.analysis.relationships.cardinality import CardinalityClassifier
from airschema.analysis.relationships.config import AnalysisConfig
from airschema.analysis.relationships.dialects import SqlDialect, get_dialect
from airschema.analysis.relationships.foreign_keys import (
    ForeignKeyApplier,
    plan_direct_foreign_key,
    plan_junction_foreign_keys,
)
from airschema.analysis.relationships.introspection import SchemaIntrospector
from airschema.analysis.relationships.junctions import (
    JunctionTableSynthesizer,
    detect_junction_needs,
)
from airschema.analysis.relationships.models import ForeignKeyKind
from airschema.core.connections import SQLExecutor
from airschema.core.logging import (
    end_phase_metrics,
    get_logger,
    log_context,
    start_phase_metrics,
)
from airschema.pipeline.models import (
    AnalysisStatistics,
    ConfidenceAnalysisResult,
    ForeignKeyCreationResult,
    JunctionCreationResult,
    JunctionDetectionResult,
    SessionStatus,
)
from airschema.pipeline.session import (
    AnalysisPhase,
    AnalysisSession,
    InMemorySessionStore,
    SessionStore,
)

logger = get_logger(__name__)


class RelationshipWorkflow:
    """Sequences the relationship engine through the session phases.

    Args:
        executor: Query executor for the target database
        config: Engine configuration
        store: Session store; defaults to an in-memory store
        dialect: SQL dialect; defaults to the executor's
        column_filter: Optional derived-field predicate override
    """

    def __init__(
        self,
        executor: SQLExecutor,
        config: AnalysisConfig | None = None,
        store: SessionStore | None = None,
        dialect: SqlDialect | None = None,
        column_filter: Callable[[str], bool] | None = None,
    ):
        self.executor = executor
        self.config = config or AnalysisConfig()
        self.store: SessionStore = store if store is not None else InMemorySessionStore()
        self.dialect = dialect or get_dialect(executor.dialect)
        self.column_filter = column_filter

    @contextmanager
    def _phase(self, session: AnalysisSession, phase: AnalysisPhase) -> Iterator[None]:
        with log_context(session_id=session.session_id, phase=phase.value):
            start_phase_metrics(phase.value)
            logger.info("phase_started")
            try:
                yield
            finally:
                metrics = end_phase_metrics()
                if metrics is not None:
                    logger.info("phase_completed", **metrics.to_dict())

    def open_session(self) -> AnalysisSession:
        """Create and store a session in the pending phase."""
        session = AnalysisSession()
        self.store.put(session)
        logger.debug("session_opened", session_id=session.session_id)
        return session

    def get_session(self, session_id: str) -> AnalysisSession:
        return self.store.get(session_id)

    def run_confidence_analysis(self, session_id: str | None = None) -> ConfidenceAnalysisResult:
        """Phase 1: introspect, score all pairs, classify cardinality.

        Opens a new session when no session_id is given; it is stored only
        once the phase has completed.

        Raises:
            IntrospectionError: If the schema cannot be enumerated
            PhaseSequenceError: If the session is not pending
        """
        session = self.store.get(session_id) if session_id else AnalysisSession()
        session.require_phase(AnalysisPhase.PENDING)

        with self._phase(session, AnalysisPhase.CONFIDENCE_ANALYZED):
            introspector = SchemaIntrospector(
                self.executor, self.config, self.dialect, column_filter=self.column_filter
            )
            tables = introspector.introspect()

            analyzer = ColumnRelationshipAnalyzer(self.executor, self.config, self.dialect)
            candidates = analyzer.analyze(tables)

            if self.config.classify_cardinality:
                CardinalityClassifier(self.executor, self.dialect).classify_all(candidates)

            statistics = AnalysisStatistics.from_candidates(
                candidates,
                total_tables=len(tables),
                total_records=sum(t.row_count for t in tables),
                scoring_failures=analyzer.failures,
            )

            session.relationships = candidates
            session.statistics = statistics.model_dump()
            session.advance(AnalysisPhase.CONFIDENCE_ANALYZED)
            self.store.put(session)

            logger.info(
                "confidence_analysis_completed",
                relationships=len(candidates),
                **statistics.confidence_distribution,
            )

        return ConfidenceAnalysisResult(
            session_id=session.session_id,
            relationships=candidates,
            statistics=statistics,
            confidence_distribution=statistics.confidence_distribution,
            cardinality_distribution=statistics.cardinality_distribution,
        )

    def detect_junction_needs(self, session_id: str) -> JunctionDetectionResult:
        """Phase 2: decide which candidates need a junction table."""
        session = self.store.get(session_id)
        session.require_phase(AnalysisPhase.CONFIDENCE_ANALYZED)

        with self._phase(session, AnalysisPhase.JUNCTION_DETECTED):
            plans, direct = detect_junction_needs(
                session.relationships, self.config.junction_min_confidence
            )
            session.junction_table_needs = plans
            session.one_to_many_relationships = direct
            session.advance(AnalysisPhase.JUNCTION_DETECTED)
            self.store.put(session)

        return JunctionDetectionResult(
            session_id=session.session_id,
            junction_table_needs=plans,
            one_to_many_relationships=direct,
        )

    def create_junction_tables(self, session_id: str) -> JunctionCreationResult:
        """Phase 3: create and populate every planned junction table."""
        session = self.store.get(session_id)
        session.require_phase(AnalysisPhase.JUNCTION_DETECTED)

        with self._phase(session, AnalysisPhase.JUNCTION_TABLES_CREATED):
            synthesizer = JunctionTableSynthesizer(
                self.executor, self.dialect, self.config.anchor_column
            )
            created, errors = synthesizer.create_all(session.junction_table_needs)

            session.created_junction_tables.extend(created)
            session.junction_table_errors.extend(errors)
            session.advance(AnalysisPhase.JUNCTION_TABLES_CREATED)
            self.store.put(session)

        return JunctionCreationResult(
            session_id=session.session_id,
            created_junction_tables=created,
            errors=errors,
            summary={
                "successful": len(created),
                "failed": len(errors),
                "total": len(session.junction_table_needs),
            },
        )

    def create_foreign_keys(self, session_id: str) -> ForeignKeyCreationResult:
        """Phase 4: add direct foreign keys and junction-side foreign keys."""
        session = self.store.get(session_id)
        session.require_phase(AnalysisPhase.JUNCTION_TABLES_CREATED)

        with self._phase(session, AnalysisPhase.COMPLETED):
            plans = [plan_direct_foreign_key(c) for c in session.one_to_many_relationships]
            for junction in session.created_junction_tables:
                plans.extend(plan_junction_foreign_keys(junction, self.config.anchor_column))

            created, errors = ForeignKeyApplier(self.executor, self.dialect).apply_all(plans)

            session.created_foreign_keys.extend(created)
            session.foreign_key_errors.extend(errors)
            session.advance(AnalysisPhase.COMPLETED)
            self.store.put(session)

        return ForeignKeyCreationResult(
            session_id=session.session_id,
            created_foreign_keys=created,
            errors=errors,
            summary={
                "successful": len(created),
                "failed": len(errors),
                "direct": sum(1 for fk in created if fk.kind == ForeignKeyKind.DIRECT),
                "junction": sum(1 for fk in created if fk.kind == ForeignKeyKind.JUNCTION),
            },
        )

    def get_status(self, session_id: str) -> SessionStatus:
        session = self.store.get(session_id)
        return SessionStatus(
            session_id=session.session_id,
            phase=session.phase.value,
            created_at=session.created_at,
            updated_at=session.updated_at,
            statistics=session.statistics,
            progress=session.progress(),
        )
