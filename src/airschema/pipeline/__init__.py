"""Phase-scoped relationship inference workflow."""

from airschema.pipeline.models import (
    AnalysisStatistics,
    ConfidenceAnalysisResult,
    ForeignKeyCreationResult,
    JunctionCreationResult,
    JunctionDetectionResult,
    SessionStatus,
)
from airschema.pipeline.session import (
    PHASE_DEFINITIONS,
    AnalysisPhase,
    AnalysisSession,
    InMemorySessionStore,
    PhaseDefinition,
    SessionStore,
)
from airschema.pipeline.workflow import RelationshipWorkflow

__all__ = [
    "RelationshipWorkflow",
    # Session
    "AnalysisPhase",
    "AnalysisSession",
    "SessionStore",
    "InMemorySessionStore",
    "PhaseDefinition",
    "PHASE_DEFINITIONS",
    # Results
    "AnalysisStatistics",
    "ConfidenceAnalysisResult",
    "JunctionDetectionResult",
    "JunctionCreationResult",
    "ForeignKeyCreationResult",
    "SessionStatus",
]
