"""Analysis session state machine.

A session moves through its phases in strict order:

    pending -> confidence-analyzed -> junction-detected
            -> junction-tables-created -> completed

Each phase operation checks the session is in the immediately preceding
phase before touching anything. Outputs accumulate on the session so a
completed session holds the audit trail of every phase.

Sessions live in a SessionStore. The store performs no locking; callers
must not run two phase operations on the same session concurrently.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol
from uuid import uuid4

from pydantic import BaseModel, Field

from airschema.analysis.relationships.models import (
    ConstraintError,
    CreatedJunctionTable,
    ForeignKeyPlan,
    JunctionTablePlan,
    RelationshipCandidate,
)
from airschema.core.errors import PhaseSequenceError, SessionNotFoundError


class AnalysisPhase(str, Enum):
    """Phase a session has reached."""

    PENDING = "pending"
    CONFIDENCE_ANALYZED = "confidence-analyzed"
    JUNCTION_DETECTED = "junction-detected"
    JUNCTION_TABLES_CREATED = "junction-tables-created"
    COMPLETED = "completed"


@dataclass
class PhaseDefinition:
    """Static definition of a phase-advancing operation."""

    name: str
    operation: str
    description: str
    requires: AnalysisPhase
    produces: AnalysisPhase
    writes_schema: bool = False


PHASE_DEFINITIONS: list[PhaseDefinition] = [
    PhaseDefinition(
        name="confidence",
        operation="run_confidence_analysis",
        description="Score column pairs and classify cardinality",
        requires=AnalysisPhase.PENDING,
        produces=AnalysisPhase.CONFIDENCE_ANALYZED,
    ),
    PhaseDefinition(
        name="junction_detection",
        operation="detect_junction_needs",
        description="Split candidates into junction tables and direct keys",
        requires=AnalysisPhase.CONFIDENCE_ANALYZED,
        produces=AnalysisPhase.JUNCTION_DETECTED,
    ),
    PhaseDefinition(
        name="junction_tables",
        operation="create_junction_tables",
        description="Create and populate many-to-many junction tables",
        requires=AnalysisPhase.JUNCTION_DETECTED,
        produces=AnalysisPhase.JUNCTION_TABLES_CREATED,
        writes_schema=True,
    ),
    PhaseDefinition(
        name="foreign_keys",
        operation="create_foreign_keys",
        description="Add direct and junction-side foreign keys",
        requires=AnalysisPhase.JUNCTION_TABLES_CREATED,
        produces=AnalysisPhase.COMPLETED,
        writes_schema=True,
    ),
]


def _now() -> datetime:
    return datetime.now(UTC)


class AnalysisSession(BaseModel):
    """State accumulated across the phases of one analysis."""

    session_id: str = Field(default_factory=lambda: str(uuid4()))
    phase: AnalysisPhase = AnalysisPhase.PENDING
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    statistics: dict[str, Any] = Field(default_factory=dict)

    # Phase 1
    relationships: list[RelationshipCandidate] = Field(default_factory=list)
    # Phase 2
    junction_table_needs: list[JunctionTablePlan] = Field(default_factory=list)
    one_to_many_relationships: list[RelationshipCandidate] = Field(default_factory=list)
    # Phase 3
    created_junction_tables: list[CreatedJunctionTable] = Field(default_factory=list)
    junction_table_errors: list[ConstraintError] = Field(default_factory=list)
    # Phase 4
    created_foreign_keys: list[ForeignKeyPlan] = Field(default_factory=list)
    foreign_key_errors: list[ConstraintError] = Field(default_factory=list)

    @property
    def errors(self) -> list[ConstraintError]:
        """All constraint failures recorded so far."""
        return [*self.junction_table_errors, *self.foreign_key_errors]

    def require_phase(self, expected: AnalysisPhase) -> None:
        """Raise PhaseSequenceError unless the session is at `expected`."""
        if self.phase != expected:
            raise PhaseSequenceError(self.session_id, self.phase.value, expected.value)

    def advance(self, phase: AnalysisPhase) -> None:
        self.phase = phase
        self.updated_at = _now()

    def progress(self) -> dict[str, bool]:
        """Completion flag per phase."""
        order = list(AnalysisPhase)
        reached = order.index(self.phase)
        return {
            "confidence_analyzed": reached >= order.index(AnalysisPhase.CONFIDENCE_ANALYZED),
            "junction_detected": reached >= order.index(AnalysisPhase.JUNCTION_DETECTED),
            "junction_tables_created": reached
            >= order.index(AnalysisPhase.JUNCTION_TABLES_CREATED),
            "completed": self.phase == AnalysisPhase.COMPLETED,
        }


class SessionStore(Protocol):
    """Keyed repository of analysis sessions."""

    def get(self, session_id: str) -> AnalysisSession:
        """Return the session or raise SessionNotFoundError."""
        ...

    def put(self, session: AnalysisSession) -> None: ...

    def delete(self, session_id: str) -> None: ...

    def list_ids(self) -> list[str]: ...


class InMemorySessionStore:
    """Process-local session store."""

    def __init__(self) -> None:
        self._sessions: dict[str, AnalysisSession] = {}

    def get(self, session_id: str) -> AnalysisSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def put(self, session: AnalysisSession) -> None:
        self._sessions[session.session_id] = session

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def list_ids(self) -> list[str]:
        return list(self._sessions)
