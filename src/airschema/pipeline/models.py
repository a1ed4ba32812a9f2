"""Return values of the phase operations."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from airschema.analysis.relationships.models import (
    ConstraintError,
    CreatedJunctionTable,
    ForeignKeyPlan,
    JunctionTablePlan,
    RelationshipCandidate,
    RelationshipType,
)

HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.6


class AnalysisStatistics(BaseModel):
    """Summary of a confidence analysis run."""

    total_tables: int = 0
    total_records: int = 0
    potential_relationships: int = 0
    high_confidence: int = 0
    medium_confidence: int = 0
    low_confidence: int = 0
    one_to_one: int = 0
    one_to_many: int = 0
    many_to_one: int = 0
    many_to_many: int = 0
    cardinality_errors: int = 0
    scoring_failures: int = 0

    @classmethod
    def from_candidates(
        cls,
        candidates: list[RelationshipCandidate],
        total_tables: int,
        total_records: int,
        scoring_failures: int = 0,
    ) -> AnalysisStatistics:
        stats = cls(
            total_tables=total_tables,
            total_records=total_records,
            potential_relationships=len(candidates),
            scoring_failures=scoring_failures,
        )
        for candidate in candidates:
            if candidate.confidence >= HIGH_CONFIDENCE:
                stats.high_confidence += 1
            elif candidate.confidence >= MEDIUM_CONFIDENCE:
                stats.medium_confidence += 1
            else:
                stats.low_confidence += 1

            rel = candidate.relationship_type
            if rel == RelationshipType.ONE_TO_ONE:
                stats.one_to_one += 1
            elif rel == RelationshipType.ONE_TO_MANY:
                stats.one_to_many += 1
            elif rel == RelationshipType.MANY_TO_ONE:
                stats.many_to_one += 1
            elif rel == RelationshipType.MANY_TO_MANY:
                stats.many_to_many += 1
            elif rel == RelationshipType.ERROR:
                stats.cardinality_errors += 1
        return stats

    @property
    def confidence_distribution(self) -> dict[str, int]:
        return {
            "high": self.high_confidence,
            "medium": self.medium_confidence,
            "low": self.low_confidence,
        }

    @property
    def cardinality_distribution(self) -> dict[str, int]:
        return {
            RelationshipType.ONE_TO_ONE.value: self.one_to_one,
            RelationshipType.ONE_TO_MANY.value: self.one_to_many,
            RelationshipType.MANY_TO_ONE.value: self.many_to_one,
            RelationshipType.MANY_TO_MANY.value: self.many_to_many,
        }


class ConfidenceAnalysisResult(BaseModel):
    session_id: str
    relationships: list[RelationshipCandidate]
    statistics: AnalysisStatistics
    confidence_distribution: dict[str, int]
    cardinality_distribution: dict[str, int]


class JunctionDetectionResult(BaseModel):
    session_id: str
    junction_table_needs: list[JunctionTablePlan]
    one_to_many_relationships: list[RelationshipCandidate]


class JunctionCreationResult(BaseModel):
    session_id: str
    created_junction_tables: list[CreatedJunctionTable]
    errors: list[ConstraintError]
    summary: dict[str, int] = Field(default_factory=dict)


class ForeignKeyCreationResult(BaseModel):
    session_id: str
    created_foreign_keys: list[ForeignKeyPlan]
    errors: list[ConstraintError]
    summary: dict[str, int] = Field(default_factory=dict)


class SessionStatus(BaseModel):
    session_id: str
    phase: str
    created_at: datetime
    updated_at: datetime
    statistics: dict[str, Any]
    progress: dict[str, bool]
