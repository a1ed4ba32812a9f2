"""Confidence scoring from referential-integrity statistics.

Pure functions; no database access. Tiers are evaluated in order and the
first match wins. Bonuses are added afterwards and the result is capped.
"""

from __future__ import annotations

from dataclasses import dataclass

from airschema.analysis.relationships.models import FieldKind, RelationshipType


@dataclass(frozen=True)
class ConfidenceTier:
    min_integrity_percent: float
    min_count: int
    confidence: float


# count = rows with at least one valid reference
ARRAY_TIERS: tuple[ConfidenceTier, ...] = (
    ConfidenceTier(90, 3, 0.95),
    ConfidenceTier(80, 5, 0.85),
    ConfidenceTier(60, 2, 0.75),
    ConfidenceTier(40, 1, 0.60),
    ConfidenceTier(20, 0, 0.40),
)

# count = distinct source values found in the target
SCALAR_TIERS: tuple[ConfidenceTier, ...] = (
    ConfidenceTier(90, 3, 0.95),
    ConfidenceTier(80, 5, 0.85),
    ConfidenceTier(70, 10, 0.75),
    ConfidenceTier(60, 5, 0.65),
    ConfidenceTier(50, 3, 0.55),
    ConfidenceTier(30, 2, 0.35),
)

COMPLETENESS_THRESHOLD = 0.8
COMPLETENESS_BONUS = 0.05
VOLUME_THRESHOLD = 100
VOLUME_BONUS = 0.03
MAX_CONFIDENCE = 0.99

ONE_TO_ONE_DISTINCTNESS = 80.0


def base_confidence(kind: FieldKind, integrity_percent: float, count: int) -> float:
    """Confidence from the tier table, before bonuses."""
    tiers = ARRAY_TIERS if kind == FieldKind.ARRAY else SCALAR_TIERS
    for tier in tiers:
        if integrity_percent >= tier.min_integrity_percent and count >= tier.min_count:
            return tier.confidence
    return 0.0


def apply_bonuses(confidence: float, non_null_count: int, total_rows: int) -> float:
    """Add completeness and volume bonuses, capped at MAX_CONFIDENCE."""
    if total_rows > 0 and non_null_count / total_rows >= COMPLETENESS_THRESHOLD:
        confidence += COMPLETENESS_BONUS
    if total_rows >= VOLUME_THRESHOLD:
        confidence += VOLUME_BONUS
    return round(min(MAX_CONFIDENCE, confidence), 4)


def compute_confidence(
    kind: FieldKind,
    integrity_percent: float,
    count: int,
    non_null_count: int,
    total_rows: int,
) -> float:
    return apply_bonuses(base_confidence(kind, integrity_percent, count), non_null_count, total_rows)


def percent(part: int, whole: int) -> float:
    """part/whole as a percentage rounded to 2 decimals (0 when whole is 0)."""
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


def provisional_relationship_type(
    kind: FieldKind, distinctness_percent: float | None
) -> RelationshipType:
    """Label assigned before exact cardinality is known."""
    if kind == FieldKind.ARRAY:
        return RelationshipType.MANY_TO_MANY_ARRAY
    if (distinctness_percent or 0.0) >= ONE_TO_ONE_DISTINCTNESS:
        return RelationshipType.ONE_TO_ONE
    return RelationshipType.MANY_TO_ONE
