"""Relationship inference models.

Models for:
- ColumnDescriptor / TableInfo: introspected schema of the imported tables
- RelationshipCandidate: a scored source column -> target anchor link
- CardinalityResult: exact linkage counts for a candidate
- JunctionTablePlan / CreatedJunctionTable: many-to-many materialization
- ForeignKeyPlan / ConstraintError: constraint materialization outcomes
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FieldKind(str, Enum):
    """Shape of a source column."""

    ARRAY = "array"
    SCALAR = "scalar"


class RelationshipType(str, Enum):
    """Relationship label carried by a candidate.

    MANY_TO_MANY_ARRAY is the provisional label for array fields before
    exact cardinality is known.
    """

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"
    MANY_TO_MANY_ARRAY = "many-to-many (array)"
    UNKNOWN = "unknown"
    ERROR = "error"


Side = Literal["one", "many"]


class ColumnDescriptor(BaseModel):
    """A candidate column of an imported table."""

    model_config = ConfigDict(frozen=True)

    table: str
    column: str
    sql_type: str
    is_array: bool

    @property
    def field_kind(self) -> FieldKind:
        return FieldKind.ARRAY if self.is_array else FieldKind.SCALAR


class TableInfo(BaseModel):
    """An imported table with its candidate columns."""

    model_config = ConfigDict(frozen=True)

    table_name: str
    row_count: int = 0
    columns: list[ColumnDescriptor] = Field(default_factory=list)
    # Columns dropped by the derived-field filter
    excluded_columns: list[str] = Field(default_factory=list)


class RelationshipStatistics(BaseModel):
    """Observed data statistics behind a confidence score.

    matched_or_valid_count is the count the confidence tiers are keyed
    on: rows with at least one valid reference (array fields) or distinct
    values found in the target (scalar fields).
    """

    field_kind: FieldKind
    referential_integrity_percent: float = 0.0
    total_rows: int = 0
    non_null_count: int = 0
    matched_or_valid_count: int = 0
    completeness: float = 0.0
    target_distinct_count: int | None = None

    # Array fields
    total_array_elements: int | None = None

    # Scalar fields
    distinct_count: int | None = None
    source_distinct_values: int | None = None
    distinctness: float | None = None  # 0-100%

    error: str | None = None


class CardinalityResult(BaseModel):
    """Exact maximum linkage counts in both directions."""

    max_links_from: int = Field(ge=0)
    max_links_to: int = Field(ge=0)
    from_cardinality: Side
    to_cardinality: Side
    from_side: str = ""
    to_side: str = ""

    @property
    def relationship_type(self) -> RelationshipType:
        return RelationshipType(f"{self.from_cardinality}-to-{self.to_cardinality}")


class RelationshipCandidate(BaseModel):
    """A candidate relationship from a source column to a target anchor column.

    Created by the analyzer; relationship_type and cardinality are
    refined in place by the cardinality classifier.
    """

    from_table: str
    from_field: str
    to_table: str
    to_field: str
    confidence: float = Field(ge=0.0, le=0.99)
    relationship_type: RelationshipType
    statistics: RelationshipStatistics
    reasoning: str = ""

    cardinality: CardinalityResult | None = None
    cardinality_error: str | None = None

    @property
    def field_kind(self) -> FieldKind:
        return self.statistics.field_kind

    @property
    def label(self) -> str:
        return f"{self.from_table}.{self.from_field} -> {self.to_table}.{self.to_field}"


class JunctionTablePlan(BaseModel):
    """Plan for an association table backing a many-to-many candidate."""

    from_table: str
    to_table: str
    from_field: str
    to_field: str
    field_kind: FieldKind
    confidence: float
    junction_table_name: str

    @classmethod
    def for_candidate(cls, candidate: RelationshipCandidate) -> JunctionTablePlan:
        return cls(
            from_table=candidate.from_table,
            to_table=candidate.to_table,
            from_field=candidate.from_field,
            to_field=candidate.to_field,
            field_kind=candidate.field_kind,
            confidence=candidate.confidence,
            junction_table_name=f"{candidate.from_table}_{candidate.to_table}_junction",
        )

    @property
    def from_column(self) -> str:
        return f"{self.from_table}_id"

    @property
    def to_column(self) -> str:
        return f"{self.to_table}_id"


class CreatedJunctionTable(BaseModel):
    """A junction table that exists and has been populated."""

    table_name: str
    from_table: str
    to_table: str
    from_field: str
    confidence: float
    row_count: int = 0


class ForeignKeyKind(str, Enum):
    DIRECT = "direct"
    JUNCTION = "junction"


class ForeignKeyPlan(BaseModel):
    """A named foreign-key constraint to add."""

    constraint_name: str
    from_table: str
    from_field: str
    to_table: str
    to_field: str
    kind: ForeignKeyKind
    confidence: float = 0.0

    @property
    def label(self) -> str:
        return f"{self.from_table}.{self.from_field} -> {self.to_table}.{self.to_field}"


class ConstraintError(BaseModel):
    """A junction table or foreign key that could not be created."""

    kind: Literal["junction_table", "foreign_key"]
    target: str  # junction table name, or relationship label
    error: str
    constraint_name: str | None = None
