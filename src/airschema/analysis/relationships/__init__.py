"""Relationship inference and schema synthesis.

Discovers foreign-key-like columns in freshly imported tables, scores
them from observed data, classifies their cardinality and materializes
junction tables and foreign keys.
"""

from airschema.analysis.relationships.analyzer import ColumnRelationshipAnalyzer
from airschema.analysis.relationships.cardinality import (
    CardinalityClassifier,
    classify_cardinality,
)
from airschema.analysis.relationships.config import (
    AnalysisConfig,
    clear_config_cache,
    load_relationships_config,
)
from airschema.analysis.relationships.dialects import (
    DuckDBDialect,
    PostgresDialect,
    SqlDialect,
    get_dialect,
)
from airschema.analysis.relationships.filters import (
    DEFAULT_DERIVED_FIELD_PATTERNS,
    DerivedFieldFilter,
)
from airschema.analysis.relationships.foreign_keys import (
    ForeignKeyApplier,
    plan_direct_foreign_key,
    plan_junction_foreign_keys,
)
from airschema.analysis.relationships.introspection import SchemaIntrospector
from airschema.analysis.relationships.junctions import (
    JunctionTableSynthesizer,
    detect_junction_needs,
    needs_junction_table,
)
from airschema.analysis.relationships.models import (
    CardinalityResult,
    ColumnDescriptor,
    ConstraintError,
    CreatedJunctionTable,
    FieldKind,
    ForeignKeyKind,
    ForeignKeyPlan,
    JunctionTablePlan,
    RelationshipCandidate,
    RelationshipStatistics,
    RelationshipType,
    TableInfo,
)
from airschema.analysis.relationships.scoring import compute_confidence

__all__ = [
    # Components
    "SchemaIntrospector",
    "ColumnRelationshipAnalyzer",
    "CardinalityClassifier",
    "JunctionTableSynthesizer",
    "ForeignKeyApplier",
    # Functions
    "classify_cardinality",
    "compute_confidence",
    "detect_junction_needs",
    "needs_junction_table",
    "plan_direct_foreign_key",
    "plan_junction_foreign_keys",
    # Configuration
    "AnalysisConfig",
    "DerivedFieldFilter",
    "DEFAULT_DERIVED_FIELD_PATTERNS",
    "load_relationships_config",
    "clear_config_cache",
    # Dialects
    "SqlDialect",
    "PostgresDialect",
    "DuckDBDialect",
    "get_dialect",
    # Models
    "ColumnDescriptor",
    "TableInfo",
    "FieldKind",
    "RelationshipType",
    "RelationshipStatistics",
    "RelationshipCandidate",
    "CardinalityResult",
    "JunctionTablePlan",
    "CreatedJunctionTable",
    "ForeignKeyKind",
    "ForeignKeyPlan",
    "ConstraintError",
]
