"""airschema - relationship inference for imported Airtable bases.

Discovers links between freshly imported tables from the data itself,
then creates junction tables and foreign keys for them.
"""

from airschema.analysis.relationships import (
    AnalysisConfig,
    RelationshipCandidate,
    RelationshipType,
)
from airschema.core import (
    CallableExecutor,
    DuckDBExecutor,
    IntrospectionError,
    PhaseSequenceError,
    SessionNotFoundError,
    Settings,
    SQLAlchemyExecutor,
    get_settings,
)
from airschema.pipeline import AnalysisPhase, AnalysisSession, RelationshipWorkflow

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "RelationshipWorkflow",
    "AnalysisConfig",
    "AnalysisPhase",
    "AnalysisSession",
    "RelationshipCandidate",
    "RelationshipType",
    "Settings",
    "get_settings",
    "CallableExecutor",
    "DuckDBExecutor",
    "SQLAlchemyExecutor",
    "IntrospectionError",
    "PhaseSequenceError",
    "SessionNotFoundError",
]
