"""Core module - configuration, connections, logging and shared models."""

from airschema.core.config import Settings, get_settings
from airschema.core.connections import (
    CallableExecutor,
    DuckDBExecutor,
    SQLAlchemyExecutor,
    SQLExecutor,
    normalize_rows,
)
from airschema.core.errors import (
    IntrospectionError,
    PhaseSequenceError,
    SessionNotFoundError,
)
from airschema.core.models.base import Result

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Connections
    "SQLExecutor",
    "CallableExecutor",
    "SQLAlchemyExecutor",
    "DuckDBExecutor",
    "normalize_rows",
    # Errors
    "IntrospectionError",
    "PhaseSequenceError",
    "SessionNotFoundError",
    # Models
    "Result",
]
