"""Configuration for relationship inference.

AnalysisConfig is the engine's own configuration. It can be built from
environment Settings plus config/relationships.yaml, or constructed
directly (tests, embedding applications).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, Field

from airschema.analysis.relationships.filters import (
    DEFAULT_DERIVED_FIELD_PATTERNS,
    DerivedFieldFilter,
)

if TYPE_CHECKING:
    from airschema.core.config import Settings

_RELATIONSHIPS_CONFIG_CACHE: dict[str, Any] | None = None

CONFIG_FILENAME = "relationships.yaml"


def load_relationships_config(config_dir: Path | None = None) -> dict[str, Any]:
    """Load config/relationships.yaml.

    Searches for the file in:
    1. The given directory
    2. Current working directory
    3. Project root (relative to this file)

    Returns:
        Configuration dictionary, or empty dict if not found
    """
    global _RELATIONSHIPS_CONFIG_CACHE

    if _RELATIONSHIPS_CONFIG_CACHE is not None:
        return _RELATIONSHIPS_CONFIG_CACHE

    search_paths = [
        Path.cwd() / "config" / CONFIG_FILENAME,
        Path(__file__).parent.parent.parent.parent.parent / "config" / CONFIG_FILENAME,
    ]
    if config_dir is not None:
        search_paths.insert(0, config_dir / CONFIG_FILENAME)

    for config_path in search_paths:
        if config_path.exists():
            with open(config_path) as f:
                _RELATIONSHIPS_CONFIG_CACHE = yaml.safe_load(f) or {}
                return _RELATIONSHIPS_CONFIG_CACHE

    _RELATIONSHIPS_CONFIG_CACHE = {}
    return _RELATIONSHIPS_CONFIG_CACHE


def clear_config_cache() -> None:
    """Clear the configuration cache (useful for testing)."""
    global _RELATIONSHIPS_CONFIG_CACHE
    _RELATIONSHIPS_CONFIG_CACHE = None


class AnalysisConfig(BaseModel):
    """Relationship inference settings."""

    anchor_column: str = "airtable_id"
    db_schema: str | None = None  # None = dialect default (public / main)

    min_confidence: float = 0.3
    junction_min_confidence: float = 0.7
    classify_cardinality: bool = True
    max_workers: int = Field(default=1, ge=1)

    excluded_table_prefixes: list[str] = Field(
        default_factory=lambda: ["pg_", "sql_", "_prisma"]
    )
    excluded_table_suffixes: list[str] = Field(default_factory=lambda: ["_junction"])
    excluded_tables: list[str] = Field(default_factory=list)

    derived_field_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DERIVED_FIELD_PATTERNS)
    )
    derived_field_allowlist: list[str] = Field(default_factory=list)

    @classmethod
    def from_settings(cls, settings: Settings) -> AnalysisConfig:
        """Build from environment settings and relationships.yaml."""
        file_config = load_relationships_config(settings.config_path)
        derived = file_config.get("derived_fields", {}) or {}
        tables = file_config.get("tables", {}) or {}

        overrides: dict[str, Any] = {}
        if "patterns" in derived:
            overrides["derived_field_patterns"] = list(derived["patterns"])
        if "allowlist" in derived:
            overrides["derived_field_allowlist"] = list(derived["allowlist"])
        if "excluded_prefixes" in tables:
            overrides["excluded_table_prefixes"] = list(tables["excluded_prefixes"])
        if "excluded_suffixes" in tables:
            overrides["excluded_table_suffixes"] = list(tables["excluded_suffixes"])
        if "excluded" in tables:
            overrides["excluded_tables"] = list(tables["excluded"])

        return cls(
            anchor_column=settings.anchor_column,
            db_schema=settings.db_schema,
            min_confidence=settings.min_confidence,
            junction_min_confidence=settings.junction_min_confidence,
            classify_cardinality=settings.classify_cardinality,
            max_workers=settings.max_workers,
            **overrides,
        )

    def column_filter(self) -> DerivedFieldFilter:
        return DerivedFieldFilter(self.derived_field_patterns, self.derived_field_allowlist)

    def is_excluded_table(self, table_name: str) -> bool:
        """System/metadata tables and previously synthesized junction tables."""
        if table_name in self.excluded_tables:
            return True
        if any(table_name.startswith(prefix) for prefix in self.excluded_table_prefixes):
            return True
        return any(table_name.endswith(suffix) for suffix in self.excluded_table_suffixes)
