"""Configuration management.

Uses pydantic-settings for type-safe configuration from environment variables.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_config_dir() -> Path:
    """Find the config directory by walking up from the package location.

    Falls back to relative Path("config") if not found.
    """
    # src/airschema/core/config.py -> project root is 4 levels up
    package_dir = Path(__file__).resolve().parent.parent.parent.parent
    candidate = package_dir / "config"
    if candidate.is_dir():
        return candidate

    return Path("config")


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Prefix: AIRSCHEMA_
    """

    model_config = SettingsConfigDict(
        env_prefix="AIRSCHEMA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Target database (the freshly imported tables)
    database_url: str = Field(
        default="postgresql+psycopg2://localhost/airtable_import",
        description="SQLAlchemy URL of the database holding the imported tables",
    )
    db_schema: str | None = Field(
        default=None,
        description="Schema that holds the imported tables (default: public, or main for DuckDB)",
    )
    anchor_column: str = Field(
        default="airtable_id",
        description="Stable per-row identifier column used as the join target",
    )
    statement_timeout_seconds: float = Field(
        default=30.0,
        description="Per-statement timeout; a timed out statement counts as a failed item",
    )

    # Relationship inference
    min_confidence: float = Field(
        default=0.3,
        description="Candidates at or below this confidence are discarded",
    )
    junction_min_confidence: float = Field(
        default=0.7,
        description="Minimum confidence for a candidate to be materialized",
    )
    classify_cardinality: bool = Field(
        default=True,
        description="Compute exact cardinality during confidence analysis",
    )
    max_workers: int = Field(
        default=1,
        description="Worker threads for pairwise scoring (1 = sequential)",
    )

    config_path: Path = Field(
        default_factory=_find_config_dir,
        description="Path to configuration files (relationships.yaml)",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")  # 'json' or 'console'


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
