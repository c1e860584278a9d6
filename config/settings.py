"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables
    (prefixed with FEEDFLOW_). Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="FEEDFLOW_",
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # UPLOADS
    # ===================
    max_upload_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Largest feed file accepted before parsing begins"
    )
    preview_row_count: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Rows kept as preview in upload snapshots"
    )
    store_full_rows: bool = Field(
        default=True,
        description="Keep every parsed row in upload snapshots"
    )

    # ===================
    # SESSIONS
    # ===================
    session_ttl_minutes: int = Field(
        default=120,
        ge=1,
        le=24 * 60,
        description="Minutes an idle workflow session is kept in memory"
    )

    # ===================
    # SCHEMA DEFAULTS
    # ===================
    default_schema_name: str = Field(
        default="My Product Feed Schema",
        description="Name given to a freshly created schema"
    )
    default_schema_description: str = Field(
        default="Standardized product feed schema",
        description="Description given to a freshly created schema"
    )
    default_category_format: str = Field(
        default="hierarchical",
        pattern="^(hierarchical|flat)$",
        description="Category output format for new schemas"
    )
    default_category_separator: str = Field(
        default="/",
        min_length=1,
        description="Separator joining hierarchical category segments"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def max_upload_mb(self) -> float:
        """Upload limit in megabytes, for messages."""
        return round(self.max_upload_bytes / (1024 * 1024), 2)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
