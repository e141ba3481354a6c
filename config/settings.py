"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
Matching thresholds and weights live here so they can be recalibrated
per deployment without touching the engine.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )
    inventory_table: str = Field(
        default="inventory_items",
        description="Table holding inventory records"
    )
    patterns_table: str = Field(
        default="reconciliation_patterns",
        description="Table holding the confirmed-link log"
    )

    # ===================
    # LEDGER SNAPSHOT
    # ===================
    ledger_sheet_url: Optional[str] = Field(
        None,
        description="Published CSV/XLSX export of the external ledger"
    )
    ledger_fetch_timeout_seconds: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Timeout for downloading the ledger export"
    )

    # ===================
    # MATCHING ENGINE
    # ===================
    pattern_memory_capacity: int = Field(
        default=300,
        ge=1,
        le=5000,
        description="Confirmed links kept in memory (newest first)"
    )
    pattern_bonus_weight: float = Field(
        default=0.25,
        ge=0,
        le=1,
        description="Weight of the learned-pattern bonus"
    )
    pattern_system_threshold: float = Field(
        default=0.7,
        ge=0,
        le=1,
        description="Min similarity between item and a pattern's system side"
    )
    pattern_ledger_threshold: float = Field(
        default=0.6,
        ge=0,
        le=1,
        description="Min similarity between candidate and a pattern's ledger side"
    )
    supplier_similarity_threshold: float = Field(
        default=0.7,
        ge=0,
        le=1,
        description="Min supplier similarity for the corroboration bonus"
    )
    supplier_bonus: float = Field(
        default=0.15,
        ge=0,
        le=1,
        description="Bonus added when suppliers corroborate"
    )
    batch_similarity_threshold: float = Field(
        default=0.65,
        ge=0,
        le=1,
        description="Min similarity for a batch row similarity match"
    )
    batch_ambiguity_gap: float = Field(
        default=0.1,
        ge=0,
        le=1,
        description="Top-two score spread below which a batch row is ambiguous"
    )
    max_candidate_pool: int = Field(
        default=2000,
        ge=10,
        le=100000,
        description="Candidates fully scored per ranking call"
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
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)


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
