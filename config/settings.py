"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
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

    # ===================
    # IMPORT DEFAULTS
    # ===================
    default_min_stock_level: int = Field(
        default=5,
        ge=0,
        le=10000,
        description="Reorder threshold applied when a row has no min_stock_level"
    )
    default_order_channel: str = Field(
        default="POS",
        pattern="^(SHOPIFY|AMAZON|DARAZ|POS|MANUAL|WEBSITE)$",
        description="Sales channel stamped on imported orders"
    )
    create_missing_categories: bool = Field(
        default=True,
        description="Auto-create categories referenced by import rows"
    )
    create_missing_suppliers: bool = Field(
        default=True,
        description="Auto-create suppliers referenced by import rows"
    )
    import_max_rows: int = Field(
        default=5000,
        ge=1,
        le=100000,
        description="Largest batch accepted by a single import call"
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
