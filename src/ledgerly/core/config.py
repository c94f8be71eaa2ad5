"""Application configuration using Pydantic Settings."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    # Database
    database_url: str = "sqlite:///./data/ledgerly.db"

    # Authentication & Security
    jwt_secret_key: str = Field(
        default="change-this-secret-key-in-production",
        description="Secret key for JWT token generation. MUST be changed in production!",
    )
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 480  # 8 hours

    # Business defaults
    default_currency: str = "ILS"
    default_vat_rate: Decimal = Decimal("17")
    default_language: str = "he"

    # Stock quotes
    finnhub_api_key: str = ""
    alpha_vantage_key: str = ""
    quote_cache_ttl_seconds: int = 300

    # Exchange rates
    exchange_rates_url: str = "https://api.frankfurter.app"
    exchange_rates_cache_ttl_seconds: int = 1800

    # Outbound HTTP
    http_timeout: float = 10.0
    http_max_retries: int = 2

    # CORS
    cors_allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    @field_validator("default_currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        """Currencies are stored as upper-case ISO codes."""
        return v.upper()

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
