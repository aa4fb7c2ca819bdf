"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    database_pool_size: int = Field(
        default=5, ge=1, description="Connection pool size (PostgreSQL only)"
    )

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/affiliate.log"  # Empty string disables the file sink

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = Field(
        default=8080, ge=1, le=65535, description="HTTP API port"
    )
    api_prefix: str = "/api/affiliate"
    cors_origins: str = "http://localhost:3000,http://localhost:3001"
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Per-request deadline; the transaction is rolled back on expiry",
    )

    # Concurrency control
    conflict_max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries on serialization failures before surfacing Conflict",
    )
    conflict_retry_delay_base: float = Field(
        default=0.05,
        ge=0,
        description="Base delay in seconds for exponential backoff",
    )

    # Payout administration
    admin_wallets: str = ""  # Comma-separated list

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL and pin the async driver."""
        if v.startswith("postgres://"):
            v = "postgresql://" + v[len("postgres://"):]
        if v.startswith("postgresql://"):
            v = "postgresql+asyncpg://" + v[len("postgresql://"):]
        if not v.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError(
                "DATABASE_URL must start with postgresql://, "
                "postgresql+asyncpg:// or sqlite+aiosqlite://"
            )
        return v

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Request deadline must be positive."""
        if v <= 0:
            raise ValueError("REQUEST_TIMEOUT_SECONDS must be greater than 0")
        return v

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        """Normalize API prefix to a leading slash and no trailing slash."""
        v = "/" + v.strip().strip("/")
        return v if v != "/" else ""

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                logger.warning(
                    "DATABASE_URL points to SQLite in production. "
                    "Row locks are emulated with BEGIN IMMEDIATE; "
                    "use PostgreSQL for concurrent deployments."
                )
        return self

    def get_cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [
            origin.strip().rstrip("/")
            for origin in self.cors_origins.split(",")
            if origin.strip()
        ]

    def get_admin_wallets(self) -> list[str]:
        """Parse admin wallets from comma-separated string (lowercased)."""
        if not self.admin_wallets:
            return []

        result = []
        for wallet in self.admin_wallets.split(","):
            wallet_stripped = wallet.strip().lower()
            if not wallet_stripped:
                continue
            if not wallet_stripped.startswith("0x") or len(wallet_stripped) != 42:
                logger.warning(f"Invalid admin wallet: {wallet_stripped}")
                continue
            result.append(wallet_stripped)
        return result

    @property
    def is_development(self) -> bool:
        """True when running with ENVIRONMENT=development."""
        return self.environment == "development"


def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return settings


# Global settings instance
settings = Settings()
