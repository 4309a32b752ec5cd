"""
Core configuration module using Pydantic Settings.

This module defines all application settings loaded from environment variables.
All configuration must go through this Settings class - NO hardcoded values.

The token service never reads the module-level ``settings`` instance on its
own; it is handed a Settings object at construction so tests can pin secrets.
"""

from typing import Literal

from pydantic import Field, PostgresDsn, RedisDsn, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are loaded from .env file or environment variables.
    Settings are validated using Pydantic with type hints.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = Field(default="Visigence API")
    version: str = Field(default="0.1.0")
    description: str = Field(
        default="Authentication, user administration and content API for Visigence"
    )
    environment: Literal["development", "staging", "production"] = Field(default="development")
    debug: bool = Field(default=False)

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False)

    # -------------------------------------------------------------------------
    # Token Settings
    # -------------------------------------------------------------------------
    access_token_secret: str = Field(
        ...,
        min_length=32,
        description="Secret used to sign access tokens. At least 32 characters.",
    )
    refresh_token_secret: str = Field(
        ...,
        min_length=32,
        description="Secret used to sign refresh tokens. Must differ from the access secret.",
    )

    access_token_expire_minutes: int = Field(default=15, ge=1, le=60)
    refresh_token_expire_days: int = Field(default=7, ge=1, le=30)

    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = Field(default="HS256")
    jwt_issuer: str = Field(default="visigence-api")
    jwt_audience: str = Field(default="visigence-client")

    # Argon2id Password Hashing Configuration
    argon2_time_cost: int = Field(default=2, ge=1, le=10)
    argon2_memory_cost: int = Field(default=65536, ge=8192)  # 64 MB
    argon2_parallelism: int = Field(default=4, ge=1, le=16)

    # -------------------------------------------------------------------------
    # Database Configuration
    # -------------------------------------------------------------------------
    database_url: PostgresDsn = Field(
        ...,
        description="PostgreSQL connection string with asyncpg driver"
    )

    # Connection Pool Settings
    db_pool_size: int = Field(default=5, ge=1, le=50)
    db_max_overflow: int = Field(default=10, ge=0, le=100)
    db_pool_recycle: int = Field(default=3600, ge=300)  # Seconds
    db_pool_timeout: int = Field(default=30, ge=1, le=300)  # Seconds
    db_pool_pre_ping: bool = Field(default=True)

    # -------------------------------------------------------------------------
    # Redis Configuration
    # -------------------------------------------------------------------------
    redis_url: RedisDsn = Field(
        ...,
        description="Redis connection string for rate limiting"
    )
    rate_limit_storage_uri: str | None = Field(
        default=None,
        description="Overrides the limiter storage (e.g. memory://). Defaults to redis_url.",
    )

    # -------------------------------------------------------------------------
    # CORS Settings
    # -------------------------------------------------------------------------
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )
    cors_allow_credentials: bool = Field(default=True)

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_default: str = Field(default="100/15minute")
    rate_limit_login: str = Field(default="5/15minute")
    rate_limit_register: str = Field(default="5/15minute")
    rate_limit_password_change: str = Field(default="3/hour")
    rate_limit_token_refresh: str = Field(default="10/hour")

    # -------------------------------------------------------------------------
    # Pagination
    # -------------------------------------------------------------------------
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    max_page: int = Field(default=1000, ge=1)

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")
    log_file_enabled: bool = Field(default=True)
    log_file_path: str = Field(default="logs/app.log")
    log_file_max_bytes: int = Field(default=10485760)  # 10 MB
    log_file_backup_count: int = Field(default=5)

    # -------------------------------------------------------------------------
    # Audit Logging
    # -------------------------------------------------------------------------
    audit_log_enabled: bool = Field(default=True)

    @model_validator(mode="after")
    def check_distinct_token_secrets(self) -> "Settings":
        """Refuse to run with the same secret for both token kinds."""
        if self.access_token_secret == self.refresh_token_secret:
            raise ValueError("access_token_secret and refresh_token_secret must differ")
        return self

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get parsed CORS origins as list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def database_url_str(self) -> str:
        """Get database URL as string."""
        return str(self.database_url)

    @property
    def redis_url_str(self) -> str:
        """Get Redis URL as string."""
        return str(self.redis_url)

    @property
    def limiter_storage_uri(self) -> str:
        """Storage backend for slowapi."""
        return self.rate_limit_storage_uri or self.redis_url_str


# Singleton instance of settings
# Import this instance throughout the application
settings = Settings()
