"""
Storefront Back-Office
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DocumentStoreSettings(BaseSettings):
    """Document Store (PostgreSQL) Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", populate_by_name=True)

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="storefront", description="Database name")
    user: str = Field(default="storefront", description="Database user")
    password: SecretStr = Field(default=SecretStr("secure_password"), description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    create_schema: bool = Field(default=True, description="Create the documents table on startup")
    url: Optional[str] = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Full async database URL (overrides host/port)",
    )

    @property
    def async_url(self) -> str:
        """Async database URL - uses DATABASE_URL if set, otherwise asyncpg from parts"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class RedisSettings(BaseSettings):
    """Redis Configuration"""

    model_config = SettingsConfigDict(env_prefix="REDIS_", populate_by_name=True)

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: Optional[SecretStr] = Field(default=None, description="Redis password")
    db: int = Field(default=0, description="Redis database number")
    max_connections: int = Field(default=50, description="Max connections")
    socket_timeout: int = Field(default=5, description="Socket timeout in seconds")
    decode_responses: bool = Field(default=True, description="Decode responses to strings")
    url: Optional[str] = Field(default=None, validation_alias="REDIS_URL", description="Redis URL (overrides host/port)")

    def get_url(self) -> str:
        """Redis connection URL - uses REDIS_URL if set, otherwise builds from host/port"""
        if self.url:
            return self.url
        if self.password:
            return f"redis://:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class RealtimeSettings(BaseSettings):
    """Change notification configuration"""

    model_config = SettingsConfigDict(env_prefix="REALTIME_", populate_by_name=True)

    backend: str = Field(default="local", description="Change feed backend: local or redis")
    channel_prefix: str = Field(default="backoffice:changes", description="Redis pub/sub channel prefix")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        if v.lower() not in ("local", "redis"):
            raise ValueError("Change feed backend must be 'local' or 'redis'")
        return v.lower()


class BlobStorageSettings(BaseSettings):
    """Blob (image) storage configuration"""

    model_config = SettingsConfigDict(env_prefix="BLOB_", populate_by_name=True)

    root: str = Field(default="./data/blobs", description="Blob storage root path")
    public_base_url: str = Field(default="/media", description="Public URL prefix for stored blobs")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, description="Largest accepted image upload")


class SecuritySettings(BaseSettings):
    """Security and Authentication Configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    jwt_secret_key: SecretStr = Field(default=SecretStr("jwt-secret-change-me"), alias="JWT_SECRET_KEY", description="JWT secret key")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM", description="JWT algorithm")
    jwt_expiration_hours: int = Field(default=12, alias="JWT_EXPIRATION_HOURS", description="JWT expiration in hours")

    # Rate limiting
    rate_limit_requests: int = Field(default=100, alias="RATE_LIMIT_REQUESTS", description="Rate limit requests")
    rate_limit_window_seconds: int = Field(default=60, alias="RATE_LIMIT_WINDOW_SECONDS", description="Rate limit window")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )


class AdminSettings(BaseSettings):
    """Back-office administrator account and session storage"""

    model_config = SettingsConfigDict(env_prefix="ADMIN_", populate_by_name=True)

    # No built-in account: logins are rejected until both are set
    email: Optional[str] = Field(default=None, description="Administrator login email")
    password: Optional[SecretStr] = Field(default=None, description="Administrator password")
    session_backend: str = Field(
        default="memory",
        validation_alias="SESSION_BACKEND",
        description="Session store: memory or redis",
    )

    @field_validator("session_backend")
    @classmethod
    def validate_session_backend(cls, v: str) -> str:
        if v.lower() not in ("memory", "redis"):
            raise ValueError("Session backend must be 'memory' or 'redis'")
        return v.lower()

    @property
    def configured(self) -> bool:
        """Whether an administrator account is set"""
        return bool(self.email and self.email.strip() and self.password and self.password.get_secret_value())


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="storefront-backoffice", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")
    api_workers: int = Field(default=4, alias="API_WORKERS", description="API workers")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DocumentStoreSettings = Field(default_factory=DocumentStoreSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)
    blobs: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @model_validator(mode="after")
    def require_admin_in_production(self) -> "Settings":
        """Production deployments must configure the administrator account"""
        if self.app_env == "production" and not self.admin.configured:
            raise ValueError("ADMIN_EMAIL and ADMIN_PASSWORD must be set in production")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"

    @property
    def uses_redis(self) -> bool:
        """Whether any subsystem is configured to talk to Redis"""
        return self.realtime.backend == "redis" or self.admin.session_backend == "redis"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
