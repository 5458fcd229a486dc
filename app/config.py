"""Application configuration using Pydantic Settings."""

from typing import List, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET = "change-this-secret-key-in-production"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Repair Job Tracker API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # MongoDB
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "repair_tracker"
    MONGODB_ITEMS_COLLECTION: str = "items"
    MONGODB_USERS_COLLECTION: str = "users"
    MONGODB_MAX_POOL_SIZE: int = 10
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # Session tokens
    AUTH_TOKEN_SECRET: str = Field(default=DEFAULT_SECRET)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480  # 8 hours
    PASSWORD_HASH_ROUNDS: int = 29000

    # Seeded technician passwords
    TECH_PASSWORD_SHYAM: str = "shyamadmin"
    TECH_PASSWORD_RAKESH: str = "rakesh123"
    TECH_PASSWORD_AKHIL: str = "akhil123"
    TECH_PASSWORD_NABEEL: str = "nabeel123"

    # CORS
    CORS_ORIGINS: Union[str, List[str]] = ["*"]

    # Redis Cache Configuration
    REDIS_HOST: str = "localhost"  # Use 'redis' for Docker, 'localhost' for local dev
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""  # Leave empty if no password
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_SOCKET_KEEPALIVE: bool = True
    REDIS_SOCKET_TIMEOUT: int = 5
    REDIS_RETRY_ON_TIMEOUT: bool = True
    REDIS_HEALTH_CHECK_INTERVAL: int = 30

    # Cache Settings
    CACHE_ENABLED: bool = True
    CACHE_DEFAULT_TTL: int = 3600
    CACHE_STATS_TTL: int = 300  # 5 minutes for status-group counts

    # Login rate limiting
    LOGIN_RATE_LIMIT_ATTEMPTS: int = 10
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 900  # 15 minutes

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Vision / OCR
    VISION_PROVIDER: str = "gemini"  # gemini, openai
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    OPENAI_API_KEY: str = ""
    OPENAI_VISION_MODEL: str = "gpt-4o-mini"
    VISION_MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024  # 5MB

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # Monitoring
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = "production"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_origins(cls, v):
        """Parse comma-separated origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


# Create global settings instance
settings = Settings()
