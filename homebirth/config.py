"""Application configuration via pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Homebirth Match"
    app_version: str = "1.0.0"
    environment: Literal["development", "test", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    site_url: str = "http://localhost:3000"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "homebirth"
    postgres_password: str = Field(default="homebirth_secret")
    postgres_db: str = "homebirth"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    database_url_override: Optional[str] = None

    @computed_field
    @property
    def database_url(self) -> str:
        """Async PostgreSQL connection URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field
    @property
    def sync_database_url(self) -> str:
        """Sync PostgreSQL connection URL for Alembic."""
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    @computed_field
    @property
    def redis_url(self) -> str:
        """Redis connection URL."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # Hosted auth provider (HS256 JWTs, verified only)
    jwt_secret_key: str = Field(default="your-super-secret-jwt-secret-change-in-production")
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_booking_price_id: Optional[str] = None
    stripe_express_price_id: Optional[str] = None
    stripe_pro_price_id: Optional[str] = None

    # Object storage (S3 / MinIO)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "eu-central-1"
    s3_bucket_name: str = "homebirth-media"
    s3_endpoint_url: Optional[str] = None  # For MinIO in dev

    # Realtime relay
    events_channel: str = "booking-events"

    # Rate Limiting
    rate_limit_enabled: bool = True
    booking_requests_per_minute: int = 10
    checkout_requests_per_minute: int = 10
    # Per client address, keyed by path prefix below api_prefix
    ip_route_limits: Dict[str, int] = {"/search": 60, "/calendar": 30, "/profiles": 120}
    slow_request_seconds: float = 1.0

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    # Business rules
    booking_cooldown_hours: int = 24
    boost_after_hours: int = 24
    default_search_radius_km: float = 25.0
    express_booking_max_midwives: int = 5


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
