from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Application
    app_name: str = "Visitor Beacon Collector"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 3000

    # Database
    database_url: str = "sqlite:///./visitors.db"
    db_timeout_seconds: int = 5  # Bounded wait for locks / statements

    # Admin listing (shared secret, generated at startup when unset)
    admin_token: Optional[str] = None
    max_list_limit: int = 1000

    # Enrichment
    geoip_backend: str = "geoip2"  # Options: "geoip2", "null"
    geoip_database_path: str = "GeoLite2-City.mmdb"

    # Client info normalization
    default_utc_offset: int = 0  # Minutes, used when the client cannot report one
    max_field_length: int = 512  # Client strings are truncated to this many chars

    # Visitor store
    upsert_max_retries: int = 3  # Retries when two new visitors race for a number

    # Rate limiting
    rate_limit_backend: str = "memory"  # Options: "memory", "redis", "null"
    rate_limit_window_ms: int = 60_000
    rate_limit_max_requests: int = 120
    redis_url: str = "redis://localhost:6379/0"

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
