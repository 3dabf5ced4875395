from pydantic_settings import BaseSettings, SettingsConfigDict


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

    # Application
    app_name: str = "Site Counter"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    # Counter / tracker storage
    storage_backend: str = "memory"  # Options: "memory", "redis"
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "counter"  # Namespace for every key we write

    # Active visitors
    active_window_seconds: int = 900  # Trailing window (15 minutes)
    visit_session_seconds: int = 300  # Max distance from a visit's first ping

    # Queue settings
    queue_backend: str = "memory"  # Options: "redis_streams", "memory"
    queue_name: str = "site_events"
    queue_consumer_group: str = "counter_workers"
    queue_batch_size: int = 100  # Number of events to process at once
    queue_block_ms: int = 1000  # How long consume() waits for events
    queue_consumer_name: str = ""  # Stable per worker host; empty means "worker-<hostname>"
    queue_claim_idle_ms: int = 60000  # Pending events idle this long are claimed from dead consumers

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
