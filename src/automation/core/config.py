from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Listing Automation Engine"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True  # Set to False in production

    # Database
    database_url: str
    database_migrations_url: str | None = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_ssl_mode: str = "prefer"  # disable, prefer, require, verify-ca, verify-full
    database_statement_cache_size: int = 100  # Set to 0 behind PgBouncer

    # Shutdown
    shutdown_grace_period: int = 30

    # External workflow runner
    runner_base_url: str = "http://localhost:5678"
    runner_api_key: str | None = None  # Sent as Bearer token when set
    runner_request_timeout_seconds: float = 30.0
    runner_health_timeout_seconds: float = 5.0
    runner_callback_secret: str | None = None  # If set, callbacks must send X-Webhook-Secret

    # Retry policy
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 5.0
    retry_backoff_multiplier: float = 2.0

    # Status monitor
    status_poll_grace_seconds: int = 300  # Wait this long for a callback before polling
    status_poll_interval_seconds: int = 60  # Minimum gap between polls of one execution

    # Scheduler (due retries + status polling)
    execution_scheduler: Literal["inprocess", "temporal", "off"] = "inprocess"
    scheduler_tick_seconds: float = 5.0
    scheduler_batch_size: int = 100

    # Temporal
    temporal_host: str = "localhost:7233"
    temporal_namespace: str = "default"
    temporal_task_queue: str = "execution-maintenance"
    maintenance_workflow_id: str = "execution-maintenance"
    maintenance_iterations_per_run: int = 500  # Continue-as-new after this many ticks

    # Input sanitization
    sensitive_field_patterns: list[str] = ["password", "secret", "key", "token"]
    redaction_placeholder: str = "[REDACTED]"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    @field_validator("retry_max_attempts")
    @classmethod
    def validate_retry_ceiling(cls, v: int) -> int:
        if v < 0:
            raise ValueError("RETRY_MAX_ATTEMPTS must be zero or positive")
        return v

    @field_validator("retry_base_delay_seconds")
    @classmethod
    def validate_base_delay(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("RETRY_BASE_DELAY_SECONDS must be positive")
        return v

    @field_validator("retry_backoff_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        if v < 1:
            raise ValueError("RETRY_BACKOFF_MULTIPLIER must be at least 1")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @field_validator("runner_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()
