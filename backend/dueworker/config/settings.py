"""
Configuration settings for the due-item delivery worker.
Loads environment variables and provides application settings.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# Get project root (repo root)
# settings.py is at backend/dueworker/config/settings.py → 4 levels up
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent

DELIVERY_BACKENDS = ("log",)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database - use absolute path to avoid working directory issues
    database_url: str = f"sqlite:///{_PROJECT_ROOT}/data/dueworker.db"

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    # Celery / Redis
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"
    celery_timezone: str = "UTC"

    # Scheduler tick
    scheduler_beat_enabled: bool = True  # Register the periodic tick with Celery Beat
    scheduler_tick_interval_seconds: int = 60  # How often beat triggers a tick
    scheduler_max_workers: int = 1  # Tenants processed in parallel (1 = sequential)
    tick_deadline_seconds: float | None = None  # Stop visiting tenants after this long

    # Delivery
    delivery_backend: str = "log"
    delivery_timeout_seconds: float = 30.0  # Per-item send budget
    delivery_simulated_latency_seconds: float = 0.0  # Only used by the "log" backend

    @field_validator("scheduler_max_workers", "scheduler_tick_interval_seconds")
    @classmethod
    def _positive_int(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be >= 1")
        return value

    @field_validator("delivery_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be > 0")
        return value

    @field_validator("tick_deadline_seconds")
    @classmethod
    def _positive_deadline(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("must be > 0 when set")
        return value

    @field_validator("delivery_simulated_latency_seconds")
    @classmethod
    def _non_negative_latency(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @field_validator("delivery_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in DELIVERY_BACKENDS:
            raise ValueError(
                f"unknown delivery backend {value!r}; expected one of {DELIVERY_BACKENDS}"
            )
        return normalized

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
