"""Worker configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkerSettings(BaseSettings):
    """Worker settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WORKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Where the worker loop runs: a thread of this process or a spawned process
    mode: Literal["thread", "process"] = "thread"

    # Caller-side timeout per request (seconds)
    request_timeout: float = Field(default=30.0, gt=0)

    # Workers in a WorkerPool (clamped to 1..8)
    pool_size: int = 2

    # How often the response reader wakes to check worker liveness (seconds)
    poll_interval: float = Field(default=0.1, gt=0)


@lru_cache
def get_worker_settings() -> WorkerSettings:
    """Get cached worker settings instance."""
    return WorkerSettings()
