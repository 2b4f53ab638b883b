from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Job Queue"
    QUEUE_NAME: str = "default"

    # Worker pool
    CONCURRENCY: int = Field(default=4, ge=1)
    IDLE_INTERVAL_SECONDS: float = Field(default=1.0, gt=0)
    ERROR_BACKOFF_SECONDS: float = Field(default=5.0, ge=0)
    STOP_POLL_INTERVAL_SECONDS: float = Field(default=0.1, gt=0)
    # Threads for sync handlers; None lets ThreadPoolExecutor pick
    HANDLER_THREADS: Optional[int] = Field(default=None, ge=1)

    # Job defaults
    MAX_RETRIES: int = Field(default=3, ge=0)
    JOB_TIMEOUT_SECONDS: float = Field(default=300.0, gt=0)

    # Backoff
    RETRY_DELAY_SECONDS: float = Field(default=5.0, ge=0)
    RETRY_MAX_DELAY_SECONDS: Optional[float] = None
    RETRY_JITTER: bool = False

    # Periodic sweep of completed/failed jobs
    CLEANUP_INTERVAL_SECONDS: float = Field(default=3600.0, gt=0)
    CLEANUP_RETENTION_SECONDS: float = Field(default=86400.0, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="JOBQUEUE_",
        env_file=".env",
        extra="ignore",
    )

settings = Settings()
