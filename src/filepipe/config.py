"""Runtime settings, loaded from the environment and ``.env``."""
from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DATA_DIR: Path = Path("data")
    DATABASE_URL: str | None = None

    WEBHOOK_URL: str | None = None
    WEBHOOK_TIMEOUT: float = Field(default=5.0, gt=0)

    WORKER_BATCH_SIZE: int = Field(default=10, ge=1)
    WORKER_IDLE_SECONDS: float = Field(default=5.0, ge=0)
    WORKER_MAX_FILES: int = Field(default=0, ge=0)
    STALE_PROCESSING_SECONDS: int = Field(default=0, ge=0)

    MAX_UPLOAD_BYTES: int = Field(default=10 * 1024 * 1024, gt=0)

    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        """Explicit DATABASE_URL, or a SQLite file under DATA_DIR."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{self.DATA_DIR / 'filepipe.db'}"


settings = Settings()
