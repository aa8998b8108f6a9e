"""
Configuration module for Guardian Service API.
Uses Pydantic BaseSettings for validation - app fails fast on malformed config.
"""
import logging
from pathlib import Path
from typing import List

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings with validation.
    Every field has a default so the service starts with an empty .env.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Key-value store (SQLite)
    guardian_db_dir: str = Field(default="data", description="Database directory")
    guardian_db_file: str = Field(default="guardian.db", description="Database filename")
    guardian_db_busy_timeout: int = Field(default=5000, description="SQLite busy timeout in milliseconds")

    # API Configuration
    guardian_host: str = Field(default="0.0.0.0", description="API host")
    guardian_port: int = Field(default=8000, description="API port")
    guardian_reload: bool = Field(default=False, description="Enable hot reload")

    # Display
    guardian_display_timezone: str = Field(
        default="UTC",
        description="IANA timezone used when rendering timestamps for people",
    )

    # Redis & Celery Configuration
    guardian_redis_url: str = Field(default="redis://localhost:6379", description="Redis URL")
    guardian_redis_db: int = Field(default=0, description="Redis database number")
    guardian_celery_task_serializer: str = Field(default="json", description="Celery task serializer")
    guardian_celery_result_serializer: str = Field(default="json", description="Celery result serializer")
    guardian_celery_accept_content: str = Field(default="json", description="Celery accepted content types (comma-separated)")
    guardian_celery_timezone: str = Field(default="UTC", description="Celery timezone")
    guardian_celery_enable_utc: bool = Field(default=True, description="Enable UTC for Celery")

    # Best-effort bundle sync
    guardian_sync_enabled: bool = Field(default=False, description="Push every export to the sync topic")
    guardian_sync_snapshot_size: int = Field(default=10, ge=1, description="Readings included in a sync snapshot")
    guardian_sync_retry_delay: int = Field(default=5, ge=0, description="Seconds between publish retries")
    guardian_sync_max_retries: int = Field(default=3, ge=0, description="Publish retries before giving up")
    guardian_sync_topic_prefix: str = Field(default="cig_user_", description="Prefix of generated sync topics")
    guardian_viewer_base_url: str = Field(
        default="http://localhost:8080/index.html",
        description="URL of the patient page; the clinician viewer lives next to it",
    )

    # Recognition (OCR)
    guardian_ocr_languages: str = Field(default="eng+chi_tra", description="Tesseract language pack(s)")
    guardian_ocr_fallback_language: str = Field(default="eng", description="Language used when the primary pack fails")
    guardian_upload_max_size: int = Field(default=10485760, description="Max image size in bytes (10MB)")

    @model_validator(mode="after")
    def validate_sync(self) -> "Settings":
        """Warn about sync settings that will never deliver anything."""
        if self.guardian_sync_enabled and not self.guardian_redis_url:
            logger.warning(
                "GUARDIAN_SYNC_ENABLED is set but GUARDIAN_REDIS_URL is empty - "
                "bundle sync will fail on every export"
            )
        return self

    @property
    def database_path(self) -> str:
        """Get the full database path."""
        return str(Path(self.guardian_db_dir) / self.guardian_db_file)

    @property
    def redis_connection_url(self) -> str:
        """Get the Redis URL with database selection."""
        return f"{self.guardian_redis_url}/{self.guardian_redis_db}"

    @property
    def celery_accept_content_list(self) -> List[str]:
        """Get the Celery accepted content types as a list."""
        return [c.strip() for c in self.guardian_celery_accept_content.split(",")]

    def ensure_directories(self) -> None:
        """Ensure required directories exist."""
        Path(self.guardian_db_dir).mkdir(parents=True, exist_ok=True)


settings = Settings()

settings.ensure_directories()

DATABASE_PATH = settings.database_path
DATABASE_BUSY_TIMEOUT = settings.guardian_db_busy_timeout

API_HOST = settings.guardian_host
API_PORT = settings.guardian_port
API_RELOAD = settings.guardian_reload

REDIS_URL = settings.redis_connection_url
CELERY_BROKER_URL = settings.redis_connection_url
CELERY_RESULT_BACKEND = settings.redis_connection_url
CELERY_TASK_SERIALIZER = settings.guardian_celery_task_serializer
CELERY_RESULT_SERIALIZER = settings.guardian_celery_result_serializer
CELERY_ACCEPT_CONTENT = settings.celery_accept_content_list
CELERY_TIMEZONE = settings.guardian_celery_timezone
CELERY_ENABLE_UTC = settings.guardian_celery_enable_utc
