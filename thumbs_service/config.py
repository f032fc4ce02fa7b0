"""
Configuration loader for the thumbnail service.

Environment variables are centralized here to keep the rest of the code
focused on the pipeline and to make operational tuning clear.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Thumbnail generation
    thumbnail_size: int = Field(128, gt=0)
    thumbs_bucket_suffix: str = Field("-thumbs", min_length=1)
    created_event_prefix: str = Field("ObjectCreated", min_length=1)
    max_workers: int = Field(1, ge=1)

    # S3 / S3-compatible storage
    s3_endpoint_url: Optional[str] = None
    aws_region: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be one of DEBUG|INFO|WARNING|ERROR|CRITICAL")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings so the thumbnail size stays fixed for the process."""
    return Settings()
