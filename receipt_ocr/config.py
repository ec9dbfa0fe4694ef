"""
Runtime configuration, loaded from ``RECEIPT_OCR_*`` environment variables.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RECEIPT_OCR_")

    LANGUAGES: str = Field(
        default="eng+vie",
        description="Tesseract language hints, '+'-separated",
    )
    DOWNLOAD_TIMEOUT: float = Field(
        default=30.0,
        description="Image download timeout in seconds",
    )
    RECOGNITION_TIMEOUT: Optional[float] = Field(
        default=None,
        description="Tesseract timeout in seconds (unset: unbounded)",
    )
    WORKER_COUNT: Optional[int] = Field(
        default=None,
        description="Worker threads (unset: CPU count)",
    )
    TESSERACT_CMD: Optional[str] = Field(
        default=None,
        description="Path to the tesseract binary",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
