"""
Runtime configuration for the veterinary DICOM API.

Settings are read from environment variables once per process. The fallback
archive address is fixed; only the primary address can be overridden.
Malformed values fail with a pydantic ValidationError naming the setting.
"""

import os
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator

DEFAULT_ORTHANC_URL = "http://localhost:8042"
FALLBACK_ORTHANC_URL = "http://localhost:8042"
DEFAULT_TIMEOUT_SECONDS = 5.0

# Levels understood by both the logging module and uvicorn
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
LOG_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}


class Settings(BaseModel):
    orthanc_url: str = Field(
        DEFAULT_ORTHANC_URL, description="Base URL of the primary Orthanc server"
    )
    orthanc_fallback_url: str = Field(
        FALLBACK_ORTHANC_URL, description="Base URL of the fallback Orthanc server"
    )
    orthanc_timeout: float = Field(
        DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Timeout in seconds for each request to an Orthanc server",
    )
    host: str = Field("0.0.0.0", description="Address the HTTP server binds to")
    port: int = Field(3000, gt=0, lt=65536, description="Port the HTTP server listens on")
    log_level: str = Field("INFO", description="Root logging level")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        level = str(value).strip().upper()
        level = LOG_LEVEL_ALIASES.get(level, level)
        if level not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
        return level


@lru_cache()
def get_settings() -> Settings:
    return Settings(
        orthanc_url=os.getenv("ORTHANC_URL") or DEFAULT_ORTHANC_URL,
        orthanc_timeout=os.getenv("ORTHANC_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)),
        host=os.getenv("HOST", "0.0.0.0"),
        port=os.getenv("PORT", "3000"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
