"""Client settings loaded from search.yaml with environment overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from jobsearch.agents.salary import DEFAULT_FALLBACK
from jobsearch.models.filters import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

# Environment variable -> settings field
ENV_OVERRIDES = {
    "JOBSEARCH_API_URL": "api_url",
    "JOBSEARCH_API_TOKEN": "api_token",
    "JOBSEARCH_CACHE_PATH": "cache_path",
}


class PollingSettings(BaseModel):
    initial_delay_ms: float = Field(default=2000, ge=0)
    interval_ms: float = Field(default=2000, gt=0)
    backoff_factor: float = Field(default=1.5, ge=1)
    max_interval_ms: float = Field(default=10000, gt=0)
    max_attempts: int = Field(default=20, ge=1)


class Settings(BaseModel):
    """Everything needed to talk to the search backend."""

    api_url: str = "http://localhost:4000"
    api_token: str | None = None
    request_timeout: float = Field(default=10.0, gt=0)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    salary_fallback: str = DEFAULT_FALLBACK
    polling: PollingSettings = Field(default_factory=PollingSettings)

    # Response cache
    cache_enabled: bool = True
    cache_path: str = "jobsearch.db"
    cache_ttl_secs: float = Field(default=30 * 60, gt=0)


def load_settings(filepath: str = "search.yaml") -> Settings:
    """Load settings from ``filepath``; missing keys (or a missing file) fall back to defaults."""
    data: dict = {}
    path = Path(filepath)
    if path.exists():
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{filepath} must contain a mapping, got {type(data).__name__}")
        logger.info("Loaded settings from %s", filepath)
    else:
        logger.warning("Settings file not found at %s, using defaults", filepath)

    for env_var, field_name in ENV_OVERRIDES.items():
        value = os.getenv(env_var, "").strip()
        if value:
            data[field_name] = value

    return Settings(**data)
