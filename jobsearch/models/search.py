"""Pydantic models for search responses, polling progress and session state."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from jobsearch.models.filters import SearchFilters
from jobsearch.models.job import JobListing

logger = logging.getLogger(__name__)

DEFAULT_PROCESSING_MESSAGE = "Searching for jobs..."


class SearchResultPage(BaseModel):
    """One page of results plus the metadata that came with it."""

    items: list[JobListing] = Field(default_factory=list)
    total_results: int = 0
    has_more: bool = False
    strategy_level: int | None = None  # backend relaxed the filters to find anything
    cached: bool = False
    message: str | None = None

    @classmethod
    def from_api(cls, body: dict) -> SearchResultPage:
        """Normalize a ``{data, metadata}`` response body."""
        metadata = body.get("metadata") or {}
        items: list[JobListing] = []
        for hit in body.get("data") or []:
            if not isinstance(hit, dict):
                logger.warning("Skipping malformed job entry: %r", hit)
                continue
            try:
                listing = JobListing.from_api(hit)
            except ValidationError as e:
                logger.warning("Skipping job %s that failed validation: %s", hit.get("id"), e)
                continue
            if listing is not None:
                items.append(listing)

        return cls(
            items=items,
            total_results=_as_int(metadata.get("total_results")) or 0,
            has_more=bool(metadata.get("has_more", False)),
            strategy_level=_as_int(metadata.get("api_strategy")),
            cached=bool(metadata.get("cached", False)),
            message=metadata.get("message"),
        )


class ProcessingSignal(BaseModel):
    """The backend accepted the search but has no results yet (HTTP 202)."""

    message: str = DEFAULT_PROCESSING_MESSAGE
    search_in_progress: bool = False

    @classmethod
    def from_api(cls, body: dict) -> ProcessingSignal:
        return cls(
            message=body.get("message") or DEFAULT_PROCESSING_MESSAGE,
            search_in_progress=bool(body.get("searchInProgress", False)),
        )


class PollStatus(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class PollState(BaseModel):
    """Progress of one asynchronous search."""

    attempt_count: int = 0
    interval_ms: float
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: PollStatus = PollStatus.IDLE
    message: str = ""


class SessionState(BaseModel):
    """Everything the presentation layer renders for one search session."""

    filters: SearchFilters = Field(default_factory=SearchFilters)
    items: list[JobListing] = Field(default_factory=list)
    total_results: int = 0
    has_more: bool = False
    strategy_level: int | None = None
    last_error: str | None = None
    poll_state: PollState | None = None
    is_loading: bool = False


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
