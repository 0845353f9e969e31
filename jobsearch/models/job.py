"""Pydantic model for normalized job listings."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, field_validator

from jobsearch.tools.html_cleaner import clean_html

logger = logging.getLogger(__name__)

EPOCH_MILLIS_THRESHOLD = 1e11


class JobListing(BaseModel):
    """Normalized job listing as returned by the search backend."""

    id: str
    title: str = ""
    company: str = ""
    location: str = ""
    description: str = ""
    remote: bool | None = None
    min_salary: float | None = None
    max_salary: float | None = None
    salary_estimate: str | None = None
    posted_date: datetime | None = None
    employment_status: str | None = None
    apply_url: str | None = None
    match_score: float | None = None

    @field_validator("posted_date", mode="before")
    @classmethod
    def lenient_date(cls, v: Any) -> Any:
        if v in (None, ""):
            return None
        if isinstance(v, datetime):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            # JavaScript backends send epoch milliseconds
            if abs(v) > EPOCH_MILLIS_THRESHOLD:
                v = v / 1000
            try:
                return datetime.fromtimestamp(v, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                logger.debug("Could not parse posted timestamp: %s", v)
                return None
        if isinstance(v, str):
            try:
                return datetime.fromisoformat(v.replace("Z", "+00:00"))
            except ValueError:
                logger.debug("Could not parse posted date: %s", v)
                return None
        return None

    @field_validator("min_salary", "max_salary", "match_score", mode="before")
    @classmethod
    def lenient_number(cls, v: Any) -> Any:
        if v in (None, "") or isinstance(v, bool):
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None

    @property
    def has_salary(self) -> bool:
        return self.min_salary is not None or self.max_salary is not None

    @property
    def posted_timestamp(self) -> float:
        """Posted date as epoch seconds; listings without a date sort as epoch 0."""
        if self.posted_date is None:
            return 0.0
        dt = self.posted_date
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.timestamp()

    @property
    def salary_ceiling(self) -> float:
        return max(self.min_salary or 0.0, self.max_salary or 0.0)

    @classmethod
    def from_api(cls, hit: dict) -> JobListing | None:
        """Build a listing from one backend hit, or None if it has no id.

        Accepts both the backend's raw field names (``job_title``,
        ``min_annual_salary_usd``, ``date_posted`` ...) and the canonical ones.
        """
        raw_id = hit.get("id") or hit.get("objectID") or hit.get("job_id")
        if raw_id in (None, ""):
            logger.warning("Dropping job without id: %s", hit.get("job_title") or hit.get("title"))
            return None

        company = hit.get("company")
        if not company and isinstance(hit.get("company_object"), dict):
            company = hit["company_object"].get("name")

        statuses = hit.get("employment_statuses")
        employment_status = hit.get("employment_status") or hit.get("employmentStatus")
        if not employment_status and isinstance(statuses, list) and statuses:
            employment_status = str(statuses[0])

        remote = hit.get("remote")
        if not isinstance(remote, bool):
            remote = None

        return cls(
            id=str(raw_id),
            title=hit.get("job_title") or hit.get("title") or "",
            company=company or "",
            location=hit.get("location") or hit.get("long_location") or "",
            description=clean_html(hit.get("description") or hit.get("short_description")),
            remote=remote,
            min_salary=_first(hit, "min_annual_salary_usd", "minSalary", "min_salary", "salary_min"),
            max_salary=_first(hit, "max_annual_salary_usd", "maxSalary", "max_salary", "salary_max"),
            salary_estimate=hit.get("salary_estimate") or hit.get("salaryEstimate"),
            posted_date=_first(hit, "date_posted", "postedDate", "posted_date"),
            employment_status=employment_status,
            apply_url=hit.get("final_url") or hit.get("url") or hit.get("applyUrl"),
            match_score=_first(hit, "match_score", "matchScore"),
        )


def _first(hit: dict, *keys: str) -> Any:
    for key in keys:
        value = hit.get(key)
        if value not in (None, ""):
            return value
    return None
