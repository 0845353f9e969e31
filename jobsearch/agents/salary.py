"""Best-effort salary estimates for listings the backend returned without one."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from jobsearch.models.job import JobListing

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK = "Salary not disclosed"

Lookup = Callable[[str, str, str], Awaitable[str]]


class SalaryEnricher:
    """Attach ``salary_estimate`` to listings that have neither salary bound.

    A failed lookup never fails the page: the listing gets ``fallback``
    instead. Successful estimates are remembered per job id.
    """

    def __init__(self, lookup: Lookup, fallback: str = DEFAULT_FALLBACK) -> None:
        self.lookup = lookup
        self.fallback = fallback
        self._estimates: dict[str, str] = {}

    async def enrich(self, listing: JobListing) -> JobListing:
        if listing.has_salary:
            return listing

        estimate = self._estimates.get(listing.id)
        if estimate is None:
            try:
                estimate = await self.lookup(listing.id, listing.title, listing.location)
                if not isinstance(estimate, str) or not estimate.strip():
                    raise ValueError(f"empty estimate {estimate!r}")
                estimate = estimate.strip()
            except Exception as e:
                logger.warning("Salary estimate failed for job %s (%s): %s", listing.id, listing.title, e)
                return listing.model_copy(update={"salary_estimate": self.fallback})
            self._estimates[listing.id] = estimate

        return listing.model_copy(update={"salary_estimate": estimate})

    async def enrich_all(self, listings: list[JobListing]) -> list[JobListing]:
        """Enrich every listing concurrently; returns once all lookups have settled."""
        needing = sum(1 for job in listings if not job.has_salary)
        if not needing:
            return list(listings)

        logger.info("Estimating salary for %d of %d jobs", needing, len(listings))
        return list(await asyncio.gather(*(self.enrich(job) for job in listings)))
