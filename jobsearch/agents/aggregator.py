"""Merging result pages into the accumulated list, and display sorting."""

from __future__ import annotations

import logging
from typing import NamedTuple

from jobsearch.models.filters import SortKey
from jobsearch.models.job import JobListing
from jobsearch.models.search import SearchResultPage

logger = logging.getLogger(__name__)


class Aggregate(NamedTuple):
    items: list[JobListing]
    total_results: int
    has_more: bool
    strategy_level: int | None


class ResultAggregator:
    """Accumulates pages: replace on a fresh search, de-duplicated append on load-more."""

    def merge(
        self,
        existing: list[JobListing],
        incoming: list[JobListing],
        append: bool,
    ) -> list[JobListing]:
        if not append:
            return list(incoming)

        seen = {job.id for job in existing}
        merged = list(existing)
        dropped = 0
        for job in incoming:
            if job.id in seen:
                dropped += 1
                continue
            seen.add(job.id)
            merged.append(job)

        if dropped:
            logger.debug("Dropped %d duplicate job(s) while appending", dropped)
        return merged

    def aggregate(
        self,
        existing: list[JobListing],
        page: SearchResultPage,
        append: bool,
    ) -> Aggregate:
        """Merge ``page`` and take its metadata as the latest totals."""
        return Aggregate(
            items=self.merge(existing, page.items, append),
            total_results=page.total_results,
            has_more=page.has_more,
            strategy_level=page.strategy_level,
        )


def sort_listings(items: list[JobListing], sort: SortKey | str) -> list[JobListing]:
    """Return ``items`` ordered for display. Never mutates the input."""
    sort = SortKey(sort)
    if sort == SortKey.NEWEST:
        return sorted(items, key=lambda j: j.posted_timestamp, reverse=True)
    if sort == SortKey.SALARY:
        return sorted(items, key=lambda j: j.salary_ceiling, reverse=True)
    if sort == SortKey.MATCH:
        return sorted(items, key=lambda j: j.match_score or 0.0, reverse=True)
    return list(items)
