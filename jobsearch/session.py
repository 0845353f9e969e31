"""Job search session: owns filter and result state for one search view."""

from __future__ import annotations

import logging
from typing import Callable

from jobsearch.agents.aggregator import ResultAggregator, sort_listings
from jobsearch.agents.polling import PollingController
from jobsearch.agents.salary import SalaryEnricher
from jobsearch.graph import build_page_pipeline
from jobsearch.models.filters import SearchFilters
from jobsearch.models.job import JobListing
from jobsearch.models.search import PollState, SessionState
from jobsearch.tools.query_builder import build_query
from jobsearch.tools.search_api import JobSearchAPI

logger = logging.getLogger(__name__)

Subscriber = Callable[[SessionState], None]


class JobSearchSession:
    """Drives ``search`` and ``load_more`` and keeps the resulting ``SessionState``.

    Every call takes a new generation number. Work started under an older
    generation (a poll loop, salary lookups) may still finish, but its result
    is discarded instead of touching state. Errors never propagate out of
    ``search``/``load_more``; they land in ``state.last_error``.
    """

    def __init__(
        self,
        api: JobSearchAPI,
        *,
        poller: PollingController | None = None,
        enricher: SalaryEnricher | None = None,
        aggregator: ResultAggregator | None = None,
        filters: SearchFilters | None = None,
    ) -> None:
        self.api = api
        self.poller = poller or PollingController(api.search)
        self.enricher = enricher or SalaryEnricher(api.estimate_salary)
        self.aggregator = aggregator or ResultAggregator()
        self._pipeline = build_page_pipeline(api.search, self.poller, self.enricher)
        self._state = SessionState(filters=filters or SearchFilters())
        self._generation = 0
        self._subscribers: list[Subscriber] = []

    # -- Reading ----------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """A snapshot; mutating it does not affect the session."""
        return self._state.model_copy(deep=True)

    @property
    def generation(self) -> int:
        return self._generation

    def sorted_items(self) -> list[JobListing]:
        """Accumulated items in the display order chosen by ``filters.sort``."""
        return sort_listings(self._state.items, self._state.filters.sort)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback`` with a fresh snapshot after every state change."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # -- Operations -------------------------------------------------------------

    async def search(self, filters: SearchFilters | None = None) -> SessionState:
        """Run a fresh search from page 0, replacing the current results on success."""
        filters = (filters or self._state.filters).model_copy(update={"page": 0})
        generation = self._begin()
        logger.info("Search #%d: %s", generation, build_query(filters))

        self._update(filters=filters, last_error=None, poll_state=None, is_loading=True)
        await self._load(generation, filters, append=False)
        return self.state

    async def load_more(self) -> SessionState:
        """Append the next page. No-op without more results or while a load is running."""
        if not self._state.has_more or self._state.is_loading:
            logger.debug(
                "load_more ignored (has_more=%s, loading=%s)",
                self._state.has_more, self._state.is_loading,
            )
            return self.state

        filters = self._state.filters.next_page()
        generation = self._begin()
        logger.info("Load more #%d: page %d", generation, filters.page)

        self._update(last_error=None, poll_state=None, is_loading=True)
        await self._load(generation, filters, append=True)
        return self.state

    def reset(self) -> None:
        """Drop all results and orphan anything still in flight."""
        self._begin()
        self._update(
            items=[], total_results=0, has_more=False, strategy_level=None,
            last_error=None, poll_state=None, is_loading=False,
            filters=self._state.filters.model_copy(update={"page": 0}),
        )

    # -- Internal helpers -------------------------------------------------------

    def _begin(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _update(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)
        for callback in list(self._subscribers):
            try:
                callback(self.state)
            except Exception:
                logger.exception("Session subscriber %r failed", callback)

    def _on_progress(self, generation: int, poll_state: PollState) -> None:
        if self._is_current(generation):
            self._update(poll_state=poll_state)

    async def _load(self, generation: int, filters: SearchFilters, append: bool) -> None:
        try:
            await self._run_load(generation, filters, append)
        except Exception as e:
            logger.error("Load #%d crashed: %s", generation, e, exc_info=True)
            if self._is_current(generation):
                self._update(last_error=f"Unexpected error: {e}")
        finally:
            if self._is_current(generation) and self._state.is_loading:
                self._update(is_loading=False)

    async def _run_load(self, generation: int, filters: SearchFilters, append: bool) -> None:
        result = await self._pipeline.ainvoke(
            {
                "params": build_query(filters),
                "is_current": lambda: self._is_current(generation),
                "on_progress": lambda poll_state: self._on_progress(generation, poll_state),
            }
        )

        if not self._is_current(generation) or result.get("superseded"):
            logger.debug("Discarding result of superseded load #%d", generation)
            return

        error = result.get("error")
        if error:
            logger.warning("Load #%d failed: %s", generation, error)
            changes: dict = {"last_error": error, "is_loading": False}
            if not append:
                # Current items belong to the previous filters; don't page past them.
                changes["has_more"] = False
            self._update(**changes)
            return

        page = result["page"].model_copy(update={"items": result.get("items", [])})
        aggregate = self.aggregator.aggregate(self._state.items, page, append)
        self._update(
            filters=filters,
            items=aggregate.items,
            total_results=aggregate.total_results,
            has_more=aggregate.has_more,
            strategy_level=aggregate.strategy_level,
            last_error=None,
            is_loading=False,
        )
        logger.info(
            "Load #%d done: %d item(s) held, %d total, has_more=%s",
            generation, len(aggregate.items), aggregate.total_results, aggregate.has_more,
        )
