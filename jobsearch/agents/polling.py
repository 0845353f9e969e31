"""Polling loop for searches the backend answers with "still processing"."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from jobsearch.models.search import PollState, PollStatus, ProcessingSignal, SearchResultPage
from jobsearch.tools.search_api import PollTimeoutError, SearchError

logger = logging.getLogger(__name__)

Fetch = Callable[[dict], Awaitable[SearchResultPage | ProcessingSignal]]
Sleep = Callable[[float], Awaitable[None]]


class PollingController:
    """Re-issue a query until the backend has results, the attempt ceiling is hit, or it fails.

    States run ``idle -> polling -> succeeded | failed | timed_out``. The
    first attempt waits ``initial_delay_ms``; later attempts wait the current
    interval, which grows by ``backoff_factor`` (capped at ``max_interval_ms``)
    only while the backend reports it is extending an upstream search.

    ``run`` checks ``is_current()`` after every suspension point. Once it
    turns False the loop stops quietly and returns None; nothing is reported
    through ``on_progress`` after that.
    """

    def __init__(
        self,
        fetch: Fetch,
        *,
        initial_delay_ms: float = 2000,
        interval_ms: float = 2000,
        backoff_factor: float = 1.5,
        max_interval_ms: float = 10000,
        max_attempts: int = 20,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.fetch = fetch
        self.initial_delay_ms = initial_delay_ms
        self.interval_ms = interval_ms
        self.backoff_factor = backoff_factor
        self.max_interval_ms = max_interval_ms
        self.max_attempts = max_attempts
        self._sleep = sleep

    def next_interval(self, interval_ms: float) -> float:
        return min(interval_ms * self.backoff_factor, self.max_interval_ms)

    async def run(
        self,
        params: dict,
        signal: ProcessingSignal,
        *,
        is_current: Callable[[], bool] = lambda: True,
        on_progress: Callable[[PollState], None] | None = None,
    ) -> SearchResultPage | None:
        """Poll after ``signal`` until a page is ready.

        Returns the page, or None if the loop was superseded. Raises
        ``PollTimeoutError`` past the attempt ceiling and re-raises any
        ``SearchError`` from the fetch, after reporting the terminal state.
        """
        state = PollState(
            interval_ms=self.interval_ms,
            started_at=datetime.now(timezone.utc),
            status=PollStatus.POLLING,
            message=signal.message,
        )

        def report() -> None:
            if on_progress is not None:
                on_progress(state.model_copy())

        report()
        delay_ms = self.initial_delay_ms

        while True:
            await self._sleep(delay_ms / 1000)
            if not is_current():
                logger.debug("Poll superseded before attempt %d", state.attempt_count + 1)
                return None

            state.attempt_count += 1
            try:
                result = await self.fetch(params)
            except SearchError as e:
                if not is_current():
                    return None
                state.status = PollStatus.FAILED
                state.message = str(e)
                report()
                logger.warning("Poll attempt %d failed: %s", state.attempt_count, e)
                raise

            if not is_current():
                logger.debug("Poll superseded after attempt %d", state.attempt_count)
                return None

            if isinstance(result, SearchResultPage):
                state.status = PollStatus.SUCCEEDED
                state.message = result.message or ""
                report()
                logger.info("Search ready after %d poll attempt(s)", state.attempt_count)
                return result

            if state.attempt_count >= self.max_attempts:
                state.status = PollStatus.TIMED_OUT
                error = PollTimeoutError()
                state.message = str(error)
                report()
                logger.warning("Search still processing after %d attempts, giving up", state.attempt_count)
                raise error

            if result.search_in_progress:
                state.interval_ms = self.next_interval(state.interval_ms)
                state.message = (
                    f"{result.message} (extending search, next check in "
                    f"{state.interval_ms / 1000:.1f}s)"
                )
            else:
                state.message = result.message
            report()
            logger.debug(
                "Poll attempt %d/%d still processing, next in %.0fms",
                state.attempt_count, self.max_attempts, state.interval_ms,
            )
            delay_ms = state.interval_ms
