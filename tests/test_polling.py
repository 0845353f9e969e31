"""Tests for the processing-signal polling loop."""

from __future__ import annotations

import asyncio

import pytest

from jobsearch.agents.polling import PollingController
from jobsearch.models.job import JobListing
from jobsearch.models.search import PollState, PollStatus, ProcessingSignal, SearchResultPage
from jobsearch.tools.search_api import PollTimeoutError, SearchServerError

PARAMS = {"what": "engineer", "page": 0, "limit": 3}


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedFetch:
    """Returns scripted responses in order, repeating the last one."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []

    async def __call__(self, params: dict):
        self.calls.append(params)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def _page(*ids: str, has_more: bool = False) -> SearchResultPage:
    return SearchResultPage(
        items=[JobListing(id=i, title=f"Job {i}") for i in ids],
        total_results=len(ids),
        has_more=has_more,
    )


def _run(controller: PollingController, **kwargs):
    return asyncio.run(controller.run(PARAMS, ProcessingSignal(message="Searching for new jobs..."), **kwargs))


class TestPollingController:
    """Test suite for PollingController."""

    def test_ready_after_processing(self) -> None:
        """Still-processing answers are retried until the page is ready."""
        fetch = ScriptedFetch(
            ProcessingSignal(message="Still searching"),
            _page("a", "b"),
        )
        sleep = FakeSleep()
        progress: list[PollState] = []

        page = _run(PollingController(fetch, sleep=sleep), on_progress=progress.append)

        assert [j.id for j in page.items] == ["a", "b"]
        assert len(fetch.calls) == 2
        assert all(call == PARAMS for call in fetch.calls)
        assert progress[0].status == PollStatus.POLLING
        assert progress[-1].status == PollStatus.SUCCEEDED
        assert progress[-1].attempt_count == 2

    def test_first_attempt_waits_initial_delay(self) -> None:
        fetch = ScriptedFetch(_page("a"))
        sleep = FakeSleep()
        _run(PollingController(fetch, initial_delay_ms=2000, sleep=sleep))
        assert sleep.delays == [2.0]

    def test_interval_constant_without_extension(self) -> None:
        """Plain processing answers keep the current interval."""
        fetch = ScriptedFetch(
            ProcessingSignal(message="wait"),
            ProcessingSignal(message="wait"),
            _page("a"),
        )
        sleep = FakeSleep()
        _run(PollingController(fetch, initial_delay_ms=2000, interval_ms=2000, sleep=sleep))
        assert sleep.delays == [2.0, 2.0, 2.0]

    def test_backoff_when_extending_search(self) -> None:
        """Extended searches grow the interval by 1.5x, capped at 10s."""
        extending = ProcessingSignal(message="Still searching", search_in_progress=True)
        fetch = ScriptedFetch(*([extending] * 8), _page("a"))
        sleep = FakeSleep()

        _run(PollingController(fetch, sleep=sleep))

        assert sleep.delays[:5] == [2.0, 3.0, 4.5, 6.75, 10.0]
        assert all(b >= a for a, b in zip(sleep.delays, sleep.delays[1:]))
        assert max(sleep.delays) <= 10.0

    def test_extension_annotates_message(self) -> None:
        fetch = ScriptedFetch(
            ProcessingSignal(message="Still searching", search_in_progress=True),
            _page("a"),
        )
        progress: list[PollState] = []
        _run(PollingController(fetch, sleep=FakeSleep()), on_progress=progress.append)

        extended = progress[1]
        assert extended.message.startswith("Still searching")
        assert "extending search" in extended.message
        assert extended.interval_ms == 3000

    def test_times_out_after_exactly_max_attempts(self) -> None:
        """The ceiling is a hard cap: exactly max_attempts polls, then timed_out."""
        fetch = ScriptedFetch(ProcessingSignal(message="wait", search_in_progress=True))
        progress: list[PollState] = []

        with pytest.raises(PollTimeoutError):
            _run(PollingController(fetch, max_attempts=20, sleep=FakeSleep()), on_progress=progress.append)

        assert len(fetch.calls) == 20
        assert progress[-1].status == PollStatus.TIMED_OUT
        assert progress[-1].attempt_count == 20
        assert all(p.status == PollStatus.POLLING for p in progress[:-1])

    def test_succeeds_on_last_allowed_attempt(self) -> None:
        fetch = ScriptedFetch(*([ProcessingSignal()] * 4), _page("a"))
        page = _run(PollingController(fetch, max_attempts=5, sleep=FakeSleep()))
        assert page is not None
        assert len(fetch.calls) == 5

    def test_cached_empty_result_is_ready(self) -> None:
        """An empty cached page ends polling like any other ready page."""
        empty = SearchResultPage(items=[], total_results=0, has_more=False, cached=True)
        fetch = ScriptedFetch(empty)
        progress: list[PollState] = []

        page = _run(PollingController(fetch, sleep=FakeSleep()), on_progress=progress.append)

        assert page.items == []
        assert progress[-1].status == PollStatus.SUCCEEDED

    def test_error_fails_and_propagates(self) -> None:
        fetch = ScriptedFetch(ProcessingSignal(), SearchServerError("Server error: 500", 500))
        progress: list[PollState] = []

        with pytest.raises(SearchServerError):
            _run(PollingController(fetch, sleep=FakeSleep()), on_progress=progress.append)

        assert progress[-1].status == PollStatus.FAILED
        assert progress[-1].message == "Server error: 500"
        assert len(fetch.calls) == 2

    def test_superseded_before_attempt(self) -> None:
        """A stale loop stops without fetching or reporting."""
        fetch = ScriptedFetch(_page("a"))
        progress: list[PollState] = []

        result = _run(
            PollingController(fetch, sleep=FakeSleep()),
            is_current=lambda: False,
            on_progress=progress.append,
        )

        assert result is None
        assert fetch.calls == []
        assert len(progress) == 1  # only the initial polling state

    def test_superseded_after_attempt(self) -> None:
        """A response arriving after the loop went stale is discarded."""
        current = {"value": True}

        async def fetch(params: dict):
            current["value"] = False
            return _page("a")

        progress: list[PollState] = []
        result = _run(
            PollingController(fetch, sleep=FakeSleep()),
            is_current=lambda: current["value"],
            on_progress=progress.append,
        )

        assert result is None
        assert [p.status for p in progress] == [PollStatus.POLLING]
