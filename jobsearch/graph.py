"""LangGraph workflow that loads one page: request, poll if processing, enrich salaries."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypedDict

from langgraph.graph import StateGraph, END

from jobsearch.agents.polling import PollingController
from jobsearch.agents.salary import SalaryEnricher
from jobsearch.models.job import JobListing
from jobsearch.models.search import PollState, ProcessingSignal, SearchResultPage
from jobsearch.tools.search_api import SearchError

logger = logging.getLogger(__name__)


# =============================================================================
# Pipeline State
# =============================================================================


class PageLoadState(TypedDict, total=False):
    """State passed between nodes while loading one page."""

    # Input
    params: dict
    is_current: Callable[[], bool]
    on_progress: Callable[[PollState], None] | None

    # Output
    page: SearchResultPage | None
    items: list[JobListing]
    error: str | None
    superseded: bool


def build_page_pipeline(
    fetch: Callable[[dict], Awaitable[SearchResultPage | ProcessingSignal]],
    poller: PollingController,
    enricher: SalaryEnricher,
):
    """Build and compile the page-load pipeline around the given collaborators."""

    # =========================================================================
    # Node 1: Fetch Page
    # =========================================================================

    async def fetch_page_node(state: PageLoadState) -> dict:
        """Issue the search; hand off to the poller if the backend is still processing."""
        params = state["params"]
        is_current = state.get("is_current") or (lambda: True)
        logger.debug("=== Node 1: Fetch Page (page=%s) ===", params.get("page"))

        try:
            result = await fetch(params)
            if not is_current():
                return {"superseded": True}

            if isinstance(result, ProcessingSignal):
                logger.info("Search processing: %s", result.message)
                page = await poller.run(
                    params,
                    result,
                    is_current=is_current,
                    on_progress=state.get("on_progress"),
                )
                if page is None:
                    return {"superseded": True}
            else:
                page = result
        except SearchError as e:
            return {"error": str(e)}
        except Exception as e:
            logger.error("Unexpected error loading page: %s", e, exc_info=True)
            return {"error": f"Unexpected error: {e}"}

        return {"page": page}

    # =========================================================================
    # Node 2: Enrich Salaries
    # =========================================================================

    async def enrich_salaries_node(state: PageLoadState) -> dict:
        """Fill in salary estimates; the page is ready once every lookup settled."""
        page = state["page"]
        logger.debug("=== Node 2: Enrich Salaries (%d items) ===", len(page.items))

        items = await enricher.enrich_all(page.items)
        if not state.get("is_current", lambda: True)():
            return {"superseded": True}
        return {"items": items}

    def route_after_fetch(state: PageLoadState) -> str:
        if state.get("error") or state.get("superseded") or state.get("page") is None:
            return END
        return "enrich_salaries"

    # =========================================================================
    # Build the Graph
    # =========================================================================

    graph = StateGraph(PageLoadState)

    graph.add_node("fetch_page", fetch_page_node)
    graph.add_node("enrich_salaries", enrich_salaries_node)

    graph.set_entry_point("fetch_page")
    graph.add_conditional_edges(
        "fetch_page",
        route_after_fetch,
        {"enrich_salaries": "enrich_salaries", END: END},
    )
    graph.add_edge("enrich_salaries", END)

    return graph.compile()
