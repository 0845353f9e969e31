"""Job Search Client - CLI entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import time
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv


def setup_logging(log_level: str = "INFO") -> None:
    """Configure logging to both console and log file."""
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    run_date = datetime.now().strftime("%Y-%m-%d")
    log_file = log_dir / f"search_{run_date}.log"

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job search client: search, poll and paginate a job search backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --what engineer                      # First page of results
  python main.py --what engineer --where Berlin --pages 3
  python main.py --what designer --salary 75k-100k --sort newest
  python main.py --what nurse --contract-type part_time --no-cache
        """,
    )
    parser.add_argument("--what", default="", help="Job title, company or keywords")
    parser.add_argument("--where", default="", help="Location")
    parser.add_argument(
        "--contract-type",
        choices=["any", "full_time", "part_time", "contract", "freelance"],
        default="any",
        help="Contract type. Default: any",
    )
    parser.add_argument(
        "--salary",
        default="",
        help="Salary range: 50k-75k, 75k-100k, 100k-150k or 150k+",
    )
    parser.add_argument(
        "--sort",
        choices=["relevance", "newest", "salary", "match"],
        default="relevance",
        help="Sort order. Default: relevance",
    )
    parser.add_argument("--pages", type=int, default=1, help="Number of pages to load. Default: 1")
    parser.add_argument("--page-size", type=int, default=None, help="Results per page (1-10)")
    parser.add_argument(
        "--config",
        default="search.yaml",
        help="Path to settings file. Default: search.yaml",
    )
    parser.add_argument("--api-url", default=None, help="Search backend base URL override")
    parser.add_argument("--no-cache", action="store_true", help="Skip the local response cache")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


async def run_search(args: argparse.Namespace) -> int:
    from jobsearch.agents.polling import PollingController
    from jobsearch.agents.salary import SalaryEnricher
    from jobsearch.config import load_settings
    from jobsearch.models.filters import SearchFilters
    from jobsearch.report.renderer import render_markdown
    from jobsearch.session import JobSearchSession
    from jobsearch.storage.cache import ResponseCache
    from jobsearch.tools.query_builder import build_query, search_key
    from jobsearch.tools.search_api import JobSearchAPI

    logger = logging.getLogger("jobsearch_client")

    settings = load_settings(args.config)
    if args.api_url:
        settings.api_url = args.api_url

    filters = SearchFilters(
        free_text=args.what,
        location=args.where,
        contract_type=args.contract_type,
        sort=args.sort,
        page_size=args.page_size or settings.page_size,
    ).with_salary_bucket(args.salary)

    cache = None
    if settings.cache_enabled and not args.no_cache:
        cache = ResponseCache(settings.cache_path, ttl_secs=settings.cache_ttl_secs)
        cache.purge_expired()

    start_time = time.time()
    pages_loaded = 0
    async with JobSearchAPI(
        settings.api_url,
        token=settings.api_token,
        timeout=settings.request_timeout,
        cache=cache,
    ) as api:
        session = JobSearchSession(
            api,
            poller=PollingController(api.search, **settings.polling.model_dump()),
            enricher=SalaryEnricher(api.estimate_salary, fallback=settings.salary_fallback),
        )
        shown: list[str] = []

        def show_progress(snapshot) -> None:
            poll = snapshot.poll_state
            if poll is not None and (not shown or shown[-1] != poll.message):
                shown.append(poll.message)
                logger.info("[poll %d] %s", poll.attempt_count, poll.message)

        session.subscribe(show_progress)

        state = await session.search(filters)
        if not state.last_error:
            pages_loaded = 1
        while not state.last_error and state.has_more and pages_loaded < args.pages:
            state = await session.load_more()
            if not state.last_error:
                pages_loaded += 1

    duration = time.time() - start_time
    if cache is not None:
        cache.log_search(
            search_key(build_query(filters)),
            pages_loaded=pages_loaded,
            total_items=len(state.items),
            total_results=state.total_results,
            error=state.last_error,
            duration_secs=duration,
        )
        cache.close()

    print(render_markdown(state))
    logger.info("Search complete in %.1f seconds (%d page(s))", duration, pages_loaded)

    if state.last_error:
        logger.error("Search failed: %s", state.last_error)
        return 1
    return 0


def main() -> None:
    """Main CLI entrypoint for the job search client."""
    args = build_parser().parse_args()

    # Load environment variables
    load_dotenv()

    # Setup logging
    log_level = args.log_level or os.getenv("LOG_LEVEL", "INFO")
    setup_logging(log_level)

    try:
        exit_code = asyncio.run(run_search(args))
    except ValueError as e:
        logging.getLogger("jobsearch_client").error("Invalid search: %s", e)
        exit_code = 2
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
