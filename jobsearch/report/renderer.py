"""Markdown rendering of a search session snapshot."""

from __future__ import annotations

from jobsearch.agents.aggregator import sort_listings
from jobsearch.models.job import JobListing
from jobsearch.models.search import SessionState


def format_salary(job: JobListing) -> str:
    if job.min_salary is not None and job.max_salary is not None:
        return f"${job.min_salary:,.0f}–${job.max_salary:,.0f}"
    if job.min_salary is not None:
        return f"${job.min_salary:,.0f}+"
    if job.max_salary is not None:
        return f"up to ${job.max_salary:,.0f}"
    return job.salary_estimate or "—"


def render_markdown(state: SessionState) -> str:
    """Render the accumulated results, sorted by the session's sort key."""
    filters = state.filters
    lines: list[str] = []

    heading = f'Jobs for "{filters.free_text}"' if filters.free_text else "Jobs"
    if filters.location:
        heading += f" in {filters.location}"
    lines.append(f"# {heading}")
    lines.append("")

    if state.last_error:
        lines.append(f"> **Error:** {state.last_error}")
        lines.append("")

    if state.strategy_level:
        lines.append("_Filters were relaxed to find these results._")
        lines.append("")

    lines.append(
        f"Showing {len(state.items)} of {state.total_results} results"
        + (" (more available)" if state.has_more else "")
    )
    lines.append("")

    if not state.items:
        lines.append("No jobs found matching your criteria.")
        return "\n".join(lines) + "\n"

    for i, job in enumerate(sort_listings(state.items, filters.sort), 1):
        title = f"[{job.title}]({job.apply_url})" if job.apply_url else job.title
        lines.append(f"## {i}. {title}")
        details = [job.company or "Unknown company", job.location or "Location not specified"]
        if job.remote:
            details.append("Remote")
        if job.employment_status:
            details.append(job.employment_status)
        lines.append(" · ".join(details))
        lines.append("")
        lines.append(f"- **Salary**: {format_salary(job)}")
        if job.posted_date:
            lines.append(f"- **Posted**: {job.posted_date.date().isoformat()}")
        if job.match_score is not None:
            lines.append(f"- **Match**: {job.match_score:.0f}%")
        if job.description:
            summary = job.description[:280] + ("..." if len(job.description) > 280 else "")
            lines.append("")
            lines.append(summary)
        lines.append("")

    return "\n".join(lines)
