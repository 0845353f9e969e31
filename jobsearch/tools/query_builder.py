"""Turn filter state into the query parameters the search backend expects."""

from __future__ import annotations

import json

from jobsearch.models.filters import ContractType, SearchFilters, SortKey

# Text values meaning "no preference"
NO_PREFERENCE = {"", "all"}


def build_query(filters: SearchFilters) -> dict[str, str | int]:
    """Map filters to backend query parameters.

    Parameters holding a "no preference" value are left out entirely so the
    backend applies its own defaults. ``page`` and ``limit`` are always sent.
    """
    params: dict[str, str | int] = {}

    what = filters.free_text.strip()
    if what.lower() not in NO_PREFERENCE:
        params["what"] = what

    where = filters.location.strip()
    if where.lower() not in NO_PREFERENCE:
        params["where"] = where

    if filters.contract_type != ContractType.ANY:
        params["contract_type"] = filters.contract_type.value

    if filters.salary_min is not None:
        params["salary_min"] = filters.salary_min
    if filters.salary_max is not None:
        params["salary_max"] = filters.salary_max

    if filters.sort != SortKey.RELEVANCE:
        params["sort"] = filters.sort.value

    params["page"] = filters.page
    params["limit"] = filters.page_size
    return params


def search_key(params: dict[str, str | int], backend: str | None = None) -> str:
    """Stable cache key for a query: case- and whitespace-insensitive text, sorted keys.

    ``backend`` scopes the key to one server so a shared cache never mixes them.
    """
    normalized = {
        k: v.lower().strip() if isinstance(v, str) else v
        for k, v in params.items()
    }
    if backend:
        normalized["backend"] = backend.rstrip("/")
    return json.dumps(normalized, sort_keys=True)
