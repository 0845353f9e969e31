"""Pydantic model for the user-facing job search filters."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ContractType(str, Enum):
    ANY = "any"
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    FREELANCE = "freelance"


class SortKey(str, Enum):
    RELEVANCE = "relevance"
    NEWEST = "newest"
    SALARY = "salary"
    MATCH = "match"


# UI salary buckets -> (salary_min, salary_max)
SALARY_BUCKETS: dict[str, tuple[int | None, int | None]] = {
    "": (None, None),
    "all": (None, None),
    "50k-75k": (50000, 75000),
    "75k-100k": (75000, 100000),
    "100k-150k": (100000, 150000),
    "150k+": (150000, None),
}

DEFAULT_PAGE_SIZE = 3
MAX_PAGE_SIZE = 10


class SearchFilters(BaseModel):
    """Filter state behind one search: free text, location, contract, salary, sort, paging."""

    free_text: str = ""
    location: str = ""
    contract_type: ContractType = ContractType.ANY
    salary_min: int | None = Field(default=None, ge=0)
    salary_max: int | None = Field(default=None, ge=0)
    sort: SortKey = SortKey.RELEVANCE
    page: int = Field(default=0, ge=0)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    def update(self, **changes) -> SearchFilters:
        """Return a copy with ``changes`` applied.

        Changing anything other than ``page`` sends the user back to the
        first page.
        """
        unknown = sorted(set(changes) - set(SearchFilters.model_fields))
        if unknown:
            raise ValueError(f"Unknown filter field(s): {', '.join(unknown)}")
        data = self.model_dump()
        data.update(changes)
        updated = SearchFilters(**data)
        if any(k != "page" and getattr(self, k) != getattr(updated, k) for k in changes):
            updated.page = 0
        return updated

    def with_salary_bucket(self, bucket: str) -> SearchFilters:
        """Expand a UI salary bucket such as ``"50k-75k"`` or ``"150k+"``."""
        try:
            salary_min, salary_max = SALARY_BUCKETS[bucket.strip().lower()]
        except KeyError:
            raise ValueError(f"Unknown salary range: {bucket!r}") from None
        return self.update(salary_min=salary_min, salary_max=salary_max)

    def next_page(self) -> SearchFilters:
        return self.model_copy(update={"page": self.page + 1})
