"""Tests for normalizing backend payloads into listings and pages."""

from __future__ import annotations

from datetime import datetime, timezone

from jobsearch.models.job import JobListing
from jobsearch.models.search import ProcessingSignal, SearchResultPage

BACKEND_HIT = {
    "id": "job_1718000000_abc123",
    "job_title": "Senior Data Scientist",
    "company_object": {"name": "Analytics Pro"},
    "location": "Austin, TX",
    "description": "<p>Analyze <b>large</b> datasets.</p><script>track()</script>",
    "remote": True,
    "min_annual_salary_usd": 110000,
    "max_annual_salary_usd": "140000",
    "date_posted": "2025-05-01T12:00:00Z",
    "employment_statuses": ["full-time"],
    "url": "https://example.com/jobs/1",
    "final_url": "https://careers.example.com/apply/1",
}


class TestJobListing:
    """Test suite for JobListing.from_api."""

    def test_backend_hit_normalized(self) -> None:
        job = JobListing.from_api(BACKEND_HIT)

        assert job.id == "job_1718000000_abc123"
        assert job.title == "Senior Data Scientist"
        assert job.company == "Analytics Pro"
        assert job.description == "Analyze large datasets."
        assert job.remote is True
        assert job.min_salary == 110000
        assert job.max_salary == 140000
        assert job.posted_date == datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert job.employment_status == "full-time"
        assert job.apply_url == "https://careers.example.com/apply/1"
        assert job.has_salary is True

    def test_canonical_names_accepted(self) -> None:
        job = JobListing.from_api(
            {
                "id": 7,
                "title": "Designer",
                "company": "Design Studio Co.",
                "minSalary": None,
                "maxSalary": 95000,
                "postedDate": "2025-01-02",
                "employmentStatus": "contract",
                "applyUrl": "https://example.com/apply",
                "matchScore": 78,
            }
        )
        assert job.id == "7"
        assert job.min_salary is None
        assert job.max_salary == 95000
        assert job.employment_status == "contract"
        assert job.match_score == 78

    def test_missing_id_dropped(self) -> None:
        assert JobListing.from_api({"job_title": "Ghost Job"}) is None

    def test_unparseable_values_become_none(self) -> None:
        job = JobListing.from_api(
            {
                "id": "x",
                "date_posted": "2 days ago",
                "min_annual_salary_usd": "competitive",
                "remote": "maybe",
            }
        )
        assert job.posted_date is None
        assert job.min_salary is None
        assert job.remote is None
        assert job.has_salary is False
        assert job.posted_timestamp == 0.0

    def test_salary_ceiling(self) -> None:
        assert JobListing(id="a", min_salary=90000).salary_ceiling == 90000
        assert JobListing(id="b", min_salary=90000, max_salary=120000).salary_ceiling == 120000
        assert JobListing(id="c").salary_ceiling == 0

    def test_epoch_milliseconds(self) -> None:
        job = JobListing.from_api({"id": "ms", "date_posted": 1700000000000})
        assert job.posted_date == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    def test_epoch_seconds(self) -> None:
        job = JobListing.from_api({"id": "s", "date_posted": 1700000000})
        assert job.posted_date == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    def test_out_of_range_timestamp_becomes_none(self) -> None:
        job = JobListing.from_api({"id": "far", "date_posted": 1e30})
        assert job.posted_date is None


class TestSearchResultPage:
    """Test suite for SearchResultPage.from_api."""

    def test_metadata(self) -> None:
        page = SearchResultPage.from_api(
            {
                "data": [BACKEND_HIT],
                "metadata": {"total_results": 12, "has_more": True, "api_strategy": "2"},
            }
        )
        assert len(page.items) == 1
        assert page.total_results == 12
        assert page.has_more is True
        assert page.strategy_level == 2
        assert page.cached is False

    def test_null_data_is_empty_page(self) -> None:
        page = SearchResultPage.from_api({"data": None, "metadata": None})
        assert page.items == []
        assert page.total_results == 0
        assert page.has_more is False

    def test_bad_entries_skipped(self) -> None:
        page = SearchResultPage.from_api({"data": ["junk", {"job_title": "no id"}, {"id": "ok"}]})
        assert [j.id for j in page.items] == ["ok"]

    def test_invalid_hit_does_not_sink_page(self) -> None:
        """A hit that fails validation is skipped; the rest of the page survives."""
        page = SearchResultPage.from_api(
            {
                "data": [
                    {"id": "a", "job_title": "Engineer"},
                    {"id": "b", "job_title": 12345},
                    {"id": "c", "date_posted": 1700000000000},
                ],
                "metadata": {"total_results": 3},
            }
        )
        assert [j.id for j in page.items] == ["a", "c"]
        assert page.total_results == 3


class TestProcessingSignal:
    """Test suite for ProcessingSignal.from_api."""

    def test_defaults(self) -> None:
        signal = ProcessingSignal.from_api({})
        assert signal.message
        assert signal.search_in_progress is False
