"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from jobsearch.config import Settings, load_settings

SAMPLE_SETTINGS = """
api_url: https://jobs.example.com
request_timeout: 5
page_size: 5

polling:
  initial_delay_ms: 1000
  max_attempts: 10

cache_enabled: false
"""


class TestLoadSettings:
    """Test suite for load_settings."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in ("JOBSEARCH_API_URL", "JOBSEARCH_API_TOKEN", "JOBSEARCH_CACHE_PATH"):
            monkeypatch.delenv(var, raising=False)

    def test_parse_file(self, tmp_path: Path) -> None:
        filepath = tmp_path / "search.yaml"
        filepath.write_text(SAMPLE_SETTINGS)

        settings = load_settings(str(filepath))

        assert settings.api_url == "https://jobs.example.com"
        assert settings.request_timeout == 5
        assert settings.page_size == 5
        assert settings.polling.initial_delay_ms == 1000
        assert settings.polling.max_attempts == 10
        assert settings.polling.backoff_factor == 1.5  # default kept
        assert settings.cache_enabled is False

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(str(tmp_path / "nope.yaml"))
        assert settings == Settings()
        assert settings.polling.max_interval_ms == 10000
        assert settings.polling.max_attempts == 20

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        filepath = tmp_path / "search.yaml"
        filepath.write_text(SAMPLE_SETTINGS)
        monkeypatch.setenv("JOBSEARCH_API_URL", "http://localhost:9999")
        monkeypatch.setenv("JOBSEARCH_API_TOKEN", "abc")

        settings = load_settings(str(filepath))

        assert settings.api_url == "http://localhost:9999"
        assert settings.api_token == "abc"

    def test_empty_file(self, tmp_path: Path) -> None:
        filepath = tmp_path / "search.yaml"
        filepath.write_text("")
        assert load_settings(str(filepath)) == Settings()

    def test_invalid_values_rejected(self, tmp_path: Path) -> None:
        filepath = tmp_path / "search.yaml"
        filepath.write_text("page_size: 50\n")
        with pytest.raises(Exception):
            load_settings(str(filepath))

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        filepath = tmp_path / "search.yaml"
        filepath.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_settings(str(filepath))
