"""Unit tests for settings."""

import pytest
from pydantic import ValidationError

from feedlens.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should load usable defaults without any environment."""
        monkeypatch.delenv("FEEDLENS_GCP_PROJECT_ID", raising=False)
        settings = Settings()
        assert settings.reader_timeout == 20.0
        assert settings.reader_min_content_length == 200
        assert settings.gcp_project_id is None
        assert settings.session_cache_size == 32
        assert settings.log_level == "INFO"

    def test_reads_prefixed_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should read FEEDLENS_ variables."""
        monkeypatch.setenv("FEEDLENS_GCP_PROJECT_ID", "my-project")
        monkeypatch.setenv("FEEDLENS_LOG_LEVEL", "debug")
        monkeypatch.setenv("FEEDLENS_LOG_JSON", "false")
        settings = Settings()
        assert settings.gcp_project_id == "my-project"
        assert settings.log_level == "DEBUG"
        assert settings.log_json is False

    def test_blank_project_id_is_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A blank project ID disables AI summaries."""
        monkeypatch.setenv("FEEDLENS_GCP_PROJECT_ID", "  ")
        assert Settings().gcp_project_id is None

    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should reject unknown log levels."""
        monkeypatch.setenv("FEEDLENS_LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError, match="FEEDLENS_LOG_LEVEL"):
            Settings()

    def test_invalid_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should reject a non-positive timeout."""
        monkeypatch.setenv("FEEDLENS_READER_TIMEOUT", "0")
        with pytest.raises(ValidationError, match="FEEDLENS_READER_TIMEOUT"):
            Settings()

    def test_invalid_cache_size(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should reject an empty session cache."""
        monkeypatch.setenv("FEEDLENS_SESSION_CACHE_SIZE", "0")
        with pytest.raises(ValidationError, match="FEEDLENS_SESSION_CACHE_SIZE"):
            Settings()
