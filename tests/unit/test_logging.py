"""Unit tests for logging setup."""

import json
from collections.abc import Iterator

import pytest
import structlog

from feedlens.utils.logging import get_logger, setup_logging


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self) -> Iterator[None]:
        """Restore the default structlog configuration after each test."""
        yield
        structlog.reset_defaults()

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Emits one JSON object per event with its context."""
        setup_logging("INFO")
        get_logger("feedlens.test").info("Content normalized", images_removed=2)

        line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert line["event"] == "Content normalized"
        assert line["images_removed"] == 2
        assert line["level"] == "info"

    def test_level_filter(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Events below the configured level are dropped."""
        setup_logging("WARNING")
        get_logger("feedlens.test").info("Hidden")

        assert "Hidden" not in capsys.readouterr().out

    def test_console_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Console mode renders plain text."""
        setup_logging("INFO", json_output=False)
        get_logger("feedlens.test").info("Reader view extracted")

        out = capsys.readouterr().out
        assert "Reader view extracted" in out
        assert not out.lstrip().startswith("{")
