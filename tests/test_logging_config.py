from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import pytest

from yt_scraper.config import ScraperSettings
from yt_scraper.logging_config import LOG_FILE_NAME, configure_application_logging


def test_console_logging_goes_to_given_stream_without_file() -> None:
    stream = io.StringIO()

    log_file = configure_application_logging(ScraperSettings(), console_stream=stream)
    logging.getLogger("yt_scraper.youtube").info("loading channel videos page url=%s", "x")
    logging.getLogger("yt_scraper.youtube").debug("hidden debug line")

    assert log_file is None
    output = stream.getvalue()
    assert "loading channel videos page url=x" in output
    assert "hidden debug line" not in output
    assert logging.getLogger("yt_scraper").propagate is False


def test_log_level_and_json_file(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("YT_SCRAPER_LOG_DIR", str(tmp_path / "logs"))
    stream = io.StringIO()

    log_file = configure_application_logging(ScraperSettings(), console_stream=stream)
    logger = logging.getLogger("yt_scraper.cli")
    logger.info("scraping completed successfully videos=%s", 2)
    logger.warning("requested max_videos=%s may be slow", 500)

    assert log_file == (tmp_path / "logs" / LOG_FILE_NAME).resolve()
    assert "scraping completed successfully" not in stream.getvalue()
    assert "requested max_videos=500 may be slow" in stream.getvalue()

    lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    events = [line["event"] for line in lines]
    assert "scraping completed successfully videos=2" in events
    assert "requested max_videos=500 may be slow" in events
    warning_line = next(line for line in lines if line["level"] == "warning")
    assert warning_line["logger"] == "yt_scraper.cli"
    assert "timestamp" in warning_line


def test_reconfiguring_replaces_handlers() -> None:
    configure_application_logging(ScraperSettings(), console_stream=io.StringIO())
    configure_application_logging(ScraperSettings(), console_stream=io.StringIO())

    assert len(logging.getLogger("yt_scraper").handlers) == 1
