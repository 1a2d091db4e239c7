from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from yt_scraper.dependencies import reset_cached_dependencies


@pytest.fixture(autouse=True)
def _isolated_environment(  # pyright: ignore[reportUnusedFunction]
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[None]:
    for key in list(os.environ):
        if key.startswith("YT_SCRAPER_") or key == "LOG_LEVEL":
            monkeypatch.delenv(key, raising=False)
    # Keeps a developer's .env out of the settings under test.
    monkeypatch.chdir(tmp_path)
    reset_cached_dependencies()
    yield
    reset_cached_dependencies()
    _reset_package_logger()


def _reset_package_logger() -> None:
    logger = logging.getLogger("yt_scraper")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


class CaptureLogger:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def _record(self, message: str, *args: object, **kwargs: object) -> None:
        _ = kwargs
        if args:
            try:
                rendered = message % args
            except Exception:
                rendered = f"{message} {' '.join(str(arg) for arg in args)}"
        else:
            rendered = message
        self.messages.append(rendered)

    def debug(self, message: str, *args: object, **kwargs: object) -> None:
        self._record(message, *args, **kwargs)

    def info(self, message: str, *args: object, **kwargs: object) -> None:
        self._record(message, *args, **kwargs)

    def warning(self, message: str, *args: object, **kwargs: object) -> None:
        self._record(message, *args, **kwargs)

    def error(self, message: str, *args: object, **kwargs: object) -> None:
        self._record(message, *args, **kwargs)


@pytest.fixture
def capture_logger() -> CaptureLogger:
    return CaptureLogger()
