from __future__ import annotations

import logging
from typing import Any

LOGGER = logging.getLogger("yt_scraper")


class ScraperError(Exception):
    def __init__(
        self,
        message: str,
        code: str = "SCRAPER_ERROR",
        meta: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.meta: dict[str, Any] = dict(meta or {})


class MissingRequiredFieldError(ScraperError):
    def __init__(self, field_name: str) -> None:
        super().__init__(
            f'Invalid raw video data: "{field_name}" is required.',
            code="MISSING_REQUIRED_FIELD",
            meta={"field": field_name},
        )
        self.field_name = field_name


class InvalidScrapeConfigError(ScraperError):
    pass


class BrowserError(ScraperError):
    pass


def handle_error(
    error: BaseException,
    context_message: str = "Unhandled error",
    *,
    logger: logging.Logger | None = None,
) -> None:
    target = logger or LOGGER
    if isinstance(error, ScraperError):
        target.error(
            "%s: %s - %s meta=%s",
            context_message,
            error.code,
            error,
            error.meta,
            exc_info=error,
        )
        return
    target.error("%s: %s", context_message, error, exc_info=error)
