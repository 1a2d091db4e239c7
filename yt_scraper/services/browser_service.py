from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any

from playwright.sync_api import Browser, BrowserContext, ConsoleMessage, Page, Playwright
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from yt_scraper.config import DEFAULT_USER_AGENT
from yt_scraper.errors import BrowserError

LOGGER = logging.getLogger("yt_scraper.browser")

LAUNCH_ARGS: tuple[str, ...] = ("--no-sandbox", "--disable-setuid-sandbox")


class BrowserSession:
    """One chromium browser with a single context shared by all pages."""

    def __init__(
        self,
        *,
        headless: bool = True,
        viewport_width: int = 1366,
        viewport_height: int = 768,
        user_agent: str = DEFAULT_USER_AGENT,
        playwright_factory: Callable[[], Any] = sync_playwright,
    ) -> None:
        self._headless = headless
        self._viewport = {"width": viewport_width, "height": viewport_height}
        self._user_agent = user_agent
        self._playwright_factory = playwright_factory
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    def __enter__(self) -> BrowserSession:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.stop()

    def start(self) -> None:
        try:
            playwright: Playwright = self._playwright_factory().start()
            self._playwright = playwright
            self._browser = playwright.chromium.launch(
                headless=self._headless,
                args=list(LAUNCH_ARGS),
            )
            self._context = self._browser.new_context(
                viewport=self._viewport,
                user_agent=self._user_agent,
            )
        except PlaywrightError as exc:
            self.stop()
            raise BrowserError(
                f"Failed to launch browser: {exc}",
                code="BROWSER_LAUNCH_FAILED",
            ) from exc
        LOGGER.info("browser started headless=%s", self._headless)

    def stop(self) -> None:
        if self._browser is not None:
            try:
                self._browser.close()
            except PlaywrightError as exc:
                LOGGER.warning("browser close failed error=%s", exc)
            self._browser = None
            self._context = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None

    def new_page(self) -> Page:
        if self._context is None:
            raise BrowserError("Browser session not started", code="PAGE_CREATION_FAILED")
        try:
            page = self._context.new_page()
        except PlaywrightError as exc:
            raise BrowserError(
                f"Failed to create a new page: {exc}",
                code="PAGE_CREATION_FAILED",
            ) from exc
        page.on("console", _forward_console_message)
        return page


def navigate(page: Page, url: str, *, timeout_ms: int) -> None:
    try:
        page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    except PlaywrightError as exc:
        raise BrowserError(
            f"Failed to load {url}: {exc}",
            code="NAVIGATION_FAILED",
            meta={"url": url},
        ) from exc


def wait_for_network_idle(page: Page, timeout_ms: int) -> None:
    try:
        page.wait_for_load_state("networkidle", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        LOGGER.debug("network still busy after %sms; continuing", timeout_ms)


def auto_scroll(
    page: Page,
    max_scrolls: int = 10,
    scroll_step: int = 1_000,
    delay_ms: int = 500,
) -> None:
    """Scroll down repeatedly so lazily loaded items get rendered."""
    try:
        for _ in range(max_scrolls):
            page.mouse.wheel(0, scroll_step)
            page.wait_for_timeout(delay_ms)
    except PlaywrightError as exc:
        LOGGER.warning("auto scroll failed (non-fatal) error=%s", exc)


def _forward_console_message(message: ConsoleMessage) -> None:
    if message.type == "warning":
        LOGGER.warning("page console warning: %s", message.text)
    elif message.type == "error":
        LOGGER.error("page console error: %s", message.text)
