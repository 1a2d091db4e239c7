from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from functools import partial
from typing import Any, Protocol
from urllib.parse import parse_qs, urlencode, urlparse

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from yt_scraper.config import ScrapeConfig, ScraperSettings, build_scrape_config
from yt_scraper.errors import InvalidScrapeConfigError, ScraperError, handle_error
from yt_scraper.models.video_contracts import CanonicalVideo
from yt_scraper.services.browser_service import (
    BrowserSession,
    auto_scroll,
    navigate,
    wait_for_network_idle,
)
from yt_scraper.services.page_parser import (
    CHANNEL_VIDEO_LINK_SELECTOR,
    SEARCH_VIDEO_LINK_SELECTOR,
    extract_channel_about,
    extract_video_fields,
    extract_video_links,
)
from yt_scraper.services.record_normalizer import RecordNormalizer
from yt_scraper.services.transcript_service import fetch_transcript
from yt_scraper.telemetry import TelemetryClient

LOGGER = logging.getLogger("yt_scraper.youtube")

SEARCH_RESULTS_URL = "https://www.youtube.com/results"
COVER_IMAGE_URL_TEMPLATE = "https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"
_PATH_ID_PREFIXES: frozenset[str] = frozenset({"shorts", "embed"})


class PageSource(Protocol):
    def new_page(self) -> Page:
        ...


class BrowserSessionLike(PageSource, Protocol):
    def __enter__(self) -> PageSource:
        ...

    def __exit__(self, *exc_info: object) -> None:
        ...


TranscriptFetcher = Callable[[str | None, str], str | None]
SessionFactory = Callable[[ScrapeConfig], BrowserSessionLike]


def extract_video_id(video_url: str) -> str | None:
    try:
        parsed = urlparse(video_url)
    except ValueError as exc:
        LOGGER.warning("failed to parse video id url=%s error=%s", video_url, exc)
        return None

    query_ids = parse_qs(parsed.query).get("v")
    if query_ids and query_ids[0].strip():
        return query_ids[0].strip()

    segments = [segment for segment in parsed.path.split("/") if segment]
    if len(segments) >= 2 and segments[0] in _PATH_ID_PREFIXES:
        return segments[1]
    if segments:
        return segments[-1]
    return None


def build_cover_image_url(video_id: str | None) -> str | None:
    if not video_id:
        return None
    return COVER_IMAGE_URL_TEMPLATE.format(video_id=video_id)


def build_search_url(keyword: str) -> str:
    return f"{SEARCH_RESULTS_URL}?{urlencode({'search_query': keyword})}"


class YouTubeScraperService:
    def __init__(
        self,
        settings: ScraperSettings,
        *,
        session_factory: SessionFactory | None = None,
        transcript_fetcher: TranscriptFetcher | None = None,
        normalizer: RecordNormalizer | None = None,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self._settings = settings
        self._session_factory = session_factory or self._default_session_factory
        self._transcript_fetcher: TranscriptFetcher = transcript_fetcher or partial(
            fetch_transcript,
            timeout_seconds=settings.transcript_timeout_seconds,
            user_agent=settings.user_agent,
        )
        self._normalizer = normalizer or RecordNormalizer()
        self._telemetry = telemetry or TelemetryClient.disabled()

    def _default_session_factory(self, config: ScrapeConfig) -> BrowserSessionLike:
        return BrowserSession(
            headless=config.headless,
            viewport_width=self._settings.viewport_width,
            viewport_height=self._settings.viewport_height,
            user_agent=self._settings.user_agent,
        )

    def scrape(self, config: ScrapeConfig) -> list[CanonicalVideo]:
        LOGGER.info(
            "starting scrape mode=%s max_videos=%s include_transcript=%s",
            config.mode,
            config.max_videos,
            config.include_transcript,
        )
        with self._telemetry.span(
            "scrape.run",
            mode=config.mode,
            max_videos=config.max_videos,
        ) as span:
            with self._session_factory(config) as session:
                if config.mode == "channel":
                    videos = self._scrape_channel(session, config)
                else:
                    videos = self._scrape_keyword(session, config)
            span["videos_count"] = len(videos)
        return videos

    def _scrape_channel(self, session: PageSource, config: ScrapeConfig) -> list[CanonicalVideo]:
        channel_url = _require(config.channel_url, "channel_url")
        videos_url = f"{channel_url.rstrip('/')}/videos"
        LOGGER.info("loading channel videos page url=%s", videos_url)
        links = self._collect_links(session, videos_url, CHANNEL_VIDEO_LINK_SELECTOR, config)
        channel_info = self.scrape_channel_info(session, channel_url)
        LOGGER.info("found video links for channel count=%s", len(links))
        return self._scrape_links(session, links, config, channel_info)

    def _scrape_keyword(self, session: PageSource, config: ScrapeConfig) -> list[CanonicalVideo]:
        search_url = build_search_url(_require(config.keyword, "keyword"))
        LOGGER.info("loading search results page url=%s", search_url)
        links = self._collect_links(session, search_url, SEARCH_VIDEO_LINK_SELECTOR, config)
        LOGGER.info("found video links for keyword search count=%s", len(links))
        return self._scrape_links(session, links, config, None)

    def _collect_links(
        self,
        session: PageSource,
        url: str,
        selector: str,
        config: ScrapeConfig,
    ) -> list[dict[str, str]]:
        page = session.new_page()
        try:
            self._open(page, url)
            auto_scroll(
                page,
                self._settings.max_scrolls,
                self._settings.scroll_step_px,
                self._settings.scroll_delay_ms,
            )
            return extract_video_links(page, selector, config.max_videos)
        finally:
            page.close()

    def _scrape_links(
        self,
        session: PageSource,
        links: list[dict[str, str]],
        config: ScrapeConfig,
        channel_info: Mapping[str, Any] | None,
    ) -> list[CanonicalVideo]:
        results: list[CanonicalVideo] = []
        for link in links:
            video_url = link["url"]
            try:
                with self._telemetry.span("scrape.video", video_url=video_url):
                    raw = self.scrape_video(session, video_url, config, channel_info)
                    raw["amountOfVideos"] = len(links)
                    results.append(self._normalizer.normalize(raw))
            except (ScraperError, PlaywrightError) as exc:
                handle_error(exc, f"Failed to scrape video {video_url}", logger=LOGGER)
        return results

    def scrape_video(
        self,
        session: PageSource,
        video_url: str,
        config: ScrapeConfig,
        channel_info: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        page = session.new_page()
        try:
            LOGGER.info("scraping video url=%s", video_url)
            self._open(page, video_url)
            page.wait_for_timeout(self._settings.settle_delay_ms)
            video_fields = extract_video_fields(page)
        finally:
            page.close()

        video_id = extract_video_id(video_url)
        transcript = None
        if config.include_transcript:
            transcript = self._transcript_fetcher(video_id, config.language)

        channel_subscribers = channel_info.get("subscriberCountText") if channel_info else None
        return {
            "id": video_id,
            "videoUrl": video_url,
            "coverImage": build_cover_image_url(video_id),
            "transcript": transcript,
            "amountOfVideos": None,
            "channelInfo": dict(channel_info) if channel_info else None,
            **video_fields,
            "subscriberCountText": channel_subscribers or video_fields.get("subscriberCountText"),
        }

    def scrape_channel_info(self, session: PageSource, channel_url: str) -> dict[str, Any] | None:
        about_url = f"{channel_url.rstrip('/')}/about"
        LOGGER.info("scraping channel info url=%s", about_url)
        try:
            page = session.new_page()
            try:
                self._open(page, about_url)
                page.wait_for_timeout(self._settings.settle_delay_ms)
                return extract_channel_about(page)
            finally:
                page.close()
        except (ScraperError, PlaywrightError) as exc:
            LOGGER.warning("failed to scrape channel info url=%s error=%s", about_url, exc)
            return None

    def _open(self, page: Page, url: str) -> None:
        navigate(page, url, timeout_ms=self._settings.navigation_timeout_ms)
        wait_for_network_idle(page, self._settings.network_idle_timeout_ms)


def scrape_youtube(
    config: ScrapeConfig | Mapping[str, Any] | None = None,
    *,
    settings: ScraperSettings | None = None,
    telemetry: TelemetryClient | None = None,
) -> list[CanonicalVideo]:
    """Programmatic entry point: merge `config` over the settings defaults and scrape."""
    resolved_settings = settings or ScraperSettings()
    if isinstance(config, ScrapeConfig):
        scrape_config = config
    else:
        scrape_config = build_scrape_config(resolved_settings, overrides=config or {})
    service = YouTubeScraperService(resolved_settings, telemetry=telemetry)
    return service.scrape(scrape_config)


def _require(value: str | None, field_name: str) -> str:
    if value is None:
        raise InvalidScrapeConfigError(
            f"{field_name} is required for this scrape mode",
            code=f"MISSING_{field_name.upper()}",
        )
    return value
