from __future__ import annotations

from functools import lru_cache

from yt_scraper.config import ScraperSettings, load_settings
from yt_scraper.services.youtube_scraper_service import YouTubeScraperService
from yt_scraper.telemetry import TelemetryClient, build_telemetry_client


@lru_cache(maxsize=1)
def get_settings() -> ScraperSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_telemetry() -> TelemetryClient:
    settings = get_settings()
    return build_telemetry_client(
        enabled=settings.telemetry_enabled,
        sink=settings.telemetry_sink,
    )


def build_scraper_service() -> YouTubeScraperService:
    return YouTubeScraperService(get_settings(), telemetry=get_telemetry())


def reset_cached_dependencies() -> None:
    get_telemetry.cache_clear()
    get_settings.cache_clear()
