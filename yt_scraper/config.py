from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, cast

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from yt_scraper.errors import InvalidScrapeConfigError

LOGGER = logging.getLogger("yt_scraper.config")

SCRAPE_MODES: frozenset[str] = frozenset({"channel", "keyword"})
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/119.0.0.0 Safari/537.36"
)
_BOOLEAN_COERCION_FIELDS: tuple[str, ...] = (
    "include_transcript",
    "headless",
    "telemetry_enabled",
)
_YAML_SUFFIXES: frozenset[str] = frozenset({".yaml", ".yml"})


def _parse_bool_with_default(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value == 1:
            return True
        if value == 0:
            return False
        return default
    if not isinstance(value, str):
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _normalize_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if normalized:
        return normalized
    return None


class ScraperSettings(BaseSettings):
    """
    Runtime defaults for the scraper.

    Every option can be set through a `YT_SCRAPER_*` environment variable or a
    `.env` file. Run-specific values given on the command line or in an input
    file take precedence over these defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="YT_SCRAPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Run defaults.
    mode: str = Field(
        default="channel",
        description="Default scrape mode: `channel` or `keyword`.",
    )
    max_videos: int = Field(
        default=10,
        description="Default number of videos scraped per run.",
    )
    max_videos_cap: int = Field(
        default=100,
        ge=1,
        description="Hard upper bound for max_videos; larger requests are capped.",
    )
    include_transcript: bool = Field(
        default=False,
        description="Fetch transcripts from the timedtext endpoint.",
    )
    headless: bool = Field(
        default=True,
        description="Run the browser without a visible window.",
    )
    language: str = Field(
        default="en",
        description="Transcript language code.",
    )

    # Browser behaviour.
    navigation_timeout_ms: int = Field(
        default=60_000,
        description="Timeout for page navigations.",
    )
    network_idle_timeout_ms: int = Field(
        default=8_000,
        description="Upper bound on waiting for the network to settle after navigation.",
    )
    settle_delay_ms: int = Field(
        default=2_000,
        description="Fixed delay after navigation so late widgets render.",
    )
    max_scrolls: int = Field(
        default=15,
        description="Scroll iterations used to lazy-load video lists.",
    )
    scroll_step_px: int = Field(
        default=1_000,
        description="Pixels scrolled per iteration.",
    )
    scroll_delay_ms: int = Field(
        default=500,
        description="Pause between scroll iterations.",
    )
    viewport_width: int = Field(default=1366, description="Browser viewport width.")
    viewport_height: int = Field(default=768, description="Browser viewport height.")
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent by the browser.",
    )

    # Transcript fetching.
    transcript_timeout_seconds: float = Field(
        default=15.0,
        description="HTTP timeout for transcript requests.",
    )

    # Logging.
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("YT_SCRAPER_LOG_LEVEL", "LOG_LEVEL"),
        description="Console log level (stderr). Plain LOG_LEVEL is honoured too.",
    )
    log_dir: Path | None = Field(
        default=None,
        description="Directory for the JSON log file. File logging is off when unset.",
    )

    # Telemetry.
    telemetry_enabled: bool = Field(
        default=True,
        description="Enable lightweight scrape telemetry events.",
    )
    telemetry_sink: Literal["none", "log"] = Field(
        default="log",
        description="`log` emits structured telemetry to the log; `none` disables output.",
    )

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("YT_SCRAPER_MODE must be a string.")
        normalized = value.strip().lower()
        if normalized in SCRAPE_MODES:
            return normalized
        raise ValueError("YT_SCRAPER_MODE must be set to: channel, keyword.")

    @field_validator("telemetry_sink", mode="before")
    @classmethod
    def _normalize_telemetry_sink(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("YT_SCRAPER_TELEMETRY_SINK must be a string.")
        normalized = value.strip().lower()
        if normalized in {"none", "log"}:
            return normalized
        raise ValueError("YT_SCRAPER_TELEMETRY_SINK must be set to: none, log.")

    @field_validator("log_dir", mode="before")
    @classmethod
    def _normalize_log_dir(cls, value: Any) -> Path | None:
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return Path(value).expanduser().resolve()

    @field_validator(*_BOOLEAN_COERCION_FIELDS, mode="before")
    @classmethod
    def _normalize_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        field_name = info.field_name
        assert field_name is not None
        default_value = cls.model_fields[field_name].default
        assert isinstance(default_value, bool)
        return _parse_bool_with_default(value, default=default_value)


class ScrapeConfig(BaseModel):
    """Resolved parameters for a single scrape run."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    mode: Literal["channel", "keyword"]
    channel_url: str | None = Field(default=None, alias="channelUrl")
    keyword: str | None = None
    max_videos: int = Field(alias="maxVideos", ge=1)
    include_transcript: bool = Field(default=False, alias="includeTranscript")
    headless: bool = True
    language: str = "en"

    @field_validator("channel_url", "keyword", mode="before")
    @classmethod
    def _normalize_optional_strings(cls, value: Any) -> str | None:
        return _normalize_optional_text(value)


_CONFIG_KEY_ALIASES: dict[str, str] = {
    "channelUrl": "channel_url",
    "maxVideos": "max_videos",
    "includeTranscript": "include_transcript",
}


def load_settings() -> ScraperSettings:
    return ScraperSettings()


def load_input_file(path: str | Path) -> dict[str, Any]:
    input_path = Path(path).expanduser().resolve()
    if not input_path.is_file():
        raise InvalidScrapeConfigError(
            f"Input config file not found at: {input_path}",
            code="INPUT_FILE_NOT_FOUND",
            meta={"path": str(input_path)},
        )

    raw = input_path.read_text(encoding="utf-8")
    try:
        if input_path.suffix.lower() in _YAML_SUFFIXES:
            parsed = cast(object, yaml.safe_load(raw))
        else:
            parsed = cast(object, json.loads(raw))
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InvalidScrapeConfigError(
            f"Failed to parse input file {input_path}: {exc}",
            code="INPUT_FILE_INVALID",
            meta={"path": str(input_path)},
        ) from exc

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise InvalidScrapeConfigError(
            f"Input file {input_path} must contain a mapping of options.",
            code="INPUT_FILE_INVALID",
            meta={"path": str(input_path)},
        )
    return _canonical_keys(cast(dict[str, Any], parsed))


def build_scrape_config(
    settings: ScraperSettings,
    *,
    file_config: Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ScrapeConfig:
    merged: dict[str, Any] = {
        "mode": settings.mode,
        "channel_url": None,
        "keyword": None,
        "max_videos": settings.max_videos,
        "include_transcript": settings.include_transcript,
        "headless": settings.headless,
        "language": settings.language,
    }
    merged.update(_canonical_keys(file_config or {}))
    merged.update(
        {key: value for key, value in _canonical_keys(overrides or {}).items() if value is not None}
    )

    mode = merged.get("mode")
    normalized_mode = mode.strip().lower() if isinstance(mode, str) else mode
    if normalized_mode not in SCRAPE_MODES:
        raise InvalidScrapeConfigError(
            f'Invalid scrape mode "{mode}". Use "channel" or "keyword".',
            code="INVALID_MODE",
            meta={"mode": mode},
        )
    merged["mode"] = normalized_mode

    if normalized_mode == "channel" and _normalize_optional_text(merged.get("channel_url")) is None:
        raise InvalidScrapeConfigError(
            'channelUrl must be provided when mode is "channel".',
            code="MISSING_CHANNEL_URL",
        )
    if normalized_mode == "keyword" and _normalize_optional_text(merged.get("keyword")) is None:
        raise InvalidScrapeConfigError(
            'keyword must be provided when mode is "keyword".',
            code="MISSING_KEYWORD",
        )

    merged["max_videos"] = _resolve_max_videos(merged.get("max_videos"), settings)
    for field_name, default in (
        ("include_transcript", settings.include_transcript),
        ("headless", settings.headless),
    ):
        merged[field_name] = _parse_bool_with_default(merged.get(field_name), default=default)
    merged["language"] = _normalize_optional_text(merged.get("language")) or settings.language

    return ScrapeConfig.model_validate(merged)


def _resolve_max_videos(raw_value: Any, settings: ScraperSettings) -> int:
    requested = _coerce_int(raw_value) or 0
    if requested <= 0:
        requested = max(1, settings.max_videos)
    if requested > settings.max_videos_cap:
        LOGGER.warning(
            "requested max_videos=%s may be slow; capping at %s",
            requested,
            settings.max_videos_cap,
        )
        requested = settings.max_videos_cap
    return requested


def _coerce_int(raw_value: object) -> int | None:
    if isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, int):
        return raw_value
    if isinstance(raw_value, float):
        return int(raw_value)
    if isinstance(raw_value, str):
        try:
            return int(raw_value.strip())
        except ValueError:
            return None
    return None


def _canonical_keys(values: Mapping[str, Any]) -> dict[str, Any]:
    return {_CONFIG_KEY_ALIASES.get(key, key): value for key, value in values.items()}
