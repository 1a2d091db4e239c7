from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol, cast

from yt_scraper.errors import MissingRequiredFieldError
from yt_scraper.models.video_contracts import CanonicalVideo, ChannelInfo
from yt_scraper.services.number_parser import (
    coerce_count,
    normalize_string,
    parse_human_number,
)

LOGGER = logging.getLogger("yt_scraper.normalizer")

REQUIRED_FIELD = "videoUrl"
_COUNT_FIELDS: tuple[tuple[str, str], ...] = (
    ("subscriberCount", "subscriberCountText"),
    ("likeCount", "likeCountText"),
    ("viewCount", "viewCountText"),
    ("commentCount", "commentCountText"),
)
_STRING_FIELDS: tuple[str, ...] = (
    "title",
    "author",
    "videoUrl",
    "coverImage",
    "description",
    "publishedAt",
    "id",
    "profilePicture",
    "transcript",
)
_CHANNEL_STRING_FIELDS: tuple[str, ...] = (
    "activeFrom",
    "viewCounter",
    "channelDescription",
    "country",
)


class TraceLogger(Protocol):
    def debug(self, msg: str, *args: Any, **kwargs: Any) -> Any:
        ...


class RecordNormalizer:
    """Turns a scraped field bag into a :class:`CanonicalVideo`.

    Holds no state besides the trace logger, so one instance can be shared
    across threads.
    """

    def __init__(self, *, logger: TraceLogger | None = None) -> None:
        self._logger: TraceLogger = logger if logger is not None else LOGGER

    def normalize(self, raw: Mapping[str, Any] | None) -> CanonicalVideo:
        if not raw:
            raise MissingRequiredFieldError(REQUIRED_FIELD)
        video_url = normalize_string(raw.get(REQUIRED_FIELD))
        if video_url is None:
            raise MissingRequiredFieldError(REQUIRED_FIELD)

        fields: dict[str, Any] = {
            field_name: normalize_string(raw.get(field_name)) for field_name in _STRING_FIELDS
        }
        for numeric_field, text_field in _COUNT_FIELDS:
            fields[numeric_field] = _resolve_count(raw, numeric_field, text_field)
        fields["amountOfVideos"] = coerce_count(raw.get("amountOfVideos"))
        fields["channelInfo"] = _normalize_channel_info(raw.get("channelInfo"))

        video = CanonicalVideo.model_validate(fields)
        self._logger.debug("formatted video: %s", video.title or video.video_url)
        return video


def format_video_object(
    raw: Mapping[str, Any] | None,
    *,
    logger: TraceLogger | None = None,
) -> CanonicalVideo:
    return RecordNormalizer(logger=logger).normalize(raw)


def _resolve_count(raw: Mapping[str, Any], numeric_field: str, text_field: str) -> int | None:
    numeric_value = raw.get(numeric_field)
    if numeric_value is not None:
        resolved = coerce_count(numeric_value)
        if resolved is None and isinstance(numeric_value, str):
            resolved = parse_human_number(numeric_value)
        if resolved is not None:
            return resolved
    return parse_human_number(_as_parsable(raw.get(text_field)))


def _as_parsable(raw_value: object) -> str | int | float | None:
    if raw_value is None or isinstance(raw_value, str | int | float):
        return raw_value
    return str(raw_value)


def _normalize_channel_info(raw_value: object) -> ChannelInfo | None:
    if raw_value is None or not isinstance(raw_value, Mapping):
        return None
    info = cast(Mapping[str, Any], raw_value)

    fields: dict[str, Any] = {
        field_name: normalize_string(info.get(field_name))
        for field_name in _CHANNEL_STRING_FIELDS
    }
    links: dict[str, str] = {}
    raw_links = info.get("links")
    if isinstance(raw_links, Mapping):
        for label, href in cast(Mapping[object, object], raw_links).items():
            if not href:
                continue
            links[str(label)] = str(href)
    fields["links"] = links
    return ChannelInfo.model_validate(fields)
