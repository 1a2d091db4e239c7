from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pytest

from tests.conftest import CaptureLogger
from yt_scraper.errors import MissingRequiredFieldError, ScraperError
from yt_scraper.services.record_normalizer import RecordNormalizer, format_video_object

CANONICAL_KEYS = [
    "title",
    "author",
    "videoUrl",
    "coverImage",
    "subscriberCount",
    "likeCount",
    "description",
    "viewCount",
    "commentCount",
    "publishedAt",
    "id",
    "amountOfVideos",
    "profilePicture",
    "transcript",
    "channelInfo",
]


def _scraped_raw() -> dict[str, Any]:
    return {
        "id": "dQw4w9WgXcQ",
        "videoUrl": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "coverImage": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
        "title": "  Never Gonna Give You Up  ",
        "author": "Rick Astley",
        "description": "\n",
        "publishedAt": "2009-10-25",
        "profilePicture": "",
        "transcript": None,
        "subscriberCountText": "4.2M subscribers",
        "likeCountText": "18K",
        "viewCountText": "1,612,345,678 views",
        "commentCountText": "2,345",
        "amountOfVideos": 12,
        "channelInfo": {
            "activeFrom": " Feb 14, 2006 ",
            "viewCounter": "2,500,000,000 views",
            "channelDescription": "",
            "country": "United Kingdom",
            "subscriberCountText": "4.2M subscribers",
            "links": {
                "Website": "https://www.rickastley.co.uk",
                "Empty": "",
                "Missing": None,
                "Twitter": "https://twitter.com/rickastley",
            },
        },
    }


def test_missing_video_url_raises_validation_failure() -> None:
    with pytest.raises(MissingRequiredFieldError) as exc_info:
        format_video_object({})
    assert exc_info.value.code == "MISSING_REQUIRED_FIELD"
    assert exc_info.value.field_name == "videoUrl"
    assert isinstance(exc_info.value, ScraperError)


@pytest.mark.parametrize("raw", [None, {"videoUrl": ""}, {"videoUrl": "   "}, {"title": "x"}])
def test_blank_video_url_raises(raw: dict[str, Any] | None) -> None:
    with pytest.raises(MissingRequiredFieldError):
        format_video_object(raw)


def test_minimal_record_has_every_optional_field_null() -> None:
    payload = format_video_object({"videoUrl": "https://x"}).to_json_dict()

    assert list(payload) == CANONICAL_KEYS
    assert payload["videoUrl"] == "https://x"
    assert all(value is None for key, value in payload.items() if key != "videoUrl")


def test_scraped_record_is_normalized() -> None:
    payload = format_video_object(_scraped_raw()).to_json_dict()

    assert payload["title"] == "Never Gonna Give You Up"
    assert payload["description"] is None
    assert payload["profilePicture"] is None
    assert payload["transcript"] is None
    assert payload["subscriberCount"] == 4_200_000
    assert payload["likeCount"] == 18_000
    assert payload["viewCount"] == 1_612_345_678
    assert payload["commentCount"] == 2_345
    assert payload["amountOfVideos"] == 12
    assert payload["channelInfo"] == {
        "activeFrom": "Feb 14, 2006",
        "viewCounter": "2,500,000,000 views",
        "channelDescription": None,
        "country": "United Kingdom",
        "links": {
            "Website": "https://www.rickastley.co.uk",
            "Twitter": "https://twitter.com/rickastley",
        },
    }


def test_no_output_string_is_empty() -> None:
    payload = format_video_object(_scraped_raw()).to_json_dict()
    strings = [value for value in payload.values() if isinstance(value, str)]
    strings.extend(value for value in payload["channelInfo"].values() if isinstance(value, str))
    assert strings
    assert all(value.strip() == value and value for value in strings)


def test_numeric_count_takes_precedence_over_text() -> None:
    raw = {
        "videoUrl": "https://x",
        "viewCount": 7,
        "viewCountText": "99M views",
        "likeCount": 0,
        "likeCountText": "3K",
        "commentCountText": "12",
    }
    payload = format_video_object(raw).to_json_dict()

    assert payload["viewCount"] == 7
    assert payload["likeCount"] == 0
    assert payload["commentCount"] == 12
    assert payload["subscriberCount"] is None


def test_unparsable_count_text_becomes_null() -> None:
    payload = format_video_object(
        {"videoUrl": "https://x", "likeCountText": "Like", "viewCountText": "No views"}
    ).to_json_dict()
    assert payload["likeCount"] is None
    assert payload["viewCount"] is None


def test_float_counts_are_rounded_and_negative_counts_fall_back_to_text() -> None:
    payload = format_video_object(
        {
            "videoUrl": "https://x",
            "viewCount": 10.5,
            "likeCount": -4,
            "likeCountText": "1.2K",
        }
    ).to_json_dict()
    assert payload["viewCount"] == 11
    assert payload["likeCount"] == 1_200


@pytest.mark.parametrize("value", ["12", True, {"count": 3}, -1])
def test_amount_of_videos_requires_a_number(value: object) -> None:
    payload = format_video_object({"videoUrl": "https://x", "amountOfVideos": value}).to_json_dict()
    assert payload["amountOfVideos"] is None


def test_non_mapping_channel_info_is_dropped() -> None:
    payload = format_video_object(
        {"videoUrl": "https://x", "channelInfo": "about"}
    ).to_json_dict()
    assert payload["channelInfo"] is None


def test_channel_links_preserve_first_seen_order_and_coerce_to_string() -> None:
    raw_links: dict[Any, Any] = {"b": "https://b", "a": 0, "c": 12345, "d": "https://d"}
    payload = format_video_object(
        {"videoUrl": "https://x", "channelInfo": {"links": raw_links}}
    ).to_json_dict()

    links = payload["channelInfo"]["links"]
    assert list(links) == ["b", "c", "d"]
    assert links == {"b": "https://b", "c": "12345", "d": "https://d"}


def test_normalizing_canonical_output_is_idempotent() -> None:
    first = format_video_object(_scraped_raw()).to_json_dict()
    second = format_video_object(first).to_json_dict()
    assert second == first


def test_trace_goes_to_injected_logger(capture_logger: CaptureLogger) -> None:
    normalizer = RecordNormalizer(logger=capture_logger)

    normalizer.normalize({"videoUrl": "https://x", "title": "  Hello "})
    normalizer.normalize({"videoUrl": "https://y"})

    assert capture_logger.messages == [
        "formatted video: Hello",
        "formatted video: https://y",
    ]


def test_normalizer_is_safe_to_share_between_threads() -> None:
    normalizer = RecordNormalizer()
    raws = [
        {"videoUrl": f"https://x/{index}", "viewCountText": f"{index}K views"}
        for index in range(50)
    ]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(normalizer.normalize, raws))

    assert [video.view_count for video in results] == [index * 1_000 for index in range(50)]


def test_empty_channel_info_mapping_is_normalized_not_dropped() -> None:
    payload = format_video_object({"videoUrl": "https://x", "channelInfo": {}}).to_json_dict()

    assert payload["channelInfo"] == {
        "activeFrom": None,
        "viewCounter": None,
        "channelDescription": None,
        "country": None,
        "links": {},
    }


def test_large_float_count_text_keeps_its_value() -> None:
    payload = format_video_object(
        {"videoUrl": "https://x", "viewCountText": 1e16, "likeCountText": 2.5}
    ).to_json_dict()

    assert payload["viewCount"] == 10_000_000_000_000_000
    assert payload["likeCount"] == 3
