"""DOM extraction for YouTube watch, channel and search pages.

Each field is looked up through a chain of selectors; the first selector that
yields non-empty text wins. YouTube changes its markup often, so every lookup
degrades to None instead of raising.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any, cast

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from yt_scraper.services.number_parser import normalize_string

LOGGER = logging.getLogger("yt_scraper.page_parser")

TITLE_SELECTORS: tuple[str, ...] = ("h1.ytd-watch-metadata", "h1.title")
AUTHOR_SELECTORS: tuple[str, ...] = ("#channel-name a", "#channel-name", "ytd-channel-name")
DESCRIPTION_SELECTORS: tuple[str, ...] = (
    "#description",
    "#description-inner",
    "#meta-contents #description",
)
VIEW_COUNT_SELECTORS: tuple[str, ...] = ("span.view-count", "ytd-watch-metadata #info span")
LIKE_COUNT_SELECTORS: tuple[str, ...] = (
    "ytd-toggle-button-renderer[is-icon-button] #text",
    "#segmented-like-button button #text",
)
COMMENT_COUNT_SELECTORS: tuple[str, ...] = ("#count .count-text", "#count #count")
PUBLISHED_TEXT_SELECTORS: tuple[str, ...] = ("#info-strings yt-formatted-string",)
PUBLISHED_META_SELECTORS: tuple[str, ...] = (
    'meta[itemprop="uploadDate"]',
    'meta[itemprop="datePublished"]',
)
SUBSCRIBER_COUNT_SELECTORS: tuple[str, ...] = (
    "#owner-sub-count",
    "yt-formatted-string.ytd-subscribe-button-renderer",
)
PROFILE_PICTURE_SELECTORS: tuple[str, ...] = ("#avatar img", "#avatar-link img")

CHANNEL_DESCRIPTION_SELECTORS: tuple[str, ...] = ("#description-container", "#description")
CHANNEL_STATS_SELECTOR = "#right-column yt-formatted-string, #stats-container yt-formatted-string"
CHANNEL_LINKS_SELECTOR = (
    "#link-list-container a.yt-simple-endpoint, #channel-links-container a.yt-simple-endpoint"
)
CHANNEL_SUBSCRIBER_SELECTORS: tuple[str, ...] = ("#subscriber-count", "#owner-sub-count")

CHANNEL_VIDEO_LINK_SELECTOR = "a#video-title-link, a#video-title"
SEARCH_VIDEO_LINK_SELECTOR = "ytd-video-renderer a#video-title"

DEFAULT_LINK_LABEL = "Link"
MAX_COUNTRY_LENGTH = 40
JOINED_PATTERN = re.compile(r"joined\s*", re.IGNORECASE)
VIEWS_PATTERN = re.compile(r"views", re.IGNORECASE)
COUNTRY_PATTERN = re.compile(r"^[A-Za-z\s]+$")

_ANCHORS_SCRIPT = (
    "anchors => anchors.map(a => ({text: (a.textContent || '').trim(), href: a.href || ''}))"
)


def extract_video_fields(page: Page) -> dict[str, Any]:
    published_at = _first_text(page, PUBLISHED_TEXT_SELECTORS)
    published_meta = _first_attribute(page, PUBLISHED_META_SELECTORS, "content")
    if published_meta is not None:
        published_at = published_meta

    return {
        "title": _first_text(page, TITLE_SELECTORS) or _page_title(page),
        "author": _first_text(page, AUTHOR_SELECTORS),
        "description": _first_text(page, DESCRIPTION_SELECTORS),
        "viewCountText": _first_text(page, VIEW_COUNT_SELECTORS),
        "likeCountText": _first_text(page, LIKE_COUNT_SELECTORS),
        "commentCountText": _first_text(page, COMMENT_COUNT_SELECTORS),
        "publishedAt": published_at,
        "subscriberCountText": _first_text(page, SUBSCRIBER_COUNT_SELECTORS),
        "profilePicture": _first_attribute(page, PROFILE_PICTURE_SELECTORS, "src"),
    }


def extract_channel_about(page: Page) -> dict[str, Any]:
    stats = [
        text
        for text in (
            normalize_string(raw) for raw in page.locator(CHANNEL_STATS_SELECTOR).all_text_contents()
        )
        if text is not None
    ]
    active_from, view_counter, country = classify_channel_stats(stats)
    anchors = cast(
        list[dict[str, Any]],
        page.locator(CHANNEL_LINKS_SELECTOR).evaluate_all(_ANCHORS_SCRIPT),
    )
    return {
        "activeFrom": active_from,
        "viewCounter": view_counter,
        "channelDescription": _first_text(page, CHANNEL_DESCRIPTION_SELECTORS),
        "country": country,
        "links": collect_channel_links(
            (anchor.get("text"), anchor.get("href")) for anchor in anchors
        ),
        "subscriberCountText": _first_text(page, CHANNEL_SUBSCRIBER_SELECTORS),
    }


def extract_video_links(page: Page, selector: str, max_videos: int) -> list[dict[str, str]]:
    anchors = cast(list[dict[str, Any]], page.locator(selector).evaluate_all(_ANCHORS_SCRIPT))
    links: list[dict[str, str]] = []
    seen: set[str] = set()
    for anchor in anchors:
        url = normalize_string(anchor.get("href"))
        if url is None or "watch" not in url or url in seen:
            continue
        seen.add(url)
        links.append({"url": url, "title": normalize_string(anchor.get("text")) or ""})
        if len(links) >= max_videos:
            break
    return links


def classify_channel_stats(stats: Sequence[str]) -> tuple[str | None, str | None, str | None]:
    active_from: str | None = None
    view_counter: str | None = None
    country: str | None = None
    for stat in stats:
        if JOINED_PATTERN.search(stat):
            active_from = JOINED_PATTERN.sub("", stat, count=1).strip() or None
        elif VIEWS_PATTERN.search(stat):
            view_counter = stat
        elif country is None and COUNTRY_PATTERN.match(stat) and len(stat) < MAX_COUNTRY_LENGTH:
            country = stat
    return active_from, view_counter, country


def collect_channel_links(anchors: Iterable[tuple[object, object]]) -> dict[str, str]:
    links: dict[str, str] = {}
    for raw_label, raw_href in anchors:
        label = normalize_string(raw_label) or DEFAULT_LINK_LABEL
        href = normalize_string(raw_href)
        if href is None or label in links:
            continue
        links[label] = href
    return links


def _first_text(page: Page, selectors: Iterable[str]) -> str | None:
    for selector in selectors:
        try:
            locator = page.locator(selector).first
            if locator.count() == 0:
                continue
            text = normalize_string(locator.text_content())
        except PlaywrightError as exc:
            LOGGER.debug("selector lookup failed selector=%s error=%s", selector, exc)
            continue
        if text is not None:
            return text
    return None


def _first_attribute(page: Page, selectors: Iterable[str], attribute: str) -> str | None:
    for selector in selectors:
        try:
            locator = page.locator(selector).first
            if locator.count() == 0:
                continue
            value = normalize_string(locator.get_attribute(attribute))
        except PlaywrightError as exc:
            LOGGER.debug("selector lookup failed selector=%s error=%s", selector, exc)
            continue
        if value is not None:
            return value
    return None


def _page_title(page: Page) -> str | None:
    try:
        return normalize_string(page.title())
    except PlaywrightError:
        return None
