from __future__ import annotations

import logging
import xml.etree.ElementTree as ElementTree
from html import unescape
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

LOGGER = logging.getLogger("yt_scraper.transcript")

TIMEDTEXT_URL = "https://www.youtube.com/api/timedtext"
DEFAULT_TRANSCRIPT_TIMEOUT_SECONDS = 15.0


def fetch_transcript(
    video_id: str | None,
    language: str = "en",
    *,
    timeout_seconds: float = DEFAULT_TRANSCRIPT_TIMEOUT_SECONDS,
    user_agent: str | None = None,
) -> str | None:
    """Best-effort transcript lookup; every failure is logged and yields None."""
    if not video_id:
        return None

    request_url = f"{TIMEDTEXT_URL}?{urlencode({'lang': language or 'en', 'v': video_id})}"
    headers = {"accept": "text/xml"}
    if user_agent:
        headers["user-agent"] = user_agent
    request = Request(request_url, headers=headers, method="GET")

    try:
        with urlopen(request, timeout=timeout_seconds) as response:
            status_code = int(response.getcode() or 0)
            raw_body = response.read().decode("utf-8", errors="replace")
    except HTTPError as exc:
        LOGGER.warning(
            "transcript not available video_id=%s status=%s",
            video_id,
            exc.code,
        )
        return None
    except (URLError, TimeoutError, OSError) as exc:
        LOGGER.warning("failed to fetch transcript video_id=%s error=%s", video_id, exc)
        return None

    if not 200 <= status_code < 300:
        LOGGER.warning(
            "transcript not available video_id=%s status=%s",
            video_id,
            status_code,
        )
        return None

    try:
        return parse_timedtext_xml(raw_body)
    except ElementTree.ParseError as exc:
        LOGGER.warning("failed to parse transcript video_id=%s error=%s", video_id, exc)
        return None


def parse_timedtext_xml(raw_xml: str) -> str | None:
    if not raw_xml.strip():
        return None
    root = ElementTree.fromstring(raw_xml)
    pieces: list[str] = []
    for element in root.iter("text"):
        text = "".join(element.itertext())
        if text.strip():
            pieces.append(unescape(text))
    transcript = " ".join(" ".join(pieces).split())
    return transcript or None
