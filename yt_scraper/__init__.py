"""Scrape YouTube channels and search results into normalized JSON records."""

from yt_scraper.services.number_parser import parse_human_number
from yt_scraper.services.record_normalizer import format_video_object

__all__ = ["format_video_object", "parse_human_number"]
