"""Command line entry point for the YouTube scraper."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import click
from click.core import ParameterSource
from rich.console import Console

from yt_scraper.config import build_scrape_config, load_input_file
from yt_scraper.dependencies import build_scraper_service, get_settings
from yt_scraper.errors import handle_error
from yt_scraper.logging_config import configure_application_logging
from yt_scraper.models.video_contracts import CanonicalVideo

LOGGER = logging.getLogger("yt_scraper.cli")

console = Console(stderr=True)

_OVERRIDE_PARAMS: tuple[str, ...] = (
    "mode",
    "channel_url",
    "keyword",
    "max_videos",
    "include_transcript",
    "headless",
    "language",
)


def write_output(videos: Sequence[CanonicalVideo], output_path: Path | None) -> None:
    payload = json.dumps(
        [video.to_json_dict() for video in videos],
        indent=2,
        ensure_ascii=False,
    )
    if output_path is None:
        click.echo(payload)
        return

    resolved = output_path.expanduser().resolve()
    resolved.write_text(payload + "\n", encoding="utf-8")
    LOGGER.info("scraped data written path=%s", resolved)
    console.print(f"[green]Wrote {len(videos)} videos to[/green] {resolved}")


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version="0.1.0")
@click.option(
    "--mode",
    "-m",
    type=click.Choice(["channel", "keyword"], case_sensitive=False),
    help='Scraping mode: "channel" for a channel URL, "keyword" for a search query.',
)
@click.option("--channel-url", "--channelUrl", "-c", "channel_url", help="YouTube channel URL.")
@click.option("--keyword", "-k", help="Keyword to search on YouTube.")
@click.option(
    "--max-videos",
    "--maxVideos",
    "-n",
    "max_videos",
    type=int,
    help="Maximum number of videos to scrape.",
)
@click.option(
    "--include-transcript/--no-include-transcript",
    "-t",
    "include_transcript",
    default=False,
    help="Include the transcript when one is available.",
)
@click.option(
    "--headless/--no-headless",
    "-H",
    "headless",
    default=True,
    help="Run the browser in headless mode.",
)
@click.option("--language", "-l", help='Transcript language code (e.g. "en").')
@click.option(
    "--input",
    "-i",
    "input_path",
    type=click.Path(path_type=Path),
    help="JSON or YAML file with scraper options.",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output JSON file. Prints to stdout when omitted.",
)
@click.pass_context
def main(
    ctx: click.Context,
    input_path: Path | None,
    output_path: Path | None,
    **options: Any,
) -> None:
    """Scrape YouTube channel videos or keyword search results into JSON."""
    try:
        settings = get_settings()
        configure_application_logging(settings)

        file_config = load_input_file(input_path) if input_path is not None else None
        config = build_scrape_config(
            settings,
            file_config=file_config,
            overrides=_explicit_options(ctx, options),
        )
        LOGGER.info('starting youtube scraping in "%s" mode', config.mode)

        videos = build_scraper_service().scrape(config)
        write_output(videos, output_path)
        LOGGER.info("scraping completed successfully videos=%s", len(videos))
    except Exception as exc:
        handle_error(exc, "Failed to run YouTube scraper", logger=LOGGER)
        sys.exit(1)


def _explicit_options(ctx: click.Context, options: dict[str, Any]) -> dict[str, Any]:
    # Flags always carry a value; only forward the ones typed on the command line.
    explicit: dict[str, Any] = {}
    for name in _OVERRIDE_PARAMS:
        if ctx.get_parameter_source(name) in (None, ParameterSource.DEFAULT):
            continue
        explicit[name] = options.get(name)
    return explicit


if __name__ == "__main__":
    main()
