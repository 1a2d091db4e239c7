from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Literal, Protocol

import structlog

# Attributes the scrape spans attach; anything else is dropped before emitting.
SPAN_ATTRIBUTES: frozenset[str] = frozenset(
    {
        "duration_ms",
        "error_type",
        "max_videos",
        "mode",
        "video_url",
        "videos_count",
    }
)
_MAX_STRING_LENGTH = 160

TelemetryValue = bool | int | float | str | None


class TelemetrySink(Protocol):
    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        ...


class NoOpTelemetrySink:
    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        _ = (event_name, attributes)


class StructuredLogTelemetrySink:
    def __init__(self) -> None:
        self._logger = structlog.get_logger("yt_scraper.telemetry")

    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        self._logger.info("telemetry", telemetry_event=event_name, **attributes)


@dataclass(frozen=True)
class TelemetryClient:
    enabled: bool
    sink: TelemetrySink

    @classmethod
    def disabled(cls) -> TelemetryClient:
        return cls(enabled=False, sink=NoOpTelemetrySink())

    def emit(self, event_name: str, **attributes: Any) -> None:
        if self.enabled:
            self.sink.emit(event_name=event_name, attributes=_span_attributes(attributes))

    @contextmanager
    def span(self, event_prefix: str, **attributes: Any) -> Iterator[dict[str, Any]]:
        """Emit `<prefix>.start` and then `<prefix>.finish` or `<prefix>.error`.

        The yielded dict is merged into the closing event, so callers can attach
        results (counts, ids) discovered while the block runs.
        """
        extra: dict[str, Any] = {}
        started_at = perf_counter()
        self.emit(f"{event_prefix}.start", **attributes)
        try:
            yield extra
        except Exception as exc:
            self.emit(
                f"{event_prefix}.error",
                **attributes,
                **extra,
                duration_ms=_elapsed_ms(started_at),
                error_type=type(exc).__name__,
            )
            raise
        self.emit(
            f"{event_prefix}.finish",
            **attributes,
            **extra,
            duration_ms=_elapsed_ms(started_at),
        )


def build_telemetry_client(*, enabled: bool, sink: Literal["none", "log"]) -> TelemetryClient:
    if enabled and sink == "log":
        return TelemetryClient(enabled=True, sink=StructuredLogTelemetrySink())
    return TelemetryClient.disabled()


def _span_attributes(attributes: Mapping[str, Any]) -> dict[str, TelemetryValue]:
    return {
        key: _compact(value) for key, value in attributes.items() if key in SPAN_ATTRIBUTES
    }


def _compact(value: Any) -> TelemetryValue:
    if value is None or isinstance(value, bool | int | float):
        return value
    text = " ".join(str(value).split())
    if len(text) > _MAX_STRING_LENGTH:
        return f"{text[:_MAX_STRING_LENGTH]}..."
    return text


def _elapsed_ms(started_at: float) -> int:
    return int((perf_counter() - started_at) * 1000)
