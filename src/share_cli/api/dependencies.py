"""Dependency providers for the download route."""

from dataclasses import dataclass

from fastapi import Request

from share_cli.domain.events import TransferEventSink
from share_cli.domain.ports import TransferOptions


@dataclass(slots=True, frozen=True)
class StreamingSettings:
    """Chunking and notification rate of archive streaming."""

    chunk_size: int
    progress_interval_seconds: float


def get_transfer_options(request: Request) -> TransferOptions:
    """Return what this app serves."""

    return request.app.state.transfer_options


def get_event_sink(request: Request) -> TransferEventSink:
    """Return the outbound lifecycle notification channel."""

    return request.app.state.event_sink


def get_streaming_settings(request: Request) -> StreamingSettings:
    """Return streaming parameters."""

    return request.app.state.streaming_settings


__all__ = [
    "StreamingSettings",
    "get_event_sink",
    "get_streaming_settings",
    "get_transfer_options",
]
