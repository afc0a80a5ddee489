"""Single-file download route."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import AsyncIterator
from urllib.parse import quote

from fastapi import APIRouter, Depends, Path, Request, Response
from fastapi.responses import PlainTextResponse, StreamingResponse

from share_cli.api.dependencies import (
    StreamingSettings,
    get_event_sink,
    get_streaming_settings,
    get_transfer_options,
)
from share_cli.domain.entities import Artifact
from share_cli.domain.events import (
    TransferAborted,
    TransferCompleted,
    TransferEventSink,
    TransferProgress,
    TransferStarted,
)
from share_cli.domain.ports import TransferOptions

ALLOWED_METHODS = frozenset({"GET", "HEAD"})
# Routed so that the handler, not the router, answers them with 405.
_ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]
_FALLBACK_FILENAME = "download.zip"
_UNSAFE_FILENAME_CHARS = re.compile(r"[\x00-\x1f\x7f\"\\]")

logger = logging.getLogger(__name__)

router = APIRouter(tags=["download"])


def first_path_segment(path: str) -> str | None:
    """Return the first non-empty segment of a request path."""

    for segment in path.split("/"):
        if segment:
            return segment
    return None


def content_disposition(name: str, fallback_name: str = _FALLBACK_FILENAME) -> str:
    """Return an RFC 6266 attachment value carrying an ASCII and a UTF-8 file name."""

    ascii_name = _UNSAFE_FILENAME_CHARS.sub("", name.encode("ascii", "ignore").decode("ascii"))
    if not ascii_name.strip() or ascii_name.startswith("."):
        ascii_name = fallback_name
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(name, safe='')}"


def download_headers(artifact: Artifact, fallback_name: str = _FALLBACK_FILENAME) -> dict[str, str]:
    """Headers declaring the archive as a binary attachment."""

    return {
        "Content-Disposition": content_disposition(artifact.name, fallback_name),
        "Content-Length": str(artifact.size_bytes),
        "Content-Type": "application/zip",
    }


@router.api_route("/{path:path}", methods=_ROUTED_METHODS, include_in_schema=False)
async def serve_archive(
    request: Request,
    path: str = Path(...),
    options: TransferOptions = Depends(get_transfer_options),
    event_sink: TransferEventSink = Depends(get_event_sink),
    streaming: StreamingSettings = Depends(get_streaming_settings),
) -> Response:
    """Serve the archive to holders of the access token."""

    if request.method not in ALLOWED_METHODS:
        return PlainTextResponse(
            "Method not Allowed.",
            status_code=405,
            headers={"Allow": "GET, HEAD"},
        )

    # A tunneled session is guarded by its public URL, not by the path.
    if not options.tunneled and first_path_segment(path) != options.access_token:
        return PlainTextResponse("Not found", status_code=404)

    headers = download_headers(options.artifact, f"{options.access_token}.zip")
    if request.method == "HEAD":
        return Response(status_code=200, headers={**headers, "Connection": "close"})

    return StreamingResponse(
        stream_archive(request, options.artifact, event_sink, streaming),
        status_code=200,
        headers=headers,
    )


async def stream_archive(
    request: Request,
    artifact: Artifact,
    event_sink: TransferEventSink,
    streaming: StreamingSettings,
) -> AsyncIterator[bytes]:
    """Yield archive chunks, reporting start, throttled progress and the outcome."""

    client = None if request.client is None else request.client.host
    total = artifact.size_bytes
    sent = 0
    event_sink(TransferStarted(client=client))
    last_progress_at = time.monotonic()

    try:
        handle = await asyncio.to_thread(artifact.path.open, "rb")
        try:
            while chunk := await asyncio.to_thread(handle.read, streaming.chunk_size):
                yield chunk
                sent += len(chunk)
                now = time.monotonic()
                if now - last_progress_at < streaming.progress_interval_seconds:
                    continue
                last_progress_at = now
                if await request.is_disconnected():
                    event_sink(TransferAborted(bytes_sent=sent, reason="client disconnected"))
                    return
                event_sink(TransferProgress(bytes_sent=sent, bytes_total=total))
        finally:
            handle.close()
    except (GeneratorExit, asyncio.CancelledError):
        event_sink(TransferAborted(bytes_sent=sent, reason="transfer interrupted"))
        raise
    except OSError as exc:
        logger.warning("Reading %s failed after %s bytes: %s", artifact.path, sent, exc)
        event_sink(TransferAborted(bytes_sent=sent, reason=str(exc)))
        raise

    if sent != total or await request.is_disconnected():
        event_sink(TransferAborted(bytes_sent=sent, reason="client disconnected"))
        return

    event_sink(TransferProgress(bytes_sent=sent, bytes_total=total))
    event_sink(TransferCompleted(bytes_sent=sent))
    logger.info("Served %s (%s bytes) to %s.", artifact.name, sent, client or "<unknown>")


__all__ = [
    "ALLOWED_METHODS",
    "content_disposition",
    "download_headers",
    "first_path_segment",
    "router",
    "stream_archive",
]
