"""FastAPI application serving one archive."""

from collections.abc import Sequence

from fastapi import FastAPI

from share_cli import __version__
from share_cli.api.dependencies import StreamingSettings
from share_cli.api.middleware import CrawlerFilterMiddleware
from share_cli.api.routes import download_router
from share_cli.domain.events import TransferEventSink
from share_cli.domain.ports import TransferOptions


def create_app(
    options: TransferOptions,
    event_sink: TransferEventSink,
    *,
    crawler_user_agents: Sequence[str] = (),
    chunk_size: int = 64 * 1024,
    progress_interval_seconds: float = 0.1,
) -> FastAPI:
    """Build the download application for one session."""

    app = FastAPI(
        title="share-cli",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.transfer_options = options
    app.state.event_sink = event_sink
    app.state.streaming_settings = StreamingSettings(
        chunk_size=max(1, chunk_size),
        progress_interval_seconds=progress_interval_seconds,
    )
    app.add_middleware(CrawlerFilterMiddleware, user_agents=list(crawler_user_agents))
    app.include_router(download_router)
    return app


__all__ = ["create_app"]
