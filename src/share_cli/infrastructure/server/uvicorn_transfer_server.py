"""Background uvicorn listener for the download application."""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager, suppress
from dataclasses import replace

import uvicorn
from fastapi import FastAPI

from share_cli.api import create_app
from share_cli.domain.errors import BindError
from share_cli.domain.events import TransferEventSink
from share_cli.domain.ports import TransferOptions, TransferServer

_STARTUP_POLL_SECONDS = 0.01
_DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 5.0

logger = logging.getLogger(__name__)


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves process signal handling to the CLI."""

    def install_signal_handlers(self) -> None:
        return None

    @contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


def bind_socket(host: str, port: int) -> socket.socket:
    """Create a listening-ready TCP socket, raising `BindError` if the port is taken."""

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        raise BindError(f"Binding {host}:{port} failed: {exc}") from exc
    return sock


class UvicornTransferServer(TransferServer):
    """Run the download app on an explicitly bound socket inside the current loop."""

    def __init__(
        self,
        options: TransferOptions,
        event_sink: TransferEventSink,
        *,
        host: str = "0.0.0.0",
        crawler_user_agents: Sequence[str] = (),
        chunk_size: int = 64 * 1024,
        progress_interval_seconds: float = 0.1,
        shutdown_timeout_seconds: float = _DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
        app_factory: Callable[..., FastAPI] = create_app,
    ) -> None:
        self._host = host
        self._shutdown_timeout_seconds = shutdown_timeout_seconds
        self._app = app_factory(
            options,
            event_sink,
            crawler_user_agents=crawler_user_agents,
            chunk_size=chunk_size,
            progress_interval_seconds=progress_interval_seconds,
        )
        self._server: _EmbeddedServer | None = None
        self._task: asyncio.Task[None] | None = None
        self._port: int | None = None

    @property
    def port(self) -> int | None:
        """Bound port once started."""

        return self._port

    @property
    def app(self) -> FastAPI:
        """Underlying ASGI application."""

        return self._app

    async def start(self, port: int) -> None:
        if self._task is not None:
            raise BindError(f"Transfer server already listening on port {self._port}.")

        sock = bind_socket(self._host, port)
        config = uvicorn.Config(
            self._app,
            lifespan="off",
            log_config=None,
            access_log=False,
        )
        server = _EmbeddedServer(config)
        task = asyncio.create_task(server.serve(sockets=[sock]), name=f"transfer-server-{port}")

        while not server.started:
            if task.done():
                sock.close()
                error = None if task.cancelled() else task.exception()
                raise BindError(f"Listener on port {port} stopped during startup: {error}")
            await asyncio.sleep(_STARTUP_POLL_SECONDS)

        self._server = server
        self._task = task
        self._port = port
        logger.info("Transfer server listening on %s:%s.", self._host, port)

    async def close(self) -> None:
        server, task = self._server, self._task
        self._server = None
        self._task = None
        if server is None or task is None:
            return

        server.should_exit = True
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self._shutdown_timeout_seconds)
        except TimeoutError:
            logger.warning("Transfer server did not stop in time; forcing exit.")
            server.force_exit = True
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        logger.info("Transfer server on port %s closed.", self._port)

    def require_token(self) -> None:
        options: TransferOptions = self._app.state.transfer_options
        self._app.state.transfer_options = replace(options, tunneled=False)


__all__ = ["UvicornTransferServer", "bind_socket"]
