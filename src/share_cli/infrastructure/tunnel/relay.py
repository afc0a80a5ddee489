"""Relay connection pool forwarding public traffic to the local listener."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from share_cli.domain.errors import TunnelError
from share_cli.domain.ports import Tunnel
from share_cli.infrastructure.tunnel.client import TunnelAssignment

_READ_SIZE = 64 * 1024
_DEFAULT_RECONNECT_DELAY_SECONDS = 1.0
_DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0

logger = logging.getLogger(__name__)

_Streams = tuple[asyncio.StreamReader, asyncio.StreamWriter]


class LocalTunnel(Tunnel):
    """Keep up to `max_conn_count` relay sockets open and pipe each to the listener.

    The relay hands inbound public requests to whichever idle socket it holds.
    A socket is only paired with a local connection once the relay sends its
    first bytes, and it is replaced after each exchange until `close`.
    """

    def __init__(
        self,
        assignment: TunnelAssignment,
        local_port: int,
        local_host: str = "127.0.0.1",
        reconnect_delay_seconds: float = _DEFAULT_RECONNECT_DELAY_SECONDS,
        connect_timeout_seconds: float = _DEFAULT_CONNECT_TIMEOUT_SECONDS,
    ) -> None:
        self._assignment = assignment
        self._local_host = local_host
        self._local_port = local_port
        self._reconnect_delay_seconds = max(reconnect_delay_seconds, 0.01)
        self._connect_timeout_seconds = max(connect_timeout_seconds, 0.01)
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def url(self) -> str:
        return self._assignment.url

    async def start(self) -> None:
        """Open the first relay socket, failing the attempt if the relay is unreachable."""

        try:
            first = await self._connect_remote()
        except (OSError, TimeoutError) as exc:
            raise TunnelError(
                f"Relay {self._assignment.remote_host}:{self._assignment.remote_port} "
                f"assigned {self._assignment.url} but refused the connection: {exc}"
            ) from exc

        self._spawn(first)
        for _ in range(self._assignment.max_conn_count - 1):
            self._spawn(None)
        logger.info(
            "Tunnel %s open with %s relay connections.",
            self._assignment.url,
            self._assignment.max_conn_count,
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        logger.info("Tunnel %s closed.", self._assignment.url)

    def _spawn(self, first: _Streams | None) -> None:
        task = asyncio.create_task(
            self._run_connection(first),
            name=f"tunnel-relay-{self._assignment.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_connection(self, first: _Streams | None) -> None:
        streams = first
        while not self._closed:
            if streams is None:
                try:
                    streams = await self._connect_remote()
                except (OSError, TimeoutError) as exc:
                    logger.warning("Relay connection failed: %s", exc)
                    await asyncio.sleep(self._reconnect_delay_seconds)
                    continue

            remote_reader, remote_writer = streams
            streams = None
            try:
                exchanged = await self._forward(remote_reader, remote_writer)
                if not exchanged:
                    await asyncio.sleep(self._reconnect_delay_seconds)
            except OSError as exc:
                logger.warning("Relay exchange failed: %s", exc)
                await asyncio.sleep(self._reconnect_delay_seconds)
            finally:
                await _close_writer(remote_writer)

    async def _forward(
        self,
        remote_reader: asyncio.StreamReader,
        remote_writer: asyncio.StreamWriter,
    ) -> bool:
        first_chunk = await remote_reader.read(_READ_SIZE)
        if not first_chunk:
            return False

        local_reader, local_writer = await asyncio.open_connection(
            self._local_host,
            self._local_port,
        )
        try:
            local_writer.write(first_chunk)
            await local_writer.drain()
            pumps = {
                asyncio.create_task(_pump(remote_reader, local_writer)),
                asyncio.create_task(_pump(local_reader, remote_writer)),
            }
            try:
                await asyncio.wait(pumps, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for pump in pumps:
                    pump.cancel()
                for pump in pumps:
                    with suppress(asyncio.CancelledError):
                        await pump
        finally:
            await _close_writer(local_writer)
        return True

    async def _connect_remote(self) -> _Streams:
        return await asyncio.wait_for(
            asyncio.open_connection(
                self._assignment.remote_host,
                self._assignment.remote_port,
            ),
            timeout=self._connect_timeout_seconds,
        )


async def _pump(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
    with suppress(ConnectionError):
        while data := await reader.read(_READ_SIZE):
            writer.write(data)
            await writer.drain()


async def _close_writer(writer: asyncio.StreamWriter) -> None:
    writer.close()
    with suppress(OSError):
        await writer.wait_closed()


__all__ = ["LocalTunnel"]
