from __future__ import annotations

import asyncio
import socket
from pathlib import Path

import httpx
import pytest

from share_cli.domain.entities import Artifact
from share_cli.domain.errors import BindError
from share_cli.domain.events import TransferCompleted, TransferEvent, TransferStarted
from share_cli.domain.ports import TransferOptions
from share_cli.infrastructure.server import UvicornTransferServer, bind_socket


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def options(tmp_path: Path) -> TransferOptions:
    path = tmp_path / "notes.txt.zip"
    path.write_bytes(b"z" * 5_000)
    artifact = Artifact(
        path=path,
        size_bytes=5_000,
        checksum_hex="unused",
        password="secret",
        name="notes.txt.zip",
    )
    return TransferOptions(artifact=artifact, access_token="calm-river", tunneled=True)


def test_serves_archive_until_closed(options: TransferOptions) -> None:
    events: list[TransferEvent] = []
    port = _free_port()

    async def scenario() -> None:
        server = UvicornTransferServer(options, events.append, host="127.0.0.1")
        await server.start(port)
        assert server.port == port
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(f"http://127.0.0.1:{port}/calm-river")
                assert response.status_code == 200
                assert len(response.content) == 5_000

                server.require_token()
                denied = await client.get(f"http://127.0.0.1:{port}/other")
                assert denied.status_code == 404
        finally:
            await server.close()
            await server.close()

        with pytest.raises(httpx.ConnectError):
            async with httpx.AsyncClient() as client:
                await client.get(f"http://127.0.0.1:{port}/calm-river")

    asyncio.run(scenario())

    assert isinstance(events[0], TransferStarted)
    assert isinstance(events[-1], TransferCompleted)


def test_occupied_port_raises_bind_error(options: TransferOptions) -> None:
    async def scenario() -> None:
        blocker = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
        port = blocker.sockets[0].getsockname()[1]
        server = UvicornTransferServer(options, lambda event: None, host="127.0.0.1")
        try:
            await server.start(port)
        finally:
            blocker.close()
            await server.close()

    with pytest.raises(BindError):
        asyncio.run(scenario())


def test_bind_socket_returns_bound_socket() -> None:
    port = _free_port()

    sock = bind_socket("127.0.0.1", port)
    try:
        assert sock.getsockname() == ("127.0.0.1", port)
    finally:
        sock.close()
