from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from share_cli.domain.errors import TunnelError, TunnelExhaustedError
from share_cli.infrastructure.tunnel import (
    LocalTunnel,
    LocalTunnelClient,
    LocalTunnelNegotiator,
    TunnelAssignment,
    TunnelRejectedError,
)


def _client(handler: httpx.MockTransport) -> LocalTunnelClient:
    return LocalTunnelClient(host="https://relay.example/", transport=handler)


def test_request_assignment_parses_relay_payload() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(
            200,
            json={
                "id": "calmriver",
                "url": "https://calmriver.relay.example",
                "port": 40123,
                "max_conn_count": 10,
            },
        )

    assignment = asyncio.run(
        _client(httpx.MockTransport(handler)).request_assignment("calmriver")
    )

    assert seen == ["https://relay.example/calmriver"]
    assert assignment.url == "https://calmriver.relay.example"
    assert assignment.remote_host == "relay.example"
    assert assignment.remote_port == 40123
    assert assignment.max_conn_count == 10


def test_request_assignment_without_subdomain_asks_for_new() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(
            200,
            json={"id": "x1", "url": "https://x1.relay.example", "port": 1, "ip": "10.1.1.1"},
        )

    assignment = asyncio.run(_client(httpx.MockTransport(handler)).request_assignment(None))

    assert seen == ["https://relay.example/?new"]
    assert assignment.remote_host == "10.1.1.1"
    assert assignment.max_conn_count == 1


def test_rejected_assignment_carries_status_code() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"message": "subdomain in use"})

    with pytest.raises(TunnelRejectedError, match="subdomain in use") as excinfo:
        asyncio.run(_client(httpx.MockTransport(handler)).request_assignment("calmriver"))

    assert excinfo.value.status_code == 409


def test_malformed_payload_is_a_tunnel_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(TunnelError, match="non-JSON"):
        asyncio.run(_client(httpx.MockTransport(handler)).request_assignment("calmriver"))


def test_transport_failure_is_a_tunnel_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(TunnelError, match="unreachable"):
        asyncio.run(_client(httpx.MockTransport(handler)).request_assignment("calmriver"))


class RecordingTunnelClient:
    """Relay client double returning scripted outcomes in order."""

    host = "https://relay.example"

    def __init__(self, outcomes: list[TunnelAssignment | TunnelError]) -> None:
        self._outcomes = list(outcomes)
        self.requested: list[str | None] = []

    async def request_assignment(self, subdomain: str | None = None) -> TunnelAssignment:
        self.requested.append(subdomain)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, TunnelError):
            raise outcome
        return outcome


def test_negotiator_gives_up_after_budget() -> None:
    client = RecordingTunnelClient([TunnelError(f"boom {i}") for i in range(5)])
    negotiator = LocalTunnelNegotiator(client)  # type: ignore[arg-type]

    with pytest.raises(TunnelExhaustedError, match="after 5 attempts") as excinfo:
        asyncio.run(negotiator.open_tunnel(1337, "calmriver", 5))

    assert client.requested == ["calmriver"] * 5
    assert isinstance(excinfo.value.__cause__, TunnelError)


def test_negotiator_retries_unreachable_relay_then_succeeds() -> None:
    async def scenario() -> None:
        relay = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
        relay_port = relay.sockets[0].getsockname()[1]
        unreachable = TunnelAssignment(
            id="a",
            url="https://a.relay.example",
            remote_host="127.0.0.1",
            remote_port=1,
            max_conn_count=1,
        )
        reachable = TunnelAssignment(
            id="b",
            url="https://b.relay.example",
            remote_host="127.0.0.1",
            remote_port=relay_port,
            max_conn_count=2,
        )
        client = RecordingTunnelClient([unreachable, reachable])
        negotiator = LocalTunnelNegotiator(client)  # type: ignore[arg-type]
        try:
            tunnel = await negotiator.open_tunnel(1337, "calmriver", 5)
            assert tunnel.url == "https://b.relay.example"
            await tunnel.close()
            await tunnel.close()
        finally:
            relay.close()
        assert len(client.requested) == 2

    asyncio.run(scenario())


def test_negotiator_falls_back_to_random_subdomain_on_rejection() -> None:
    async def scenario() -> list[str | None]:
        relay = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
        relay_port = relay.sockets[0].getsockname()[1]
        client = RecordingTunnelClient(
            [
                TunnelRejectedError("taken", status_code=403),
                TunnelAssignment(
                    id="random",
                    url="https://random.relay.example",
                    remote_host="127.0.0.1",
                    remote_port=relay_port,
                    max_conn_count=1,
                ),
            ]
        )
        negotiator = LocalTunnelNegotiator(client)  # type: ignore[arg-type]
        try:
            tunnel = await negotiator.open_tunnel(1337, "calmriver", 1)
            await tunnel.close()
        finally:
            relay.close()
        return client.requested

    assert asyncio.run(scenario()) == ["calmriver", None]


def test_relay_connection_is_piped_to_local_port() -> None:
    async def scenario() -> bytes:
        async def echo(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            data = await reader.read(1024)
            writer.write(b"echo:" + data)
            await writer.drain()
            writer.close()

        replies: asyncio.Queue[bytes] = asyncio.Queue()

        async def relay_side(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            writer.write(json.dumps({"path": "/calm-river"}).encode())
            await writer.drain()
            await replies.put(await reader.read(1024))
            writer.close()

        local = await asyncio.start_server(echo, "127.0.0.1", 0)
        relay = await asyncio.start_server(relay_side, "127.0.0.1", 0)
        tunnel = LocalTunnel(
            TunnelAssignment(
                id="calmriver",
                url="https://calmriver.relay.example",
                remote_host="127.0.0.1",
                remote_port=relay.sockets[0].getsockname()[1],
                max_conn_count=1,
            ),
            local_port=local.sockets[0].getsockname()[1],
        )
        try:
            await tunnel.start()
            return await asyncio.wait_for(replies.get(), timeout=5)
        finally:
            await tunnel.close()
            local.close()
            relay.close()

    assert asyncio.run(scenario()) == b'echo:{"path": "/calm-river"}'
