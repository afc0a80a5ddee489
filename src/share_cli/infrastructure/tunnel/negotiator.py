"""Bounded-retry tunnel negotiation."""

from __future__ import annotations

import logging

from share_cli.domain.errors import TunnelError, TunnelExhaustedError
from share_cli.domain.ports import Tunnel, TunnelNegotiator
from share_cli.infrastructure.tunnel.client import (
    LocalTunnelClient,
    TunnelAssignment,
    TunnelRejectedError,
)
from share_cli.infrastructure.tunnel.relay import LocalTunnel

logger = logging.getLogger(__name__)


class LocalTunnelNegotiator(TunnelNegotiator):
    """Open a relay tunnel, giving up after `max_retries` failed attempts."""

    def __init__(
        self,
        client: LocalTunnelClient,
        local_host: str = "127.0.0.1",
        reconnect_delay_seconds: float = 1.0,
    ) -> None:
        self._client = client
        self._local_host = local_host
        self._reconnect_delay_seconds = reconnect_delay_seconds

    async def open_tunnel(self, port: int, subdomain_hint: str, max_retries: int) -> Tunnel:
        attempts = max(max_retries, 1)
        last_error: TunnelError | None = None

        for attempt in range(1, attempts + 1):
            try:
                assignment = await self._request_assignment(subdomain_hint)
                tunnel = LocalTunnel(
                    assignment,
                    local_port=port,
                    local_host=self._local_host,
                    reconnect_delay_seconds=self._reconnect_delay_seconds,
                )
                await tunnel.start()
            except TunnelError as exc:
                last_error = exc
                logger.warning(
                    "Tunnel attempt %s/%s via %s failed: %s",
                    attempt,
                    attempts,
                    self._client.host,
                    exc,
                )
                continue
            return tunnel

        raise TunnelExhaustedError(
            f"Opening a tunnel via {self._client.host} failed after {attempts} attempts: "
            f"{last_error}"
        ) from last_error

    async def _request_assignment(self, subdomain_hint: str) -> TunnelAssignment:
        if not subdomain_hint:
            return await self._client.request_assignment(None)
        try:
            return await self._client.request_assignment(subdomain_hint)
        except TunnelRejectedError as exc:
            if exc.status_code >= 500:
                raise
            logger.info(
                "Relay rejected subdomain '%s' (%s); requesting a random one.",
                subdomain_hint,
                exc,
            )
            return await self._client.request_assignment(None)


__all__ = ["LocalTunnelNegotiator"]
