"""HTTP client for localtunnel-compatible relay assignment."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urlparse

import httpx

from share_cli.domain.errors import TunnelError


class TunnelRejectedError(TunnelError):
    """Raised when the relay answers an assignment request with an error status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True, frozen=True)
class TunnelAssignment:
    """Relay endpoint reserved for this client."""

    id: str
    url: str
    remote_host: str
    remote_port: int
    max_conn_count: int


class LocalTunnelClient:
    """Wrapper around the relay's assignment endpoint."""

    def __init__(
        self,
        host: str = "https://localtunnel.me",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._host = self._normalize_host(host)
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def host(self) -> str:
        """Normalized relay base URL."""

        return self._host

    async def request_assignment(self, subdomain: str | None = None) -> TunnelAssignment:
        """Call `/{subdomain}`, or `/?new` for a random one."""

        url = self._assignment_url(subdomain)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as http_client:
                response = await http_client.get(url)
        except httpx.HTTPError as exc:
            raise TunnelError(f"GET {url} failed: {exc}") from exc

        if not response.is_success:
            raise TunnelRejectedError(
                f"GET {url} failed: {response.status_code} {self._detail_from_response(response)}",
                status_code=response.status_code,
            )
        return self._parse_assignment(url, response)

    def _assignment_url(self, subdomain: str | None) -> str:
        if subdomain:
            return f"{self._host}/{quote(subdomain, safe='')}"
        return f"{self._host}/?new"

    def _parse_assignment(self, url: str, response: httpx.Response) -> TunnelAssignment:
        try:
            payload = response.json()
        except ValueError as exc:
            raise TunnelError(f"GET {url} returned a non-JSON body.") from exc

        if not isinstance(payload, dict):
            raise TunnelError(f"GET {url} returned an unexpected payload: {payload!r}")

        message = payload.get("message")
        try:
            tunnel_id = str(payload["id"])
            public_url = str(payload["url"])
            remote_port = int(payload["port"])
        except (KeyError, TypeError, ValueError) as exc:
            detail = message if isinstance(message, str) else str(payload)
            raise TunnelError(f"Relay refused the tunnel: {detail}") from exc

        remote_host = payload.get("ip") or urlparse(self._host).hostname
        if not remote_host:
            raise TunnelError(f"Cannot determine relay host from '{self._host}'.")

        return TunnelAssignment(
            id=tunnel_id,
            url=public_url,
            remote_host=str(remote_host),
            remote_port=remote_port,
            max_conn_count=max(int(payload.get("max_conn_count") or 1), 1),
        )

    def _detail_from_response(self, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            text = response.text.strip()
            return text or "<no response body>"

        if isinstance(payload, dict):
            message = payload.get("message")
            if isinstance(message, str):
                return message
        return str(payload)

    def _normalize_host(self, host: str) -> str:
        normalized = host.strip().rstrip("/")
        if not normalized:
            raise TunnelError("Tunnel host cannot be empty.")
        return normalized


__all__ = ["LocalTunnelClient", "TunnelAssignment", "TunnelRejectedError"]
