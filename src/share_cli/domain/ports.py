"""Ports for packaging, networking, tunneling and clipboard access."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from share_cli.domain.entities import Artifact, Endpoint, ShareRequest
from share_cli.domain.events import TransferEventSink


@dataclass(slots=True, frozen=True)
class TransferOptions:
    """What the transfer server serves and how it checks access."""

    artifact: Artifact
    access_token: str
    tunneled: bool


class Packager(Protocol):
    """Turns a source path or piped input into one encrypted archive."""

    async def package(self, request: ShareRequest, password: str, fallback_name: str) -> Artifact:
        """Build the archive and return its descriptor."""

    async def cleanup(self) -> None:
        """Remove temporary files created while packaging."""


class EndpointAllocator(Protocol):
    """Finds an unused port and the externally reachable local address."""

    async def allocate(self) -> Endpoint:
        """Return a point-in-time free endpoint."""


class Tunnel(Protocol):
    """Open relay forwarding a public URL to the local listener."""

    @property
    def url(self) -> str:
        """Public URL assigned by the relay."""

    async def close(self) -> None:
        """Terminate the relay connection."""


class TunnelNegotiator(Protocol):
    """Obtains a public relay URL with a bounded retry budget."""

    async def open_tunnel(self, port: int, subdomain_hint: str, max_retries: int) -> Tunnel:
        """Open a tunnel to `port` or raise after exhausting retries."""


class TransferServer(Protocol):
    """Listener serving exactly one archive under one access token."""

    async def start(self, port: int) -> None:
        """Bind `port` and begin serving in the background."""

    async def close(self) -> None:
        """Stop serving; safe to call repeatedly or before `start`."""

    def require_token(self) -> None:
        """Enforce the access token even though the session was tunneled."""


TransferServerFactory = Callable[[TransferOptions, TransferEventSink], TransferServer]


class Clipboard(Protocol):
    """System clipboard access."""

    async def copy(self, text: str) -> None:
        """Place `text` on the clipboard."""


__all__ = [
    "Clipboard",
    "EndpointAllocator",
    "Packager",
    "TransferOptions",
    "TransferServer",
    "TransferServerFactory",
    "Tunnel",
    "TunnelNegotiator",
]
