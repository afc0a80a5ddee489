"""Public relay tunnel adapters."""

from share_cli.infrastructure.tunnel.client import (
    LocalTunnelClient,
    TunnelAssignment,
    TunnelRejectedError,
)
from share_cli.infrastructure.tunnel.negotiator import LocalTunnelNegotiator
from share_cli.infrastructure.tunnel.relay import LocalTunnel

__all__ = [
    "LocalTunnel",
    "LocalTunnelClient",
    "LocalTunnelNegotiator",
    "TunnelAssignment",
    "TunnelRejectedError",
]
