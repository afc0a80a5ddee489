"""Infrastructure layer public API."""

from share_cli.infrastructure.clipboard import NoopClipboard, PyperclipClipboard
from share_cli.infrastructure.network import PortAllocator, resolve_local_address
from share_cli.infrastructure.packaging import ZipPackager
from share_cli.infrastructure.server import UvicornTransferServer
from share_cli.infrastructure.tunnel import (
    LocalTunnel,
    LocalTunnelClient,
    LocalTunnelNegotiator,
)

__all__ = [
    "LocalTunnel",
    "LocalTunnelClient",
    "LocalTunnelNegotiator",
    "NoopClipboard",
    "PortAllocator",
    "PyperclipClipboard",
    "UvicornTransferServer",
    "ZipPackager",
    "resolve_local_address",
]
