"""Local network adapters."""

from share_cli.infrastructure.network.local_address import (
    is_external_address,
    list_ipv4_addresses,
    resolve_local_address,
)
from share_cli.infrastructure.network.port_allocator import PortAllocator

__all__ = [
    "PortAllocator",
    "is_external_address",
    "list_ipv4_addresses",
    "resolve_local_address",
]
