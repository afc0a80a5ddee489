"""Externally reachable local address lookup."""

from __future__ import annotations

import ipaddress
import logging

import netifaces

_FALLBACK_ADDRESS = "localhost"

logger = logging.getLogger(__name__)


def list_ipv4_addresses() -> list[str]:
    """Return every IPv4 address bound to a local interface, in interface order."""

    addresses: list[str] = []
    for interface in netifaces.interfaces():
        for entry in netifaces.ifaddresses(interface).get(netifaces.AF_INET, []):
            address = entry.get("addr")
            if address:
                addresses.append(address)
    return addresses


def is_external_address(address: str) -> bool:
    """Whether `address` is a non-loopback IPv4 address."""

    try:
        parsed = ipaddress.ip_address(address)
    except ValueError:
        return False
    return parsed.version == 4 and not parsed.is_loopback


def resolve_local_address() -> str:
    """Return the first external IPv4 address, or `localhost` if none exists."""

    for address in list_ipv4_addresses():
        if is_external_address(address):
            return address
    logger.info("No external IPv4 interface found; falling back to %s.", _FALLBACK_ADDRESS)
    return _FALLBACK_ADDRESS


__all__ = ["is_external_address", "list_ipv4_addresses", "resolve_local_address"]
