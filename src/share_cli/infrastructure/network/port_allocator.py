"""Free-port discovery on the loopback interface."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress

from share_cli.domain.entities import Endpoint
from share_cli.domain.errors import PortAllocationError
from share_cli.domain.ports import EndpointAllocator
from share_cli.infrastructure.network.local_address import resolve_local_address

_DEFAULT_PREFERRED_PORT = 1337
_MAX_PORT = 65535

logger = logging.getLogger(__name__)


class PortAllocator(EndpointAllocator):
    """Scan upward from a preferred port for one nobody is listening on.

    The result is a point-in-time observation; the caller binds afterwards and
    retries allocation if the port was taken in between.
    """

    def __init__(
        self,
        preferred_port: int = _DEFAULT_PREFERRED_PORT,
        max_port: int = _MAX_PORT,
        probe_host: str = "127.0.0.1",
        probe_timeout_seconds: float = 0.2,
        address_resolver: Callable[[], str] = resolve_local_address,
    ) -> None:
        self._preferred_port = preferred_port
        self._max_port = max_port
        self._probe_host = probe_host
        self._probe_timeout_seconds = max(probe_timeout_seconds, 0.01)
        self._address_resolver = address_resolver

    async def allocate(self) -> Endpoint:
        port = await self.find_open_port()
        address = self._address_resolver()
        return Endpoint(address=address, port=port)

    async def find_open_port(self) -> int:
        """Return the first port in range that refuses a loopback connection."""

        for port in range(self._preferred_port, self._max_port + 1):
            if not await self.is_port_in_use(port):
                logger.debug("Port %s is free.", port)
                return port
            logger.debug("Port %s is in use.", port)
        raise PortAllocationError(
            f"No free port between {self._preferred_port} and {self._max_port} "
            f"on {self._probe_host}."
        )

    async def is_port_in_use(self, port: int) -> bool:
        """Whether something accepts connections on `port`."""

        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self._probe_host, port),
                timeout=self._probe_timeout_seconds,
            )
        except (OSError, TimeoutError):
            return False
        writer.close()
        with suppress(OSError):
            await writer.wait_closed()
        return True


__all__ = ["PortAllocator"]
