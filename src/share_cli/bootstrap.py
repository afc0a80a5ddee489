"""Application bootstrap/wiring."""

import logging

from share_cli.application.services import SessionController
from share_cli.config import Settings
from share_cli.domain.events import TransferEventSink
from share_cli.domain.ports import Clipboard, TransferOptions, TransferServer
from share_cli.infrastructure.clipboard import NoopClipboard, PyperclipClipboard
from share_cli.infrastructure.network import PortAllocator
from share_cli.infrastructure.packaging import ZipPackager
from share_cli.infrastructure.server import UvicornTransferServer
from share_cli.infrastructure.tunnel import LocalTunnelClient, LocalTunnelNegotiator

logger = logging.getLogger(__name__)


def _build_clipboard(settings: Settings) -> Clipboard:
    if settings.clipboard_enabled:
        return PyperclipClipboard()
    logger.info("Clipboard disabled by SHARE_CLIPBOARD_ENABLED=false.")
    return NoopClipboard()


def _build_tunnel_negotiator(settings: Settings) -> LocalTunnelNegotiator:
    client = LocalTunnelClient(
        host=settings.tunnel_host,
        timeout_seconds=settings.tunnel_timeout_seconds,
    )
    return LocalTunnelNegotiator(client=client, local_host=settings.probe_host)


def build_session_controller(settings: Settings) -> SessionController:
    """Compose service graph."""

    def server_factory(options: TransferOptions, event_sink: TransferEventSink) -> TransferServer:
        return UvicornTransferServer(
            options,
            event_sink,
            host=settings.bind_host,
            crawler_user_agents=settings.crawler_user_agents,
            chunk_size=settings.chunk_size,
            progress_interval_seconds=settings.progress_interval_seconds,
        )

    return SessionController(
        packager=ZipPackager(chunk_size=settings.chunk_size),
        allocator=PortAllocator(
            preferred_port=settings.preferred_port,
            max_port=settings.max_port,
            probe_host=settings.probe_host,
            probe_timeout_seconds=settings.port_probe_timeout_seconds,
        ),
        tunnel_negotiator=_build_tunnel_negotiator(settings),
        server_factory=server_factory,
        clipboard=_build_clipboard(settings),
        hold_seconds=settings.hold_seconds,
        tunnel_max_retries=settings.tunnel_max_retries,
        bind_retries=settings.bind_retries,
        subdomain_max_length=settings.tunnel_subdomain_max_length,
        tunnel_fallback_to_local=settings.tunnel_fallback_to_local,
    )


__all__ = ["build_session_controller"]
