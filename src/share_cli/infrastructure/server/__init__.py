"""Transfer listener adapters."""

from share_cli.infrastructure.server.uvicorn_transfer_server import (
    UvicornTransferServer,
    bind_socket,
)

__all__ = ["UvicornTransferServer", "bind_socket"]
