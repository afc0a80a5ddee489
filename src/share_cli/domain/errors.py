"""Domain exceptions for share session operations."""

from __future__ import annotations

from share_cli.domain.phases import FatalErrorKind


class ShareError(Exception):
    """Base class for share session errors."""

    kind: FatalErrorKind | None = None


class MissingInputError(ShareError):
    """Raised when neither a source path nor piped input was given."""

    kind = FatalErrorKind.MISSING_INPUT


class PackagingError(ShareError):
    """Raised when the source cannot be archived or checksummed."""

    kind = FatalErrorKind.PACKAGING_FAILED


class PortAllocationError(ShareError):
    """Raised when no free port exists in the scan range."""

    kind = FatalErrorKind.NO_FREE_PORT


class BindError(ShareError):
    """Raised when the transfer listener cannot bind its port."""

    kind = FatalErrorKind.BIND_FAILED


class TunnelError(ShareError):
    """Raised when a single tunnel negotiation attempt fails."""


class TunnelExhaustedError(TunnelError):
    """Raised when every tunnel attempt in the retry budget failed."""

    kind = FatalErrorKind.TUNNEL_EXHAUSTED


class ClipboardError(ShareError):
    """Raised when the share URL cannot be copied to the clipboard."""


class PhaseTransitionError(ShareError):
    """Raised when a phase record is moved against its lifecycle."""


class SessionAbortedError(ShareError):
    """Raised by the session controller after a fatal error and teardown."""

    def __init__(self, kind: FatalErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


__all__ = [
    "BindError",
    "ClipboardError",
    "MissingInputError",
    "PackagingError",
    "PhaseTransitionError",
    "PortAllocationError",
    "SessionAbortedError",
    "ShareError",
    "TunnelError",
    "TunnelExhaustedError",
]
