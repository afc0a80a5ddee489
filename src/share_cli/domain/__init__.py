"""Domain public API."""

from share_cli.domain.entities import (
    Artifact,
    Connection,
    Endpoint,
    PhaseRecord,
    Session,
    ShareDetails,
    ShareRequest,
)
from share_cli.domain.errors import (
    BindError,
    ClipboardError,
    MissingInputError,
    PackagingError,
    PhaseTransitionError,
    PortAllocationError,
    SessionAbortedError,
    ShareError,
    TunnelError,
    TunnelExhaustedError,
)
from share_cli.domain.events import (
    HoldExpired,
    KeepServing,
    SessionEvent,
    ShutdownRequested,
    TransferAborted,
    TransferCompleted,
    TransferEvent,
    TransferEventSink,
    TransferProgress,
    TransferStarted,
)
from share_cli.domain.phases import FatalErrorKind, PhaseName, PhaseState
from share_cli.domain.ports import (
    Clipboard,
    EndpointAllocator,
    Packager,
    TransferOptions,
    TransferServer,
    TransferServerFactory,
    Tunnel,
    TunnelNegotiator,
)

__all__ = [
    "Artifact",
    "BindError",
    "Clipboard",
    "ClipboardError",
    "Connection",
    "Endpoint",
    "EndpointAllocator",
    "FatalErrorKind",
    "HoldExpired",
    "KeepServing",
    "MissingInputError",
    "Packager",
    "PackagingError",
    "PhaseName",
    "PhaseRecord",
    "PhaseState",
    "PhaseTransitionError",
    "PortAllocationError",
    "Session",
    "SessionAbortedError",
    "SessionEvent",
    "ShareDetails",
    "ShareError",
    "ShareRequest",
    "ShutdownRequested",
    "TransferAborted",
    "TransferCompleted",
    "TransferEvent",
    "TransferEventSink",
    "TransferOptions",
    "TransferProgress",
    "TransferServer",
    "TransferServerFactory",
    "TransferStarted",
    "Tunnel",
    "TunnelError",
    "TunnelExhaustedError",
    "TunnelNegotiator",
]
