"""Events flowing into the session controller's serialized event stream."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class TransferStarted:
    """A full download began streaming."""

    client: str | None = None


@dataclass(slots=True, frozen=True)
class TransferProgress:
    """Rate-limited progress of the active download."""

    bytes_sent: int
    bytes_total: int

    @property
    def fraction(self) -> float:
        """Return completion ratio between 0 and 1."""

        if self.bytes_total <= 0:
            return 1.0
        return max(0.0, min(1.0, self.bytes_sent / self.bytes_total))


@dataclass(slots=True, frozen=True)
class TransferCompleted:
    """Every archive byte was handed to the client."""

    bytes_sent: int


@dataclass(slots=True, frozen=True)
class TransferAborted:
    """The client went away before the download finished."""

    bytes_sent: int
    reason: str


@dataclass(slots=True, frozen=True)
class ShutdownRequested:
    """Operator asked to terminate immediately."""


@dataclass(slots=True, frozen=True)
class KeepServing:
    """Operator asked to cancel the pending auto-shutdown."""


@dataclass(slots=True, frozen=True)
class HoldExpired:
    """The post-download hold window elapsed."""

    deadline: float


TransferEvent = TransferStarted | TransferProgress | TransferCompleted | TransferAborted
ControlSignal = ShutdownRequested | KeepServing | HoldExpired
SessionEvent = TransferEvent | ControlSignal

TransferEventSink = Callable[[TransferEvent], None]


__all__ = [
    "ControlSignal",
    "HoldExpired",
    "KeepServing",
    "SessionEvent",
    "ShutdownRequested",
    "TransferAborted",
    "TransferCompleted",
    "TransferEvent",
    "TransferEventSink",
    "TransferProgress",
    "TransferStarted",
]
