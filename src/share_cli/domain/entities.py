"""Domain entities."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import BinaryIO

from pydantic import BaseModel, ConfigDict

from share_cli.domain.errors import PhaseTransitionError
from share_cli.domain.phases import (
    DEFAULT_LABELS,
    PhaseName,
    PhaseState,
    is_allowed_transition,
)


@dataclass(slots=True, frozen=True)
class Artifact:
    """Packaged archive ready for transfer."""

    path: Path
    size_bytes: int
    checksum_hex: str
    password: str
    name: str


@dataclass(slots=True, frozen=True)
class Endpoint:
    """Externally reachable local address and bound port."""

    address: str
    port: int

    def url_for(self, token: str) -> str:
        """Return the direct (non-tunneled) download URL."""

        return f"http://{self.address}:{self.port}/{token}"


@dataclass(slots=True, frozen=True)
class Connection:
    """Reachable URL plus the handle tearing down its networking."""

    url: str
    close: Callable[[], Awaitable[None]]


@dataclass(slots=True, frozen=True)
class PhaseRecord:
    """Observable progress of one lifecycle step."""

    phase: PhaseState
    label: str

    def advance(self, name: PhaseName, phase: PhaseState, label: str | None = None) -> PhaseRecord:
        """Return the record moved to `phase`, refusing backward moves."""

        if phase is not self.phase and not is_allowed_transition(name, self.phase, phase):
            raise PhaseTransitionError(
                f"Phase '{name}' cannot move from {self.phase} to {phase}."
            )
        return replace(self, phase=phase, label=label or self.label)


@dataclass(slots=True, frozen=True)
class ShareRequest:
    """Inputs consumed by one share session."""

    source: Path | None = None
    stdin: BinaryIO | None = None
    name: str | None = None
    password: str | None = None
    tunnel: bool = True


class ShareDetails(BaseModel):
    """Shareable output reported once the link is live."""

    model_config = ConfigDict(frozen=True)

    url: str
    checksum: str
    password: str


def _initial_phases() -> dict[PhaseName, PhaseRecord]:
    return {
        name: PhaseRecord(phase=PhaseState.PENDING, label=label)
        for name, label in DEFAULT_LABELS.items()
    }


@dataclass(slots=True)
class Session:
    """Mutable status snapshot owned by the session controller."""

    access_token: str
    phases: dict[PhaseName, PhaseRecord] = field(default_factory=_initial_phases)
    file: Artifact | None = None
    endpoint: Endpoint | None = None
    connection: Connection | None = None
    details: ShareDetails | None = None
    downloads_count: int = 0
    download_progress: float | None = None
    hold_until: float | None = None
    shutdown_requested: bool = False

    def phase(self, name: PhaseName) -> PhaseRecord:
        """Return the current record of one phase."""

        return self.phases[name]

    def assign_endpoint(self, endpoint: Endpoint) -> None:
        """Record the bound endpoint; it never changes afterwards."""

        if self.endpoint is not None:
            raise PhaseTransitionError("Session endpoint is already assigned.")
        self.endpoint = endpoint

    @property
    def holding(self) -> bool:
        """Whether an auto-shutdown is currently scheduled."""

        return self.hold_until is not None and not self.shutdown_requested

    def seconds_until_close(self, now: float) -> int | None:
        """Return the rounded countdown of the hold window."""

        if not self.holding:
            return None
        assert self.hold_until is not None
        return max(round(self.hold_until - now), 0)


__all__ = [
    "Artifact",
    "Connection",
    "Endpoint",
    "PhaseRecord",
    "Session",
    "ShareDetails",
    "ShareRequest",
]
