"""Phase names, states and transition rules."""

from enum import StrEnum


class PhaseName(StrEnum):
    """Independently tracked lifecycle steps of a share session."""

    FILE = "file"
    SERVER = "server"
    TUNNEL = "tunnel"
    CLIPBOARD = "clipboard"
    DOWNLOAD = "download"


class PhaseState(StrEnum):
    """Progress of one phase record."""

    PENDING = "pending"
    STARTED = "started"
    ERRORED = "errored"
    DONE = "done"


class FatalErrorKind(StrEnum):
    """Complete set of reasons a session can abort."""

    MISSING_INPUT = "missing_input"
    PACKAGING_FAILED = "packaging_failed"
    NO_FREE_PORT = "no_free_port"
    BIND_FAILED = "bind_failed"
    TUNNEL_EXHAUSTED = "tunnel_exhausted"


TERMINAL_PHASE_STATES = frozenset({PhaseState.ERRORED, PhaseState.DONE})

FATAL_PHASES = frozenset({PhaseName.FILE, PhaseName.SERVER, PhaseName.TUNNEL})

DEFAULT_LABELS: dict[PhaseName, str] = {
    PhaseName.FILE: "Prepare",
    PhaseName.SERVER: "Server",
    PhaseName.TUNNEL: "Tunnel",
    PhaseName.CLIPBOARD: "Copy",
    PhaseName.DOWNLOAD: "Download",
}

_FORWARD_TRANSITIONS: dict[PhaseState, frozenset[PhaseState]] = {
    PhaseState.PENDING: frozenset({PhaseState.STARTED}),
    PhaseState.STARTED: frozenset({PhaseState.ERRORED, PhaseState.DONE}),
    PhaseState.ERRORED: frozenset(),
    PhaseState.DONE: frozenset(),
}

# Only the download cycle may leave a terminal state, and only back to pending.
_REARM_TRANSITIONS: dict[PhaseName, frozenset[PhaseState]] = {
    PhaseName.DOWNLOAD: TERMINAL_PHASE_STATES,
}


def is_allowed_transition(name: PhaseName, current: PhaseState, target: PhaseState) -> bool:
    """Return whether a phase record may move from `current` to `target`."""

    if target in _FORWARD_TRANSITIONS[current]:
        return True
    return target is PhaseState.PENDING and current in _REARM_TRANSITIONS.get(name, frozenset())


__all__ = [
    "DEFAULT_LABELS",
    "FATAL_PHASES",
    "FatalErrorKind",
    "PhaseName",
    "PhaseState",
    "TERMINAL_PHASE_STATES",
    "is_allowed_transition",
]
