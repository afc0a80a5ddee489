"""Live terminal rendering of the share session."""

from __future__ import annotations

import time
from collections.abc import Callable
from types import TracebackType

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from share_cli.domain.entities import PhaseRecord, Session
from share_cli.domain.phases import PhaseName, PhaseState

_REFRESH_PER_SECOND = 8

_PHASE_ORDER = (
    PhaseName.FILE,
    PhaseName.SERVER,
    PhaseName.TUNNEL,
    PhaseName.CLIPBOARD,
    PhaseName.DOWNLOAD,
)

_SYMBOLS: dict[PhaseState, Text] = {
    PhaseState.PENDING: Text("•", style="dim"),
    PhaseState.DONE: Text("✔", style="green"),
    PhaseState.ERRORED: Text("✖", style="red"),
}


def phase_text(name: PhaseName, record: PhaseRecord, session: Session) -> str:
    """Return the row text of one phase, including download counters."""

    if name is not PhaseName.DOWNLOAD:
        return record.label
    parts = [record.label]
    if record.phase is PhaseState.STARTED and session.download_progress is not None:
        parts.append(f"{session.download_progress:.0%}")
    if session.downloads_count:
        parts.append(f"(Downloads: {session.downloads_count})")
    return " ".join(parts)


def hold_lines(session: Session, now: float, keep_serving_available: bool = True) -> list[str]:
    """Return the countdown block shown while an auto-shutdown is pending."""

    if session.shutdown_requested:
        return ["Closing share-cli"]
    remaining = session.seconds_until_close(now)
    if remaining is None:
        return []
    lines = [f"Closing in {remaining}s", "Ctrl+C to close now"]
    if keep_serving_available:
        lines.append("Ctrl+R to allow more downloads")
    return lines


def render_session(
    session: Session,
    now: float,
    keep_serving_available: bool = True,
) -> RenderableType:
    """Build the full status view for one session snapshot."""

    phases = Table.grid(padding=(0, 1))
    phases.add_column(width=1)
    phases.add_column()
    for name in _PHASE_ORDER:
        record = session.phase(name)
        text = phase_text(name, record, session)
        if record.phase is PhaseState.STARTED:
            phases.add_row(Spinner("dots", style="cyan"), text)
        else:
            phases.add_row(_SYMBOLS[record.phase], text)

    blocks: list[RenderableType] = [phases]
    if session.details is not None:
        details = Table.grid(padding=(0, 1))
        details.add_column(style="bold")
        details.add_column()
        details.add_row("URL:", Text(session.details.url, style="cyan"))
        details.add_row("SHA1:", session.details.checksum)
        details.add_row("Password:", session.details.password)
        blocks.extend([Text(""), details])

    countdown = hold_lines(session, now, keep_serving_available)
    if countdown:
        blocks.append(Text(""))
        blocks.extend(Text(line, style="yellow") for line in countdown)
    return Group(*blocks)


class StatusDisplay:
    """Status observer redrawing the latest session snapshot."""

    def __init__(
        self,
        console: Console,
        keep_serving_available: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._keep_serving_available = keep_serving_available
        self._clock = clock
        self._session: Session | None = None
        self._live = Live(
            console=console,
            refresh_per_second=_REFRESH_PER_SECOND,
            get_renderable=self._render,
        )

    def __enter__(self) -> StatusDisplay:
        self._live.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._live.stop()

    def update(self, session: Session) -> None:
        """Session listener; the view re-renders on the next refresh tick."""

        self._session = session

    def _render(self) -> RenderableType:
        if self._session is None:
            return Text("")
        return render_session(self._session, self._clock(), self._keep_serving_available)


__all__ = ["StatusDisplay", "hold_lines", "phase_text", "render_session"]
