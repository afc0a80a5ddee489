"""Cancellable auto-shutdown timer."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable


class HoldTimer:
    """One scheduled callback at a time; re-arming replaces the previous one."""

    def __init__(
        self,
        on_expired: Callable[[float], None],
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._on_expired = on_expired
        self._clock = clock
        self._handle: asyncio.TimerHandle | None = None
        self._deadline: float | None = None

    @property
    def armed(self) -> bool:
        """Whether an expiry is scheduled."""

        return self._handle is not None

    @property
    def deadline(self) -> float | None:
        """Clock time at which the scheduled expiry fires."""

        return self._deadline

    def arm(self, seconds: float) -> float:
        """Schedule expiry `seconds` from now and return the deadline."""

        self.cancel()
        deadline = self._clock() + seconds
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(seconds, self._fire, deadline)
        self._deadline = deadline
        return deadline

    def cancel(self) -> None:
        """Drop the scheduled expiry, if any."""

        handle, self._handle = self._handle, None
        self._deadline = None
        if handle is not None:
            handle.cancel()

    def _fire(self, deadline: float) -> None:
        self._handle = None
        self._deadline = None
        self._on_expired(deadline)


__all__ = ["HoldTimer"]
