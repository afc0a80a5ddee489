"""Keyboard signals read from the controlling terminal."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import suppress

KEEP_SERVING_KEY = b"\x12"

logger = logging.getLogger(__name__)


class KeyboardSignals:
    """Turns Ctrl+R on the terminal into a keep-serving request.

    The terminal is switched to cbreak mode so single keys arrive without
    Enter while Ctrl+C still raises SIGINT.
    """

    def __init__(
        self,
        on_keep_serving: Callable[[], None],
        tty_path: str = "/dev/tty",
    ) -> None:
        self._on_keep_serving = on_keep_serving
        self._tty_path = tty_path
        self._fd: int | None = None
        self._saved_attributes: list | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def active(self) -> bool:
        """Whether keys are currently being read."""

        return self._fd is not None

    def start(self) -> bool:
        """Begin reading keys; return False when no terminal is available."""

        if self._fd is not None:
            return True
        try:
            fd = os.open(self._tty_path, os.O_RDONLY | os.O_NONBLOCK)
        except OSError as exc:
            logger.info("No controlling terminal, Ctrl+R is unavailable: %s", exc)
            return False
        try:
            import termios
            import tty
        except ImportError as exc:
            os.close(fd)
            logger.info("Terminal control is not supported here, Ctrl+R is unavailable: %s", exc)
            return False
        try:
            self._saved_attributes = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except termios.error as exc:
            os.close(fd)
            self._saved_attributes = None
            logger.info("Terminal does not support cbreak mode, Ctrl+R is unavailable: %s", exc)
            return False

        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(fd, self._on_readable)
        self._fd = fd
        return True

    def close(self) -> None:
        """Stop reading keys and restore the terminal."""

        fd, self._fd = self._fd, None
        if fd is None:
            return
        if self._loop is not None:
            self._loop.remove_reader(fd)
            self._loop = None
        if self._saved_attributes is not None:
            import termios

            with suppress(termios.error):
                termios.tcsetattr(fd, termios.TCSADRAIN, self._saved_attributes)
            self._saved_attributes = None
        os.close(fd)

    def feed(self, data: bytes) -> None:
        """Dispatch raw key bytes."""

        if KEEP_SERVING_KEY in data:
            logger.debug("Keep serving key pressed.")
            self._on_keep_serving()

    def _on_readable(self) -> None:
        if self._fd is None:
            return
        try:
            data = os.read(self._fd, 64)
        except BlockingIOError:
            return
        except OSError as exc:
            logger.warning("Reading the terminal failed, Ctrl+R is unavailable: %s", exc)
            self.close()
            return
        if not data:
            self.close()
            return
        self.feed(data)


__all__ = ["KEEP_SERVING_KEY", "KeyboardSignals"]
