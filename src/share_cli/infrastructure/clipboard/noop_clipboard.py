"""No-op clipboard."""

from __future__ import annotations

from share_cli.domain.ports import Clipboard


class NoopClipboard(Clipboard):
    """No-op implementation for headless environments."""

    async def copy(self, text: str) -> None:
        _ = text


__all__ = ["NoopClipboard"]
