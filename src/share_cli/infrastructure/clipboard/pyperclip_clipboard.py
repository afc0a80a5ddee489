"""System clipboard adapter backed by pyperclip."""

from __future__ import annotations

import asyncio

import pyperclip

from share_cli.domain.errors import ClipboardError
from share_cli.domain.ports import Clipboard


class PyperclipClipboard(Clipboard):
    """Copy text with the platform clipboard tool pyperclip detects."""

    async def copy(self, text: str) -> None:
        try:
            await asyncio.to_thread(pyperclip.copy, text)
        except pyperclip.PyperclipException as exc:
            raise ClipboardError(f"Copying to clipboard failed: {exc}") from exc


__all__ = ["PyperclipClipboard"]
