"""Clipboard adapters."""

from share_cli.infrastructure.clipboard.noop_clipboard import NoopClipboard
from share_cli.infrastructure.clipboard.pyperclip_clipboard import PyperclipClipboard

__all__ = ["NoopClipboard", "PyperclipClipboard"]
