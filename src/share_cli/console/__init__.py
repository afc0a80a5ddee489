"""Terminal collaborators: status display and keyboard signals."""

from share_cli.console.keys import KEEP_SERVING_KEY, KeyboardSignals
from share_cli.console.status import StatusDisplay, render_session

__all__ = ["KEEP_SERVING_KEY", "KeyboardSignals", "StatusDisplay", "render_session"]
