"""Application services."""

from share_cli.application.services.hold_timer import HoldTimer
from share_cli.application.services.session_controller import (
    SessionController,
    SessionListener,
)

__all__ = ["HoldTimer", "SessionController", "SessionListener"]
