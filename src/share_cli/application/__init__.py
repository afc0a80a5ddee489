"""Application layer public API."""

from share_cli.application.services import HoldTimer, SessionController, SessionListener

__all__ = ["HoldTimer", "SessionController", "SessionListener"]
