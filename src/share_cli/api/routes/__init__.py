"""Route modules public API."""

from share_cli.api.routes.download import router as download_router

__all__ = ["download_router"]
