"""HTTP surface public API."""

from share_cli.api.app import create_app

__all__ = ["create_app"]
