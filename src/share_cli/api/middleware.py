"""ASGI middleware rejecting link-preview crawlers."""

from __future__ import annotations

import re
from collections.abc import Sequence

from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Receive, Scope, Send


def build_crawler_pattern(user_agents: Sequence[str]) -> re.Pattern[str] | None:
    """Compile a case-insensitive matcher for any of `user_agents`."""

    cleaned = [agent.strip() for agent in user_agents if agent.strip()]
    if not cleaned:
        return None
    return re.compile("|".join(re.escape(agent) for agent in cleaned), re.IGNORECASE)


class CrawlerFilterMiddleware:
    """Answer 404 to preview bots before routing, so they never touch the session."""

    def __init__(self, app: ASGIApp, user_agents: Sequence[str]) -> None:
        self.app = app
        self._pattern = build_crawler_pattern(user_agents)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and self.is_crawler(Headers(scope=scope).get("user-agent")):
            response = PlainTextResponse("Not found", status_code=404)
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)

    def is_crawler(self, user_agent: str | None) -> bool:
        """Whether the client identifies itself as a link-preview agent."""

        if self._pattern is None or not user_agent:
            return False
        return self._pattern.search(user_agent) is not None


__all__ = ["CrawlerFilterMiddleware", "build_crawler_pattern"]
