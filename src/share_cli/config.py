"""Application settings."""

import json
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_DEFAULT_CRAWLER_USER_AGENTS = [
    "facebookexternalhit",
    "Twitterbot",
    "Slackbot",
    "LinkedInBot",
    "WhatsApp",
    "TelegramBot",
    "Discordbot",
    "SkypeUriPreview",
    "Iframely",
]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    preferred_port: int = 1337
    max_port: int = 65535
    bind_host: str = "0.0.0.0"
    probe_host: str = "127.0.0.1"
    port_probe_timeout_seconds: float = 0.2
    bind_retries: int = 1
    tunnel_enabled: bool = True
    tunnel_host: str = "https://localtunnel.me"
    tunnel_max_retries: int = 5
    tunnel_timeout_seconds: float = 10.0
    tunnel_subdomain_max_length: int = 20
    tunnel_fallback_to_local: bool = False
    hold_seconds: float = 60.0
    progress_interval_seconds: float = 0.1
    chunk_size: int = 64 * 1024
    clipboard_enabled: bool = True
    crawler_user_agents: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(_DEFAULT_CRAWLER_USER_AGENTS)
    )
    log_level: str = "WARNING"

    @field_validator("crawler_user_agents", mode="before")
    @classmethod
    def parse_csv_list(cls, value: object) -> object:
        """Support comma-separated env var values in addition to JSON arrays."""

        if not isinstance(value, str):
            return value
        if value.lstrip().startswith("["):
            return json.loads(value)
        return [item.strip() for item in value.split(",") if item.strip()]

    @model_validator(mode="after")
    def validate_ranges(self) -> "Settings":
        """Ensure ports, budgets and durations are usable."""

        if not 1 <= self.preferred_port <= 65535:
            raise ValueError("SHARE_PREFERRED_PORT must be between 1 and 65535.")
        if not 1 <= self.max_port <= 65535:
            raise ValueError("SHARE_MAX_PORT must be between 1 and 65535.")
        if self.preferred_port > self.max_port:
            raise ValueError("SHARE_PREFERRED_PORT must be <= SHARE_MAX_PORT.")
        if self.port_probe_timeout_seconds <= 0:
            raise ValueError("SHARE_PORT_PROBE_TIMEOUT_SECONDS must be > 0.")
        if self.bind_retries < 0:
            raise ValueError("SHARE_BIND_RETRIES must be >= 0.")
        if self.tunnel_max_retries < 1:
            raise ValueError("SHARE_TUNNEL_MAX_RETRIES must be >= 1.")
        if self.tunnel_timeout_seconds <= 0:
            raise ValueError("SHARE_TUNNEL_TIMEOUT_SECONDS must be > 0.")
        if self.tunnel_subdomain_max_length < 4:
            raise ValueError("SHARE_TUNNEL_SUBDOMAIN_MAX_LENGTH must be >= 4.")
        if self.hold_seconds <= 0:
            raise ValueError("SHARE_HOLD_SECONDS must be > 0.")
        if self.progress_interval_seconds <= 0:
            raise ValueError("SHARE_PROGRESS_INTERVAL_SECONDS must be > 0.")
        if self.chunk_size < 1:
            raise ValueError("SHARE_CHUNK_SIZE must be >= 1.")
        return self

    model_config = SettingsConfigDict(env_prefix="SHARE_", extra="ignore")


__all__ = ["Settings"]
