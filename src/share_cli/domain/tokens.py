"""Access token, tunnel subdomain and password generation."""

from __future__ import annotations

import re
import secrets

_ADJECTIVES = (
    "able", "amber", "ancient", "autumn", "billowing", "bitter", "black", "blue",
    "bold", "brave", "brief", "broad", "calm", "careful", "clever", "cold",
    "cool", "crimson", "curly", "damp", "dark", "dawn", "delicate", "divine",
    "dry", "eager", "empty", "equal", "falling", "fancy", "flat", "floral",
    "fragrant", "frosty", "gentle", "green", "hidden", "holy", "icy", "important",
    "jolly", "late", "lingering", "little", "lively", "long", "lucky", "misty",
    "morning", "muddy", "nameless", "noisy", "odd", "old", "orange", "patient",
    "plain", "polished", "proud", "purple", "quiet", "rapid", "raspy", "red",
    "restless", "rough", "round", "royal", "shiny", "shy", "silent", "small",
    "snowy", "soft", "solitary", "sparkling", "spring", "square", "steep", "still",
    "summer", "super", "sweet", "throbbing", "tight", "tiny", "twilight", "unequal",
    "wandering", "weathered", "white", "wild", "winter", "wispy", "withered", "young",
)

_NOUNS = (
    "art", "band", "bar", "base", "bird", "block", "boat", "bonus",
    "bread", "breeze", "brook", "bush", "butterfly", "cake", "cell", "cherry",
    "cloud", "credit", "darkness", "dawn", "dew", "disk", "dream", "dust",
    "feather", "field", "fire", "firefly", "flower", "fog", "forest", "frog",
    "frost", "glade", "glitter", "grass", "hall", "hat", "haze", "heart",
    "hill", "king", "lab", "lake", "leaf", "limit", "math", "meadow",
    "mode", "moon", "morning", "mountain", "mouse", "mud", "night", "paper",
    "pine", "poetry", "pond", "queen", "rain", "recipe", "resonance", "rice",
    "river", "salad", "scene", "sea", "shadow", "shape", "silence", "sky",
    "smoke", "snow", "snowflake", "sound", "star", "sun", "sunset", "surf",
    "term", "thunder", "tooth", "tree", "truth", "union", "unit", "violet",
    "voice", "water", "waterfall", "wave", "wildflower", "wind", "wish", "wood",
)

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


def generate_access_token() -> str:
    """Return a human-readable `adjective-noun` path segment."""

    return f"{secrets.choice(_ADJECTIVES)}-{secrets.choice(_NOUNS)}"


def subdomain_from_token(token: str, max_length: int = 20) -> str:
    """Derive the tunnel subdomain hint: lowercase alphanumerics, truncated."""

    return _NON_ALPHANUMERIC.sub("", token.lower())[:max_length]


def generate_password(length: int = 16) -> str:
    """Return a random archive password."""

    return secrets.token_urlsafe(length)[:length]


__all__ = ["generate_access_token", "generate_password", "subdomain_from_token"]
