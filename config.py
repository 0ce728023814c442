# config.py – runtime settings for the TARC profile bot
# ======================================================
# Read once at boot (after load_dotenv) and passed around explicitly.
# ======================================================
from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_GROUP_ID = 35324584
MEDAL_STYLES = ("bullets", "inline")


def _int_env(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Env {name} must be an integer, got {raw!r}") from None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"Env {name} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    # Discord
    discord_token: str | None = None
    guild_id: int | None = None

    # Roblox
    home_group_id: int = DEFAULT_GROUP_ID
    http_timeout: float = 6.0

    # Ingest
    shared_secret: str = ""

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000

    # Presentation
    medal_style: str = "bullets"

    log_level: str = "INFO"

    def __post_init__(self):
        style = self.medal_style.strip().lower()
        self.medal_style = style if style in MEDAL_STYLES else "bullets"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            discord_token=os.getenv("DISCORD_TOKEN") or None,
            guild_id=_int_env("GUILD_ID", None),
            home_group_id=_int_env("GROUP_ID", DEFAULT_GROUP_ID),  # type: ignore[arg-type]
            http_timeout=_float_env("ROBLOX_TIMEOUT", 6.0),
            shared_secret=os.getenv("SHARED_SECRET", ""),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int_env("PORT", 3000),  # type: ignore[arg-type]
            medal_style=os.getenv("MEDAL_STYLE", "bullets"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
