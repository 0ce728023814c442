# ingest.py – game server → bot stats write path
# ===============================================================
# Roblox POSTs { secret, userId, xp, kills, playTimeSeconds }.
# The secret gates the write, the user id must be usable as a key,
# everything else is coerced by the cache.
# ===============================================================
from __future__ import annotations

import hmac
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from stats_cache import StatsCache, StatsRecord

log = logging.getLogger("profilebot.ingest")


# ───────────────────────── errors ─────────────────────────────
class IngestError(Exception):
    """Base class for rejected ingest calls."""


class Unauthorized(IngestError):
    pass


class InvalidKey(IngestError):
    pass


@dataclass(frozen=True)
class Ack:
    player_id: int
    record: StatsRecord


# ───────────────────────── helpers ────────────────────────────
def parse_player_id(value: Any) -> int:
    """Return a non-zero integer id or raise InvalidKey.

    Negative ids are kept: Roblox Studio play-test users report -1, -2, …
    """
    if value is None or isinstance(value, bool):
        raise InvalidKey("userId missing")

    if isinstance(value, int):
        num: float = value
    else:
        try:
            num = float(value)
        except (TypeError, ValueError):
            raise InvalidKey(f"userId not numeric: {value!r}") from None

    if isinstance(num, float) and (not math.isfinite(num) or not num.is_integer()):
        raise InvalidKey(f"userId not a finite integer: {value!r}")
    if num == 0:
        raise InvalidKey("userId is zero")

    digits = value.strip().lstrip("-") if isinstance(value, str) else ""
    if digits.isdigit():
        return int(value.strip())   # keep full precision for long digit strings
    return int(num)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ═══════════════════════ HANDLER ══════════════════════════════
class IngestHandler:
    """Checks the shared secret and forwards the snapshot to the cache."""

    def __init__(
        self,
        cache: StatsCache,
        shared_secret: str | None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.cache = cache
        self._secret = shared_secret or ""
        self._clock = clock
        if not self._secret:
            log.warning("SHARED_SECRET not set – every ingest will be refused")

    def _authorized(self, secret: Any) -> bool:
        if not self._secret or not isinstance(secret, str):
            return False
        return hmac.compare_digest(secret.encode(), self._secret.encode())

    def ingest(
        self,
        secret: Any,
        player_id: Any,
        xp: Any = None,
        kills: Any = None,
        play_time_seconds: Any = None,
    ) -> Ack:
        if not self._authorized(secret):
            log.warning("Ingest refused: invalid secret")
            raise Unauthorized("Invalid secret")

        try:
            uid = parse_player_id(player_id)
        except InvalidKey as exc:
            log.info("Ingest refused: %s", exc)
            raise

        record = self.cache.upsert(uid, xp, kills, play_time_seconds, self._clock())
        log.debug(
            "Ingested user %s: xp=%s kills=%s time=%ss",
            uid, record.xp, record.kills, record.play_time_seconds,
        )
        return Ack(player_id=uid, record=record)

    def ingest_payload(self, payload: Any) -> Ack:
        """Same as ingest() but takes the raw JSON body."""
        body = payload if isinstance(payload, dict) else {}
        return self.ingest(
            body.get("secret"),
            body.get("userId"),
            body.get("xp"),
            body.get("kills"),
            body.get("playTimeSeconds"),
        )
