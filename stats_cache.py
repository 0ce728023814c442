# stats_cache.py – in-memory store of the latest game telemetry per player
# ===============================================================
# • one StatsRecord per Roblox user id, replaced whole on every write
# • first_seen is kept from the first write, last_updated always moves
# • no eviction, no persistence: a restart starts from empty
#
# Tips:
#   cache.upsert(uid, xp, kills, secs, now)   → write (never raises on bad numbers)
#   cache.get(uid)                            → StatsRecord | None
# ===============================================================
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

log = logging.getLogger("profilebot.cache")


def coerce_count(value: Any) -> int:
    """
    Turn whatever the game sent into a non-negative int.
    Non-numeric, negative, NaN and infinite values all become 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(num) or num < 0:
        return 0
    return int(num)


@dataclass(frozen=True)
class StatsRecord:
    player_id: int
    xp: int
    kills: int
    play_time_seconds: int
    first_seen: datetime
    last_updated: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.player_id,
            "xp": self.xp,
            "kills": self.kills,
            "playTimeSeconds": self.play_time_seconds,
            "firstSeen": self.first_seen.isoformat(),
            "lastUpdated": self.last_updated.isoformat(),
        }


class StatsCache:
    """Thread-safe dict of player id → StatsRecord."""

    def __init__(self) -> None:
        self._records: Dict[int, StatsRecord] = {}
        # Readers never take the lock: records are immutable and the dict
        # slot is swapped in one assignment.
        self._write_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._records

    def get(self, player_id: int) -> StatsRecord | None:
        return self._records.get(player_id)

    def upsert(
        self,
        player_id: int,
        xp: Any,
        kills: Any,
        play_time_seconds: Any,
        now: datetime,
    ) -> StatsRecord:
        """Replace the numeric fields for *player_id*, keeping first_seen."""
        xp_, kills_, secs = (
            coerce_count(xp),
            coerce_count(kills),
            coerce_count(play_time_seconds),
        )

        with self._write_lock:
            existing = self._records.get(player_id)
            first_seen = existing.first_seen if existing else now
            # a clock that steps backwards must not break first_seen ≤ last_updated
            last_updated = max(now, first_seen)

            record = StatsRecord(
                player_id=player_id,
                xp=xp_,
                kills=kills_,
                play_time_seconds=secs,
                first_seen=first_seen,
                last_updated=last_updated,
            )
            self._records[player_id] = record

        if existing is None:
            log.info("First telemetry for user %s", player_id)
        return record
