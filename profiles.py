# profiles.py – assemble a TARC profile from Roblox + cached game stats
# ===============================================================
#   build_profile(username)
#     1) username → user id            (fatal if it fails)
#     2) name / roles / presence       (concurrently, best-effort)
#     3) main rank + divisions         (derived from one role list)
#     4) cached stats                  (NoGameData if never ingested)
#     5) medals + play-time string
# ===============================================================
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from config import DEFAULT_GROUP_ID
from roblox import GroupRole, PresenceState, RobloxClient
from stats_cache import StatsCache, StatsRecord

log = logging.getLogger("profilebot.profiles")

# ════════════════════════════════════════
#               CONFIG
# ════════════════════════════════════════
# Display order of divisions on the profile (group id, display name)
DIVISION_GROUPS: Tuple[Tuple[int, str], ...] = (
    (35324584, "Republic Army"),
    (35326817, "91st Reconnaissance Corps"),
    (35326823, "327th Legion"),
    (35326812, "Advanced Recon Commandos"),
    (35326815, "Coruscant Guard"),
    (35326827, "Red Guards"),
    (12658410, "Republic Commandos"),
    (35326830, "Republic Intelligence"),
    (33943342, "Galactic Senate"),
    (16060314, "Senate Guard"),
    (16282238, "The Jedi Order"),
    (35328710, "41st Elite Corps"),
)

MEDAL_ASSIGNMENTS: Dict[int, Tuple[str, ...]] = {
    621243206: ("Medal Of Honor", "Distinguished Service", "Achivement Of Activity",
                "Medal Of Stars Honesty", "Leaderships Medal Of Honour", "Invaluted's Bravery"),
    2808148032: ("Achivement Of Activity",),
    1439310935: ("Medal Of Honor", "Achivement Of Activity"),
    2411349338: ("Medal Of Stars Honesty",),
    4278897258: ("Medal Of Dedication",),
    1301506053: ("Distinguished Service", "Medal Of Dedication"),
    3799212924: ("Leaderships Medal Of Honour", "Achivement Of Activity"),
    2493429350: ("Medal Of Stars Honesty",),
    4981240382: ("Medal Of Honor", "Distinguished Service", "Achivement Of Activity",
                 "Medal Of Stars Honesty"),
    1120715283: ("Medal Of Honor", "Distinguished Service", "Medal Of Stars Honesty",
                 "Leaderships Medal Of Honour", "Medal Of Dedication", "Achivement Of Activity"),
    1208840794: ("Medal Of Honor", "Distinguished Service", "Medal Of Stars Honesty",
                 "Leaderships Medal Of Honour"),
}

NOT_IN_GROUP = ("Not in group", "N/A")


# ════════════════════════════════════════
#               ERRORS
# ════════════════════════════════════════
class ProfileError(Exception):
    """Base class for terminal profile-query outcomes."""


class UserNotFound(ProfileError):
    def __init__(self, username: str):
        super().__init__(f"Roblox user {username!r} not found")
        self.username = username


class NoGameData(ProfileError):
    def __init__(self, player_id: int, display_name: str):
        super().__init__(f"No game data cached for {display_name} ({player_id})")
        self.player_id = player_id
        self.display_name = display_name


# ════════════════════════════════════════
#               RESULT TYPES
# ════════════════════════════════════════
@dataclass(frozen=True)
class MainRank:
    name: str
    role: str


@dataclass(frozen=True)
class DivisionMembership:
    group_id: int
    display_name: str
    role_name: str
    role_rank: Optional[int] = None


@dataclass(frozen=True)
class ProfileResult:
    player_id: int
    display_name: str
    main_rank: MainRank
    divisions: Tuple[DivisionMembership, ...]
    presence: PresenceState
    stats: StatsRecord
    play_time: str
    medals: Tuple[str, ...]
    degraded: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def on_duty(self) -> bool:
        return self.presence is PresenceState.IN_GAME


# ════════════════════════════════════════
#               FORMATTING
# ════════════════════════════════════════
def format_duration_compact(total_seconds) -> str:
    """
    65 → "1m 5s", 90000 → "1d 1h 0m 0s".
    Leading zero units are dropped; once a unit shows, every smaller one does.
    """
    try:
        total = max(0, int(float(total_seconds)))
    except (TypeError, ValueError, OverflowError):
        total = 0

    d, rem = divmod(total, 86400)
    h, rem = divmod(rem, 3600)
    m, s = divmod(rem, 60)

    parts: List[str] = []
    if d > 0:
        parts.append(f"{d}d")
    if h > 0 or d > 0:
        parts.append(f"{h}h")
    if m > 0 or h > 0 or d > 0:
        parts.append(f"{m}m")
    parts.append(f"{s}s")
    return " ".join(parts)


def get_medals(player_id: int, table: Dict[int, Tuple[str, ...]] = MEDAL_ASSIGNMENTS) -> Tuple[str, ...]:
    return tuple(table.get(int(player_id), ()))


def main_rank_from_roles(
    roles: Sequence[GroupRole],
    home_group_id: int,
    names: Dict[int, str] | None = None,
) -> MainRank:
    for role in roles:
        if role.group_id == home_group_id:
            name = role.group_name or (names or {}).get(home_group_id) or f"Group {home_group_id}"
            return MainRank(name=name, role=role.role_name)
    return MainRank(*NOT_IN_GROUP)


def divisions_from_roles(
    roles: Sequence[GroupRole],
    allow_list: Sequence[Tuple[int, str]] = DIVISION_GROUPS,
) -> Tuple[DivisionMembership, ...]:
    """Keep only allow-listed groups, in allow-list order, under allow-list names."""
    by_group: Dict[int, GroupRole] = {}
    for role in roles:
        by_group.setdefault(role.group_id, role)

    out: List[DivisionMembership] = []
    for gid, label in allow_list:
        role = by_group.get(gid)
        if role is None:
            continue
        out.append(
            DivisionMembership(
                group_id=gid,
                display_name=label or role.group_name or f"Group {gid}",
                role_name=role.role_name,
                role_rank=role.role_rank,
            )
        )
    return tuple(out)


# ════════════════════════════════════════
#               AGGREGATOR
# ════════════════════════════════════════
class ProfileAggregator:
    """Read side: merges Roblox look-ups with the StatsCache. Never writes."""

    def __init__(
        self,
        cache: StatsCache,
        roblox: RobloxClient,
        *,
        home_group_id: int = DEFAULT_GROUP_ID,
        divisions: Sequence[Tuple[int, str]] = DIVISION_GROUPS,
        medals: Dict[int, Tuple[str, ...]] = MEDAL_ASSIGNMENTS,
    ) -> None:
        self.cache = cache
        self.roblox = roblox
        self.home_group_id = home_group_id
        self.divisions = tuple(divisions)
        self.medals = medals

    async def build_profile(self, username: str) -> ProfileResult:
        resolved = await self.roblox.resolve_user_id(username)
        if resolved.value is None:
            raise UserNotFound(username)
        uid = resolved.value

        name_l, roles_l, presence_l = await asyncio.gather(
            self.roblox.resolve_display_name(uid),
            self.roblox.get_roles(uid),
            self.roblox.get_presence(uid),
        )
        degraded = frozenset(
            label
            for label, lookup in (
                ("display_name", name_l),
                ("roles", roles_l),
                ("presence", presence_l),
            )
            if lookup.degraded
        )
        if degraded:
            log.info("Profile for %s built with fallbacks: %s", uid, ", ".join(sorted(degraded)))

        stats = self.cache.get(uid)
        if stats is None:
            raise NoGameData(uid, name_l.value)

        return ProfileResult(
            player_id=uid,
            display_name=name_l.value,
            main_rank=main_rank_from_roles(roles_l.value, self.home_group_id, dict(self.divisions)),
            divisions=divisions_from_roles(roles_l.value, self.divisions),
            presence=presence_l.value,
            stats=stats,
            play_time=format_duration_compact(stats.play_time_seconds),
            medals=get_medals(uid, self.medals),
            degraded=degraded,
        )
