# roblox.py – Roblox identity / group / presence look-ups
# ───────────────────────────────────────────────────────────────
#   • username → user id     (users.roblox.com)
#   • user id → username     (users.roblox.com)
#   • group roles of a user  (groups.roblox.com)
#   • presence of a user     (presence.roblox.com)
#
# Every call is best-effort: errors never escape, they come back as
# Lookup(default, degraded=True). Nothing here retries.
# ───────────────────────────────────────────────────────────────
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar

import httpx

log = logging.getLogger("profilebot.roblox")

# ═══════════════════ ENDPOINTS ════════════════════════════════
USERS_URL = "https://users.roblox.com"
GROUPS_URL = "https://groups.roblox.com"
PRESENCE_URL = "https://presence.roblox.com"

T = TypeVar("T")


# ═══════════════════ RESULT TYPES ═════════════════════════════
@dataclass(frozen=True)
class Lookup(Generic[T]):
    """Outcome of one external call: the value, and whether it is a fallback."""

    value: T
    degraded: bool = False

    @classmethod
    def ok(cls, value: T) -> "Lookup[T]":
        return cls(value, False)

    @classmethod
    def fallback(cls, default: T) -> "Lookup[T]":
        return cls(default, True)


class PresenceState(enum.IntEnum):
    # values match Roblox userPresenceType
    OFFLINE = 0
    ONLINE = 1
    IN_GAME = 2


@dataclass(frozen=True)
class GroupRole:
    group_id: int
    group_name: Optional[str]
    role_name: str
    role_rank: Optional[int]


# ═══════════════════ CLIENT ═══════════════════════════════════
class RobloxClient:
    """Stateless wrapper around the public Roblox web APIs."""

    def __init__(
        self,
        timeout: float = 6.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._transport = transport   # tests plug in httpx.MockTransport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _fetch(self, method: str, url: str, **kwargs) -> Any:
        async with self._client() as client:
            r = await client.request(method, url, **kwargs)
            r.raise_for_status()
            return r.json()

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        """Perform one call and return decoded JSON. Raises on any failure.

        httpx applies its timeout per phase; wait_for bounds the whole call.
        """
        return await asyncio.wait_for(self._fetch(method, url, **kwargs), self.timeout)

    @staticmethod
    def _log_failure(what: str, exc: Exception) -> None:
        if isinstance(exc, httpx.HTTPStatusError):
            log.warning("Roblox %s failed (%s)", what, exc.response.status_code)
        elif isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
            log.warning("Roblox %s timed out", what)
        else:
            log.warning("Roblox %s error: %s", what, exc)

    # ───────────────────────── users ──────────────────────────
    async def resolve_user_id(self, username: str) -> Lookup[Optional[int]]:
        """Exact username match; Lookup.ok(None) when Roblox has no such user."""
        try:
            data = await self._request(
                "POST",
                f"{USERS_URL}/v1/usernames/users",
                json={"usernames": [username], "excludeBannedUsers": False},
            )
            hits = data.get("data") or []
            uid = hits[0].get("id") if hits else None
            return Lookup.ok(int(uid) if uid else None)
        except Exception as exc:
            self._log_failure("username lookup", exc)
            return Lookup.fallback(None)

    async def resolve_display_name(self, user_id: int) -> Lookup[str]:
        placeholder = f"UserId:{user_id}"
        try:
            data = await self._request("GET", f"{USERS_URL}/v1/users/{user_id}")
            name = data.get("name")
            return Lookup.ok(name) if name else Lookup.fallback(placeholder)
        except Exception as exc:
            self._log_failure("user lookup", exc)
            return Lookup.fallback(placeholder)

    # ───────────────────────── groups ─────────────────────────
    async def get_roles(self, user_id: int) -> Lookup[List[GroupRole]]:
        """All group memberships of *user_id*, in the order Roblox returns them."""
        try:
            data = await self._request(
                "GET", f"{GROUPS_URL}/v2/users/{user_id}/groups/roles"
            )
            roles: List[GroupRole] = []
            for item in data.get("data") or []:
                group = item.get("group") or {}
                role = item.get("role") or {}
                if group.get("id") is None:
                    continue
                rank = role.get("rank")
                roles.append(
                    GroupRole(
                        group_id=int(group["id"]),
                        group_name=group.get("name") or None,
                        role_name=role.get("name") or "Member",
                        role_rank=int(rank) if rank is not None else None,
                    )
                )
            return Lookup.ok(roles)
        except Exception as exc:
            self._log_failure("group roles", exc)
            return Lookup.fallback([])

    # ───────────────────────── presence ───────────────────────
    async def get_presence(self, user_id: int) -> Lookup[PresenceState]:
        try:
            data = await self._request(
                "POST",
                f"{PRESENCE_URL}/v1/presence/users",
                json={"userIds": [int(user_id)]},
            )
            presences = data.get("userPresences") or [{}]
            kind = presences[0].get("userPresenceType")
            try:
                return Lookup.ok(PresenceState(kind))
            except ValueError:
                # 3 = Studio, 4 = Invisible and anything newer count as offline
                return Lookup.ok(PresenceState.OFFLINE)
        except Exception as exc:
            self._log_failure("presence", exc)
            return Lookup.fallback(PresenceState.OFFLINE)
