# tests/helpers.py

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from roblox import GroupRole, Lookup, PresenceState

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock:
    """Manual clock: each call returns the current time, tick() advances it."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def tick(self, seconds: float = 1) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class FakeRoblox:
    """Stands in for RobloxClient with canned Lookup results."""

    def __init__(
        self,
        users: Optional[Dict[str, int]] = None,
        names: Optional[Dict[int, str]] = None,
        roles: Optional[Dict[int, List[GroupRole]]] = None,
        presence: Optional[Dict[int, PresenceState]] = None,
    ):
        self.users = users or {}
        self.names = names or {}
        self.roles = roles or {}
        self.presence = presence or {}
        self.fail: set = set()
        self.calls: List[str] = []

    async def resolve_user_id(self, username):
        self.calls.append("resolve_user_id")
        if "resolve_user_id" in self.fail:
            return Lookup.fallback(None)
        return Lookup.ok(self.users.get(username))

    async def resolve_display_name(self, user_id):
        self.calls.append("resolve_display_name")
        if "resolve_display_name" in self.fail or user_id not in self.names:
            return Lookup.fallback(f"UserId:{user_id}")
        return Lookup.ok(self.names[user_id])

    async def get_roles(self, user_id):
        self.calls.append("get_roles")
        if "get_roles" in self.fail:
            return Lookup.fallback([])
        return Lookup.ok(list(self.roles.get(user_id, [])))

    async def get_presence(self, user_id):
        self.calls.append("get_presence")
        if "get_presence" in self.fail:
            return Lookup.fallback(PresenceState.OFFLINE)
        return Lookup.ok(self.presence.get(user_id, PresenceState.OFFLINE))
