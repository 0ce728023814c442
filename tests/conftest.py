import pytest

from roblox import GroupRole, PresenceState
from stats_cache import StatsCache
from tests.helpers import Clock, FakeRoblox


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def cache():
    return StatsCache()


@pytest.fixture
def fake_roblox():
    return FakeRoblox(
        users={"CloneTrooper": 621243206, "Newbie": 555},
        names={621243206: "CloneTrooper", 555: "Newbie"},
        roles={
            621243206: [
                GroupRole(16282238, "Jedi Order (Roblox)", "Padawan", 10),
                GroupRole(999, "Some Other Group", "Member", 1),
                GroupRole(35324584, "Republic Army", "Commander", 200),
                GroupRole(35326817, "91st", "Sergeant", 50),
            ],
        },
        presence={621243206: PresenceState.IN_GAME},
    )
