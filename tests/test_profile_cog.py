import asyncio
from types import SimpleNamespace

import discord

from cogs.profile import (
    INTERNAL_ERROR,
    ProfileCog,
    build_profile_embed,
    format_divisions,
    format_medals,
    render_profile,
)
from profiles import DivisionMembership, ProfileAggregator
from tests.helpers import T0


def _render(aggregator, username, **kw):
    return asyncio.run(render_profile(aggregator, username, **kw))


def test_format_medals_styles():
    medals = ("Medal Of Honor", "Medal Of Dedication")
    assert format_medals(medals) == "• Medal Of Honor\n• Medal Of Dedication"
    assert format_medals(medals, "inline") == "Medal Of Honor, Medal Of Dedication"
    assert format_medals(()) == "None"
    assert format_medals((), "inline") == "None"


def test_format_divisions():
    divs = (
        DivisionMembership(35324584, "Republic Army", "Commander", 200),
        DivisionMembership(16282238, "The Jedi Order", "Padawan", 10),
    )
    assert format_divisions(divs) == "Republic Army: **Commander**\nThe Jedi Order: **Padawan**"
    assert format_divisions(()) == "None"


def test_profile_embed(cache, fake_roblox):
    cache.upsert(621243206, 1500, 42, 3661, T0)
    text, embed = _render(ProfileAggregator(cache, fake_roblox), "CloneTrooper")

    assert text is None
    assert embed.title == "CloneTrooper | TARC PROFILE"
    fields = {f.name: f.value for f in embed.fields}
    assert fields["🪖 Rank"] == "**Commander**"
    assert fields["⏱ Time Played"] == "1h 1m 1s"
    assert fields["🎯 XP"] == "1500"
    assert fields["☠ Kills"] == "42"
    assert fields["On duty"] == "🟢 In game"
    assert fields["🏅 Medals"].startswith("• Medal Of Honor")
    assert fields["Joined game (first seen by bot)"] == f"<t:{int(T0.timestamp())}:F>"
    assert embed.footer.text == f"UserId: 621243206 • Last update: {T0.isoformat()}"


def test_profile_embed_inline_medals(cache, fake_roblox):
    cache.upsert(621243206, 1, 1, 1, T0)
    result = asyncio.run(ProfileAggregator(cache, fake_roblox).build_profile("CloneTrooper"))
    embed = build_profile_embed(result, medal_style="inline")
    fields = {f.name: f.value for f in embed.fields}
    assert "\n" not in fields["🏅 Medals"]


def test_render_user_not_found(cache, fake_roblox):
    text, embed = _render(ProfileAggregator(cache, fake_roblox), "ghost")
    assert embed is None
    assert text == "Couldn’t find Roblox user **ghost**."


def test_render_no_game_data(cache, fake_roblox):
    text, embed = _render(ProfileAggregator(cache, fake_roblox), "Newbie")
    assert embed is None
    assert text.startswith("**Newbie** exists, but has **no saved game data** yet.")
    assert "join the game once" in text


def test_render_internal_error(cache, fake_roblox):
    class Broken(ProfileAggregator):
        async def build_profile(self, username):
            raise RuntimeError("boom")

    text, embed = _render(Broken(cache, fake_roblox), "CloneTrooper")
    assert embed is None
    assert text == INTERNAL_ERROR


def test_render_offline_no_divisions(cache, fake_roblox):
    cache.upsert(555, 0, 0, 0, T0)
    _, embed = _render(ProfileAggregator(cache, fake_roblox), "Newbie")
    fields = {f.name: f.value for f in embed.fields}
    assert fields["🟦 Division(s)"] == "None"
    assert fields["🏅 Medals"] == "None"
    assert fields["On duty"] == "🔴 Not in game"
    assert fields["🪖 Rank"] == "**N/A**"


def test_render_embed_failure_is_internal_error(cache, fake_roblox, monkeypatch):
    import cogs.profile as profile_cog

    def broken_embed(*_args, **_kw):
        raise ValueError("bad field")

    monkeypatch.setattr(profile_cog, "build_profile_embed", broken_embed)
    cache.upsert(621243206, 1, 1, 1, T0)
    text, embed = _render(ProfileAggregator(cache, fake_roblox), "CloneTrooper")
    assert embed is None
    assert text == INTERNAL_ERROR


# ───────────────────────── command send fallback ─────────────────
def _http_error():
    return discord.HTTPException(SimpleNamespace(status=400, reason="Bad Request"), "embed rejected")


class FakeInteraction:
    def __init__(self):
        self.edits = []
        self.response = SimpleNamespace(defer=self._defer)

    async def _defer(self, **_kw):
        pass

    async def edit_original_response(self, **kw):
        self.edits.append(kw)
        if len(self.edits) == 1:
            raise _http_error()


class FakeContext:
    def __init__(self):
        self.guild = object()
        self.replies = []

    async def reply(self, *args, **kw):
        self.replies.append((args, kw))
        if len(self.replies) == 1:
            raise _http_error()


def test_slash_send_failure_falls_back_to_internal_error(cache, fake_roblox):
    cache.upsert(621243206, 1, 1, 1, T0)
    cog = ProfileCog(None, ProfileAggregator(cache, fake_roblox))
    inter = FakeInteraction()

    asyncio.run(ProfileCog.profile_slash.callback(cog, inter, "CloneTrooper"))

    assert "embed" in inter.edits[0]
    assert inter.edits[-1] == {"content": INTERNAL_ERROR, "embed": None}


def test_prefix_send_failure_falls_back_to_internal_error(cache, fake_roblox):
    cache.upsert(621243206, 1, 1, 1, T0)
    cog = ProfileCog(None, ProfileAggregator(cache, fake_roblox))
    ctx = FakeContext()

    asyncio.run(ProfileCog.profile_prefix.callback(cog, ctx, "CloneTrooper"))

    assert "embed" in ctx.replies[0][1]
    assert ctx.replies[-1] == ((INTERNAL_ERROR,), {})
