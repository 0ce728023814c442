# cogs/profile.py
# ───────────────────────────────────────────────────────────────
#   • /profile <username>   → TARC profile embed
#   • !profile <username>   → same, as a prefix command
#   The aggregator does the work; this file only renders.
# ───────────────────────────────────────────────────────────────
from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import discord
from discord import app_commands
from discord.ext import commands

from profiles import (
    DivisionMembership,
    NoGameData,
    ProfileAggregator,
    ProfileResult,
    UserNotFound,
)

log = logging.getLogger("cog.profile")

INTERNAL_ERROR = "Profile failed (internal error)."
USAGE = "Use: `!profile robloxUsername`"


# ══════════════════════════ EMBED HELPERS ══════════════════════════════
def format_medals(medals: Sequence[str], style: str = "bullets") -> str:
    if not medals:
        return "None"
    if style == "inline":
        return ", ".join(medals)
    return "\n".join(f"• {m}" for m in medals)


def format_divisions(divisions: Sequence[DivisionMembership]) -> str:
    if not divisions:
        return "None"
    return "\n".join(f"{d.display_name}: **{d.role_name}**" for d in divisions)


def build_profile_embed(result: ProfileResult, *, medal_style: str = "bullets") -> discord.Embed:
    stats = result.stats
    embed = discord.Embed(
        title=f"{result.display_name} | TARC PROFILE",
        description="**Users info:**",
    )
    embed.add_field(name="🪖 Rank", value=f"**{result.main_rank.role}**", inline=False)
    embed.add_field(name="🟦 Division(s)", value=format_divisions(result.divisions), inline=False)
    embed.add_field(name="⏱ Time Played", value=result.play_time, inline=True)
    embed.add_field(name="🎯 XP", value=str(stats.xp), inline=True)
    embed.add_field(name="☠ Kills", value=str(stats.kills), inline=True)
    embed.add_field(name="🏅 Medals", value=format_medals(result.medals, medal_style), inline=False)
    embed.add_field(
        name="On duty",
        value="🟢 In game" if result.on_duty else "🔴 Not in game",
        inline=True,
    )
    embed.add_field(
        name="Joined game (first seen by bot)",
        value=discord.utils.format_dt(stats.first_seen, "F"),
        inline=True,
    )
    embed.set_footer(
        text=f"UserId: {result.player_id} • Last update: {stats.last_updated.isoformat()}"
    )
    return embed


async def render_profile(
    aggregator: ProfileAggregator, username: str, *, medal_style: str = "bullets"
) -> Tuple[Optional[str], Optional[discord.Embed]]:
    """Return (text, embed) – exactly one of them is set."""
    try:
        result = await aggregator.build_profile(username)
        embed = build_profile_embed(result, medal_style=medal_style)
    except UserNotFound:
        return f"Couldn’t find Roblox user **{username}**.", None
    except NoGameData as exc:
        return (
            f"**{exc.display_name}** exists, but has **no saved game data** yet.\n"
            "They need to **join the game once** so the server can send stats."
        ), None
    except Exception:
        log.exception("Profile failed for %r", username)
        return INTERNAL_ERROR, None
    return None, embed


# ═════════════════════════════ COG ═════════════════════════════════════
class ProfileCog(commands.Cog):
    """TARC profile look-ups."""

    def __init__(self, bot: commands.Bot, aggregator: ProfileAggregator, medal_style: str = "bullets"):
        self.bot, self.aggregator = bot, aggregator
        self.medal_style = medal_style

    # ───────────────────────── /profile ────────────────────────
    @app_commands.command(name="profile", description="Show a Roblox user's TARC profile")
    @app_commands.describe(username="Roblox username")
    async def profile_slash(self, i: discord.Interaction, username: str):
        await i.response.defer(ephemeral=False)
        text, embed = await render_profile(self.aggregator, username, medal_style=self.medal_style)
        try:
            if embed is not None:
                await i.edit_original_response(embed=embed)
            else:
                await i.edit_original_response(content=text)
        except discord.HTTPException:
            log.exception("Profile reply failed for %r", username)
            # never leave the deferred interaction "thinking"
            await i.edit_original_response(content=INTERNAL_ERROR, embed=None)

    # ───────────────────────── !profile ────────────────────────
    @commands.command(name="profile")
    async def profile_prefix(self, ctx: commands.Context, username: Optional[str] = None):
        if ctx.guild is None:
            return
        if not username:
            return await ctx.reply(USAGE)
        text, embed = await render_profile(self.aggregator, username, medal_style=self.medal_style)
        try:
            if embed is not None:
                await ctx.reply(embed=embed)
            else:
                await ctx.reply(text)
        except discord.HTTPException:
            log.exception("Profile reply failed for %r", username)
            await ctx.reply(INTERNAL_ERROR)


# ═══════════════════ setup entry-point ════════════════════════
async def setup(bot: commands.Bot, aggregator: ProfileAggregator, medal_style: str = "bullets"):
    await bot.add_cog(ProfileCog(bot, aggregator, medal_style))
