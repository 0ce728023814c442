# profilebot.py – TARC profile bot (core launcher)
# =================================================
# One process, one event loop:
#   • uvicorn serves web.app  (Roblox → /ingest)
#   • discord.py runs the bot (/profile, !profile)
# Both share the StatsCache built here.
# =================================================
from __future__ import annotations

import asyncio
import logging
import sys
from importlib import import_module
from types import ModuleType
from typing import Sequence

import discord
import uvicorn
from discord.ext import commands
from dotenv import load_dotenv

from config import Settings
from ingest import IngestHandler
from profiles import ProfileAggregator
from roblox import RobloxClient
from stats_cache import StatsCache
from web import create_app

log = logging.getLogger("profilebot")


# ─────────────────────────── log / env ────────────────────────────
def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        stream=sys.stdout,
        force=True,
    )


# ─────────────────────────── bot instance ─────────────────────────
def build_bot(settings: Settings) -> commands.Bot:
    intents = discord.Intents.default()
    intents.messages = True
    intents.message_content = True  # needed for !profile

    bot = commands.Bot(command_prefix="!", intents=intents, case_insensitive=True)

    @bot.tree.error
    async def app_command_error(inter: discord.Interaction, err: Exception):
        logging.error("Slash-cmd error: %s – %s", type(err).__name__, err)

    @bot.event
    async def on_ready() -> None:
        log.info("Logged in as %s (%s)", bot.user, bot.user.id)
        try:
            if settings.guild_id:
                guild = discord.Object(id=settings.guild_id)
                bot.tree.copy_global_to(guild=guild)
                await bot.tree.sync(guild=guild)
                log.info("Slash-commands synced for guild %s", settings.guild_id)
            else:
                await bot.tree.sync()
                log.info("Slash-commands synced globally")
        except discord.HTTPException as exc:
            log.warning("Slash command register failed: %s", exc)

    return bot


# ─────────────────────────── helper: cog loader ───────────────────
async def load_cogs(
    bot_: commands.Bot,
    aggregator: ProfileAggregator,
    medal_style: str,
    paths: Sequence[str],
) -> None:
    for dotted in paths:
        try:
            module: ModuleType = import_module(dotted)
            if not hasattr(module, "setup"):
                logging.warning("Module %s has no setup() – skipped", dotted)
                continue
            await module.setup(bot_, aggregator, medal_style)
            logging.info("Loaded cog %s", dotted)
        except Exception:
            logging.exception("Failed to load cog %s", dotted)


# ─────────────────────────── main runner ──────────────────────────
async def _run(settings: Settings) -> None:
    cache = StatsCache()                                        # 1) shared state
    roblox = RobloxClient(timeout=settings.http_timeout)
    aggregator = ProfileAggregator(cache, roblox, home_group_id=settings.home_group_id)
    app = create_app(IngestHandler(cache, settings.shared_secret))

    server = uvicorn.Server(                                    # 2) HTTP
        uvicorn.Config(app, host=settings.host, port=settings.port, log_level="info")
    )
    jobs = [server.serve()]

    bot: commands.Bot | None = None
    if settings.discord_token:                                  # 3) Discord
        bot = build_bot(settings)
        await load_cogs(bot, aggregator, settings.medal_style, ("cogs.profile",))
        jobs.append(bot.start(settings.discord_token))
    else:
        log.warning("[BOOT] Missing DISCORD_TOKEN – running ingest API only")

    log.info("HTTP server on %s:%s", settings.host, settings.port)
    try:
        await asyncio.gather(*jobs)
    finally:
        if bot is not None and not bot.is_closed():
            await bot.close()


# ─────────────────────────── entry-point ──────────────────────────
def main() -> None:
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logging.info("Bot stopped by user")


if __name__ == "__main__":
    main()
