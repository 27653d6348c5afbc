"""
streakboard.bot.core — Bot Instance & Cog Loader
=================================================

Defines :class:`StreakboardBot`, a ``commands.Bot`` subclass that:

1. Carries the shared config (``bot.cfg``), DB engine (``bot.engine``) and
   command handlers (``bot.handlers``) so every Cog can reach them.
2. Loads every Cog listed in :data:`EXTENSIONS`.
3. Syncs the slash-command tree on startup (guild-scoped for dev, global
   for production — controlled by the ``DEV_GUILD_ID`` env var).

The bot is only a transport.  All behaviour lives in
:class:`~streakboard.services.command_service.CommandHandlers`.
"""

from __future__ import annotations

import logging
import os

import discord
from discord.ext import commands
from sqlalchemy import Engine

from streakboard.config import StreakboardConfig
from streakboard.services.command_service import CommandHandlers

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "streakboard.bot.cogs.tracker",
]


class StreakboardBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`StreakboardConfig` from ``config.yaml``.
    engine:
        A SQLAlchemy :class:`Engine` holding the chat rosters.
    handlers:
        The transport-agnostic command handlers.
    """

    def __init__(
        self, cfg: StreakboardConfig, engine: Engine, handlers: CommandHandlers
    ) -> None:
        intents = discord.Intents.default()
        intents.message_content = True  # Privileged: prefix commands

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description="LeetCode streak leaderboards for your server",
            help_command=None,  # /help comes from the tracker cog
        )

        self.cfg = cfg
        self.engine = engine
        self.handlers = handlers

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all Cog extensions before connecting.

        A Cog that fails to load is logged and skipped.
        """
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        if dev_guild_id:
            guild = discord.Object(id=int(dev_guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

    async def close(self) -> None:
        logger.info("Bot shutting down…")
        await super().close()
        self.engine.dispose()
