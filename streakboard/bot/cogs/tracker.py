"""
streakboard.bot.cogs.tracker — Roster & Leaderboard Commands
=============================================================

Hybrid commands (slash + prefix), one per inbound event kind:
- /start, /help    — Welcome and usage text
- /add <username>  — Track a LeetCode username in this channel
- /list            — Show tracked usernames
- /leaderboard     — Rank tracked users by current streak
- /streak <user>   — One user's current and best streak
- /remove [user]   — Pick a tracked username from a menu, or name one

The chat identifier is the channel id, so every channel keeps its own
roster.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from streakboard.engine.removal import RemovalChoice
from streakboard.services.command_service import CommandHandlers, Reply

if TYPE_CHECKING:
    from streakboard.bot.core import StreakboardBot

logger = logging.getLogger(__name__)

# Discord caps a select menu at 25 options.
MAX_SELECT_OPTIONS = 25


def build_embed(reply: Reply) -> discord.Embed:
    return discord.Embed(description=reply.text, color=discord.Color.orange())


class RemovalView(discord.ui.View):
    """Select menu of tracked usernames plus a Cancel button.

    Component ``custom_id``s are the action ids produced by
    :class:`~streakboard.engine.removal.RemovalFlow`, so resolving a pick
    needs nothing but the id.  No timeout: an abandoned menu just sits there.
    """

    def __init__(
        self, handlers: CommandHandlers, chat_id: int, choices: tuple[RemovalChoice, ...]
    ) -> None:
        super().__init__(timeout=None)
        self.handlers = handlers
        self.chat_id = chat_id

        picks = [c for c in choices if not c.is_cancel]
        self.truncated = len(picks) > MAX_SELECT_OPTIONS
        if self.truncated:
            logger.warning(
                "Chat %s: %d usernames, showing the first %d in the removal menu",
                chat_id, len(picks), MAX_SELECT_OPTIONS,
            )
        select = discord.ui.Select(
            placeholder="Choose a username to remove",
            options=[
                discord.SelectOption(label=c.label, value=c.action_id)
                for c in picks[:MAX_SELECT_OPTIONS]
            ],
        )
        select.callback = self._on_select
        self.add_item(select)

        for c in choices:
            if c.is_cancel:
                button = discord.ui.Button(
                    label=c.label, style=discord.ButtonStyle.secondary, custom_id=c.action_id
                )
                button.callback = self._make_button_callback(c.action_id)
                self.add_item(button)

    async def _on_select(self, interaction: discord.Interaction) -> None:
        action_id = interaction.data.get("values", [""])[0]
        await self._resolve(interaction, action_id)

    def _make_button_callback(self, action_id: str):
        async def callback(interaction: discord.Interaction) -> None:
            await self._resolve(interaction, action_id)
        return callback

    async def _resolve(self, interaction: discord.Interaction, action_id: str) -> None:
        reply = await self.handlers.removal_action(self.chat_id, action_id)
        self.stop()
        if reply.dismiss:
            await interaction.response.defer()
            await interaction.delete_original_response()
        else:
            await interaction.response.edit_message(embed=build_embed(reply), view=None)


class Tracker(commands.Cog, name="Tracker"):
    """Per-channel LeetCode roster and streak leaderboard."""

    def __init__(self, bot: StreakboardBot) -> None:
        self.bot = bot

    @property
    def handlers(self) -> CommandHandlers:
        return self.bot.handlers

    async def _send(self, ctx: commands.Context, reply: Reply) -> None:
        await ctx.send(embed=build_embed(reply))

    # -------------------------------------------------------------------
    # /start, /help
    # -------------------------------------------------------------------
    @commands.hybrid_command(name="start", description="Get started with the streak leaderboard.")  # type: ignore[arg-type]
    async def start(self, ctx: commands.Context) -> None:
        await self._send(ctx, await self.handlers.start())

    @commands.hybrid_command(name="help", description="Show the available commands.")  # type: ignore[arg-type]
    async def help(self, ctx: commands.Context) -> None:
        await self._send(ctx, await self.handlers.help())

    # -------------------------------------------------------------------
    # /add
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="add",
        description="Track a LeetCode username in this channel.",
    )
    @app_commands.describe(username="LeetCode username (e.g. alice)")
    async def add(self, ctx: commands.Context, username: str | None = None) -> None:
        async with ctx.typing():
            reply = await self.handlers.add(ctx.channel.id, username)
        await self._send(ctx, reply)

    # -------------------------------------------------------------------
    # /list
    # -------------------------------------------------------------------
    @commands.hybrid_command(name="list", description="Show the tracked LeetCode usernames.")  # type: ignore[arg-type]
    async def list_users(self, ctx: commands.Context) -> None:
        await self._send(ctx, await self.handlers.list(ctx.channel.id))

    # -------------------------------------------------------------------
    # /leaderboard
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="leaderboard",
        description="Rank tracked users by their current daily streak.",
    )
    async def leaderboard(self, ctx: commands.Context) -> None:
        async with ctx.typing():
            reply = await self.handlers.leaderboard(ctx.channel.id)
        await self._send(ctx, reply)

    # -------------------------------------------------------------------
    # /streak
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="streak",
        description="Look up one LeetCode user's streak.",
    )
    @app_commands.describe(username="LeetCode username (e.g. alice)")
    async def streak(self, ctx: commands.Context, username: str | None = None) -> None:
        async with ctx.typing():
            reply = await self.handlers.streak(username)
        await self._send(ctx, reply)

    # -------------------------------------------------------------------
    # /remove
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="remove",
        description="Pick a tracked username to remove, or name one.",
    )
    @app_commands.describe(username="LeetCode username to remove (skips the menu)")
    async def remove(self, ctx: commands.Context, username: str | None = None) -> None:
        reply = await self.handlers.remove(ctx.channel.id, username)
        if not reply.choices:
            await self._send(ctx, reply)
            return
        view = RemovalView(self.handlers, ctx.channel.id, reply.choices)
        embed = build_embed(reply)
        if view.truncated:
            embed.set_footer(
                text=f"Showing the first {MAX_SELECT_OPTIONS}. "
                "Use /remove <username> for anyone else."
            )
        await ctx.send(embed=embed, view=view)


async def setup(bot: StreakboardBot) -> None:
    await bot.add_cog(Tracker(bot))
