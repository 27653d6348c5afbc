"""
streakboard.services.command_service — One Handler per Inbound Event
=====================================================================

Transport-agnostic.  The Discord cog and the HTTP webhook both translate
their inputs into calls on :class:`CommandHandlers` and render the
returned :class:`Reply`.  Every path ends in a reply: registry failures
become a generic "try again" message (cause logged), activity-source
failures become an informational message.

Event kinds::

    start, help, add(username), list, leaderboard, streak(username),
    remove(username?), removal_selected(username), removal_cancelled
"""

from __future__ import annotations

import enum
import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import ParamSpec

from sqlalchemy.exc import SQLAlchemyError

from streakboard.config import StreakboardConfig
from streakboard.constants import (
    CHECK_EMOJI,
    CROSS_EMOJI,
    STREAK_EMOJI,
    TRY_AGAIN_TEXT,
    USAGE_TEXT,
    USERNAME_RE,
    WARNING_EMOJI,
    WELCOME_TEXT,
)
from streakboard.database.engine import run_db
from streakboard.engine.ranking import LeaderboardStatus, render_leaderboard
from streakboard.engine.removal import RemovalChoice, RemovalFlow, decode_action
from streakboard.errors import MalformedCalendar, TransportFailure, UserNotFound
from streakboard.services.activity_client import ActivitySource
from streakboard.services.leaderboard_service import build_leaderboard, fetch_entry
from streakboard.services.registry_service import (
    AddOutcome,
    ChatId,
    UsernameRegistry,
    add_username,
)

logger = logging.getLogger(__name__)

P = ParamSpec("P")

NO_USERS_TEXT = "No users registered yet. Use `add <username>` to add your LeetCode username."
NO_DATA_TEXT = "No data available. LeetCode couldn't be reached for any tracked user."
ADD_USAGE_TEXT = "Usage: `add <LeetCode username>`"
STREAK_USAGE_TEXT = "Usage: `streak <LeetCode username>`"
REMOVE_USAGE_TEXT = "Usage: `remove` or `remove <LeetCode username>`"


class EventKind(enum.StrEnum):
    START = "start"
    HELP = "help"
    ADD = "add"
    LIST = "list"
    LEADERBOARD = "leaderboard"
    STREAK = "streak"
    REMOVE = "remove"
    REMOVAL_SELECTED = "removal_selected"
    REMOVAL_CANCELLED = "removal_cancelled"


@dataclass(frozen=True, slots=True)
class Reply:
    """What a transport should show in response to one event."""

    text: str
    # Selectable removal choices (only for ``remove``)
    choices: tuple[RemovalChoice, ...] = ()
    # Replace the message that carried the choices with ``text``
    replace: bool = False
    # Delete the message that carried the choices
    dismiss: bool = False


def _registry_guard(
    func: Callable[P, Awaitable[Reply]],
) -> Callable[P, Awaitable[Reply]]:
    """Turn a registry read/write failure into a "try again" reply."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Reply:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError:
            logger.exception("Registry access failed in %s", func.__name__)
            return Reply(TRY_AGAIN_TEXT)

    return wrapper


def _clean_username(raw: str | None) -> str | None:
    username = (raw or "").strip()
    return username if USERNAME_RE.match(username) else None


class CommandHandlers:
    """Holds the collaborators every handler needs.

    Parameters
    ----------
    registry:
        Per-chat username registry.
    source:
        Activity provider used for the verification gate and streaks.
    cfg:
        Loaded configuration (timezone, verify policy, concurrency, links).
    clock:
        Returns "now"; defaults to the current time in ``cfg.timezone``.
    """

    def __init__(
        self,
        registry: UsernameRegistry,
        source: ActivitySource,
        cfg: StreakboardConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.registry = registry
        self.source = source
        self.cfg = cfg
        self._clock = clock or (lambda: datetime.now(cfg.tzinfo))

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------
    async def dispatch(self, kind: EventKind, chat_id: ChatId, argument: str | None = None) -> Reply:
        """Route an event by kind.  *argument* is the username, if any."""
        match kind:
            case EventKind.START:
                return await self.start()
            case EventKind.HELP:
                return await self.help()
            case EventKind.ADD:
                return await self.add(chat_id, argument)
            case EventKind.LIST:
                return await self.list(chat_id)
            case EventKind.LEADERBOARD:
                return await self.leaderboard(chat_id)
            case EventKind.STREAK:
                return await self.streak(argument)
            case EventKind.REMOVE:
                return await self.remove(chat_id, argument)
            case EventKind.REMOVAL_SELECTED:
                return await self.removal_selected(chat_id, argument or "")
            case EventKind.REMOVAL_CANCELLED:
                return await self.removal_cancelled(chat_id)
        raise ValueError(f"Unknown event kind: {kind!r}")

    # -------------------------------------------------------------------
    # start / help
    # -------------------------------------------------------------------
    async def start(self) -> Reply:
        return Reply(WELCOME_TEXT)

    async def help(self) -> Reply:
        return Reply(USAGE_TEXT)

    # -------------------------------------------------------------------
    # add
    # -------------------------------------------------------------------
    @_registry_guard
    async def add(self, chat_id: ChatId, raw_username: str | None) -> Reply:
        username = _clean_username(raw_username)
        if username is None:
            return Reply(ADD_USAGE_TEXT)

        outcome = await add_username(
            self.registry, self.source, chat_id, username, self.cfg.verify_policy
        )
        match outcome:
            case AddOutcome.ADDED:
                return Reply(f"{CHECK_EMOJI} Username '{username}' added!")
            case AddOutcome.ADDED_UNVERIFIED:
                return Reply(
                    f"{WARNING_EMOJI} Username '{username}' added, "
                    "but LeetCode couldn't confirm that it exists."
                )
            case AddOutcome.ALREADY_TRACKED:
                return Reply(f"'{username}' is already on this chat's leaderboard.")
            case AddOutcome.NOT_FOUND:
                return Reply(f"{CROSS_EMOJI} LeetCode user '{username}' was not found.")
        raise ValueError(f"Unhandled add outcome: {outcome!r}")

    # -------------------------------------------------------------------
    # list
    # -------------------------------------------------------------------
    @_registry_guard
    async def list(self, chat_id: ChatId) -> Reply:
        usernames = await run_db(self.registry.list, chat_id)
        if not usernames:
            return Reply(NO_USERS_TEXT)
        lines = [f"Tracked users ({len(usernames)}):"]
        lines.extend(f"• {u}" for u in usernames)
        return Reply("\n".join(lines))

    # -------------------------------------------------------------------
    # leaderboard
    # -------------------------------------------------------------------
    @_registry_guard
    async def leaderboard(self, chat_id: ChatId) -> Reply:
        result = await build_leaderboard(
            self.registry,
            self.source,
            chat_id,
            self._clock(),
            concurrency=self.cfg.leaderboard_concurrency,
        )
        if result.status is LeaderboardStatus.NO_USERS:
            return Reply(NO_USERS_TEXT)
        if result.status is LeaderboardStatus.NO_DATA:
            return Reply(NO_DATA_TEXT)
        return Reply(render_leaderboard(result.entries, self.cfg.profile_url))

    # -------------------------------------------------------------------
    # streak (single user)
    # -------------------------------------------------------------------
    async def streak(self, raw_username: str | None) -> Reply:
        username = _clean_username(raw_username)
        if username is None:
            return Reply(STREAK_USAGE_TEXT)

        try:
            entry = await fetch_entry(self.source, username, self._clock())
        except UserNotFound:
            return Reply(f"{CROSS_EMOJI} LeetCode user '{username}' was not found.")
        except TransportFailure as exc:
            logger.warning("Streak lookup for %s failed: %s", username, exc)
            return Reply(f"{WARNING_EMOJI} Couldn't reach LeetCode right now. Try again later.")
        except MalformedCalendar:
            logger.exception("Streak lookup for %s returned unreadable data", username)
            return Reply(f"{CROSS_EMOJI} LeetCode sent activity data for '{username}' that couldn't be read.")

        link = self.cfg.profile_url.format(username=username)
        return Reply(
            f"[{username}]({link}): {STREAK_EMOJI} **{entry.current_streak}** "
            f"day streak (best: {entry.max_streak}, "
            f"active days this year: {entry.total_active_days})"
        )

    # -------------------------------------------------------------------
    # remove → removal_selected / removal_cancelled
    # -------------------------------------------------------------------
    @_registry_guard
    async def remove(self, chat_id: ChatId, raw_username: str | None = None) -> Reply:
        """Offer the removal choices, or remove *raw_username* directly.

        Naming the user skips the menu; it reaches anyone a transport
        can't fit into its choice surface.
        """
        if raw_username is not None and raw_username.strip():
            username = _clean_username(raw_username)
            if username is None:
                return Reply(REMOVE_USAGE_TEXT)
            return await self.removal_selected(chat_id, username)

        usernames = await run_db(self.registry.list, chat_id)
        choices = RemovalFlow().begin(usernames)
        if not choices:
            return Reply(NO_USERS_TEXT)
        return Reply("Select a username to remove:", choices=choices)

    @_registry_guard
    async def removal_selected(self, chat_id: ChatId, username: str) -> Reply:
        if not username:
            return Reply("No username was selected.", replace=True)
        outcome = RemovalFlow.resume().select(username)
        removed = await run_db(self.registry.remove, chat_id, outcome.username)
        if not removed:
            return Reply(f"'{username}' is not being tracked in this chat.", replace=True)
        return Reply(f"{CHECK_EMOJI} Removed '{username}' from the leaderboard.", replace=True)

    async def removal_cancelled(self, chat_id: ChatId) -> Reply:
        RemovalFlow.resume().cancel()
        logger.debug("Chat %s: removal cancelled", chat_id)
        return Reply("Removal cancelled.", dismiss=True)

    async def removal_action(self, chat_id: ChatId, action_id: str) -> Reply:
        """Resolve a rendered choice by its action id."""
        try:
            action = decode_action(action_id)
        except ValueError:
            logger.warning("Chat %s: unknown removal action %r", chat_id, action_id)
            return Reply("That selection is no longer valid.", replace=True)
        if action.is_cancel:
            return await self.removal_cancelled(chat_id)
        return await self.removal_selected(chat_id, action.username)
