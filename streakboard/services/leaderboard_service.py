"""
streakboard.services.leaderboard_service — Streak Leaderboard Aggregation
==========================================================================

Reads a chat's roster, fetches every member's activity concurrently,
computes current streaks, and ranks the results.

Each member is fetched in its own task; a task that fails (unknown user,
timeout, malformed payload, anything else) is logged and its member is
left out.  One bad member never sinks the whole leaderboard.  The output
order comes only from :func:`~streakboard.engine.ranking.rank_entries`,
so it doesn't depend on which fetch finishes first.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from streakboard.database.engine import run_db
from streakboard.engine.ranking import (
    LeaderboardEntry,
    LeaderboardResult,
    LeaderboardStatus,
    rank_entries,
)
from streakboard.engine.streak import compute_current_streak, walk_reaches_year_start
from streakboard.errors import FetchError
from streakboard.services.activity_client import ActivitySource
from streakboard.services.registry_service import ChatId, UsernameRegistry

logger = logging.getLogger(__name__)


async def fetch_entry(
    source: ActivitySource, username: str, now: datetime
) -> LeaderboardEntry:
    """Fetch one user's activity for ``now.year`` and build their entry.

    When the streak runs back to January 1st the previous year's calendar
    is fetched as well and stitched in front, so a streak survives the year
    boundary.  Best streak and active days still come from ``now.year``.

    Raises whatever the source raises for ``now.year``; callers in batch
    context catch it.
    """
    report = await source.fetch_activity(username, now.year)
    calendar = report.calendar
    if walk_reaches_year_start(calendar, now):
        try:
            previous = await source.fetch_activity(username, now.year - 1)
        except FetchError as exc:
            logger.warning(
                "Streak for %s: no %d calendar, counting %d only: %s",
                username, now.year - 1, now.year, exc,
            )
        else:
            calendar = {**previous.calendar, **calendar}
    return LeaderboardEntry(
        username=username,
        current_streak=compute_current_streak(calendar, now),
        max_streak=report.best_streak,
        total_active_days=report.total_active_days,
    )


async def _fetch_or_skip(
    source: ActivitySource,
    username: str,
    now: datetime,
    limiter: asyncio.Semaphore,
) -> LeaderboardEntry | None:
    async with limiter:
        try:
            return await fetch_entry(source, username, now)
        except FetchError as exc:
            logger.warning("Leaderboard: skipping %s: %s", username, exc)
        except Exception:
            logger.exception("Leaderboard: unexpected failure for %s", username)
    return None


async def build_leaderboard(
    registry: UsernameRegistry,
    source: ActivitySource,
    chat_id: ChatId,
    now: datetime,
    concurrency: int = 5,
) -> LeaderboardResult:
    """Build the ranked streak leaderboard for *chat_id*.

    Parameters
    ----------
    registry:
        Where the chat's tracked usernames live.
    source:
        Activity provider (normally :class:`LeetCodeClient`).
    now:
        The instant "today" is measured from (timezone-aware in production).
    concurrency:
        Maximum number of fetches in flight at once.

    Returns
    -------
    LeaderboardResult
        ``NO_USERS`` for an empty roster, ``NO_DATA`` if every fetch failed,
        otherwise ``OK`` with entries sorted by current streak.
    """
    usernames = await run_db(registry.list, chat_id)
    if not usernames:
        return LeaderboardResult(LeaderboardStatus.NO_USERS)

    limiter = asyncio.Semaphore(max(concurrency, 1))
    results = await asyncio.gather(
        *(_fetch_or_skip(source, u, now, limiter) for u in usernames)
    )

    entries = [e for e in results if e is not None]
    skipped = tuple(u for u, e in zip(usernames, results) if e is None)
    if not entries:
        logger.warning("Leaderboard for chat %s: no data for any of %d users", chat_id, len(usernames))
        return LeaderboardResult(LeaderboardStatus.NO_DATA, skipped=skipped)

    logger.info(
        "Leaderboard for chat %s: %d ranked, %d skipped",
        chat_id, len(entries), len(skipped),
    )
    return LeaderboardResult(
        LeaderboardStatus.OK, entries=tuple(rank_entries(entries)), skipped=skipped
    )
