"""
streakboard.engine.ranking — Leaderboard Entries, Ordering & Rendering
=======================================================================

Pure data + formatting.  The aggregation that produces entries lives in
:mod:`streakboard.services.leaderboard_service`.

Ordering rule: descending by current streak.  Ties keep the order in which
entries were produced (registry order); there is no secondary key.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field

from streakboard.config import DEFAULT_PROFILE_URL
from streakboard.constants import STREAK_EMOJI, TROPHY_EMOJI

__all__ = [
    "LeaderboardEntry",
    "LeaderboardResult",
    "LeaderboardStatus",
    "rank_entries",
    "render_leaderboard",
]


class LeaderboardStatus(enum.StrEnum):
    """Outcome of a leaderboard build.  Only ``OK`` carries entries."""
    OK = "ok"
    NO_USERS = "no_users"  # registry is empty
    NO_DATA = "no_data"    # users exist, but every fetch failed


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    username: str
    current_streak: int
    max_streak: int
    total_active_days: int


@dataclass(frozen=True, slots=True)
class LeaderboardResult:
    status: LeaderboardStatus
    entries: tuple[LeaderboardEntry, ...] = field(default_factory=tuple)
    # Usernames that were excluded because their data couldn't be fetched.
    skipped: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.status is LeaderboardStatus.OK


def rank_entries(entries: Iterable[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Sort *entries* by current streak, highest first (stable)."""
    return sorted(entries, key=lambda e: e.current_streak, reverse=True)


def render_leaderboard(
    entries: Iterable[LeaderboardEntry],
    profile_url: str = DEFAULT_PROFILE_URL,
) -> str:
    """Render already-ranked *entries* as a numbered, markdown-linked list.

    Example line::

        1. [alice](https://leetcode.com/u/alice/) — 🔥 **9** days (best: 12)
    """
    lines = [f"{TROPHY_EMOJI} **Streak Leaderboard**", ""]
    for position, entry in enumerate(entries, 1):
        link = profile_url.format(username=entry.username)
        days = "day" if entry.current_streak == 1 else "days"
        lines.append(
            f"{position}. [{entry.username}]({link}) — "
            f"{STREAK_EMOJI} **{entry.current_streak}** {days} "
            f"(best: {entry.max_streak})"
        )
    return "\n".join(lines)
