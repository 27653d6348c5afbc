"""
streakboard.errors — Exception Hierarchy
=========================================

Every failure the core can raise derives from :class:`StreakboardError`
so batch code can catch one base class per member and keep going.
"""

from __future__ import annotations


class StreakboardError(Exception):
    """Base class for all Streakboard failures."""


class FetchError(StreakboardError):
    """Anything that went wrong while getting one user's activity data."""

    def __init__(self, message: str, username: str | None = None) -> None:
        super().__init__(message)
        self.username = username


class UserNotFound(FetchError):
    """The activity source has no profile for this username."""

    def __init__(self, username: str) -> None:
        super().__init__(f"LeetCode user {username!r} not found", username)


class TransportFailure(FetchError):
    """Network error, timeout, or a non-success response from the source."""


class MalformedCalendar(FetchError):
    """The activity payload didn't parse as a day → count mapping."""


class InvalidTransition(StreakboardError):
    """A removal selection event arrived in a state that can't accept it."""
