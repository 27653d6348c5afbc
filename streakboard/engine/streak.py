"""
streakboard.engine.streak — Submission Calendar & Current Streak
=================================================================

Pure functions, no I/O.  A :data:`SubmissionCalendar` maps a day-boundary
key (Unix seconds at UTC midnight, the way LeetCode keys it) to the number
of submissions made that day.  It is sparse: a missing key means zero
submissions.

The current streak is the run of consecutive active days ending today, or
ending yesterday when today has no activity *yet*.  The second case keeps a
streak alive through the morning, before the user has submitted anything.
"today" is the calendar date of ``now`` in its own timezone, so a chat
configured for another zone rolls over at its own midnight while still
reading the UTC-keyed calendar.
"""

from __future__ import annotations

import calendar as _calendar
import json
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from streakboard.constants import MAX_STREAK_WALK, SECONDS_PER_DAY
from streakboard.errors import MalformedCalendar

__all__ = [
    "SubmissionCalendar",
    "compute_current_streak",
    "date_key",
    "day_key",
    "parse_submission_calendar",
    "walk_reaches_year_start",
]

SubmissionCalendar = dict[int, int]


def date_key(day: date) -> int:
    """Return the calendar key for *day*: its UTC midnight, as Unix seconds."""
    return _calendar.timegm(day.timetuple())


def day_key(moment: datetime) -> int:
    """Return the calendar key for the date *moment* falls on.

    The date is taken in *moment*'s own timezone (a naive datetime is
    process-local time) and keyed at that date's UTC midnight.
    """
    return date_key(moment.date())


def parse_submission_calendar(raw: str | Mapping[Any, Any] | None) -> SubmissionCalendar:
    """Turn the activity source's calendar payload into a :data:`SubmissionCalendar`.

    LeetCode ships the calendar as a JSON *string* such as
    ``'{"1704067200": 2, "1704153600": 1}'``; an already-decoded mapping is
    accepted too.  ``None`` or an empty payload is an empty calendar.

    Raises
    ------
    MalformedCalendar
        If the payload isn't JSON, isn't an object, has keys or counts that
        aren't integers, has a negative count, or has keys that don't sit on
        a common 86 400-second grid.
    """
    if raw is None or raw == "":
        return {}

    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedCalendar(f"submission calendar is not valid JSON: {exc}") from exc
    else:
        decoded = raw

    if not isinstance(decoded, Mapping):
        raise MalformedCalendar(
            f"submission calendar must be an object, got {type(decoded).__name__}"
        )

    calendar: SubmissionCalendar = {}
    for key, count in decoded.items():
        try:
            day = int(key)
        except (TypeError, ValueError):
            raise MalformedCalendar(f"calendar key {key!r} is not a timestamp") from None
        # bool is an int subclass; floats like 2.0 are not counts either.
        if isinstance(count, bool) or not isinstance(count, int):
            raise MalformedCalendar(f"calendar count for {key!r} is not an integer")
        if count < 0:
            raise MalformedCalendar(f"calendar count for {key!r} is negative")
        calendar[day] = count

    if calendar:
        anchor = min(calendar)
        stray = [k for k in calendar if (k - anchor) % SECONDS_PER_DAY]
        if stray:
            raise MalformedCalendar(
                f"calendar key {stray[0]} is not on the day grid anchored at {anchor}"
            )

    return calendar


def _anchor(calendar: Mapping[int, int], now: datetime) -> int:
    today = day_key(now)
    return today if calendar.get(today, 0) > 0 else today - SECONDS_PER_DAY


def compute_current_streak(calendar: Mapping[int, int], now: datetime) -> int:
    """Count consecutive active days ending today (or yesterday).

    Parameters
    ----------
    calendar:
        Day-boundary key → submission count.  Missing keys count as zero.
    now:
        The instant to measure from.  Its local date defines "today".

    Returns
    -------
    int
        The streak length, never more than :data:`MAX_STREAK_WALK`.
    """
    streak = 0
    day = _anchor(calendar, now)
    for _ in range(MAX_STREAK_WALK):
        if calendar.get(day, 0) <= 0:
            break
        streak += 1
        day -= SECONDS_PER_DAY
    return streak


def walk_reaches_year_start(calendar: Mapping[int, int], now: datetime) -> bool:
    """True if the streak walk over *calendar* ran into January 1st of ``now``'s year.

    A calendar covers a single year, so such a streak may continue into
    the previous year's calendar.  This includes the case where the walk
    starts on December 31st because today is January 1st with no activity.
    """
    streak = compute_current_streak(calendar, now)
    if streak >= MAX_STREAK_WALK:
        return False
    next_day = _anchor(calendar, now) - streak * SECONDS_PER_DAY
    return next_day < date_key(date(now.year, 1, 1))
