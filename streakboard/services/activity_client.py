"""
streakboard.services.activity_client — LeetCode Activity Adapter
=================================================================

Talks to LeetCode's public GraphQL endpoint with ``httpx`` and validates
every response against an explicit pydantic schema before anything in
the core touches it.  Two operations:

* :meth:`LeetCodeClient.fetch_activity` — one year of daily submission
  counts plus LeetCode's own best-streak and active-day totals.
* :meth:`LeetCodeClient.user_exists` — the minimal profile lookup behind
  the registry's verification gate.

Failure mapping:

=========================================  ==========================
What happened                              Raised
=========================================  ==========================
``matchedUser`` is ``null``                :class:`UserNotFound`
network error, timeout, non-200, non-JSON  :class:`TransportFailure`
payload doesn't fit the schema             :class:`MalformedCalendar`
=========================================  ==========================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from streakboard.config import DEFAULT_ACTIVITY_API_URL
from streakboard.engine.streak import SubmissionCalendar, parse_submission_calendar
from streakboard.errors import MalformedCalendar, TransportFailure, UserNotFound

logger = logging.getLogger(__name__)

CALENDAR_QUERY = """
query userProfileCalendar($username: String!, $year: Int) {
  matchedUser(username: $username) {
    userCalendar(year: $year) {
      activeYears
      streak
      totalActiveDays
      submissionCalendar
    }
  }
}
"""

PROFILE_QUERY = """
query userPublicProfile($username: String!) {
  matchedUser(username: $username) {
    username
  }
}
"""


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------
class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GraphQLError(_Schema):
    message: str = ""


class UserCalendar(_Schema):
    active_years: list[int] = Field(default_factory=list, alias="activeYears")
    streak: int = Field(ge=0)
    total_active_days: int = Field(ge=0, alias="totalActiveDays")
    # A JSON-encoded object, decoded by parse_submission_calendar()
    submission_calendar: str | None = Field(default=None, alias="submissionCalendar")


class CalendarUser(_Schema):
    user_calendar: UserCalendar = Field(alias="userCalendar")


class CalendarData(_Schema):
    matched_user: CalendarUser | None = Field(default=None, alias="matchedUser")


class CalendarResponse(_Schema):
    data: CalendarData | None = None
    errors: list[GraphQLError] = Field(default_factory=list)


class ProfileUser(_Schema):
    username: str


class ProfileData(_Schema):
    matched_user: ProfileUser | None = Field(default=None, alias="matchedUser")


class ProfileResponse(_Schema):
    data: ProfileData | None = None
    errors: list[GraphQLError] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Public types
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ActivityReport:
    """One user's activity for one calendar year."""

    username: str
    best_streak: int
    total_active_days: int
    calendar: SubmissionCalendar = field(default_factory=dict)
    active_years: tuple[int, ...] = ()


class ActivitySource(Protocol):
    """What the core needs from a remote activity provider."""

    async def fetch_activity(self, username: str, year: int) -> ActivityReport: ...

    async def user_exists(self, username: str) -> bool: ...


# ---------------------------------------------------------------------------
# LeetCode implementation
# ---------------------------------------------------------------------------
class LeetCodeClient:
    """:class:`ActivitySource` backed by ``leetcode.com/graphql``.

    Parameters
    ----------
    api_url:
        GraphQL endpoint.
    timeout:
        Per-request timeout in seconds.  A timed-out request is a
        :class:`TransportFailure` like any other network error.
    transport:
        Optional ``httpx`` transport (tests pass an ``httpx.MockTransport``).
        Defaults to a fresh ``AsyncHTTPTransport`` with one retry.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_ACTIVITY_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    async def _post(self, username: str, query: str, variables: dict[str, Any]) -> Any:
        transport = self._transport or httpx.AsyncHTTPTransport(retries=1)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=transport,
                headers={"Referer": "https://leetcode.com"},
            ) as client:
                resp = await client.post(
                    self.api_url, json={"query": query, "variables": variables}
                )
        except httpx.HTTPError as exc:
            raise TransportFailure(
                f"request for {username!r} failed: {exc.__class__.__name__}", username
            ) from exc

        if resp.status_code != 200:
            raise TransportFailure(
                f"LeetCode answered HTTP {resp.status_code} for {username!r}", username
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportFailure(f"LeetCode sent non-JSON for {username!r}", username) from exc

    async def fetch_activity(self, username: str, year: int) -> ActivityReport:
        """Fetch *username*'s calendar for *year*.

        Raises
        ------
        UserNotFound, TransportFailure, MalformedCalendar
        """
        payload = await self._post(
            username, CALENDAR_QUERY, {"username": username, "year": year}
        )
        try:
            parsed = CalendarResponse.model_validate(payload)
        except ValidationError as exc:
            raise MalformedCalendar(
                f"unexpected calendar payload for {username!r}: {exc.error_count()} error(s)",
                username,
            ) from exc

        if parsed.data is None:
            detail = parsed.errors[0].message if parsed.errors else "no data"
            raise TransportFailure(f"LeetCode query failed for {username!r}: {detail}", username)
        if parsed.data.matched_user is None:
            raise UserNotFound(username)

        cal = parsed.data.matched_user.user_calendar
        try:
            calendar = parse_submission_calendar(cal.submission_calendar)
        except MalformedCalendar as exc:
            raise MalformedCalendar(f"{username!r}: {exc}", username) from exc

        return ActivityReport(
            username=username,
            best_streak=cal.streak,
            total_active_days=cal.total_active_days,
            calendar=calendar,
            active_years=tuple(cal.active_years),
        )

    async def user_exists(self, username: str) -> bool:
        """Return ``True`` only if LeetCode positively reports a profile.

        Unknown users, transport errors, and unparseable responses are all
        ``False``: an unverifiable username is treated as not found.
        """
        try:
            payload = await self._post(username, PROFILE_QUERY, {"username": username})
            parsed = ProfileResponse.model_validate(payload)
        except TransportFailure as exc:
            logger.warning("Could not verify %s: %s", username, exc)
            return False
        except ValidationError:
            logger.warning("Could not verify %s: unexpected profile payload", username)
            return False

        return parsed.data is not None and parsed.data.matched_user is not None
