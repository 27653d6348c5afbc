"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import Engine, create_engine

from streakboard.config import StreakboardConfig
from streakboard.database.models import Base
from streakboard.engine.streak import day_key
from streakboard.errors import UserNotFound
from streakboard.services.activity_client import ActivityReport
from streakboard.services.registry_service import SqlRegistryStore, UsernameRegistry

# A fixed mid-afternoon instant so "today" never depends on the wall clock.
NOW = datetime(2026, 3, 10, 15, 30, tzinfo=UTC)


def run_async(coro):
    """Run an async coroutine to completion without pytest-asyncio."""
    return asyncio.run(coro)


def active_days(now: datetime, days: int, *, skip_today: bool = False, count: int = 1) -> dict[int, int]:
    """Calendar with *days* consecutive active days ending today (or yesterday)."""
    end = now - timedelta(days=1) if skip_today else now
    return {day_key(end - timedelta(days=i)): count for i in range(days)}


def make_report(username: str, calendar: dict[int, int] | None = None, best: int = 0, total: int = 0) -> ActivityReport:
    return ActivityReport(
        username=username,
        best_streak=best,
        total_active_days=total,
        calendar=calendar or {},
    )


class FakeActivitySource:
    """In-memory :class:`ActivitySource` with scripted reports and failures.

    ``yearly`` overrides ``reports`` for one (username, year) pair; a value
    that is an exception is raised instead of returned.
    """

    def __init__(
        self,
        reports: dict[str, ActivityReport] | None = None,
        failures: dict[str, Exception] | None = None,
        existing: set[str] | None = None,
        yearly: dict[tuple[str, int], ActivityReport | Exception] | None = None,
    ) -> None:
        self.reports = reports or {}
        self.failures = failures or {}
        self.existing = existing if existing is not None else set(self.reports)
        self.yearly = yearly or {}
        self.fetch_calls: list[tuple[str, int]] = []
        self.exists_calls: list[str] = []

    async def fetch_activity(self, username: str, year: int) -> ActivityReport:
        self.fetch_calls.append((username, year))
        if username in self.failures:
            raise self.failures[username]
        scripted = self.yearly.get((username, year))
        if isinstance(scripted, Exception):
            raise scripted
        if scripted is not None:
            return scripted
        if username not in self.reports:
            raise UserNotFound(username)
        return self.reports[username]

    async def user_exists(self, username: str) -> bool:
        self.exists_calls.append(username)
        return username in self.existing


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Streakboard tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def store(db_engine: Engine) -> SqlRegistryStore:
    return SqlRegistryStore(db_engine)


@pytest.fixture
def registry(store: SqlRegistryStore) -> UsernameRegistry:
    return UsernameRegistry(store)


@pytest.fixture
def cfg() -> StreakboardConfig:
    return StreakboardConfig()
