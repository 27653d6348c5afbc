"""
streakboard.config — YAML Configuration Loader
===============================================

Reads ``config.yaml`` for the soft settings that shape bot behaviour
(command prefix, streak timezone, verification policy, HTTP tuning).
Secrets (``DISCORD_TOKEN``, ``DATABASE_URL``, ``WEBHOOK_SECRET``) stay in
the environment and are loaded with ``python-dotenv`` by the entry points.

Usage::

    from streakboard.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.verify_policy)     # VerifyPolicy.REJECT
    print(cfg.tzinfo)            # zoneinfo.ZoneInfo(key='UTC')
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

DEFAULT_ACTIVITY_API_URL = "https://leetcode.com/graphql"
DEFAULT_PROFILE_URL = "https://leetcode.com/u/{username}/"


class VerifyPolicy(enum.StrEnum):
    """What ``add`` does with a username the activity source can't confirm."""
    REJECT = "reject"  # fail closed: never stored
    FLAG = "flag"      # stored, but the reply says it couldn't be verified
    OFF = "off"        # no existence check at all


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class StreakboardConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    bot_prefix: str = "!"
    timezone: str = "UTC"  # Defines "today" for streak computation
    verify_policy: VerifyPolicy = VerifyPolicy.REJECT
    leaderboard_concurrency: int = 5
    request_timeout: float = 10.0
    activity_api_url: str = DEFAULT_ACTIVITY_API_URL
    profile_url: str = DEFAULT_PROFILE_URL

    @property
    def tzinfo(self) -> tzinfo:
        return ZoneInfo(self.timezone)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> StreakboardConfig:
    """Read *path* and return a :class:`StreakboardConfig` instance.

    Every key is optional; missing keys fall back to the dataclass defaults.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If a value is present but unusable (unknown policy, bad timezone,
        non-positive concurrency or timeout).
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return parse_config(raw)


def parse_config(raw: dict) -> StreakboardConfig:
    """Build a validated :class:`StreakboardConfig` from a plain mapping."""
    defaults = StreakboardConfig()

    try:
        policy = VerifyPolicy(str(raw.get("verify_policy", defaults.verify_policy)).lower())
    except ValueError:
        allowed = ", ".join(p.value for p in VerifyPolicy)
        raise ValueError(
            f"verify_policy must be one of: {allowed} (got {raw['verify_policy']!r})"
        ) from None

    timezone = str(raw.get("timezone", defaults.timezone))
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {timezone!r}") from None

    concurrency = int(raw.get("leaderboard_concurrency", defaults.leaderboard_concurrency))
    if concurrency < 1:
        raise ValueError("leaderboard_concurrency must be at least 1")

    timeout = float(raw.get("request_timeout", defaults.request_timeout))
    if timeout <= 0:
        raise ValueError("request_timeout must be positive")

    profile_url = str(raw.get("profile_url", defaults.profile_url))
    if "{username}" not in profile_url:
        raise ValueError("profile_url must contain a {username} placeholder")

    return StreakboardConfig(
        bot_prefix=str(raw.get("bot_prefix", defaults.bot_prefix)),
        timezone=timezone,
        verify_policy=policy,
        leaderboard_concurrency=concurrency,
        request_timeout=timeout,
        activity_api_url=str(raw.get("activity_api_url", defaults.activity_api_url)),
        profile_url=profile_url,
    )
