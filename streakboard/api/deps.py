"""
streakboard.api.deps — FastAPI dependency injection
====================================================
"""

from __future__ import annotations

import os
import secrets
from functools import lru_cache

from fastapi import Header, HTTPException, status
from sqlalchemy import Engine

from streakboard.config import StreakboardConfig, load_config
from streakboard.database.engine import create_db_engine, init_db
from streakboard.services.activity_client import LeetCodeClient
from streakboard.services.command_service import CommandHandlers
from streakboard.services.registry_service import SqlRegistryStore, UsernameRegistry


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    engine = create_db_engine()
    init_db(engine)
    return engine


@lru_cache(maxsize=1)
def get_config() -> StreakboardConfig:
    return load_config(os.getenv("STREAKBOARD_CONFIG", "config.yaml"))


@lru_cache(maxsize=1)
def get_handlers() -> CommandHandlers:
    cfg = get_config()
    return CommandHandlers(
        registry=UsernameRegistry(SqlRegistryStore(get_engine())),
        source=LeetCodeClient(cfg.activity_api_url, timeout=cfg.request_timeout),
        cfg=cfg,
    )


def verify_webhook_secret(
    x_webhook_secret: str | None = Header(default=None),
) -> None:
    """Reject the request unless it carries ``WEBHOOK_SECRET``.

    When ``WEBHOOK_SECRET`` is unset the check is disabled, which is only
    sensible behind a private network or for local development.
    """
    expected = os.getenv("WEBHOOK_SECRET", "")
    if not expected:
        return
    if x_webhook_secret is None or not secrets.compare_digest(x_webhook_secret, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook secret",
        )
