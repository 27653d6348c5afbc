"""
streakboard.bot.__main__ — Entry point for ``python -m streakboard.bot``
=========================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Build the registry, LeetCode client, and command handlers.
5. Create the StreakboardBot and run it (blocking).

Run with::

    python -m streakboard.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from streakboard.bot.core import StreakboardBot
from streakboard.config import load_config
from streakboard.database.engine import create_db_engine, init_db
from streakboard.services.activity_client import LeetCodeClient
from streakboard.services.command_service import CommandHandlers
from streakboard.services.registry_service import SqlRegistryStore, UsernameRegistry

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("streakboard")


def main() -> None:
    """Bootstrap and run the Streakboard bot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config(os.getenv("STREAKBOARD_CONFIG", "config.yaml"))
    logger.info(
        "Config loaded — timezone %s, verify policy %s", cfg.timezone, cfg.verify_policy
    )

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)

    # 4. Services.
    handlers = CommandHandlers(
        registry=UsernameRegistry(SqlRegistryStore(engine)),
        source=LeetCodeClient(cfg.activity_api_url, timeout=cfg.request_timeout),
        cfg=cfg,
    )

    # 5. Bot (blocks until Ctrl+C or SIGTERM).
    bot = StreakboardBot(cfg=cfg, engine=engine, handlers=handlers)
    logger.info("Starting Streakboard bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
