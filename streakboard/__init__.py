"""
Streakboard — LeetCode Streak Leaderboards for Chat Groups
============================================================
Tracks a roster of LeetCode usernames per chat and ranks them by their
current daily-submission streak.

Package layout::

    streakboard/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Shared presentation constants
    ├── errors.py          # Exception hierarchy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ChatRoster ORM model
    ├── engine/
    │   ├── streak.py      # Calendar parsing + current-streak walk
    │   ├── ranking.py     # Leaderboard entries, sort, rendering
    │   └── removal.py     # Removal selection state machine
    ├── services/
    │   ├── activity_client.py     # LeetCode GraphQL adapter (httpx)
    │   ├── registry_service.py    # Per-chat username registry
    │   ├── leaderboard_service.py # Fan-out fetch + rank
    │   └── command_service.py     # One handler per inbound event
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader
    │   └── cogs/
    │       └── tracker.py # /add, /list, /leaderboard, /remove, /streak
    └── api/
        ├── main.py        # FastAPI webhook app
        └── deps.py        # Dependency providers
"""

__version__ = "0.1.0"
