"""
streakboard.constants — Shared Constants
=========================================

Single source of truth for calendar arithmetic and presentation bits.
Import from here instead of duplicating in engine, services, and cogs.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Calendar arithmetic
# ---------------------------------------------------------------------------
SECONDS_PER_DAY = 86_400

# Safety bound for the backward streak walk: one submission-calendar year.
MAX_STREAK_WALK = 365

# ---------------------------------------------------------------------------
# Usernames
# ---------------------------------------------------------------------------
USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{1,40}$")

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
STREAK_EMOJI = "\U0001f525"      # 🔥
TROPHY_EMOJI = "\U0001f3c6"      # 🏆
WAVE_EMOJI = "\U0001f44b"        # 👋
CHECK_EMOJI = "\u2705"          # ✅
CROSS_EMOJI = "\u274c"          # ❌
WARNING_EMOJI = "\u26a0\ufe0f"  # ⚠️

USAGE_TEXT = (
    "Commands:\n"
    "`add <username>` — track a LeetCode username in this chat\n"
    "`list` — show tracked usernames\n"
    "`leaderboard` — rank tracked users by current streak\n"
    "`streak <username>` — look up one user's streak\n"
    "`remove [username]` — pick a tracked username to remove, or name one"
)

WELCOME_TEXT = (
    f"{WAVE_EMOJI} Welcome to the LeetCode Streak Leaderboard! "
    "Use `add <username>` to add your LeetCode username.\n\n" + USAGE_TEXT
)

TRY_AGAIN_TEXT = "An error occurred, please try again later."
