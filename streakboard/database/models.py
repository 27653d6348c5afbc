"""
streakboard.database.models — SQLAlchemy 2.0 Data Models
=========================================================

Tables:
- chat_rosters — Ordered list of tracked LeetCode usernames per chat
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Streakboard ORM models."""


# ---------------------------------------------------------------------------
# Chat rosters — one row per chat, created on the first successful add
# ---------------------------------------------------------------------------
class ChatRoster(Base):
    __tablename__ = "chat_rosters"

    # Opaque chat identifier (Discord channel snowflake, Telegram chat id, …)
    chat_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Insertion-ordered, duplicate-free list of usernames
    usernames: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), default=list, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ChatRoster chat_id={self.chat_id!r} size={len(self.usernames or [])}>"
