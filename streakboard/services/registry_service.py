"""
streakboard.services.registry_service — Per-Chat Username Registry
===================================================================

The registry is the only durable state: for each chat, an ordered,
duplicate-free list of LeetCode usernames.

Consistency model
-----------------
Every mutation is read-modify-write: take a snapshot of the chat's list,
compute the new list, then merge-write the whole ``usernames`` field.
There is no lock across invocations, so two people adding *different*
usernames to the same chat at the same instant can lose one of the adds
(last writer wins).  That race is accepted; it only affects
near-simultaneous edits of a single chat, and a lost add is fixed by
running ``add`` again.

Usage::

    registry = UsernameRegistry(SqlRegistryStore(engine))
    registry.add(chat_id, "alice")      # True
    registry.add(chat_id, "alice")      # False, already tracked
    registry.list(chat_id)              # ["alice"]

    outcome = await add_username(registry, client, chat_id, "bob")
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from typing import Protocol

from sqlalchemy import Engine

from streakboard.config import VerifyPolicy
from streakboard.database.engine import get_session, run_db
from streakboard.database.models import ChatRoster
from streakboard.services.activity_client import ActivitySource

logger = logging.getLogger(__name__)

ChatId = str | int


class AddOutcome(enum.StrEnum):
    ADDED = "added"
    ADDED_UNVERIFIED = "added_unverified"  # only under VerifyPolicy.FLAG
    ALREADY_TRACKED = "already_tracked"
    NOT_FOUND = "not_found"


# ---------------------------------------------------------------------------
# Store interface
# ---------------------------------------------------------------------------
class RegistryStore(Protocol):
    """Key-document store holding one ``usernames`` list per chat."""

    def get_usernames(self, chat_id: str) -> list[str]:
        """Return the stored list, or ``[]`` when the chat has no document."""
        ...

    def set_usernames(self, chat_id: str, usernames: Sequence[str]) -> None:
        """Upsert the ``usernames`` field of the chat's document."""
        ...


class SqlRegistryStore:
    """:class:`RegistryStore` backed by the ``chat_rosters`` table."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def get_usernames(self, chat_id: str) -> list[str]:
        with get_session(self.engine) as session:
            roster = session.get(ChatRoster, chat_id)
            return list(roster.usernames) if roster else []

    def set_usernames(self, chat_id: str, usernames: Sequence[str]) -> None:
        with get_session(self.engine) as session:
            # merge() = SELECT by primary key, then INSERT or UPDATE that row
            session.merge(ChatRoster(chat_id=chat_id, usernames=list(usernames)))


# ---------------------------------------------------------------------------
# Registry operations
# ---------------------------------------------------------------------------
class UsernameRegistry:
    """Add / list / remove with the one-entry-per-username invariant.

    All methods are synchronous; call them through
    :func:`~streakboard.database.engine.run_db` from async code.
    """

    def __init__(self, store: RegistryStore) -> None:
        self.store = store

    def list(self, chat_id: ChatId) -> list[str]:
        return self.store.get_usernames(str(chat_id))

    def contains(self, chat_id: ChatId, username: str) -> bool:
        return username in self.list(chat_id)

    def add(self, chat_id: ChatId, username: str) -> bool:
        """Append *username*.  Returns ``False`` (and writes nothing) if present."""
        key = str(chat_id)
        current = self.store.get_usernames(key)
        if username in current:
            return False
        self.store.set_usernames(key, [*current, username])
        logger.info("Chat %s: now tracking %s (%d total)", key, username, len(current) + 1)
        return True

    def remove(self, chat_id: ChatId, username: str) -> bool:
        """Drop *username*.  Returns ``False`` (and writes nothing) if absent."""
        key = str(chat_id)
        current = self.store.get_usernames(key)
        if username not in current:
            return False
        remaining = [u for u in current if u != username]
        self.store.set_usernames(key, remaining)
        logger.info("Chat %s: stopped tracking %s (%d left)", key, username, len(remaining))
        return True


# ---------------------------------------------------------------------------
# Verified add
# ---------------------------------------------------------------------------
async def add_username(
    registry: UsernameRegistry,
    source: ActivitySource,
    chat_id: ChatId,
    username: str,
    policy: VerifyPolicy = VerifyPolicy.REJECT,
) -> AddOutcome:
    """Add *username* to the chat, gated by the existence check.

    The duplicate check runs first so an already-tracked name doesn't cost
    a remote lookup.  The gate fails closed: when the source can't confirm
    the user (unknown *or* unreachable), ``REJECT`` leaves the registry
    untouched and ``FLAG`` stores it but reports ``ADDED_UNVERIFIED``.
    """
    if await run_db(registry.contains, chat_id, username):
        return AddOutcome.ALREADY_TRACKED

    verified = True
    if policy is not VerifyPolicy.OFF:
        verified = await source.user_exists(username)
        if not verified and policy is VerifyPolicy.REJECT:
            logger.info("Rejected add of %s to chat %s: not found", username, chat_id)
            return AddOutcome.NOT_FOUND

    if not await run_db(registry.add, chat_id, username):
        # Someone else added it between our check and our write.
        return AddOutcome.ALREADY_TRACKED
    return AddOutcome.ADDED if verified else AddOutcome.ADDED_UNVERIFIED
