"""
streakboard.engine.removal — Removal Selection State Machine
=============================================================

``/remove`` doesn't take an argument.  Instead it presents the chat's
tracked usernames as a set of choices plus a cancel choice, and the user
picks one::

    IDLE ──begin──▶ SELECTING ──select──▶ RESOLVED ──▶ IDLE
                         │
                         └────cancel───▶ CANCELLED ─▶ IDLE

Each inbound event is handled by an independent invocation, so nothing is
kept server-side between ``begin`` and ``select``/``cancel``: every choice
carries an *action id* that encodes the whole decision.  The follow-up
invocation calls :meth:`RemovalFlow.resume` and feeds it the decoded action.

There is no timeout.  An abandoned selection simply never transitions.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass

from streakboard.errors import InvalidTransition

__all__ = [
    "CANCEL_ACTION",
    "RemovalAction",
    "RemovalChoice",
    "RemovalFlow",
    "RemovalOutcome",
    "RemovalState",
    "decode_action",
    "encode_selection",
]

SELECT_PREFIX = "streakboard:remove:"
CANCEL_ACTION = "streakboard:remove-cancel"
CANCEL_LABEL = "Cancel"


class RemovalState(enum.StrEnum):
    IDLE = "idle"
    SELECTING = "selecting"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class RemovalChoice:
    """One selectable option as the transport should render it."""
    label: str
    action_id: str

    @property
    def is_cancel(self) -> bool:
        return self.action_id == CANCEL_ACTION


@dataclass(frozen=True, slots=True)
class RemovalAction:
    """A decoded action id: either a username to remove or a cancel."""
    username: str | None = None

    @property
    def is_cancel(self) -> bool:
        return self.username is None


@dataclass(frozen=True, slots=True)
class RemovalOutcome:
    state: RemovalState  # RESOLVED or CANCELLED
    username: str | None = None


def encode_selection(username: str) -> str:
    return f"{SELECT_PREFIX}{username}"


def decode_action(action_id: str) -> RemovalAction:
    """Decode an action id produced by :meth:`RemovalFlow.begin`.

    Raises
    ------
    ValueError
        If *action_id* wasn't produced by this module.
    """
    if action_id == CANCEL_ACTION:
        return RemovalAction()
    if action_id.startswith(SELECT_PREFIX):
        username = action_id[len(SELECT_PREFIX):]
        if username:
            return RemovalAction(username=username)
    raise ValueError(f"Not a removal action: {action_id!r}")


class RemovalFlow:
    """The three-state removal interaction.

    A fresh flow starts ``IDLE``.  :meth:`begin` moves it to ``SELECTING``;
    :meth:`select` and :meth:`cancel` finish it and return it to ``IDLE``,
    reporting the terminal state in the returned :class:`RemovalOutcome`.
    """

    def __init__(self, state: RemovalState = RemovalState.IDLE) -> None:
        self.state = state

    @classmethod
    def resume(cls) -> RemovalFlow:
        """A flow whose choices were rendered by an earlier invocation."""
        return cls(RemovalState.SELECTING)

    def begin(self, usernames: Sequence[str]) -> tuple[RemovalChoice, ...]:
        """Snapshot *usernames* into choices plus a trailing cancel choice.

        An empty roster has nothing to choose from: no choices are returned
        and the flow stays ``IDLE``.
        """
        self._require(RemovalState.IDLE, "begin")
        if not usernames:
            return ()
        choices = [RemovalChoice(label=u, action_id=encode_selection(u)) for u in usernames]
        choices.append(RemovalChoice(label=CANCEL_LABEL, action_id=CANCEL_ACTION))
        self.state = RemovalState.SELECTING
        return tuple(choices)

    def select(self, username: str) -> RemovalOutcome:
        self._require(RemovalState.SELECTING, "select")
        self.state = RemovalState.IDLE
        return RemovalOutcome(RemovalState.RESOLVED, username)

    def cancel(self) -> RemovalOutcome:
        self._require(RemovalState.SELECTING, "cancel")
        self.state = RemovalState.IDLE
        return RemovalOutcome(RemovalState.CANCELLED)

    def apply(self, action_id: str) -> RemovalOutcome:
        """Decode *action_id* and route it to :meth:`select` or :meth:`cancel`."""
        action = decode_action(action_id)
        if action.is_cancel:
            return self.cancel()
        return self.select(action.username)

    def _require(self, expected: RemovalState, event: str) -> None:
        if self.state is not expected:
            raise InvalidTransition(
                f"Cannot {event} a removal while {self.state.value} "
                f"(expected {expected.value})"
            )
