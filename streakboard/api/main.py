"""
streakboard.api.main — FastAPI webhook entry point
===================================================

Lets any chat platform that can POST JSON drive Streakboard.  The platform
adapter turns its update into an :class:`InboundEvent`, posts it to
``/api/events``, and renders the returned reply (text plus, for
``remove``, the selectable choices).

Run with::

    uvicorn streakboard.api.main:app --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from pydantic import BaseModel, Field

load_dotenv()

from streakboard.api.deps import get_handlers, verify_webhook_secret  # noqa: E402
from streakboard.services.command_service import CommandHandlers, EventKind  # noqa: E402

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Wire schema
# ---------------------------------------------------------------------------
class InboundEvent(BaseModel):
    kind: EventKind
    chat_id: str = Field(min_length=1, max_length=64)
    # Username for add / streak / removal_selected, or remove without the menu
    username: str | None = Field(default=None, max_length=64)
    # Alternative to kind + username for removal picks: the choice's action id
    action_id: str | None = Field(default=None, max_length=100)


class ChoiceOut(BaseModel):
    label: str
    action_id: str


class ReplyOut(BaseModel):
    text: str
    choices: list[ChoiceOut] = Field(default_factory=list)
    replace: bool = False
    dismiss: bool = False


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    logger.info("Streakboard webhook started")
    yield
    logger.info("Streakboard webhook shutting down")


app = FastAPI(
    title="Streakboard Webhook API",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.post(
    "/api/events",
    response_model=ReplyOut,
    dependencies=[Depends(verify_webhook_secret)],
)
async def handle_event(
    event: InboundEvent,
    handlers: CommandHandlers = Depends(get_handlers),
) -> ReplyOut:
    """Run the handler for one inbound event and return its reply."""
    logger.info("Event %s for chat %s", event.kind, event.chat_id)
    if event.action_id is not None:
        reply = await handlers.removal_action(event.chat_id, event.action_id)
    else:
        reply = await handlers.dispatch(event.kind, event.chat_id, event.username)

    return ReplyOut(
        text=reply.text,
        choices=[ChoiceOut(label=c.label, action_id=c.action_id) for c in reply.choices],
        replace=reply.replace,
        dismiss=reply.dismiss,
    )
