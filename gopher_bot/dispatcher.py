"""Event dispatch.

Responsibilities:
- turn Slack event payloads into MessageEvent / JoinEvent
- drop messages sent by bots (the bot itself included) so it never talks to itself
- build one immutable Message per event (normalized text, directedness)
- run the root handler once, containing any failure to that event
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from .handlers.join import JoinHandler
from .markup import DEFAULT_ALIAS, clean_text, is_directed, normalize_text
from .router import Handler, JoinEvent, Message, MessageEvent, Responder

logger = logging.getLogger(__name__)

# message subtypes that are still "a user said something"
_ACCEPTED_SUBTYPES = {"", "file_share", "thread_broadcast", "me_message"}


def parse_event(payload: Mapping[str, Any]) -> Optional[Union[MessageEvent, JoinEvent]]:
    """Slack event dict -> MessageEvent / JoinEvent, None for anything else."""
    kind = payload.get("type")
    if kind == "message":
        subtype = payload.get("subtype") or ""
        if subtype not in _ACCEPTED_SUBTYPES and subtype != "bot_message":
            # edits, deletes, joins...: no top-level user text to act on
            logger.debug("ignoring message subtype=%s", subtype)
            return None
        return MessageEvent.from_payload(dict(payload))

    if kind == "team_join":
        user = payload.get("user") or {}
        if not isinstance(user, dict) or not user.get("id"):
            return None
        return JoinEvent(user_id=str(user["id"]), user_name=str(user.get("name") or ""))

    return None


def is_bot_originated(event: MessageEvent) -> bool:
    return bool(event.bot_id) or not event.user or event.subtype == "bot_message"


class Dispatcher:
    """Filtering -> normalizing -> classifying -> one call to the root handler."""

    def __init__(
        self,
        bot_id: str,
        root: Handler,
        *,
        alias: str = DEFAULT_ALIAS,
        join_handler: Optional[JoinHandler] = None,
        dev_mode: bool = False,
    ):
        self.bot_id = bot_id
        self.root = root
        self.alias = alias
        self.join_handler = join_handler
        self.dev_mode = dev_mode

    def build_message(self, event: MessageEvent) -> Message:
        return Message(
            event=event,
            text=normalize_text(event.text, self.bot_id, self.alias),
            clean_text=clean_text(event.text, self.bot_id, self.alias),
            directed=is_directed(event.text, event.channel, self.bot_id, self.alias),
        )

    async def dispatch(self, event: MessageEvent, responder: Responder) -> bool:
        """Handle one message event. Returns False when it was filtered out.

        Never raises: a failure is logged and only affects this event.
        """
        if is_bot_originated(event):
            return False

        message = self.build_message(event)
        if self.dev_mode:
            logger.debug("message channel=%s directed=%s text=%r", event.channel, message.directed, message.text)

        try:
            await self.root.handle(message, responder)
        except Exception:
            logger.exception("dispatch failed channel=%s ts=%s", event.channel, event.ts)
        return True

    async def dispatch_join(self, event: JoinEvent, responder: Responder) -> None:
        if self.join_handler is None:
            return
        try:
            await self.join_handler.handle(event, responder)
        except Exception:
            logger.exception("join handler failed user=%s", event.user_id)
