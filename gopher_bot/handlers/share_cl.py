"""`share cl <n> [<n>...]`: re-post stored changesets to the public CL channel.

Restricted: only from the configured restricted channel or from an admin.
Everyone else gets an explicit private denial.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Iterable, Protocol

from ..router import Message, Responder
from ..store import ChangesetNotFound, ChangesetStore

logger = logging.getLogger(__name__)

SHARE_PREFIX = "share cl"

NOT_AUTHORIZED = "You are not authorized to share CLs"


class Notifier(Protocol):
    async def notify(self, text: str) -> bool: ...


class ShareCLHandler:
    name = "share_cl"

    def __init__(
        self,
        store: ChangesetStore,
        notifier: Notifier,
        *,
        restricted_channel_id: str = "",
        admin_user_ids: Iterable[str] = (),
        prefix: str = SHARE_PREFIX,
    ):
        self.store = store
        self.notifier = notifier
        self.restricted_channel_id = restricted_channel_id
        self.admin_user_ids = frozenset(admin_user_ids)
        self.prefix = prefix
        # "share cl 123", not "share clothes"
        self._command = re.compile(re.escape(prefix) + r"(?:\s|$)")

    def is_authorized(self, message: Message) -> bool:
        event = message.event
        if self.restricted_channel_id and event.channel == self.restricted_channel_id:
            return True
        return event.user in self.admin_user_ids

    async def handle(self, message: Message, responder: Responder) -> None:
        if not self._command.match(message.text):
            return

        if not self.is_authorized(message):
            logger.warning("share attempt caught user=%s channel=%s", message.event.user, message.event.channel)
            await responder.respond_private(NOT_AUTHORIZED)
            return

        for token in message.text[len(self.prefix):].split():
            await self._share_one(token, responder)

    async def _share_one(self, token: str, responder: Responder) -> None:
        try:
            number = int(token)
        except ValueError:
            logger.debug("could not parse CL number %r", token)
            await responder.respond_private(f"Could not share CL {token}, please try again")
            return

        try:
            cl = await self.store.get(number)
        except ChangesetNotFound as e:
            logger.info("share cl %s: %s", number, e)
            await responder.respond_private(f"Could not share CL {number}, please try again")
            return

        if cl.shared:
            await responder.respond_private(f"Already shared CL {number}")
            return

        if not await self.notifier.notify(f"{cl.message} {cl.url}"):
            await responder.respond_private(f"Could not share CL {number}, please try again")
            return

        await self.store.put(number, dataclasses.replace(cl, shared=True))
        logger.info("shared CL %s", number)
