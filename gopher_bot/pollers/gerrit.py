"""Merged changesets from Go's Gerrit, relayed to Slack.

Each poll fetches the latest merged CLs and notifies every one not seen
before, oldest first. Seen CLs are kept in the ChangesetStore so restarts
never post twice.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List

import httpx

from ..slack import USER_AGENT
from ..store import ChangesetNotFound, ChangesetStore, StoredChangeset

logger = logging.getLogger(__name__)

GERRIT_URL = "https://go-review.googlesource.com/changes/?q=status:merged&O=12&n=100"
# https://gerrit-review.googlesource.com/Documentation/rest-api.html#output
XSSI_PREFIX = ")]}'"

Notify = Callable[[str], Awaitable[bool]]


class GerritError(Exception):
    """Fetching or decoding the change list failed."""


def cl_link(number: int) -> str:
    return f"https://golang.org/cl/{number}/"


def cl_subject(change: Dict[str, Any]) -> str:
    subject = str(change.get("subject", ""))
    project = str(change.get("project", ""))
    if project != "go":
        subject = f"[{project}] {subject}"
    return subject


def format_notification(change: Dict[str, Any]) -> str:
    number = int(change["_number"])
    return f"[{number}] {cl_subject(change)}: {cl_link(number)}"


@dataclass
class Gerrit:
    store: ChangesetStore
    http: httpx.AsyncClient
    notify: Notify
    last_id: int = -1
    url: str = GERRIT_URL

    @classmethod
    async def create(cls, store: ChangesetStore, http: httpx.AsyncClient, notify: Notify, **kwargs: Any) -> "Gerrit":
        """Start from the most recently stored CL (-1 when the store is empty)."""
        try:
            last_id = await store.latest_number()
        except ChangesetNotFound:
            last_id = -1
        logger.info("gerrit poller starting after CL %s", last_id)
        return cls(store=store, http=http, notify=notify, last_id=last_id, **kwargs)

    async def fetch(self) -> List[Dict[str, Any]]:
        """Merged changes, most recently updated first."""
        try:
            resp = await self.http.get(self.url, headers={"User-Agent": USER_AGENT})
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise GerritError(f"failed to get data from Gerrit: {e}") from e

        body = resp.text
        if body.startswith(XSSI_PREFIX):
            body = body[len(XSSI_PREFIX):]
        try:
            changes = json.loads(body)
        except ValueError as e:
            raise GerritError(f"decoding Gerrit response: {e}") from e
        if not isinstance(changes, list):
            raise GerritError(f"unexpected Gerrit response type: {type(changes).__name__}")
        return [c for c in changes if isinstance(c, dict) and "_number" in c]

    async def poll(self) -> int:
        """Notify new merged CLs; returns how many were notified."""
        changes = await self.fetch()

        for i, change in enumerate(changes):
            if int(change["_number"]) == self.last_id:
                changes = changes[:i]
                break

        notified = 0
        for change in reversed(changes):
            number = int(change["_number"])
            if await self.store.exists(number):
                continue

            await self.store.put(number, StoredChangeset.now(cl_link(number), cl_subject(change)))

            if not await self.notify(format_notification(change)):
                logger.warning("notify failed for CL %s, stopping this round", number)
                break

            self.last_id = number
            notified += 1

        if notified:
            logger.info("notified %s new CLs, last=%s", notified, self.last_id)
        return notified
