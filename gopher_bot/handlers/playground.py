"""Code sharing via the Go playground.

Long messages (>= min_lines newlines) and uploaded Go/text files are posted
to https://play.golang.org; the link goes to the channel and a tip about the
playground goes to the author in private.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from ..router import Message, Responder
from ..slack import USER_AGENT, SlackApiError, SlackClient

logger = logging.getLogger(__name__)

PLAYGROUND_URL = "https://play.golang.org"
SHARE_URL = PLAYGROUND_URL + "/share"
LINK_PREFIX = PLAYGROUND_URL + "/p/"

MIN_FILE_LINES = 6
SHAREABLE_FILETYPES = ("go", "text")

UPLOAD_TIP = (
    "Hello. I've noticed you uploaded a Go file. To facilitate collaboration and make "
    "this easier for others to share back the snippet, please consider using: "
    "<https://play.golang.org>. If you wish to not link against the playground, please use "
    '"nolink" in the message. Thank you.'
)

LONG_TEXT_TIP = (
    "Hello. I've noticed you've written a large block of text (more than 9 lines). "
    "To make the conversation easier to follow the conversation and facilitate collaboration, "
    "please consider using: <https://play.golang.org> if you shared code. If you wish to not "
    'link against the playground, please start the message with "nolink". Thank you.'
)


class PlaygroundError(Exception):
    """Sharing on the playground failed (transport error or non-200)."""


@dataclass
class PlaygroundClient:
    http: httpx.AsyncClient
    share_url: str = SHARE_URL

    async def share(self, body: bytes | str) -> str:
        """Upload body, return the https://play.golang.org/p/<id> link."""
        content = body.encode("utf-8") if isinstance(body, str) else body
        try:
            resp = await self.http.post(
                self.share_url,
                content=content,
                headers={
                    "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
                    "User-Agent": USER_AGENT,
                },
            )
        except httpx.HTTPError as e:
            raise PlaygroundError(f"playground share failed: {e}") from e

        if resp.status_code != 200:
            raise PlaygroundError(f"got non-200 response: {resp.status_code}")
        return LINK_PREFIX + resp.text.strip()


def shared_message(link: str) -> str:
    return f"The above code in playground: <{link}>"


class PlaygroundHandler:
    """Unconditional: reacts to message shape, not to who it is addressed to."""

    name = "playground"

    def __init__(
        self,
        slack: SlackClient,
        client: PlaygroundClient,
        *,
        min_lines: int = 10,
        upload_delay: float = 1.0,
        dry_run: bool = False,
    ):
        self.slack = slack
        self.client = client
        self.min_lines = min_lines
        # files.info right after an upload can answer file_not_found
        self.upload_delay = upload_delay
        # dev mode: log what would be shared, never call out
        self.dry_run = dry_run

    @staticmethod
    def is_shareable_upload(message: Message) -> bool:
        event = message.event
        return event.upload and any(f.filetype in SHAREABLE_FILETYPES for f in event.files)

    def applies(self, message: Message) -> bool:
        if "nolink" in message.event.text:
            return False
        return self.is_shareable_upload(message) or message.event.text.count("\n") >= self.min_lines

    async def handle(self, message: Message, responder: Responder) -> None:
        if not self.applies(message):
            return

        upload = self.is_shareable_upload(message)
        if self.dry_run:
            logger.info("dev mode, would share %s on the playground channel=%s",
                        "upload" if upload else "message", message.event.channel)
            return

        if upload:
            await self._share_uploads(message, responder)
            return
        await self._share_text(message, responder)

    async def _share_uploads(self, message: Message, responder: Responder) -> None:
        await asyncio.sleep(self.upload_delay)

        for file in message.event.files:
            try:
                info = await self.slack.file_info(file.id)
            except (SlackApiError, httpx.HTTPError) as e:
                logger.warning("file info failed id=%s: %s", file.id, e)
                return

            if int(info.get("lines") or 0) < MIN_FILE_LINES or info.get("pretty_type") == "Plain Text":
                logger.debug("file %s not worth sharing lines=%s type=%s", file.id, info.get("lines"), info.get("pretty_type"))
                return

            url = info.get("url_private_download")
            if not url:
                logger.warning("file %s has no download url", file.id)
                return

            try:
                body = await self.slack.download(str(url))
                link = await self.client.share(body)
            except (httpx.HTTPError, PlaygroundError) as e:
                logger.warning("sharing file %s failed: %s", file.id, e)
                return

            await responder.respond(shared_message(link))

        await responder.respond_private(UPLOAD_TIP)

    async def _share_text(self, message: Message, responder: Responder) -> None:
        try:
            link = await self.client.share(message.event.text)
        except PlaygroundError as e:
            logger.warning("sharing message failed channel=%s: %s", message.event.channel, e)
            return

        await responder.respond(shared_message(link))
        await responder.respond_private(LONG_TEXT_TIP)
