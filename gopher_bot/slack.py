"""Slack Web API access.

- SlackClient: thin async wrapper over https://slack.com/api/<method> (httpx)
- SlackResponder: the Responder handed to handlers for one event
- LoggingResponder: dev mode, logs what would have been sent
- ChannelNotifier: posts poller notifications into a fixed channel
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import httpx

from .router import MessageEvent

logger = logging.getLogger(__name__)

SLACK_API_URL = "https://slack.com/api/"
USER_AGENT = "Gophers Slack bot"


class SlackApiError(Exception):
    """Slack answered with ok=false."""

    def __init__(self, method: str, error: str):
        super().__init__(f"{method}: {error}")
        self.method = method
        self.error = error


@dataclass
class SlackClient:
    """Slack Web API client.

    Only the handful of methods the bot needs; every call goes through call().
    """

    token: str
    http: httpx.AsyncClient
    base_url: str = SLACK_API_URL

    async def call(
        self,
        method: str,
        payload: Optional[Dict[str, Any]] = None,
        *,
        http_method: str = "POST",
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Call a Web API method and return its JSON body.

        Raises SlackApiError when Slack reports a failure and httpx.HTTPError
        on transport/status errors.
        """
        headers = {
            "Authorization": f"Bearer {token or self.token}",
            "User-Agent": USER_AGENT,
        }
        url = self.base_url + method
        if http_method == "GET":
            resp = await self.http.get(url, params=payload or {}, headers=headers)
        else:
            resp = await self.http.post(url, json=payload or {}, headers=headers)
        resp.raise_for_status()

        data = resp.json()
        if not data.get("ok"):
            raise SlackApiError(method, str(data.get("error", "unknown_error")))
        return data

    async def auth_test(self) -> Dict[str, Any]:
        return await self.call("auth.test")

    async def post_message(self, channel: str, text: str, **options: Any) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"channel": channel, "text": text}
        payload.update({k: v for k, v in options.items() if v is not None})
        return await self.call("chat.postMessage", payload)

    async def add_reaction(self, channel: str, timestamp: str, name: str) -> Dict[str, Any]:
        return await self.call("reactions.add", {"channel": channel, "timestamp": timestamp, "name": name})

    async def file_info(self, file_id: str) -> Dict[str, Any]:
        data = await self.call("files.info", {"file": file_id}, http_method="GET")
        return data.get("file") or {}

    async def download(self, url: str) -> bytes:
        """Fetch a private file (url_private_download) with the bot token."""
        resp = await self.http.get(
            url,
            headers={"Authorization": f"Bearer {self.token}", "User-Agent": USER_AGENT},
            follow_redirects=True,
        )
        resp.raise_for_status()
        return resp.content

    async def open_socket(self, app_token: str) -> str:
        """Ask for a Socket Mode websocket URL (needs the app-level token)."""
        data = await self.call("apps.connections.open", token=app_token)
        return str(data["url"])

    async def channel_ids(self, names: Iterable[str]) -> Dict[str, str]:
        """Resolve channel names to ids via conversations.list."""
        wanted = {n.lower().lstrip("#") for n in names if n}
        found: Dict[str, str] = {}
        cursor = ""
        while wanted - found.keys():
            payload: Dict[str, Any] = {
                "types": "public_channel,private_channel",
                "exclude_archived": "true",
                "limit": 1000,
            }
            if cursor:
                payload["cursor"] = cursor
            data = await self.call("conversations.list", payload, http_method="GET")
            for channel in data.get("channels") or ():
                name = str(channel.get("name", "")).lower()
                if name in wanted:
                    found[name] = str(channel["id"])
            cursor = (data.get("response_metadata") or {}).get("next_cursor") or ""
            if not cursor:
                break
        return found


async def _attempt(op: str, args: Dict[str, Any], call) -> bool:
    """Run one Slack call; failures are logged with their context, never raised."""
    try:
        await call
        return True
    except (SlackApiError, httpx.HTTPError) as e:
        logger.warning("slack %s failed args=%s: %s", op, args, e)
        return False


@dataclass
class SlackResponder:
    """Responder bound to one event (its channel, message and author)."""

    client: SlackClient
    channel: str = ""
    user: str = ""
    ts: str = ""
    thread_ts: str = ""

    @classmethod
    def for_event(cls, client: SlackClient, event: MessageEvent) -> "SlackResponder":
        return cls(client=client, channel=event.channel, user=event.user, ts=event.ts, thread_ts=event.thread_ts)

    @classmethod
    def for_user(cls, client: SlackClient, user_id: str) -> "SlackResponder":
        return cls(client=client, user=user_id)

    async def respond(self, text: str, *, threaded: bool = False, unfurl: bool = False) -> None:
        thread_ts = (self.thread_ts or self.ts) if threaded else None
        await _attempt(
            "respond",
            {"channel": self.channel, "text": text},
            self.client.post_message(
                self.channel,
                text,
                thread_ts=thread_ts or None,
                unfurl_links=unfurl,
                unfurl_media=unfurl,
            ),
        )

    async def respond_unfurled(self, text: str) -> None:
        await self.respond(text, unfurl=True)

    async def respond_with_attachment(self, text: str, attachment: str) -> None:
        await _attempt(
            "respond_with_attachment",
            {"channel": self.channel, "text": text},
            self.client.post_message(self.channel, text, attachments=[{"text": attachment}]),
        )

    async def respond_private(self, text: str) -> None:
        await _attempt(
            "respond_private",
            {"user": self.user, "text": text},
            self.client.post_message(self.user, text),
        )

    async def respond_private_with_attachment(self, text: str, attachment: str) -> None:
        await _attempt(
            "respond_private_with_attachment",
            {"user": self.user, "text": text},
            self.client.post_message(self.user, text, attachments=[{"text": attachment}]),
        )

    async def react(self, name: str) -> None:
        await _attempt(
            "react",
            {"channel": self.channel, "ts": self.ts, "name": name},
            self.client.add_reaction(self.channel, self.ts, name),
        )


@dataclass
class LoggingResponder:
    """Dev mode responder: nothing reaches Slack, everything is logged."""

    channel: str = ""
    user: str = ""
    text: str = ""

    @classmethod
    def for_event(cls, event: MessageEvent) -> "LoggingResponder":
        return cls(channel=event.channel, user=event.user, text=event.text)

    async def respond(self, text: str, *, threaded: bool = False, unfurl: bool = False) -> None:
        logger.info("should reply to message %r in %s with %r (threaded=%s)", self.text, self.channel, text, threaded)

    async def respond_unfurled(self, text: str) -> None:
        await self.respond(text, unfurl=True)

    async def respond_with_attachment(self, text: str, attachment: str) -> None:
        logger.info("should reply to message %r in %s with %r + attachment", self.text, self.channel, text)

    async def respond_private(self, text: str) -> None:
        logger.info("should DM %s with %r", self.user, text)

    async def respond_private_with_attachment(self, text: str, attachment: str) -> None:
        logger.info("should DM %s with %r + attachment", self.user, text)

    async def react(self, name: str) -> None:
        logger.info("should react to message %r with %s", self.text, name)


@dataclass
class ChannelNotifier:
    """notify(text) -> bool for the pollers; True means the post went through."""

    client: SlackClient
    channel: str
    dry_run: bool = False

    async def notify(self, text: str) -> bool:
        if self.dry_run:
            logger.info("should notify %s with %r", self.channel, text)
            return True
        return await _attempt(
            "notify",
            {"channel": self.channel, "text": text},
            self.client.post_message(self.channel, text),
        )
