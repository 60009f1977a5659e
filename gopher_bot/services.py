"""Service container.

Builds every outbound client once, from BotSettings, and hands them to the
catalog, the dispatcher and the pollers:
- services.http       shared httpx.AsyncClient (bounded timeouts)
- services.slack      Slack Web API client
- services.store      changeset store (writes stay in memory in dev mode)
- services.playground playground share client
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

import httpx

from .handlers.playground import PlaygroundClient
from .settings import BotSettings
from .slack import ChannelNotifier, SlackClient
from .store import ChangesetStore, JsonChangesetStore, ScratchChangesetStore

logger = logging.getLogger(__name__)


@dataclass
class BotServices:
    http: httpx.AsyncClient
    slack: SlackClient
    store: ChangesetStore
    playground: PlaygroundClient
    dry_run: bool = False

    # channel name -> Slack channel id, filled by resolve_channels()
    channel_ids: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: BotSettings, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> "BotServices":
        """Create every client from settings.

        transport is only used by tests (httpx.MockTransport).
        """
        logger.info("initializing services...")
        timeout = httpx.Timeout(settings.http_timeout, connect=min(settings.http_timeout, 5.0))
        http = httpx.AsyncClient(timeout=timeout, transport=transport)

        store: ChangesetStore = JsonChangesetStore(settings.store_path)
        if settings.dev_mode:
            store = ScratchChangesetStore(store)

        return cls(
            http=http,
            slack=SlackClient(token=settings.bot_token, http=http),
            store=store,
            playground=PlaygroundClient(http=http),
            dry_run=settings.dev_mode,
        )

    async def resolve_channels(self, names: Iterable[str]) -> Dict[str, str]:
        wanted = [n for n in names if n]
        found = await self.slack.channel_ids(wanted)
        missing = sorted({n.lower().lstrip("#") for n in wanted} - found.keys())
        if missing:
            logger.warning("channels not found: %s", ", ".join(missing))
        self.channel_ids.update(found)
        return found

    def channel_id(self, name: str) -> str:
        """Resolved id, or "" when the channel is unknown."""
        return self.channel_ids.get(name.lower().lstrip("#"), "")

    def notifier(self, channel_name: str) -> ChannelNotifier:
        """Notifier posting to a named channel (falls back to the name itself)."""
        return ChannelNotifier(
            client=self.slack,
            channel=self.channel_id(channel_name) or channel_name,
            dry_run=self.dry_run,
        )

    async def aclose(self) -> None:
        await self.http.aclose()
