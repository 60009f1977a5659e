"""Song links -> song.link.

A Spotify, SoundCloud or Tidal link is answered (in the thread) with the
matching song.link URL, so people on other streaming services can listen too.
"""

from __future__ import annotations

import logging
import re
from typing import List

from ..router import Message, Responder

logger = logging.getLogger(__name__)

_SKIP_RE = re.compile(r"(?i)(nolink|song\.link)")
_SONG_LINK_RE = re.compile(r"(?i)(?:https?://)?(?:open\.spotify\.com/|spotify:|soundcloud\.com/|tidal\.com/)[^>\s]+")

SONG_LINK_URL = "https://song.link/"


def find_song_links(text: str) -> List[str]:
    """Every streaming link in text, in order of appearance."""
    if not text or _SKIP_RE.search(text):
        return []
    return _SONG_LINK_RE.findall(text)


class SongsHandler:
    """Unconditional: looks at every message, directed or not."""

    name = "songs"

    async def handle(self, message: Message, responder: Responder) -> None:
        links = find_song_links(message.raw_text)
        if not links:
            return

        logger.debug("song links found count=%s channel=%s", len(links), message.event.channel)
        out = "\n".join(f"<{SONG_LINK_URL}{link}>" for link in links)
        await responder.respond(out, threaded=True, unfurl=False)
