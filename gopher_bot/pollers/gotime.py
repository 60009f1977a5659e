"""Go Time livestream announcements.

changelog.com only says whether *some* show is streaming, so a stream counts
as Go Time when it starts within start_time_variance of the scheduled
episode.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ..slack import USER_AGENT

logger = logging.getLogger(__name__)

STATUS_URL = "https://changelog.com/live/status"
COUNTDOWN_URL = "https://changelog.com/slack/countdown/gotime"

LIVE_MESSAGE = ":tada: GoTimeFM is now live :tada:"

# at most one announcement per day
QUIET_PERIOD = timedelta(hours=24)

Notify = Callable[[], Awaitable[bool]]


class GoTimeError(Exception):
    """A changelog.com request failed or returned something unreadable."""


def _parse_time(value: str) -> datetime:
    # fromisoformat() before 3.11 does not take the "Z" suffix
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class GoTime:
    def __init__(
        self,
        http: httpx.AsyncClient,
        notify: Notify,
        start_time_variance: timedelta = timedelta(hours=1),
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.http = http
        self.notify = notify
        self.start_time_variance = start_time_variance
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.last_notified: Optional[datetime] = None

    async def _get(self, url: str) -> Dict[str, Any]:
        try:
            resp = await self.http.get(url, headers={"User-Agent": USER_AGENT})
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise GoTimeError(f"request to {url} failed: {e}") from e
        except ValueError as e:
            raise GoTimeError(f"decoding {url}: {e}") from e
        if not isinstance(data, dict):
            raise GoTimeError(f"unexpected response from {url}")
        return data

    async def poll(self) -> bool:
        """Announce the stream when it is live and on schedule. True if announced."""
        now = self.clock()
        if self.last_notified is not None and self.last_notified > now - QUIET_PERIOD:
            return False

        status = await self._get(STATUS_URL)
        if not status.get("streaming"):
            return False

        countdown = await self._get(COUNTDOWN_URL)
        try:
            scheduled = _parse_time(str(countdown.get("data", "")))
        except ValueError as e:
            raise GoTimeError(f"bad countdown time {countdown.get('data')!r}: {e}") from e

        if now < scheduled - self.start_time_variance or now > scheduled + self.start_time_variance:
            logger.debug("streaming, but not Go Time (scheduled %s)", scheduled.isoformat())
            return False

        if not await self.notify():
            return False

        self.last_notified = now
        logger.info("announced Go Time livestream")
        return True
