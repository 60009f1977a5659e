"""Periodic poll loops."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Poll = Callable[[], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]


class PollerAborted(Exception):
    """A poller failed max_failures times in a row."""

    def __init__(self, name: str, failures: int, last_error: BaseException):
        super().__init__(f"poller {name} aborted after {failures} consecutive failures: {last_error}")
        self.name = name
        self.failures = failures
        self.last_error = last_error


async def run_periodically(
    name: str,
    poll: Poll,
    interval: float,
    *,
    max_failures: Optional[int] = None,
    base_delay: float = 2.0,
    sleep: Sleep = asyncio.sleep,
) -> None:
    """Call poll() every `interval` seconds, forever.

    Without max_failures a failure is logged and the loop goes on at the
    normal pace. With it, a failure is retried after base_delay * 2**i
    seconds, and the max_failures-th consecutive failure raises
    PollerAborted.
    """
    failures = 0
    while True:
        try:
            await poll()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            failures += 1
            if max_failures is None:
                logger.warning("poller %s failed: %s", name, e)
                await sleep(interval)
                continue

            if failures >= max_failures:
                logger.error("poller %s failed %s times in a row, giving up", name, failures)
                raise PollerAborted(name, failures, e) from e

            delay = base_delay * (2 ** (failures - 1))
            logger.warning("poller %s failed (%s/%s), retrying in %.1fs: %s", name, failures, max_failures, delay, e)
            await sleep(delay)
            continue

        failures = 0
        await sleep(interval)
