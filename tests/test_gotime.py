"""Tests for the Go Time livestream poller."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from gopher_bot.pollers.gotime import COUNTDOWN_URL, STATUS_URL, GoTime, GoTimeError

SCHEDULED = datetime(2024, 5, 2, 20, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def _transport(*, streaming=True, scheduled="2024-05-02T20:00:00Z", status=200):
    calls = []

    def handler(request):
        url = str(request.url)
        calls.append(url)
        if status != 200:
            return httpx.Response(status)
        if url == STATUS_URL:
            return httpx.Response(200, json={"streaming": streaming})
        if url == COUNTDOWN_URL:
            return httpx.Response(200, json={"data": scheduled})
        return httpx.Response(404)

    return httpx.MockTransport(handler), calls


def _gotime(transport, now, notify_result=True):
    notify = AsyncMock(return_value=notify_result)
    gotime = GoTime(
        httpx.AsyncClient(transport=transport),
        notify,
        timedelta(hours=1),
        clock=Clock(now),
    )
    return gotime, notify


@pytest.mark.asyncio
async def test_notifies_when_live_and_on_schedule():
    transport, _ = _transport()
    gotime, notify = _gotime(transport, SCHEDULED + timedelta(minutes=5))

    assert await gotime.poll() is True
    notify.assert_awaited_once()
    assert gotime.last_notified == SCHEDULED + timedelta(minutes=5)


@pytest.mark.asyncio
async def test_not_streaming():
    transport, calls = _transport(streaming=False)
    gotime, notify = _gotime(transport, SCHEDULED)

    assert await gotime.poll() is False
    notify.assert_not_awaited()
    assert calls == [STATUS_URL]


@pytest.mark.asyncio
@pytest.mark.parametrize("offset", [timedelta(hours=-2), timedelta(hours=1, minutes=1)])
async def test_streaming_outside_window(offset):
    transport, _ = _transport()
    gotime, notify = _gotime(transport, SCHEDULED + offset)
    assert await gotime.poll() is False
    notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_at_most_once_a_day():
    transport, calls = _transport()
    gotime, notify = _gotime(transport, SCHEDULED)
    await gotime.poll()
    gotime.clock.now = SCHEDULED + timedelta(hours=23)
    calls.clear()

    assert await gotime.poll() is False
    assert calls == []
    assert notify.await_count == 1


@pytest.mark.asyncio
async def test_failed_notify_is_retried_next_poll():
    transport, _ = _transport()
    gotime, notify = _gotime(transport, SCHEDULED, notify_result=False)

    assert await gotime.poll() is False
    assert gotime.last_notified is None

    notify.return_value = True
    assert await gotime.poll() is True


@pytest.mark.asyncio
async def test_http_failure_raises():
    transport, _ = _transport(status=502)
    gotime, _ = _gotime(transport, SCHEDULED)
    with pytest.raises(GoTimeError):
        await gotime.poll()


@pytest.mark.asyncio
async def test_bad_countdown_raises():
    transport, _ = _transport(scheduled="soon")
    gotime, _ = _gotime(transport, SCHEDULED)
    with pytest.raises(GoTimeError):
        await gotime.poll()
