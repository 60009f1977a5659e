"""Tests for the restricted "share cl" command."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from gopher_bot.handlers.share_cl import NOT_AUTHORIZED, ShareCLHandler
from gopher_bot.store import JsonChangesetStore, StoredChangeset

from fakes import make_message

RESTRICTED = "CRESTRICTED"
ADMIN = "UADMIN"


@pytest_asyncio.fixture
async def store(tmp_path):
    s = JsonChangesetStore(tmp_path / "cls.json")
    await s.put(1234, StoredChangeset.now("https://golang.org/cl/1234/", "net/http: fix things"))
    await s.put(5678, StoredChangeset(url="https://golang.org/cl/5678/", message="old", crawled_at="2020-01-01T00:00:00+00:00", shared=True))
    return s


def _handler(store, notify_result=True):
    notifier = AsyncMock()
    notifier.notify = AsyncMock(return_value=notify_result)
    handler = ShareCLHandler(store, notifier, restricted_channel_id=RESTRICTED, admin_user_ids=[ADMIN])
    return handler, notifier


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unauthorized_user_gets_private_denial(store, responder):
    handler, notifier = _handler(store)
    await handler.handle(make_message("gopher share cl 1234", channel="CPUBLIC", user="URANDOM"), responder)

    assert responder.calls == [("respond_private", (NOT_AUTHORIZED,), {})]
    notifier.notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_restricted_channel_is_authorized(store, responder):
    handler, notifier = _handler(store)
    await handler.handle(make_message("gopher share cl 1234", channel=RESTRICTED), responder)

    notifier.notify.assert_awaited_once_with("net/http: fix things https://golang.org/cl/1234/")
    assert responder.calls == []
    assert (await store.get(1234)).shared


@pytest.mark.asyncio
async def test_admin_is_authorized_anywhere(store, responder):
    handler, notifier = _handler(store)
    await handler.handle(make_message("share cl 1234", channel="D1", user=ADMIN), responder)
    notifier.notify.assert_awaited_once()


@pytest.mark.asyncio
async def test_other_messages_are_ignored(store, responder):
    handler, notifier = _handler(store)
    await handler.handle(make_message("gopher share the love", user="URANDOM"), responder)
    assert responder.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("user", ["URANDOM", ADMIN])
async def test_longer_words_are_not_the_command(store, responder, user):
    handler, notifier = _handler(store)
    await handler.handle(make_message("gopher share clothes", channel=RESTRICTED, user=user), responder)
    assert responder.calls == []
    notifier.notify.assert_not_awaited()


# ---------------------------------------------------------------------------
# Per-number outcomes
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_mixed_numbers(store, responder):
    handler, notifier = _handler(store)
    await handler.handle(make_message("gopher share cl abc 5678 999 1234", channel=RESTRICTED), responder)

    assert responder.texts("respond_private") == [
        "Could not share CL abc, please try again",
        "Already shared CL 5678",
        "Could not share CL 999, please try again",
    ]
    assert notifier.notify.await_count == 1


@pytest.mark.asyncio
async def test_failed_notify_keeps_cl_unshared(store, responder):
    handler, _ = _handler(store, notify_result=False)
    await handler.handle(make_message("gopher share cl 1234", channel=RESTRICTED), responder)

    assert responder.texts("respond_private") == ["Could not share CL 1234, please try again"]
    assert not (await store.get(1234)).shared
