"""Tests for the Slack Web API client and responders."""

import json

import httpx
import pytest

from gopher_bot.slack import ChannelNotifier, LoggingResponder, SlackApiError, SlackClient, SlackResponder

from fakes import make_event


class FakeSlack:
    def __init__(self, responses=None):
        self.responses = responses or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method = request.url.path.rsplit("/", 1)[-1]
        body = self.responses.get(method, {"ok": True})
        if callable(body):
            body = body(request)
        return httpx.Response(200, json=body)

    def payloads(self):
        return [json.loads(r.content) for r in self.requests if r.method == "POST"]


def _client(fake, token="xoxb-test"):
    return SlackClient(token=token, http=httpx.AsyncClient(transport=httpx.MockTransport(fake)))


# ---------------------------------------------------------------------------
# SlackClient
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_call_sends_bearer_token_and_json():
    fake = FakeSlack()
    await _client(fake).post_message("C1", "hi", thread_ts=None)

    request = fake.requests[0]
    assert request.url.path == "/api/chat.postMessage"
    assert request.headers["Authorization"] == "Bearer xoxb-test"
    assert fake.payloads() == [{"channel": "C1", "text": "hi"}]


@pytest.mark.asyncio
async def test_not_ok_raises():
    fake = FakeSlack({"auth.test": {"ok": False, "error": "invalid_auth"}})
    with pytest.raises(SlackApiError) as excinfo:
        await _client(fake).auth_test()
    assert excinfo.value.error == "invalid_auth"


@pytest.mark.asyncio
async def test_open_socket_uses_app_token():
    fake = FakeSlack({"apps.connections.open": {"ok": True, "url": "wss://example/socket"}})
    url = await _client(fake).open_socket("xapp-1")
    assert url == "wss://example/socket"
    assert fake.requests[0].headers["Authorization"] == "Bearer xapp-1"


@pytest.mark.asyncio
async def test_channel_ids_paginates():
    def conversations(request):
        if request.url.params.get("cursor") == "next":
            return {"ok": True, "channels": [{"id": "C2", "name": "gotimefm"}], "response_metadata": {"next_cursor": ""}}
        return {"ok": True, "channels": [{"id": "C1", "name": "Golang-CLS"}], "response_metadata": {"next_cursor": "next"}}

    fake = FakeSlack({"conversations.list": conversations})
    found = await _client(fake).channel_ids(["golang-cls", "#gotimefm"])
    assert found == {"golang-cls": "C1", "gotimefm": "C2"}
    assert len(fake.requests) == 2


# ---------------------------------------------------------------------------
# SlackResponder
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_threaded_reply_prefers_thread_ts():
    fake = FakeSlack()
    responder = SlackResponder.for_event(_client(fake), make_event("x", ts="1000", thread_ts="1200"))
    await responder.respond("song", threaded=True)
    assert fake.payloads()[0]["thread_ts"] == "1200"
    assert fake.payloads()[0]["unfurl_links"] is False


@pytest.mark.asyncio
async def test_threaded_reply_starts_thread():
    fake = FakeSlack()
    responder = SlackResponder.for_event(_client(fake), make_event("x", ts="1000"))
    await responder.respond("song", threaded=True)
    assert fake.payloads()[0]["thread_ts"] == "1000"


@pytest.mark.asyncio
async def test_unfurled_and_attachments():
    fake = FakeSlack()
    responder = SlackResponder.for_event(_client(fake), make_event("x", channel="C9", user="U9"))
    await responder.respond_unfurled("<https://xkcd.com/927/>")
    await responder.respond_private_with_attachment("Here", "body")
    await responder.react("gopher")

    unfurled, private, _ = fake.payloads()
    assert unfurled["unfurl_links"] is True
    assert private == {"channel": "U9", "text": "Here", "attachments": [{"text": "body"}]}
    assert fake.requests[2].url.path == "/api/reactions.add"


@pytest.mark.asyncio
async def test_responder_swallows_slack_errors():
    fake = FakeSlack({"chat.postMessage": {"ok": False, "error": "channel_not_found"}})
    responder = SlackResponder.for_event(_client(fake), make_event("x"))
    # logged, not raised
    await responder.respond("hi")


@pytest.mark.asyncio
async def test_logging_responder_sends_nothing(caplog):
    responder = LoggingResponder.for_event(make_event("hello", channel="C1"))
    with caplog.at_level("INFO", logger="gopher_bot.slack"):
        await responder.respond("hi")
        await responder.react("gopher")
    assert "should reply" in caplog.text
    assert "should react" in caplog.text


# ---------------------------------------------------------------------------
# ChannelNotifier
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_notifier_reports_success_and_failure():
    ok = ChannelNotifier(_client(FakeSlack()), "C1")
    failing = ChannelNotifier(_client(FakeSlack({"chat.postMessage": {"ok": False, "error": "x"}})), "C1")
    assert await ok.notify("hi") is True
    assert await failing.notify("hi") is False


@pytest.mark.asyncio
async def test_notifier_dry_run():
    fake = FakeSlack()
    assert await ChannelNotifier(_client(fake), "C1", dry_run=True).notify("hi") is True
    assert fake.requests == []
