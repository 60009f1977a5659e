"""End-to-end behaviour of the assembled rule catalog."""

import random
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from gopher_bot.commands import build_catalog
from gopher_bot.dispatcher import Dispatcher
from gopher_bot.responses import CANNED_RESPONSES, HELP_TEXT, NEWBIE_RESOURCES, RESPONSE_ALIASES
from gopher_bot.router import SlackFile
from gopher_bot.services import BotServices
from gopher_bot.settings import BotSettings
from gopher_bot.slack import LoggingResponder
from gopher_bot.store import JsonChangesetStore, StoredChangeset

from fakes import BOT_ID, RecordingResponder, make_event


class _FixedRng:
    def __init__(self, value):
        self.value = value

    def randrange(self, n):
        return self.value


def _services():
    store = MagicMock()
    store.get = AsyncMock()
    return BotServices(http=MagicMock(), slack=MagicMock(), store=store, playground=MagicMock())


def _dispatcher(rng=None, settings=None):
    settings = settings or BotSettings(version="v1.0.0")
    root = build_catalog(settings, _services(), rng=rng or _FixedRng(0), environ={})
    return Dispatcher(BOT_ID, root)


async def _say(text, *, rng=None, **event_kwargs):
    responder = RecordingResponder()
    await _dispatcher(rng).dispatch(make_event(text, **event_kwargs), responder)
    return responder


# ---------------------------------------------------------------------------
# Directed exact matches
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_directed_help():
    responder = await _say("<@U1XK0CWSZ> help")
    assert responder.texts() == [HELP_TEXT]


@pytest.mark.asyncio
async def test_undirected_help_is_ignored():
    responder = await _say("help")
    assert responder.calls == []


@pytest.mark.asyncio
async def test_help_in_dm_channel():
    responder = await _say("help", channel="D123")
    assert responder.texts() == [HELP_TEXT]


@pytest.mark.asyncio
@pytest.mark.parametrize("alias, target", sorted(RESPONSE_ALIASES.items()))
async def test_aliases_answer_byte_identical(alias, target):
    via_alias = await _say(f"gopher {alias}")
    via_key = await _say(f"gopher {target}")
    assert via_alias.texts() == via_key.texts() == [CANNED_RESPONSES[target]]


@pytest.mark.asyncio
async def test_version():
    responder = await _say("gopher version")
    assert responder.texts() == ["My version is: v1.0.0"]


@pytest.mark.asyncio
async def test_stack():
    responder = await _say("gopher where do you live?")
    assert len(responder.texts()) == 1
    assert "Kubernetes" in responder.texts()[0]


@pytest.mark.asyncio
async def test_coin_flip():
    assert (await _say("gopher flip a coin", rng=_FixedRng(0))).texts() == ["heads"]
    assert (await _say("gopher flip coin", rng=_FixedRng(1))).texts() == ["tails"]


@pytest.mark.asyncio
async def test_newbie_resources():
    public = await _say("gopher newbie resources")
    assert public.ops() == ["respond_with_attachment"]
    assert public.calls[0][1][1] == NEWBIE_RESOURCES

    private = await _say("gopher newbie resources pvt")
    assert private.ops() == ["respond_private_with_attachment"]


@pytest.mark.asyncio
async def test_recommended_channels():
    responder = await _say("gopher recommended channels")
    assert responder.ops() == ["respond_with_attachment"]
    text, attachment = responder.calls[0][1]
    assert text == "Here is a list of recommended channels:"
    assert "- #golang-newbies -> for newbie resources\n" in attachment


# ---------------------------------------------------------------------------
# Prefix handlers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_xkcd():
    assert (await _say("gopher xkcd:standards")).texts("respond_unfurled") == ["<https://xkcd.com/927/>"]
    assert (await _say("gopher xkcd:1234")).texts("respond_unfurled") == ["<https://xkcd.com/1234/>"]
    assert (await _say("gopher xkcd:banana")).calls == []


@pytest.mark.asyncio
async def test_library_search():
    responder = await _say("gopher library for parsing CSV")
    assert responder.texts() == [
        "You can try to look here: <https://godoc.org/?q=parsing+CSV> "
        "or here <http://go-search.org/search?q=parsing+CSV>"
    ]


@pytest.mark.asyncio
async def test_godoc_links_work_undirected():
    assert (await _say("d/net/http")).texts() == ["<https://godoc.org/net/http>"]
    assert (await _say("ghd/gorilla/mux")).texts() == ["<https://godoc.org/github.com/gorilla/mux>"]


@pytest.mark.asyncio
async def test_share_cl_denied_for_regular_users():
    responder = await _say("gopher share cl 1234")
    assert responder.texts("respond_private") == ["You are not authorized to share CLs"]


# ---------------------------------------------------------------------------
# Reactions
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_beer_me_undirected():
    responder = await _say("beer me")
    assert responder.reactions() == ["beer", "beers"]


@pytest.mark.asyncio
async def test_several_rules_can_act_on_one_message():
    responder = await _say("bbq with a ghost and spacex")
    assert responder.reactions() == ["bbqgopher", "ghost", "rocket"]


@pytest.mark.asyncio
async def test_table_flip():
    responder = await _say("(╯°□°）╯︵ ┻━┻")
    assert responder.texts() == ["┬─┬ノ( º _ ºノ)"]


@pytest.mark.asyncio
async def test_directed_thanks():
    assert (await _say("Thanks, gopher!")).calls == []
    assert (await _say("gopher thanks!")).reactions() == ["gopher"]


@pytest.mark.asyncio
async def test_wave():
    assert (await _say("gopher wave")).reactions() == ["wave", "gopher"]


@pytest.mark.asyncio
async def test_editor_war_is_rare():
    assert (await _say("I use vim", rng=_FixedRng(0))).calls == []
    assert (await _say("I use vim", rng=_FixedRng(42))).reactions() == ["emacs"]


@pytest.mark.asyncio
async def test_editor_war_frequency():
    dispatcher = _dispatcher(rng=random.Random(99))
    responder = RecordingResponder()
    for _ in range(15_000):
        await dispatcher.dispatch(make_event("emacs rocks"), responder)
    # expected ~100 hits
    assert 50 <= len(responder.reactions()) <= 150


# ---------------------------------------------------------------------------
# Songs and bots
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_song_link_in_thread():
    responder = await _say("https://tidal.com/album/86024647", ts="1000", thread_ts="1200")
    assert responder.calls == [
        ("respond", ("<https://song.link/https://tidal.com/album/86024647>",), {"threaded": True, "unfurl": False}),
    ]


@pytest.mark.asyncio
async def test_bot_messages_never_trigger_anything():
    responder = await _say("gopher help", bot_id="B123")
    assert responder.calls == []


# ---------------------------------------------------------------------------
# Dev mode
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_dev_mode_only_logs(tmp_path):
    path = tmp_path / "cls.json"
    await JsonChangesetStore(path).put(1234, StoredChangeset.now("https://golang.org/cl/1234/", "net/http: fix things"))
    before = path.read_text(encoding="utf-8")

    requests = []

    def _record(request):
        requests.append(request)
        return httpx.Response(200, json={"ok": True})

    settings = BotSettings(dev_mode=True, store_path=str(path), admin_user_ids=("UADMIN",))
    services = BotServices.from_settings(settings, transport=httpx.MockTransport(_record))
    root = build_catalog(settings, services, rng=_FixedRng(0), environ={})
    dispatcher = Dispatcher(BOT_ID, root, dev_mode=True)

    events = [
        make_event("package main\n" + "\n".join(f"// line {i}" for i in range(12))),
        make_event("", upload=True, files=(SlackFile(id="F1", filetype="go", name="main.go"),)),
        make_event("gopher share cl 1234", user="UADMIN"),
    ]
    for event in events:
        assert await dispatcher.dispatch(event, LoggingResponder.for_event(event))

    assert [str(r.url) for r in requests] == []
    assert path.read_text(encoding="utf-8") == before
    # the share is only remembered for this session
    assert (await services.store.get(1234)).shared
    assert not (await JsonChangesetStore(path).get(1234)).shared

    await services.aclose()
