"""Reusable handler builders.

Each function returns a Handler configured once at startup. The handler
checks its own condition on every message and does nothing when it does
not apply.
"""

from __future__ import annotations

import logging
import os
import random
import re
from typing import Any, Iterable, Mapping, Optional, Sequence
from urllib.parse import quote_plus

from ..markup import strip_emoji, strip_slack_links
from ..router import (
    Condition,
    FunctionHandler,
    Handler,
    Message,
    Responder,
    contains,
    contains_normalized,
    exact,
    has_prefix,
    with_probability,
)
from ..settings import ChannelSpec

logger = logging.getLogger(__name__)

SOURCE_CODE_URL = "https://github.com/gobridge/gopher"
MAX_SEARCH_TERM = 100

# plain decimal only: no "1_000", no non-ASCII digits
_COMIC_ID_RE = re.compile(r"[+-]?[0-9]+")


def _as_list(value: str | Sequence[str]) -> list[str]:
    return [value] if isinstance(value, str) else list(value)


def respond_when(condition: Condition, triggers: str | Sequence[str], response: str, *, name: str = "") -> Handler:
    """Reply with a fixed text when condition(message, triggers) holds."""
    prompts = _as_list(triggers)

    async def _handle(message: Message, responder: Responder) -> None:
        if not condition(message, prompts):
            return
        await responder.respond(response)

    return FunctionHandler(name=name or f"respond:{prompts[0]}", _handle=_handle)


def respond_when_exact(triggers: str | Sequence[str], response: str, *, name: str = "") -> Handler:
    return respond_when(exact, triggers, response, name=name)


def respond_when_contains(triggers: str | Sequence[str], response: str, *, name: str = "") -> Handler:
    return respond_when(contains, triggers, response, name=name)


def respond_with_attachment_when_exact(
    triggers: str | Sequence[str],
    text: str,
    attachment: str,
    *,
    private: bool = False,
    name: str = "",
) -> Handler:
    """Reply with text + attachment, in channel or as a DM."""
    prompts = _as_list(triggers)

    async def _handle(message: Message, responder: Responder) -> None:
        if not exact(message, prompts):
            return
        if private:
            await responder.respond_private_with_attachment(text, attachment)
        else:
            await responder.respond_with_attachment(text, attachment)

    return FunctionHandler(name=name or f"attachment:{prompts[0]}", _handle=_handle)


def react_when(condition: Condition, triggers: str | Sequence[str], *reactions: str, name: str = "") -> Handler:
    """Add every reaction, in order, when condition(message, triggers) holds."""
    prompts = _as_list(triggers)

    async def _handle(message: Message, responder: Responder) -> None:
        if not condition(message, prompts):
            return
        for reaction in reactions:
            await responder.react(reaction)

    return FunctionHandler(name=name or f"react:{prompts[0]}", _handle=_handle)


def react_when_contains(triggers: str | Sequence[str], *reactions: str) -> Handler:
    """React when the raw text contains a trigger (directed or not)."""
    return react_when(contains, triggers, *reactions)


def react_when_mentioned(triggers: str | Sequence[str], *reactions: str) -> Handler:
    """React when the normalized text contains a trigger."""
    return react_when(contains_normalized, triggers, *reactions)


def react_when_has_prefix(triggers: str | Sequence[str], *reactions: str) -> Handler:
    return react_when(has_prefix, triggers, *reactions)


def react_when_contains_rand(
    triggers: str | Sequence[str],
    *reactions: str,
    chance: int = 150,
    rng: Optional[Any] = None,
) -> Handler:
    """react_when_contains, but only once in `chance` messages on average."""
    return with_probability(react_when_contains(triggers, *reactions), chance=chance, rng=rng)


def stack_message(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    if len(env.get("DYNO", "")) >= 3:
        msg = "I'm currently powered by Heroku <https://heroku.com>."
    else:
        msg = (
            "I'm currently powered by Google Container Engine (GKE) <https://cloud.google.com/container-engine> "
            "and Kubernetes (k8s) <http://kubernetes.io>."
        )
    return msg + f"\nYou can find my source code at: <{SOURCE_CODE_URL}>."


def bot_stack(prompts: Sequence[str], environ: Optional[Mapping[str, str]] = None) -> Handler:
    """Where the bot runs; decided once, at construction."""
    return respond_when_exact(prompts, stack_message(environ), name="stack")


def bot_version(prompt: str, version: str) -> Handler:
    return respond_when_exact(prompt, f"My version is: {version}", name="version")


def coin_flip(prompts: Sequence[str], rng: Optional[Any] = None) -> Handler:
    source = rng if rng is not None else random

    async def _handle(message: Message, responder: Responder) -> None:
        if not exact(message, prompts):
            return
        await responder.respond("heads" if source.randrange(2) == 0 else "tails")

    return FunctionHandler(name="coin_flip", _handle=_handle)


def format_channels(channels: Iterable[ChannelSpec]) -> str:
    return "".join(f"- #{c.name} -> {c.description}\n" for c in channels)


def recommended_channels(prompt: str, channels: Iterable[ChannelSpec]) -> Handler:
    return respond_with_attachment_when_exact(
        prompt,
        "Here is a list of recommended channels:",
        format_channels(channels),
        name="recommended_channels",
    )


def search_for_library(prefix: str) -> Handler:
    """Suggest places to look for a library: `library for <term>`."""

    async def _handle(message: Message, responder: Responder) -> None:
        if not has_prefix(message, [prefix]):
            return

        # clean_text keeps the user's casing, normalized text is only used to match
        term = message.clean_text[len(prefix):]
        term = strip_slack_links(term)
        term = strip_emoji(term)
        term = term.strip("?;., \t\r\n")
        if not term or len(term) > MAX_SEARCH_TERM:
            logger.debug("library search ignored, term length=%s", len(term))
            return

        term = quote_plus(term)
        await responder.respond(
            f"You can try to look here: <https://godoc.org/?q={term}> "
            f"or here <http://go-search.org/search?q={term}>"
        )

    return FunctionHandler(name="search_for_library", _handle=_handle)


def xkcd(prefix: str, aliases: Mapping[str, int]) -> Handler:
    """Link an XKCD comic: `xkcd:<number>` or `xkcd:<alias>`."""

    async def _handle(message: Message, responder: Responder) -> None:
        if not has_prefix(message, [prefix]):
            return

        token = message.text[len(prefix):].strip()
        comic_id = aliases.get(token)
        if comic_id is None:
            if not _COMIC_ID_RE.fullmatch(token):
                # pretend we didn't hear them
                logger.debug("could not parse xkcd id %r", token)
                return
            comic_id = int(token)
        if comic_id <= 0:
            return

        await responder.respond_unfurled(f"<https://xkcd.com/{comic_id}/>")

    return FunctionHandler(name="xkcd", _handle=_handle)


def link_to_godoc(match_prefix: str, url_prefix: str) -> Handler:
    """`d/net/http` -> <https://godoc.org/net/http>; the path keeps its case."""

    async def _handle(message: Message, responder: Responder) -> None:
        if not has_prefix(message, [match_prefix]):
            return

        link = message.clean_text[len(match_prefix):].split(" ", 1)[0]
        if not link:
            return
        await responder.respond(f"<{url_prefix}{link}>")

    return FunctionHandler(name=f"godoc:{match_prefix}", _handle=_handle)
