"""Handlers, conditions and combinators (the core of the bot).

The idea:
- every rule is a self-contained Handler that decides on its own whether
  a message concerns it, and does nothing otherwise
- rules are composed with process_linear / when_directed / with_probability
- there is no "first match wins": the root composition runs every handler,
  so adding a rule never changes the behavior of the others

Key types:
- Message: the immutable per-event view handed to every handler
- Responder: what a handler may do in reply (send, react, DM...)
- Handler: handle(message, responder)
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional, Protocol, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlackFile:
    """A file attached to a message event."""
    id: str
    filetype: str = ""
    name: str = ""


@dataclass(frozen=True)
class MessageEvent:
    """The raw Slack message event, as received."""
    text: str = ""
    channel: str = ""
    user: str = ""
    ts: str = ""
    thread_ts: str = ""
    bot_id: str = ""
    subtype: str = ""
    files: Tuple[SlackFile, ...] = ()
    upload: bool = False

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "MessageEvent":
        """Build the event from the JSON of a Slack `message` event."""
        files = tuple(
            SlackFile(
                id=str(f.get("id", "")),
                filetype=str(f.get("filetype") or ""),
                name=str(f.get("name") or ""),
            )
            for f in payload.get("files") or ()
            if isinstance(f, dict)
        )
        return cls(
            text=payload.get("text") or "",
            channel=payload.get("channel") or "",
            user=payload.get("user") or "",
            ts=payload.get("ts") or "",
            thread_ts=payload.get("thread_ts") or "",
            bot_id=payload.get("bot_id") or "",
            subtype=payload.get("subtype") or "",
            files=files,
            upload=bool(payload.get("upload")) or payload.get("subtype") == "file_share",
        )


@dataclass(frozen=True)
class JoinEvent:
    """A user joined the team."""
    user_id: str
    user_name: str


@dataclass(frozen=True)
class Message:
    """One inbound message, as every handler sees it.

    text is lower-cased, trimmed and stripped of a leading bot mention/alias;
    clean_text is the same thing with the original case kept.
    """
    event: MessageEvent
    text: str
    clean_text: str
    directed: bool

    @property
    def raw_text(self) -> str:
        return self.event.text


class Responder(Protocol):
    """What a handler may do in reply to a message.

    All operations are fire-and-forget: implementations log failures and
    return normally, so one failed send never stops the other handlers.
    """

    async def respond(self, text: str, *, threaded: bool = False, unfurl: bool = False) -> None:
        """Send text to the originating channel."""

    async def respond_unfurled(self, text: str) -> None:
        """Send text with link previews enabled."""

    async def respond_with_attachment(self, text: str, attachment: str) -> None: ...

    async def respond_private(self, text: str) -> None:
        """Direct-message the author of the message."""

    async def respond_private_with_attachment(self, text: str, attachment: str) -> None: ...

    async def react(self, name: str) -> None:
        """Add an emoji reaction to the originating message."""


class Handler(Protocol):
    """Pluggable rule: called for every message, acts only when it applies."""

    async def handle(self, message: Message, responder: Responder) -> None: ...


HandleFunc = Callable[[Message, Responder], Awaitable[None]]
Condition = Callable[[Message, Sequence[str]], bool]


@dataclass(frozen=True)
class FunctionHandler:
    """Wrap a coroutine function as a Handler, so rules can be closures."""
    name: str
    _handle: HandleFunc = field(repr=False)

    async def handle(self, message: Message, responder: Responder) -> None:
        await self._handle(message, responder)


def handler_name(handler: Any) -> str:
    return getattr(handler, "name", None) or type(handler).__name__


# --------- condition primitives ---------

def exact(message: Message, candidates: Sequence[str]) -> bool:
    """Normalized text equals one of the candidates."""
    return any(message.text == c for c in candidates)


def contains(message: Message, candidates: Sequence[str]) -> bool:
    """Raw text contains one of the candidates (works on undirected messages too)."""
    return any(c in message.raw_text for c in candidates)


def contains_normalized(message: Message, candidates: Sequence[str]) -> bool:
    """Normalized text contains one of the candidates."""
    return any(c in message.text for c in candidates)


def has_prefix(message: Message, candidates: Sequence[str]) -> bool:
    """Normalized text starts with one of the candidates."""
    return any(message.text.startswith(c) for c in candidates)


# --------- combinators ---------

class LinearHandler:
    """Call every child in registration order, whether or not an earlier one acted.

    A child that raises is logged and skipped; its siblings still run.
    """

    def __init__(self, handlers: Iterable[Handler], *, name: str = "linear"):
        self.name = name
        self.handlers: Tuple[Handler, ...] = tuple(handlers)

    async def handle(self, message: Message, responder: Responder) -> None:
        for h in self.handlers:
            try:
                await h.handle(message, responder)
            except Exception:
                logger.exception("handler %s failed on channel=%s ts=%s",
                                 handler_name(h), message.event.channel, message.event.ts)

    def __len__(self) -> int:
        return len(self.handlers)


def process_linear(*handlers: Handler, name: str = "linear") -> LinearHandler:
    return LinearHandler(handlers, name=name)


def when_directed(handler: Handler) -> Handler:
    """Only forward messages addressed to the bot."""
    async def _handle(message: Message, responder: Responder) -> None:
        if not message.directed:
            return
        await handler.handle(message, responder)

    return FunctionHandler(name=f"directed({handler_name(handler)})", _handle=_handle)


DEFAULT_CHANCE = 150
DEFAULT_SENTINEL = 42


def with_probability(
    handler: Handler,
    *,
    chance: int = DEFAULT_CHANCE,
    sentinel: int = DEFAULT_SENTINEL,
    rng: Optional[Any] = None,
) -> Handler:
    """Forward with probability 1/chance.

    Each call draws rng.randrange(chance) once and forwards only on
    `sentinel`. rng defaults to the process-wide `random` module; pass a
    seeded random.Random to get a reproducible sequence.
    """
    if chance < 1:
        raise ValueError("chance must be >= 1")
    source = rng if rng is not None else random
    # with chance smaller than the sentinel the draw could never hit
    target = sentinel % chance

    async def _handle(message: Message, responder: Responder) -> None:
        if source.randrange(chance) != target:
            return
        await handler.handle(message, responder)

    return FunctionHandler(name=f"probability({handler_name(handler)})", _handle=_handle)
