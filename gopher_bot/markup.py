"""Slack markup parsing and cleanup.

Slack message text carries tokens such as:
- <@U1XK0CWSZ>        a user mention (the bot's own mention marks a directed message)
- <#C024BE91L|name>   a channel link
- :gopher:            an emoji

This module strips those tokens so the rules can match on what the user typed,
and decides whether a message is addressed to the bot.
"""

from __future__ import annotations

import re

DEFAULT_ALIAS = "gopher"

# characters trimmed around the text once a leading bot token is gone
_TOKEN_TRIM = " \t\r\n:"
_WHITESPACE_TRIM = " \t\r\n"

_EMOJI_RE = re.compile(r":[0-9A-Za-z]+:")
# <@U123>, <@W123>, <#C123> and <#C123|name>
_SLACK_LINK_RE = re.compile(r"<(?:@[uw]|#c)[0-9a-z]+(?:\|[^>]*)?>", re.IGNORECASE)


def mention_token(bot_id: str) -> str:
    """The mention token Slack inserts for the bot, lower-cased."""
    return f"<@{bot_id}>".lower()


def _strip_leading_token(text: str, lowered: str, tokens: tuple[str, ...]) -> str | None:
    for token in tokens:
        if token and lowered.startswith(token):
            return text[len(token):].strip(_TOKEN_TRIM)
    return None


def _trim_bot(text: str, bot_id: str, alias: str) -> str:
    """Remove leading bot tokens until none is left; preserves case."""
    tokens = (mention_token(bot_id) if bot_id else "", alias.lower())
    text = text.strip(_WHITESPACE_TRIM)
    while True:
        stripped = _strip_leading_token(text, text.lower(), tokens)
        if stripped is None:
            return text
        text = stripped


def normalize_text(text: str | None, bot_id: str, alias: str = DEFAULT_ALIAS) -> str:
    """Lower-case and trim, then drop a leading bot mention or alias.

    normalize_text("<@U1>: Version\\n", "U1") == "version"
    """
    if not text:
        return ""
    return _trim_bot(text.lower(), bot_id, alias)


def clean_text(text: str | None, bot_id: str, alias: str = DEFAULT_ALIAS) -> str:
    """Same as normalize_text but keeps the original case."""
    if not text:
        return ""
    return _trim_bot(text, bot_id, alias)


def is_direct_channel(channel_id: str | None) -> bool:
    """Direct message channel ids always start with 'D'."""
    return bool(channel_id) and channel_id.startswith("D")


def is_directed(text: str | None, channel_id: str | None, bot_id: str, alias: str = DEFAULT_ALIAS) -> bool:
    """Whether a message is addressed to the bot."""
    lowered = (text or "").lower().strip(_WHITESPACE_TRIM)
    if bot_id and lowered.startswith(mention_token(bot_id)):
        return True
    if alias and lowered.startswith(alias.lower()):
        return True
    return is_direct_channel(channel_id)


def strip_emoji(text: str) -> str:
    """Remove :emoji: tokens."""
    return _EMOJI_RE.sub("", text or "")


def strip_slack_links(text: str) -> str:
    """Remove user mentions and channel links."""
    return _SLACK_LINK_RE.sub("", text or "")
