"""Welcome DM for people joining the team."""

from __future__ import annotations

import logging
from typing import Iterable

from ..router import JoinEvent, Responder
from ..settings import ChannelSpec
from .basic import format_channels

logger = logging.getLogger(__name__)

_WELCOME_TEMPLATE = """Welcome to the Gophers Slack channel.
This Slack is meant to connect gophers from all over the world in a central place.
There is also a forum: https://forum.golangbridge.org, you might want to check it out as well.
We have a few rules that you can see here: http://coc.golangbridge.org.

Here's a list of a few channels you could join:
{channels}

If you want more suggestions, type "recommended channels".
There are quite a few other channels, depending on your interests or location (we have city / country wide channels).
Just click on the channel list and search for anything that crosses your mind.

To share code, you should use: https://play.golang.org/ as it makes it easy for others to help you.

If you are new to Go and want a copy of the <https://www.manning.com/books/go-in-action|Go In Action> book, please send an email to @wkennedy at bill@ardanlabs.com

If you are interested in a free copy of the <https://www.manning.com/books/go-web-programming|Go Web Programming> book by Sau Sheong Chang, @sausheong, please send him an email at sausheong@gmail.com

In case you want to customize your profile picture, you can use https://gopherize.me/ to create a custom gopher.

Final thing, #general might be too chatty at times but don't be shy to ask your Go related question.


Now, enjoy the community and have fun.

PS. Want to contribute to my welcome message? You can find my source code at: <https://github.com/gobridge/gopher>."""


def welcome_message(channels: Iterable[ChannelSpec]) -> str:
    return _WELCOME_TEMPLATE.format(channels=format_channels(channels))


class JoinHandler:
    """Sends the welcome message; built once, the text never changes."""

    name = "join"

    def __init__(self, channels: Iterable[ChannelSpec]):
        self.welcome = welcome_message(c for c in channels if c.welcome)

    def message_for(self, event: JoinEvent) -> str:
        return f"Hello {event.user_name},\n\n\n{self.welcome}"

    async def handle(self, event: JoinEvent, responder: Responder) -> None:
        logger.info("welcoming user=%s", event.user_id)
        await responder.respond_private(self.message_for(event))
