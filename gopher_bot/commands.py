"""Rule catalog.

build_catalog() assembles every rule once, at startup, into one
process_linear() root. Every rule sees every message; the order below is
only the order in which replies are sent when several rules apply.

New rules: add a builder in handlers/ (or a row in responses.py) and
register it here.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from .handlers.basic import (
    bot_stack,
    bot_version,
    coin_flip,
    link_to_godoc,
    react_when_contains,
    react_when_contains_rand,
    react_when_has_prefix,
    react_when_mentioned,
    recommended_channels,
    respond_when_contains,
    respond_when_exact,
    respond_with_attachment_when_exact,
    search_for_library,
    xkcd,
)
from .handlers.playground import PlaygroundHandler
from .handlers.share_cl import ShareCLHandler
from .handlers.songs import SongsHandler
from .responses import (
    DIRECTED_REACTIONS,
    NEWBIE_RESOURCES,
    NEWBIE_RESOURCES_TEXT,
    TABLE_FLIP_TRIGGERS,
    TABLE_UNFLIP,
    UNCONDITIONAL_REACTIONS,
    XKCD_ALIASES,
    canned_triggers,
)
from .router import Handler, LinearHandler, process_linear, when_directed
from .services import BotServices
from .settings import BotSettings

logger = logging.getLogger(__name__)


def _directed_rules(
    settings: BotSettings,
    services: BotServices,
    rng: Optional[Any],
    environ: Optional[Mapping[str, str]],
) -> List[Handler]:
    rules: List[Handler] = []

    # canned answers; an alias maps to the very same text object
    for triggers, text in canned_triggers():
        rules.append(respond_when_exact(triggers, text, name=f"canned:{triggers[0]}"))

    rules.append(respond_with_attachment_when_exact(
        "newbie resources", NEWBIE_RESOURCES_TEXT, NEWBIE_RESOURCES, name="newbie_resources",
    ))
    rules.append(respond_with_attachment_when_exact(
        "newbie resources pvt", NEWBIE_RESOURCES_TEXT, NEWBIE_RESOURCES, private=True, name="newbie_resources_pvt",
    ))
    rules.append(recommended_channels("recommended channels", settings.channels))
    rules.append(coin_flip(["flip a coin", "flip coin"], rng=rng))
    rules.append(bot_version("version", settings.version))
    rules.append(bot_stack(["stack", "where do you live?"], environ))

    for triggers, reactions in DIRECTED_REACTIONS:
        rules.append(react_when_mentioned(triggers, *reactions))
    rules.append(react_when_has_prefix("wave", "wave", "gopher"))

    rules.append(search_for_library("library for"))
    rules.append(xkcd("xkcd:", XKCD_ALIASES))
    rules.append(ShareCLHandler(
        services.store,
        services.notifier(settings.gerrit.channel),
        restricted_channel_id=services.channel_id(settings.gerrit.restricted_channel),
        admin_user_ids=settings.admin_user_ids,
    ))
    return rules


def build_catalog(
    settings: BotSettings,
    services: BotServices,
    *,
    rng: Optional[Any] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> LinearHandler:
    """Root handler of the bot.

    rng (anything with randrange) drives the probability-gated reactions and
    the coin flip; environ decides the stack answer. Both default to the
    process-wide ones.
    """
    rules: List[Handler] = [
        SongsHandler(),
        PlaygroundHandler(
            services.slack,
            services.playground,
            min_lines=settings.playground_min_lines,
            dry_run=services.dry_run,
        ),
        respond_when_contains(list(TABLE_FLIP_TRIGGERS), TABLE_UNFLIP, name="table_flip"),
    ]

    for triggers, reactions in UNCONDITIONAL_REACTIONS:
        rules.append(react_when_contains(triggers, *reactions))

    rules.append(react_when_contains_rand("emacs", "vim", chance=settings.reaction_chance, rng=rng))
    rules.append(react_when_contains_rand("vim", "emacs", chance=settings.reaction_chance, rng=rng))

    rules.append(link_to_godoc("ghd/", "https://godoc.org/github.com/"))
    rules.append(link_to_godoc("d/", "https://godoc.org/"))

    directed = _directed_rules(settings, services, rng, environ)
    rules.append(when_directed(process_linear(*directed, name="directed")))

    root = process_linear(*rules, name="root")
    logger.info("catalog built: %s rules (%s directed)", len(root), len(directed))
    return root


__all__ = ["build_catalog"]
