"""Canned texts and static tables.

Adding a canned answer: put it in CANNED_RESPONSES (and any extra trigger in
RESPONSE_ALIASES); commands.build_catalog() picks it up.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

TABLE_FLIP_TRIGGERS = ("︵", "彡")
TABLE_UNFLIP = "┬─┬ノ( º _ ºノ)"

HELP_TEXT = """Here's a list of supported commands
- "newbie resources" -> get a list of newbie resources
- "newbie resources pvt" -> get a list of newbie resources as a private message
- "recommended channels" -> get a list of recommended channels
- "oss help" -> help the open-source community
- "work with forks" -> how to work with forks of packages
- "idiomatic go" -> learn how to write more idiomatic Go code
- "block forever" -> how to block forever
- "http timeouts" -> tutorial about dealing with timeouts and http
- "database tutorial" -> tutorial about using sql databases
- "package layout" -> learn how to structure your Go package
- "avoid gotchas" -> avoid common gotchas in Go
- "library for <name>" -> search a go package that matches <name>
- "xkcd:<number or name>" -> link an xkcd comic
- "flip a coin" -> flip a coin
- "source code" -> location of my source code
- "where do you live?" OR "stack" -> get information about where the tech stack behind @gopher"""

CANNED_RESPONSES: Dict[str, str] = {
    "help": HELP_TEXT,
    "recommended blogs": "\n".join([
        "Here are some popular blog posts and Twitter accounts you should follow:",
        "- Peter Bourgon <https://twitter.com/peterbourgon|@peterbourgon> - <https://peter.bourgon.org/blog>",
        "- Carlisia Campos <https://twitter.com/carlisia|@carlisia>",
        "- Dave Cheney <https://twitter.com/davecheney|@davecheney> - <http://dave.cheney.net>",
        "- Jaana Burcu Dogan <https://twitter.com/rakyll|@rakyll> - <http://golang.rakyll.org>",
        "- Jessie Frazelle <https://twitter.com/jessfraz|@jessfraz> - <https://blog.jessfraz.com>",
        '- William "Bill" Kennedy <https://twitter.com|@goinggodotnet> - <https://www.goinggo.net>',
        "- Brian Ketelsen <https://twitter.com/bketelsen|@bketelsen> - <https://www.brianketelsen.com/blog>",
    ]),
    "oss help wanted": (
        "Here's a list of projects which could need some help from contributors like you: "
        "<https://github.com/corylanou/oss-helpwanted>"
    ),
    "working with forks": (
        "Here's how to work with package forks in Go: "
        "<http://blog.sgmansfield.com/2016/06/working-with-forks-in-go/>"
    ),
    "block forever": (
        "Here's how to block forever in Go: "
        "<http://blog.sgmansfield.com/2016/06/how-to-block-forever-in-go/>"
    ),
    "http timeouts": (
        "Here's a blog post which will help with http timeouts in Go: "
        "<https://blog.cloudflare.com/the-complete-guide-to-golang-net-http-timeouts/>"
    ),
    "slices": "\n".join([
        "The following posts will explain how slices, maps and strings work in Go:",
        "- <https://blog.golang.org/slices>",
        "- <https://blog.golang.org/go-slices-usage-and-internals>",
        "- <https://blog.golang.org/strings>",
    ]),
    "database tutorial": "Here's how to work with database/sql in Go: <http://go-database-sql.org/>",
    "package layout": "\n".join([
        "These articles will explain how to organize your Go packages:",
        "- <https://rakyll.org/style-packages/>",
        "- <https://medium.com/@benbjohnson/standard-package-layout-7cdbc8391fc1#.ds38va3pp>",
        "- <https://peter.bourgon.org/go-best-practices-2016/#repository-structure>",
        "",
        "This article will help you understand the design philosophy for packages: "
        "<https://www.goinggo.net/2017/02/design-philosophy-on-packaging.html>",
    ]),
    "idiomatic go": "Tips on how to write idiomatic Go code <https://dmitri.shuralyov.com/idiomatic-go>",
    "avoid gotchas": (
        "Read this article if you want to understand and avoid common gotchas in Go "
        "<https://divan.github.io/posts/avoid_gotchas>"
    ),
    "source code": "My source code is here <https://github.com/gobridge/gopher>",
}

# extra trigger -> key in CANNED_RESPONSES
RESPONSE_ALIASES: Dict[str, str] = {
    "recommended": "recommended blogs",
    "oss help": "oss help wanted",
    "work with forks": "working with forks",
    "how to block forever": "block forever",
    "slice internals": "slices",
    "databases": "database tutorial",
    "gotchas": "avoid gotchas",
    "source": "source code",
    "package structure": "package layout",
    "project structure": "package layout",
    "project layout": "package layout",
}


def canned_triggers() -> List[Tuple[List[str], str]]:
    """[(triggers, text)], one entry per canned text, aliases included."""
    out: List[Tuple[List[str], str]] = []
    for key, text in CANNED_RESPONSES.items():
        triggers = [key] + [alias for alias, target in RESPONSE_ALIASES.items() if target == key]
        out.append((triggers, text))
    return out


NEWBIE_RESOURCES_TEXT = "Here are some resources you should check out if you are learning / new to Go:"

NEWBIE_RESOURCES = """First you should take the language tour: <https://tour.golang.org/>

Then, you should visit:
 - <https://golang.org/doc/code.html> to learn how to organize your Go workspace
 - <https://golang.org/doc/effective_go.html> be more effective at writing Go
 - <https://golang.org/ref/spec> learn more about the language itself
 - <https://golang.org/doc/#articles> a lot more reading material

There are some awesome websites as well:
 - <https://blog.gopheracademy.com> great resources for Gophers in general
 - <http://gotime.fm> awesome weekly podcast of Go awesomeness
 - <https://gobyexample.com> examples of how to do things in Go
 - <http://go-database-sql.org> how to use SQL databases in Go
 - <https://dmitri.shuralyov.com/idiomatic-go> tips on how to write more idiomatic Go code
 - <https://divan.github.io/posts/avoid_gotchas> will help you avoid gotchas in Go
 - <https://golangbot.com> tutorials to help you get started in Go

There's also an exhaustive list of videos <http://gophervids.appspot.com> related to Go from various authors.

If you prefer books, you can try these:
 - <http://www.golangbootcamp.com/book>
 - <http://gopl.io/>
 - <https://www.manning.com/books/go-in-action> (if you e-mail @wkennedy at bill@ardanlabs.com you can get a free copy for being part of this Slack)

If you want to learn how to organize your Go project, make sure to read: <https://medium.com/@benbjohnson/standard-package-layout-7cdbc8391fc1#.ds38va3pp>.
Once you are accustomed to the language and syntax, you can read this series of articles for a walkthrough the various standard library packages: <https://medium.com/go-walkthrough>.

Finally, <https://github.com/golang/go/wiki#learning-more-about-go> will give a list of even more resources to learn Go"""

XKCD_ALIASES: Dict[str, int] = {
    "standards": 927,
    "compiling": 303,
    "optimization": 1691,
}

# trigger(s) -> reactions, matched on the raw text of every message
UNCONDITIONAL_REACTIONS: List[Tuple[Tuple[str, ...], Tuple[str, ...]]] = [
    (("my adorable little gophers",), ("gopher",)),
    (("bbq",), ("bbqgopher",)),
    (("buffalo", "gobuffalo"), ("gobuffalo",)),
    (("ghost",), ("ghost",)),
    (("ermergerd", "ermahgerd", "dragon"), ("dragon",)),
    (("spacex",), ("rocket",)),
    (("beer me",), ("beer", "beers")),
]

# matched on the normalized text of directed messages
DIRECTED_REACTIONS: List[Tuple[Tuple[str, ...], Tuple[str, ...]]] = [
    (("thank", "cheers", "hello"), ("gopher",)),
]
