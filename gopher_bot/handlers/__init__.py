"""Rule implementations.

- basic.py: builders for the simple rules (respond / react / prefix lookups)
- songs.py: streaming links -> song.link
- playground.py: long messages and Go uploads -> play.golang.org
- share_cl.py: restricted "share cl" command
- join.py: welcome DM for new team members

Every message handler implements `async handle(message, responder)` and
no-ops when the message does not concern it.
"""

from .join import JoinHandler
from .playground import PlaygroundClient, PlaygroundError, PlaygroundHandler
from .share_cl import ShareCLHandler
from .songs import SongsHandler

__all__ = [
    "JoinHandler",
    "PlaygroundClient",
    "PlaygroundError",
    "PlaygroundHandler",
    "ShareCLHandler",
    "SongsHandler",
]
