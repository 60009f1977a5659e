"""Background pollers: Gerrit merged CLs and the Go Time livestream."""

from .gerrit import Gerrit, GerritError
from .gotime import GoTime, GoTimeError
from .scheduler import PollerAborted, run_periodically

__all__ = [
    "Gerrit",
    "GerritError",
    "GoTime",
    "GoTimeError",
    "PollerAborted",
    "run_periodically",
]
