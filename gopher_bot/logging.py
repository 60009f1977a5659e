"""Logging setup.

One stdout handler on the root logger; modules use logging.getLogger(__name__).
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# chatty third-party loggers, kept at WARNING unless we are debugging
_NOISY_LOGGERS = ("httpx", "httpcore", "websockets")


def setup_logger(level: int = logging.INFO) -> logging.Logger:
    """Configure the root logger.

    Args:
        level: log level, INFO by default

    Returns:
        the configured root logger
    """
    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    # avoid duplicate handlers when called twice
    if not root.handlers:
        root.addHandler(handler)

    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return root
