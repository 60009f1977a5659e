"""Entry point.

The bot connects to Slack over Socket Mode (no public HTTP endpoint needed):
- config/bot_settings.json is optional; secrets usually come from
  GOPHERS_SLACK_BOT_TOKEN / GOPHERS_SLACK_APP_TOKEN
- a health endpoint answers on http://<health_host>:<health_port>/healthz
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

# runnable both as `python run_bot.py` from the repo root and as an import
_THIS_DIR = Path(__file__).resolve().parent
if str(_THIS_DIR) not in sys.path:
    sys.path.insert(0, str(_THIS_DIR))

from gopher_bot.logging import setup_logger
from gopher_bot.server import run_bot
from gopher_bot.settings import load_settings

logger = logging.getLogger("gopher_bot")


def main() -> None:
    """Load settings and run the bot until a fatal error."""
    default_config = _THIS_DIR / "config" / "bot_settings.json"
    settings = load_settings(str(default_config) if default_config.exists() else None)

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if settings.dev_mode:
        level = min(level, logging.DEBUG)
    setup_logger(level)

    logger.info("starting %s version=%s dev_mode=%s", settings.bot_name, settings.version, settings.dev_mode)
    try:
        asyncio.run(run_bot(settings))
    except KeyboardInterrupt:
        logger.info("interrupted, bye")


if __name__ == "__main__":
    main()
