"""Configuration.

Everything lives in BotSettings, loaded from config/bot_settings.json.
Secrets can also come from the environment (GOPHERS_SLACK_* variables),
which win over the JSON file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ChannelSpec:
    """A channel we advertise (recommended channels / welcome message)."""
    name: str
    description: str
    welcome: bool = False


DEFAULT_CHANNELS: Tuple[ChannelSpec, ...] = (
    ChannelSpec("golang-newbies", "for newbie resources", welcome=True),
    ChannelSpec("reviews", "for code reviews", welcome=True),
    ChannelSpec("gotimefm", "for the awesome live podcast", welcome=True),
    ChannelSpec("remotemeetup", "for remote meetup", welcome=True),
    ChannelSpec("golang-jobs", "for jobs related to Go", welcome=True),
    ChannelSpec("showandtell", "tell the world about the thing you are working on"),
    ChannelSpec("performance", "anything and everything performance related"),
    ChannelSpec("devops", "for devops related discussions"),
    ChannelSpec("security", "for security related discussions"),
    ChannelSpec("aws", "if you are interested in AWS"),
    ChannelSpec("goreviews", "talk to the Go team about a certain CL"),
    ChannelSpec("golang-cls", "get real time updates from the merged CL for Go itself"),
    ChannelSpec("bbq", "Go controlling your bbq grill? Yes, we have that"),
)


@dataclass(frozen=True)
class GerritSettings:
    """Merged-changeset poller."""
    enabled: bool = True
    channel: str = "golang-cls"  # public CL feed
    restricted_channel: str = "golang_cls"  # where "share cl" is allowed
    interval_seconds: float = 600.0
    max_failures: int = 5
    retry_base_delay: float = 2.0


@dataclass(frozen=True)
class GoTimeSettings:
    """Livestream poller."""
    enabled: bool = True
    channel: str = "gotimefm"
    interval_seconds: float = 60.0
    start_time_variance_seconds: float = 3600.0


@dataclass(frozen=True)
class BotSettings:
    """Runtime configuration of the bot."""
    bot_name: str = "gopher"
    bot_token: str = ""  # xoxb-...
    app_token: str = ""  # xapp-..., Socket Mode
    alias: str = "gopher"
    version: str = "HEAD"
    dev_mode: bool = False

    # Logging
    log_level: str = "INFO"

    # Operator notifications (deploy announcements)
    operator_channel: str = ""

    # Health endpoint
    health_host: str = "0.0.0.0"
    health_port: int = 8081

    # Behavior
    playground_min_lines: int = 10
    reaction_chance: int = 150
    http_timeout: float = 10.0

    # Pollers
    gerrit: GerritSettings = field(default_factory=GerritSettings)
    gotime: GoTimeSettings = field(default_factory=GoTimeSettings)
    store_path: str = "data/changesets.json"

    channels: Tuple[ChannelSpec, ...] = DEFAULT_CHANNELS

    # Admin
    admin_user_ids: Tuple[str, ...] = ()

    def validate(self) -> None:
        """Fail fast on what the bot cannot start without."""
        if not self.bot_token:
            raise ValueError("missing Slack bot token (GOPHERS_SLACK_BOT_TOKEN or bot_token)")
        if not self.app_token:
            raise ValueError("missing Slack app token (GOPHERS_SLACK_APP_TOKEN or app_token)")


def _read_json_file(path: Path) -> dict[str, Any]:
    """Read a JSON file into a dict; a missing file yields an empty dict."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}


def _to_bool(value: Any, default: bool) -> bool:
    """Convert common truthy/falsy inputs into a bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "y", "on"}:
            return True
        if lowered in {"false", "0", "no", "n", "off"}:
            return False
    return default


def _section(config: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = config.get(key)
    return value if isinstance(value, dict) else {}


def _pick_str(config: Mapping[str, Any], key: str, default: str) -> str:
    val = config.get(key)
    return str(val) if val is not None else default


def _pick_int(config: Mapping[str, Any], key: str, default: int) -> int:
    try:
        val = config.get(key)
        return int(val) if val is not None else default
    except (TypeError, ValueError):
        return default


def _pick_float(config: Mapping[str, Any], key: str, default: float) -> float:
    try:
        val = config.get(key)
        return float(val) if val is not None else default
    except (TypeError, ValueError):
        return default


def _pick_bool(config: Mapping[str, Any], key: str, default: bool) -> bool:
    return _to_bool(config.get(key), default)


def _parse_channels(raw: Any) -> Tuple[ChannelSpec, ...]:
    if not isinstance(raw, list):
        return DEFAULT_CHANNELS
    channels = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("name"):
            continue
        channels.append(
            ChannelSpec(
                name=str(item["name"]).lower(),
                description=str(item.get("description", "")),
                welcome=_to_bool(item.get("welcome"), False),
            )
        )
    return tuple(channels) or DEFAULT_CHANNELS


def load_settings(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BotSettings:
    """Load settings from the JSON file, then apply environment overrides."""
    config: dict[str, Any] = {}
    if config_path:
        config = _read_json_file(Path(config_path))
    env = os.environ if environ is None else environ

    gerrit_cfg = _section(config, "gerrit")
    gotime_cfg = _section(config, "gotime")

    gerrit = GerritSettings(
        enabled=_pick_bool(gerrit_cfg, "enabled", GerritSettings.enabled),
        channel=_pick_str(gerrit_cfg, "channel", GerritSettings.channel),
        restricted_channel=_pick_str(gerrit_cfg, "restricted_channel", GerritSettings.restricted_channel),
        interval_seconds=_pick_float(gerrit_cfg, "interval_seconds", GerritSettings.interval_seconds),
        max_failures=max(1, _pick_int(gerrit_cfg, "max_failures", GerritSettings.max_failures)),
        retry_base_delay=_pick_float(gerrit_cfg, "retry_base_delay", GerritSettings.retry_base_delay),
    )
    gotime = GoTimeSettings(
        enabled=_pick_bool(gotime_cfg, "enabled", GoTimeSettings.enabled),
        channel=_pick_str(gotime_cfg, "channel", GoTimeSettings.channel),
        interval_seconds=_pick_float(gotime_cfg, "interval_seconds", GoTimeSettings.interval_seconds),
        start_time_variance_seconds=_pick_float(
            gotime_cfg, "start_time_variance_seconds", GoTimeSettings.start_time_variance_seconds
        ),
    )

    def pick(key: str, default: str) -> str:
        return _pick_str(config, key, default)

    bot_name = env.get("GOPHERS_SLACK_BOT_NAME") or pick("bot_name", BotSettings.bot_name)
    # names are often pasted with the @
    bot_name = bot_name.lstrip("@")

    dev_mode = _pick_bool(config, "dev_mode", False)
    if "GOPHERS_SLACK_BOT_DEV_MODE" in env:
        dev_mode = _to_bool(env["GOPHERS_SLACK_BOT_DEV_MODE"], dev_mode)

    admin_user_ids_raw = config.get("admin_user_ids", [])
    admin_user_ids: list[str] = []
    if isinstance(admin_user_ids_raw, list):
        admin_user_ids = [str(uid) for uid in admin_user_ids_raw if uid]

    return BotSettings(
        bot_name=bot_name,
        bot_token=env.get("GOPHERS_SLACK_BOT_TOKEN") or pick("bot_token", ""),
        app_token=env.get("GOPHERS_SLACK_APP_TOKEN") or pick("app_token", ""),
        alias=pick("alias", BotSettings.alias).lower().strip() or BotSettings.alias,
        version=env.get("GOPHERS_SLACK_BOT_VERSION") or pick("version", BotSettings.version),
        dev_mode=dev_mode,
        log_level=pick("log_level", "INFO").upper().strip() or "INFO",
        operator_channel=pick("operator_channel", ""),
        health_host=pick("health_host", BotSettings.health_host),
        health_port=_pick_int(config, "health_port", BotSettings.health_port),
        playground_min_lines=max(1, _pick_int(config, "playground_min_lines", BotSettings.playground_min_lines)),
        reaction_chance=max(1, _pick_int(config, "reaction_chance", BotSettings.reaction_chance)),
        http_timeout=_pick_float(config, "http_timeout", BotSettings.http_timeout),
        gerrit=gerrit,
        gotime=gotime,
        store_path=pick("store_path", BotSettings.store_path),
        channels=_parse_channels(config.get("channels")),
        admin_user_ids=tuple(admin_user_ids),
    )
