"""Process wiring: Slack Socket Mode listener, health endpoint, pollers.

run_bot() resolves the bot identity, builds the catalog and the dispatcher,
then runs until a fatal error:
- one listener reads Socket Mode envelopes, acks each one at once and
  spawns a task per event
- GET /healthz on the health port answers 200 "ok"
- the Gerrit and Go Time pollers run in the background
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import timedelta
from http import HTTPStatus
from typing import Any, Awaitable, Dict, List, Optional, Set

import websockets

from .commands import build_catalog
from .dispatcher import Dispatcher, parse_event
from .handlers.join import JoinHandler
from .pollers import Gerrit, GoTime, run_periodically
from .pollers.gotime import LIVE_MESSAGE
from .router import JoinEvent, MessageEvent, Responder
from .services import BotServices
from .settings import BotSettings
from .slack import LoggingResponder, SlackResponder

logger = logging.getLogger(__name__)

HEALTH_PATH = "/healthz"


class SocketModeListener:
    """Reads Socket Mode envelopes and hands events to the dispatcher."""

    def __init__(
        self,
        services: BotServices,
        dispatcher: Dispatcher,
        app_token: str,
        *,
        dev_mode: bool = False,
        reconnect_base_delay: float = 1.0,
        reconnect_max_delay: float = 60.0,
    ):
        self.services = services
        self.dispatcher = dispatcher
        self.app_token = app_token
        self.dev_mode = dev_mode
        self.reconnect_base_delay = reconnect_base_delay
        self.reconnect_max_delay = reconnect_max_delay
        # strong references, or running tasks may be garbage-collected
        self._tasks: Set[asyncio.Task] = set()

    def responder_for(self, event: MessageEvent) -> Responder:
        if self.dev_mode:
            return LoggingResponder.for_event(event)
        return SlackResponder.for_event(self.services.slack, event)

    def join_responder_for(self, event: JoinEvent) -> Responder:
        if self.dev_mode:
            return LoggingResponder(user=event.user_id)
        return SlackResponder.for_user(self.services.slack, event.user_id)

    def _spawn(self, coro: Awaitable[Any], name: str) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.error("event task %s failed", name, exc_info=exc)

        task.add_done_callback(_done)
        return task

    def route(self, payload: Dict[str, Any]) -> Optional[asyncio.Task]:
        """Start handling one Slack event; None when the event is not for us."""
        event = parse_event(payload)
        if isinstance(event, MessageEvent):
            return self._spawn(self.dispatcher.dispatch(event, self.responder_for(event)), f"message:{event.ts}")
        if isinstance(event, JoinEvent):
            return self._spawn(self.dispatcher.dispatch_join(event, self.join_responder_for(event)), f"join:{event.user_id}")
        return None

    async def handle_envelope(self, ws: Any, envelope: Dict[str, Any]) -> bool:
        """Ack and route one envelope. False means the connection should be renewed."""
        kind = envelope.get("type")
        envelope_id = envelope.get("envelope_id")
        if envelope_id:
            # Slack redelivers anything not acked within 3 seconds
            await ws.send(json.dumps({"envelope_id": envelope_id}))

        if kind == "hello":
            logger.info("socket mode connected")
        elif kind == "disconnect":
            logger.info("socket mode disconnect requested reason=%s", envelope.get("reason"))
            return False
        elif kind == "events_api":
            payload = envelope.get("payload") or {}
            self.route(payload.get("event") or {})
        else:
            logger.debug("ignoring envelope type=%s", kind)
        return True

    async def listen_once(self) -> None:
        url = await self.services.slack.open_socket(self.app_token)
        async with websockets.connect(url) as ws:
            async for raw in ws:
                try:
                    envelope = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("invalid socket mode frame: %.200s", raw)
                    continue
                if not await self.handle_envelope(ws, envelope):
                    return

    async def run_forever(self) -> None:
        failures = 0
        while True:
            try:
                await self.listen_once()
                failures = 0
            except asyncio.CancelledError:
                raise
            except Exception as e:
                failures += 1
                delay = min(self.reconnect_base_delay * (2 ** (failures - 1)), self.reconnect_max_delay)
                logger.warning("socket mode connection lost (%s), reconnecting in %.1fs", e, delay)
                await asyncio.sleep(delay)


def health_check(connection: Any, request: Any) -> Any:
    """process_request hook: plain HTTP health answers, no websocket upgrade."""
    if request.path == HEALTH_PATH:
        return connection.respond(HTTPStatus.OK, "ok\n")
    return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")


async def _no_websocket(ws: Any) -> None:
    await ws.close()


async def _poller_jobs(settings: BotSettings, services: BotServices) -> List[Awaitable[None]]:
    jobs: List[Awaitable[None]] = []

    if settings.gerrit.enabled:
        public = services.notifier(settings.gerrit.channel)
        restricted_id = services.channel_id(settings.gerrit.restricted_channel)
        restricted = services.notifier(settings.gerrit.restricted_channel) if restricted_id else None

        async def notify_cl(text: str) -> bool:
            # the restricted channel sees every CL so it can pick what to share
            if restricted is not None:
                await restricted.notify(text)
            return await public.notify(text)

        gerrit = await Gerrit.create(services.store, services.http, notify_cl)
        jobs.append(run_periodically(
            "gerrit",
            gerrit.poll,
            settings.gerrit.interval_seconds,
            max_failures=settings.gerrit.max_failures,
            base_delay=settings.gerrit.retry_base_delay,
        ))

    if settings.gotime.enabled:
        gotime_channel = services.notifier(settings.gotime.channel)

        async def notify_live() -> bool:
            return await gotime_channel.notify(LIVE_MESSAGE)

        gotime = GoTime(
            services.http,
            notify_live,
            timedelta(seconds=settings.gotime.start_time_variance_seconds),
        )
        jobs.append(run_periodically("gotime", gotime.poll, settings.gotime.interval_seconds))

    return jobs


async def _run_until_failure(jobs: List[Awaitable[None]]) -> None:
    """Run jobs concurrently; the first one to raise stops them all."""
    tasks = [asyncio.ensure_future(j) for j in jobs]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        for t in done:
            t.result()
    finally:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


async def run_bot(settings: BotSettings) -> None:
    """Start the bot and block until a fatal error."""
    settings.validate()
    services = BotServices.from_settings(settings)
    try:
        identity = await services.slack.auth_test()
        bot_id = str(identity.get("user_id", ""))
        logger.info("initialized %s with ID: %s", settings.bot_name, bot_id)

        names = [c.name for c in settings.channels]
        names += [settings.gerrit.channel, settings.gerrit.restricted_channel, settings.gotime.channel]
        if settings.operator_channel:
            names.append(settings.operator_channel)
        await services.resolve_channels(names)

        if settings.operator_channel:
            await services.notifier(settings.operator_channel).notify(f"Deployed version: {settings.version}")

        dispatcher = Dispatcher(
            bot_id,
            build_catalog(settings, services),
            alias=settings.alias,
            join_handler=JoinHandler(settings.channels),
            dev_mode=settings.dev_mode,
        )
        listener = SocketModeListener(services, dispatcher, settings.app_token, dev_mode=settings.dev_mode)

        jobs: List[Awaitable[None]] = [listener.run_forever()]
        jobs += await _poller_jobs(settings, services)

        logger.info("health endpoint on http://%s:%s%s", settings.health_host, settings.health_port, HEALTH_PATH)
        async with websockets.serve(
            _no_websocket,
            settings.health_host,
            settings.health_port,
            process_request=health_check,
        ):
            await _run_until_failure(jobs)
    finally:
        await services.aclose()
