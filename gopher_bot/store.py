"""Persistence of changesets already relayed to Slack.

Responsibilities:
- remember which CL numbers were posted, so a restart never re-posts them
- keep the data in one JSON file; file IO runs in a thread pool so the
  event loop is never blocked
"""

from __future__ import annotations

import asyncio
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="store_io")


class ChangesetNotFound(LookupError):
    """The store holds no changeset (or not the one asked for)."""


@dataclass(frozen=True)
class StoredChangeset:
    url: str
    message: str
    crawled_at: str  # ISO 8601, UTC
    shared: bool = False

    @classmethod
    def now(cls, url: str, message: str) -> "StoredChangeset":
        return cls(url=url, message=message, crawled_at=datetime.now(timezone.utc).isoformat())


class ChangesetStore(Protocol):
    """Minimal existence-check / insert contract used by the gerrit poller."""

    async def latest_number(self) -> int:
        """Number of the most recently crawled CL; raises ChangesetNotFound when empty."""

    async def exists(self, number: int) -> bool: ...

    async def put(self, number: int, cl: StoredChangeset) -> None: ...

    async def get(self, number: int) -> StoredChangeset:
        """Raises ChangesetNotFound for unknown numbers."""


def _sync_read_json(path: Path) -> Dict[str, Any]:
    """Read the JSON file (runs in the thread pool)."""
    if not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


def _sync_write_json(path: Path, data: Dict[str, Any]) -> None:
    """Write the JSON file atomically (runs in the thread pool)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)


class JsonChangesetStore:
    """ChangesetStore backed by a JSON file: {"<number>": {url, message, crawled_at, shared}}."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._data: Optional[Dict[str, Dict[str, Any]]] = None
        self._lock = asyncio.Lock()

    async def _load(self) -> Dict[str, Dict[str, Any]]:
        if self._data is None:
            loop = asyncio.get_running_loop()
            self._data = await loop.run_in_executor(_executor, _sync_read_json, self.path)
            logger.info("loaded %s changesets from %s", len(self._data), self.path)
        return self._data

    async def _save(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(_executor, _sync_write_json, self.path, dict(self._data or {}))

    async def latest_number(self) -> int:
        async with self._lock:
            data = await self._load()
            if not data:
                raise ChangesetNotFound("store is empty")
            key = max(data, key=lambda k: (data[k].get("crawled_at", ""), int(k)))
            return int(key)

    async def exists(self, number: int) -> bool:
        async with self._lock:
            data = await self._load()
            return str(number) in data

    async def put(self, number: int, cl: StoredChangeset) -> None:
        async with self._lock:
            data = await self._load()
            data[str(number)] = asdict(cl)
            await self._save()

    async def get(self, number: int) -> StoredChangeset:
        async with self._lock:
            data = await self._load()
            raw = data.get(str(number))
            if raw is None:
                raise ChangesetNotFound(f"CL {number} not found")
            return StoredChangeset(
                url=str(raw.get("url", "")),
                message=str(raw.get("message", "")),
                crawled_at=str(raw.get("crawled_at", "")),
                shared=bool(raw.get("shared", False)),
            )


class ScratchChangesetStore:
    """Dev mode store: reads through to `base`, keeps every write in memory.

    Nothing put here is ever persisted, so a dev session can't mark CLs as
    crawled or shared for the real bot.
    """

    def __init__(self, base: ChangesetStore):
        self.base = base
        # insertion order doubles as crawl order
        self._written: Dict[int, StoredChangeset] = {}

    async def latest_number(self) -> int:
        if self._written:
            return next(reversed(self._written))
        return await self.base.latest_number()

    async def exists(self, number: int) -> bool:
        return number in self._written or await self.base.exists(number)

    async def put(self, number: int, cl: StoredChangeset) -> None:
        logger.info("dev mode, not persisting CL %s shared=%s", number, cl.shared)
        self._written.pop(number, None)
        self._written[number] = cl

    async def get(self, number: int) -> StoredChangeset:
        if number in self._written:
            return self._written[number]
        return await self.base.get(number)
