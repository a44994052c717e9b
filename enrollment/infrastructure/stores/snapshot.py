from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
import time
from contextlib import suppress
from pathlib import Path
from typing import Any, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from enrollment.domain.entities import Expiring
from enrollment.domain.errors import PersistenceError
from enrollment.domain.ports.expiring_store import Clock
from enrollment.infrastructure.stores.memory import MemoryExpiringStore

logger = logging.getLogger(__name__)

V = TypeVar("V")


class SnapshotExpiringStore(MemoryExpiringStore[V]):
    """
    In-memory store mirrored to one JSON file.

    The file holds ``{key: {"value": ..., "expires_at": <epoch seconds>}}``
    and is rewritten in full after every mutation (temp file + rename), then
    reloaded in full by ``load()`` at start-up. A failed write is logged and
    swallowed: memory stays authoritative until the next restart. Only one
    process may own a given file.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        adapter: TypeAdapter[V],
        *,
        clock: Clock = time.time,
    ) -> None:
        super().__init__(clock=clock)
        self.path = Path(path)
        self._adapter = adapter
        self._write_lock = asyncio.Lock()

    def load(self) -> int:
        """Replace memory with the snapshot on disk. Returns the entry count."""
        self._entries = {}
        if not self.path.exists():
            logger.info("no snapshot found", extra={"path": str(self.path)})
            return 0
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            for key, item in raw.items():
                self._entries[key] = Expiring(
                    value=self._adapter.validate_python(item["value"]),
                    expires_at=float(item["expires_at"]),
                )
        except (OSError, ValueError, KeyError, TypeError, PydanticValidationError):
            logger.exception(
                "unreadable snapshot, starting empty", extra={"path": str(self.path)}
            )
            self._entries = {}
            return 0
        logger.info(
            "snapshot loaded",
            extra={"path": str(self.path), "entries": len(self._entries)},
        )
        return len(self._entries)

    async def put(self, key: str, value: V, ttl_seconds: float) -> Expiring[V]:
        entry = await super().put(key, value, ttl_seconds)
        await self._persist()
        return entry

    async def update(self, key: str, value: V) -> bool:
        changed = await super().update(key, value)
        if changed:
            await self._persist()
        return changed

    async def delete(self, key: str) -> bool:
        removed = await super().delete(key)
        if removed:
            await self._persist()
        return removed

    async def purge_expired(self) -> int:
        removed = await super().purge_expired()
        if removed:
            await self._persist()
        return removed

    def _serialize(self) -> dict[str, Any]:
        return {
            key: {
                "value": self._adapter.dump_python(entry.value, mode="json"),
                "expires_at": entry.expires_at,
            }
            for key, entry in self._entries.items()
        }

    async def _persist(self) -> None:
        async with self._write_lock:
            document = json.dumps(self._serialize(), indent=2, sort_keys=True)
            try:
                await asyncio.to_thread(self._write, document)
            except OSError as e:
                err = PersistenceError(f"snapshot write failed: {e}")
                logger.error(
                    "snapshot write failed, keeping in-memory state",
                    exc_info=err,
                    extra={"path": str(self.path), "entries": len(self._entries)},
                )

    def _write(self, document: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(document)
            os.replace(tmp, self.path)
        except BaseException:
            with suppress(FileNotFoundError):
                os.unlink(tmp)
            raise
