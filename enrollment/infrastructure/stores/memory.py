from __future__ import annotations

import time
from typing import TypeVar

from enrollment.domain.entities import Expiring
from enrollment.domain.ports.expiring_store import Clock, ExpiringStorePort

V = TypeVar("V")


class MemoryExpiringStore(ExpiringStorePort[V]):
    """Process-local store. State is lost on restart."""

    def __init__(self, *, clock: Clock = time.time) -> None:
        self.clock = clock
        self._entries: dict[str, Expiring[V]] = {}

    async def put(self, key: str, value: V, ttl_seconds: float) -> Expiring[V]:
        entry = Expiring(value=value, expires_at=self.clock() + ttl_seconds)
        self._entries[key] = entry
        return entry

    async def get(self, key: str) -> Expiring[V] | None:
        return self._entries.get(key)

    async def update(self, key: str, value: V) -> bool:
        current = self._entries.get(key)
        if current is None:
            return False
        self._entries[key] = Expiring(value=value, expires_at=current.expires_at)
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def purge_expired(self) -> int:
        now = self.clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
