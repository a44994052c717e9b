from __future__ import annotations

import json
import time
from typing import TypeVar

from pydantic import TypeAdapter
from redis.asyncio import Redis
from redis.exceptions import RedisError

from enrollment.domain.entities import Expiring
from enrollment.domain.errors import PersistenceError
from enrollment.domain.ports.expiring_store import Clock, ExpiringStorePort

V = TypeVar("V")


class RedisExpiringStore(ExpiringStorePort[V]):
    """
    One Redis key per entry, expired natively by Redis (PXAT).

    The payload keeps ``expires_at`` too so reads can report an entry that
    is past due but not yet evicted. Each call touches exactly one key, so
    concurrent keys never overwrite each other's state.
    """

    def __init__(
        self,
        redis: Redis,
        adapter: TypeAdapter[V],
        *,
        key_prefix: str,
        clock: Clock = time.time,
    ) -> None:
        self._redis = redis
        self._adapter = adapter
        self._prefix = key_prefix
        self.clock = clock

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _encode(self, value: V, expires_at: float) -> str:
        return json.dumps(
            {
                "value": self._adapter.dump_python(value, mode="json"),
                "expires_at": expires_at,
            }
        )

    def _decode(self, raw: str) -> Expiring[V]:
        data = json.loads(raw)
        return Expiring(
            value=self._adapter.validate_python(data["value"]),
            expires_at=float(data["expires_at"]),
        )

    async def put(self, key: str, value: V, ttl_seconds: float) -> Expiring[V]:
        expires_at = self.clock() + ttl_seconds
        try:
            await self._redis.set(
                self._key(key),
                self._encode(value, expires_at),
                pxat=int(expires_at * 1000),
            )
        except RedisError as e:
            raise PersistenceError(f"redis put failed: {e}") from e
        return Expiring(value=value, expires_at=expires_at)

    async def get(self, key: str) -> Expiring[V] | None:
        try:
            raw = await self._redis.get(self._key(key))
        except RedisError as e:
            raise PersistenceError(f"redis get failed: {e}") from e
        if raw is None:
            return None
        return self._decode(raw)

    async def update(self, key: str, value: V) -> bool:
        current = await self.get(key)
        if current is None:
            return False
        try:
            # XX: only if still present; KEEPTTL: leave the expiry untouched
            res = await self._redis.set(
                self._key(key),
                self._encode(value, current.expires_at),
                xx=True,
                keepttl=True,
            )
        except RedisError as e:
            raise PersistenceError(f"redis update failed: {e}") from e
        return bool(res)

    async def delete(self, key: str) -> bool:
        try:
            removed = await self._redis.delete(self._key(key))
        except RedisError as e:
            raise PersistenceError(f"redis delete failed: {e}") from e
        return int(removed) > 0

    async def purge_expired(self) -> int:
        # Redis evicts expired keys itself.
        return 0
