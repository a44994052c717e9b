from __future__ import annotations

from typing import Callable, Protocol, TypeVar

from enrollment.domain.entities import Expiring

V = TypeVar("V")

Clock = Callable[[], float]


class ExpiringStorePort(Protocol[V]):
    """
    TTL key-value store parameterised by value type.

    Every mutation is durable (for durable backends) by the time the
    coroutine returns. Reads never filter on expiry: callers compare
    ``Expiring.expires_at`` against ``clock()`` themselves.
    """

    clock: Clock

    async def put(self, key: str, value: V, ttl_seconds: float) -> Expiring[V]:
        """Store/replace ``value`` under ``key``, expiring ``ttl_seconds`` from now."""

    async def get(self, key: str) -> Expiring[V] | None:
        """Return the entry (expired or not), or None."""

    async def update(self, key: str, value: V) -> bool:
        """Replace the value but keep the expiry. False if the key is absent."""

    async def delete(self, key: str) -> bool:
        """Delete the entry. True if something was removed."""

    async def purge_expired(self) -> int:
        """Delete every entry past its expiry; return how many were removed."""
