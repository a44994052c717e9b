from __future__ import annotations

import logging

from enrollment.domain.entities import EnrollmentProfile, Expiring
from enrollment.domain.errors import PersistenceError
from enrollment.domain.ports.expiring_store import ExpiringStorePort

logger = logging.getLogger(__name__)


class PendingEnrollmentCache:
    """
    Candidate profiles waiting for their registration code.

    ``get`` does not filter on expiry; the workflow checks ``is_expired``
    itself because the token and the payload carry separate timers.
    """

    def __init__(self, store: ExpiringStorePort[EnrollmentProfile]) -> None:
        self._store = store

    async def put(
        self, email: str, profile: EnrollmentProfile, ttl_seconds: float
    ) -> Expiring[EnrollmentProfile]:
        return await self._store.put(email, profile, ttl_seconds)

    async def get(self, email: str) -> Expiring[EnrollmentProfile] | None:
        return await self._store.get(email)

    async def remove(self, email: str) -> bool:
        return await self._store.delete(email)

    async def discard(self, email: str) -> None:
        try:
            await self._store.delete(email)
        except PersistenceError:
            logger.exception("pending payload rollback failed", extra={"email": email})

    def is_expired(self, entry: Expiring[EnrollmentProfile]) -> bool:
        return entry.is_expired(self._store.clock())

    async def sweep(self) -> int:
        return await self._store.purge_expired()
