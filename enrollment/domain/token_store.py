from __future__ import annotations

import logging
from dataclasses import replace

from enrollment.domain.entities import ConsumeOutcome, Expiring, VerificationToken
from enrollment.domain.errors import PersistenceError
from enrollment.domain.locks import KeyedLocks
from enrollment.domain.ports.expiring_store import ExpiringStorePort
from enrollment.domain.services import secure_compare

logger = logging.getLogger(__name__)


class VerificationTokenStore:
    """
    Single-use codes keyed by identity + purpose.

    At most one live token per key: ``issue`` overwrites, orphaning any
    previous code. A wrong code leaves the token in place for a retry
    until ``max_attempts`` wrong codes have been seen, at which point the
    token is revoked and the caller gets ``EXHAUSTED``.
    """

    def __init__(
        self,
        store: ExpiringStorePort[VerificationToken],
        *,
        max_attempts: int | None = 5,
    ) -> None:
        self._store = store
        self._max_attempts = max_attempts or None
        self._locks = KeyedLocks()

    @property
    def clock(self):
        return self._store.clock

    async def issue(
        self, key: str, code: str, ttl_seconds: float
    ) -> Expiring[VerificationToken]:
        async with self._locks.hold(key):
            token = VerificationToken(code=code, issued_at=self._store.clock())
            entry = await self._store.put(key, token, ttl_seconds)
        logger.info(
            "verification token issued",
            extra={"key": key, "expires_at": entry.expires_at},
        )
        return entry

    async def consume(self, key: str, supplied_code: str) -> ConsumeOutcome:
        async with self._locks.hold(key):
            entry = await self._store.get(key)
            if entry is None:
                return ConsumeOutcome.NOT_FOUND

            if entry.is_expired(self._store.clock()):
                await self._store.delete(key)
                logger.info("verification token expired", extra={"key": key})
                return ConsumeOutcome.EXPIRED

            if secure_compare(entry.value.code, supplied_code):
                await self._store.delete(key)
                return ConsumeOutcome.MATCHED

            attempts = entry.value.attempts + 1
            if self._max_attempts is not None and attempts >= self._max_attempts:
                await self._store.delete(key)
                logger.warning(
                    "verification token revoked after too many attempts",
                    extra={"key": key, "attempts": attempts},
                )
                return ConsumeOutcome.EXHAUSTED

            await self._store.update(key, replace(entry.value, attempts=attempts))
            logger.info(
                "verification code mismatch",
                extra={"key": key, "attempts": attempts},
            )
            return ConsumeOutcome.MISMATCHED

    async def revoke(self, key: str) -> None:
        async with self._locks.hold(key):
            await self._store.delete(key)

    async def discard(self, key: str) -> None:
        """Like ``revoke``, but a storage failure is logged instead of raised."""
        try:
            await self.revoke(key)
        except PersistenceError:
            logger.exception("token rollback failed", extra={"key": key})

    async def peek(self, key: str) -> Expiring[VerificationToken] | None:
        return await self._store.get(key)

    async def sweep(self) -> int:
        return await self._store.purge_expired()
