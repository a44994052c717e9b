from __future__ import annotations

import secrets
from typing import Optional

from enrollment.domain.ports.expiring_store import ExpiringStorePort
from enrollment.domain.ports.sessions import SessionsPort


class StoreSessions(SessionsPort):
    def __init__(
        self, store: ExpiringStorePort[str], *, ttl_seconds: int = 86400
    ) -> None:
        self._store = store
        self._ttl = ttl_seconds

    async def create(self, identity_id: str) -> str:
        token = secrets.token_urlsafe(32)
        await self._store.put(token, identity_id, self._ttl)
        return token

    async def get(self, token: str) -> Optional[str]:
        entry = await self._store.get(token)
        if entry is None:
            return None
        if entry.is_expired(self._store.clock()):
            await self._store.delete(token)
            return None
        return entry.value

    async def revoke(self, token: str) -> None:
        await self._store.delete(token)

    async def sweep(self) -> int:
        return await self._store.purge_expired()
