from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

from pydantic import TypeAdapter
from redis.asyncio import Redis

from enrollment.domain.entities import EnrollmentProfile, VerificationToken
from enrollment.domain.pending_cache import PendingEnrollmentCache
from enrollment.domain.ports.expiring_store import ExpiringStorePort
from enrollment.domain.token_store import VerificationTokenStore
from enrollment.infrastructure.sessions import StoreSessions
from enrollment.infrastructure.stores.memory import MemoryExpiringStore
from enrollment.infrastructure.stores.redis_store import RedisExpiringStore
from enrollment.infrastructure.stores.snapshot import SnapshotExpiringStore
from enrollment.settings import Settings

logger = logging.getLogger(__name__)

V = TypeVar("V")

TOKENS = "verification_tokens"
PENDING = "pending_enrollments"
SESSIONS = "sessions"


@dataclass
class Stores:
    tokens: VerificationTokenStore
    pending: PendingEnrollmentCache
    sessions: StoreSessions


def build_stores(
    settings: Settings, *, redis_factory: Optional[Callable[[], Redis]] = None
) -> Stores:
    """
    Build the three expiring stores on the configured backend. Snapshot
    stores are loaded from disk here.
    """
    backend = settings.store_backend

    def make(name: str, adapter: TypeAdapter[V]) -> ExpiringStorePort[V]:
        if backend == "memory":
            return MemoryExpiringStore()
        if backend == "snapshot":
            store = SnapshotExpiringStore(
                Path(settings.snapshot_dir) / f"{name}.json", adapter
            )
            store.load()
            return store
        if backend == "redis":
            if redis_factory is None:
                raise RuntimeError("redis backend selected but no redis client given")
            return RedisExpiringStore(
                redis_factory(), adapter, key_prefix=f"{name}:"
            )
        raise ValueError(f"unknown store backend: {backend}")

    logger.info("building expiring stores", extra={"backend": backend})
    return Stores(
        tokens=VerificationTokenStore(
            make(TOKENS, TypeAdapter(VerificationToken)),
            max_attempts=settings.code_max_attempts,
        ),
        pending=PendingEnrollmentCache(make(PENDING, TypeAdapter(EnrollmentProfile))),
        sessions=StoreSessions(
            make(SESSIONS, TypeAdapter(str)),
            ttl_seconds=settings.session_ttl_seconds,
        ),
    )
