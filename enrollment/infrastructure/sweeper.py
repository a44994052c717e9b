from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Protocol

logger = logging.getLogger(__name__)


class Sweepable(Protocol):
    async def sweep(self) -> int:
        """Delete expired entries and return how many were removed."""


class ExpirySweeper:
    """
    Periodically evicts expired entries from every registered store.
    A failing store is logged and retried on the next tick.
    """

    def __init__(
        self,
        stores: Mapping[str, Sweepable],
        *,
        interval: float = 300.0,
    ) -> None:
        self.stores = dict(stores)
        self.interval = interval

    async def run_forever(self) -> None:
        logger.info(
            "expiry sweeper started",
            extra={"interval": self.interval, "stores": sorted(self.stores)},
        )
        while True:
            await asyncio.sleep(self.interval)
            await self.sweep_once()

    async def sweep_once(self) -> dict[str, int]:
        """Single pass over all stores. Returns removed counts per store."""
        removed: dict[str, int] = {}
        for name, store in self.stores.items():
            try:
                removed[name] = await store.sweep()
            except Exception as e:  # noqa: BLE001
                logger.warning(
                    "sweep failed; will retry next tick",
                    extra={"store": name, "error": str(e)},
                )
                continue
            if removed[name]:
                logger.info(
                    "expired entries removed",
                    extra={"store": name, "count": removed[name]},
                )
        return removed
