from __future__ import annotations

from typing import Protocol

from enrollment.domain.entities import Purpose


class DeliveryPort(Protocol):
    async def send(self, identity: str, code: str, purpose: Purpose) -> None:
        """Deliver ``code`` to ``identity``. Raises DeliveryError on failure."""
