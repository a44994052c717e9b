from __future__ import annotations

from typing import Optional, Protocol


class SessionsPort(Protocol):
    async def create(self, identity_id: str) -> str:
        """Issue a new opaque session token for ``identity_id``."""

    async def get(self, token: str) -> Optional[str]:
        """Resolve a live token to its identity id."""

    async def revoke(self, token: str) -> None:
        """Invalidate the token."""
