from __future__ import annotations

from typing import Optional, Protocol

from enrollment.domain.entities import Identity


class IdentityDirectoryPort(Protocol):
    """
    Durable identity records keyed by normalized email.
    Email equality is case-insensitive and whitespace-trimmed.
    """

    async def exists_by_email(self, email: str) -> bool:
        """True if an identity is registered for ``email``."""

    async def get_by_email(self, email: str) -> Optional[Identity]:
        """Return the identity (with its password hash) or None."""

    async def get_by_id(self, identity_id: str) -> Optional[Identity]:
        """Return the identity or None."""

    async def create(self, identity: Identity) -> Identity:
        """
        Insert a new identity and return it with its id populated.
        Raises ConflictError if the email is already taken.
        """

    async def update_secret(self, email: str, password_hash: str) -> None:
        """
        Replace the stored password hash.
        Raises NotFoundError if no identity exists for ``email``.
        """
