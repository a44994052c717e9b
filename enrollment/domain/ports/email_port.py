from __future__ import annotations

from typing import Protocol


class EmailSendError(Exception):
    """The mail transport did not accept a message."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmailPort(Protocol):
    async def send(
        self,
        *,
        to: str,
        subject: str,
        body: str,
        idempotency_key: str | None = None,
    ) -> None:
        """Send an email. Raises EmailSendError when the transport refuses it."""

    async def aclose(self) -> None:
        """Release transport resources."""
