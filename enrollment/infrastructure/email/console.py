"""Console email sender for local development: messages go to the log."""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    async def send(
        self,
        *,
        to: str,
        subject: str,
        body: str,
        idempotency_key: str | None = None,
    ) -> None:
        logger.info("[EMAIL] to=%s subject=%r body=%r", to, subject, body)

    async def aclose(self) -> None:
        return None
