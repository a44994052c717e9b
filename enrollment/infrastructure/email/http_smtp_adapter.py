from __future__ import annotations

import logging

import httpx

from enrollment.domain.ports.email_port import EmailPort, EmailSendError

logger = logging.getLogger(__name__)

# longest relay error text carried into EmailSendError
_MAX_ERROR_TEXT = 200


class HttpSmtpEmailAdapter(EmailPort):
    """
    Sends mail through an HTTP relay: ``POST {base_url}{send_path}`` with a
    JSON body of ``to``, ``subject``, ``body`` and, when configured, ``from``.
    Any non-2xx answer or transport failure raises EmailSendError.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
        send_path: str = "/send",
        sender: str | None = None,
    ) -> None:
        self.endpoint = f"{base_url.rstrip('/')}/{send_path.lstrip('/')}"
        self.sender = sender
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    def _message(self, to: str, subject: str, body: str) -> dict[str, str]:
        message = {"to": to, "subject": subject, "body": body}
        if self.sender:
            message["from"] = self.sender
        return message

    async def send(
        self,
        *,
        to: str,
        subject: str,
        body: str,
        idempotency_key: str | None = None,
    ) -> None:
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else {}
        try:
            resp = await self._client.post(
                self.endpoint, json=self._message(to, subject, body), headers=headers
            )
        except httpx.HTTPError as e:
            raise EmailSendError(f"mail relay unreachable: {e}") from e

        if not resp.is_success:
            raise EmailSendError(
                f"mail relay answered {resp.status_code}: "
                f"{resp.text[:_MAX_ERROR_TEXT]}",
                status_code=resp.status_code,
            )
        logger.debug("mail accepted by relay", extra={"status_code": resp.status_code})

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
