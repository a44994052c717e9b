from __future__ import annotations

import logging

from enrollment.domain.entities import Purpose
from enrollment.domain.errors import DeliveryError
from enrollment.domain.ports.delivery import DeliveryPort
from enrollment.domain.ports.email_port import EmailPort, EmailSendError

logger = logging.getLogger(__name__)

_SUBJECTS = {
    Purpose.REGISTER: "Your verification code",
    Purpose.RESET: "Your password reset code",
}

_BODIES = {
    Purpose.REGISTER: (
        "Your code is {code}. It expires in {minutes} minutes.\n"
        "If you did not try to create an account, ignore this email."
    ),
    Purpose.RESET: (
        "Your password reset code is {code}. It expires in {minutes} minutes.\n"
        "If you did not ask to reset your password, ignore this email."
    ),
}


class EmailCodeDelivery(DeliveryPort):
    """Delivers codes by email. Fire-once: failures are not retried."""

    def __init__(self, email: EmailPort, *, code_ttl_seconds: int = 600) -> None:
        self._email = email
        self._minutes = max(1, code_ttl_seconds // 60)

    async def send(self, identity: str, code: str, purpose: Purpose) -> None:
        purpose = Purpose(purpose)
        try:
            await self._email.send(
                to=identity,
                subject=_SUBJECTS[purpose],
                body=_BODIES[purpose].format(code=code, minutes=self._minutes),
            )
        except EmailSendError as e:
            logger.warning(
                "code delivery failed",
                extra={"to": identity, "purpose": purpose.value, "error": str(e)},
            )
            raise DeliveryError() from e
