"""Mock email provider for development and testing.

Nothing leaves the process: messages are kept in memory for inspection and a
configurable share of sends is reported as failed.
"""

from __future__ import annotations

import random
from typing import Any
from uuid import uuid4

from epecuen_service_libs.logging_utils import create_service_logger
from epecuen_service_libs.outbox.models import utcnow

from services.notification_service.config import Settings
from services.notification_service.protocols import EmailProvider, EmailSendResult

logger = create_service_logger("notification_service.provider_mock")


class MockEmailProvider(EmailProvider):
    def __init__(self, settings: Settings, rng: random.Random | None = None):
        self.settings = settings
        self._rng = rng or random.Random()
        self._sent_emails: list[dict[str, Any]] = []

    async def send_email(
        self,
        to: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
    ) -> EmailSendResult:
        if self._rng.random() < self.settings.MOCK_PROVIDER_FAILURE_RATE:
            error_message = "Mock provider: Simulated delivery failure"
            logger.warning(error_message, extra={"to": to})
            return EmailSendResult(
                success=False, provider_message_id=None, error_message=error_message
            )

        mock_message_id = f"mock_{uuid4().hex}"
        self._sent_emails.append(
            {
                "to": to,
                "from_email": from_email or self.settings.DEFAULT_FROM_EMAIL,
                "from_name": from_name or self.settings.DEFAULT_FROM_NAME,
                "subject": subject,
                "html_content": html_content,
                "text_content": text_content,
                "sent_at": utcnow(),
                "provider_message_id": mock_message_id,
            }
        )
        logger.info(
            "Mock email sent",
            extra={"to": to, "subject": subject, "provider_message_id": mock_message_id},
        )
        return EmailSendResult(
            success=True, provider_message_id=mock_message_id, error_message=None
        )

    def get_provider_name(self) -> str:
        return "mock"

    def get_sent_emails(self) -> list[dict[str, Any]]:
        return self._sent_emails.copy()

    def clear_sent_emails(self) -> None:
        self._sent_emails.clear()
