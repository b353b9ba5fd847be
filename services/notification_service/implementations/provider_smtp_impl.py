"""SMTP email provider backed by aiosmtplib."""

from __future__ import annotations

import re
from email.message import EmailMessage
from email.utils import make_msgid

import aiosmtplib
from epecuen_service_libs.logging_utils import create_service_logger

from services.notification_service.config import Settings
from services.notification_service.protocols import EmailProvider, EmailSendResult

logger = create_service_logger("notification_service.provider_smtp")


class SMTPEmailProvider(EmailProvider):
    """Sends multipart (text + HTML) messages through the configured SMTP relay.

    Every transport failure is converted into an unsuccessful EmailSendResult;
    the caller decides whether to retry.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    async def send_email(
        self,
        to: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
    ) -> EmailSendResult:
        from_email = from_email or self.settings.DEFAULT_FROM_EMAIL
        from_name = from_name or self.settings.DEFAULT_FROM_NAME

        msg = EmailMessage()
        msg["From"] = f"{from_name} <{from_email}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid(domain=from_email.split("@")[-1])

        msg.set_content(text_content or self._html_to_text(html_content), charset="utf-8")
        msg.add_alternative(html_content, subtype="html", charset="utf-8")

        try:
            async with aiosmtplib.SMTP(
                hostname=self.settings.SMTP_HOST,
                port=self.settings.SMTP_PORT,
                start_tls=self.settings.SMTP_USE_TLS,
                timeout=self.settings.SMTP_TIMEOUT,
            ) as smtp:
                if self.settings.SMTP_USERNAME and self.settings.SMTP_PASSWORD:
                    await smtp.login(self.settings.SMTP_USERNAME, self.settings.SMTP_PASSWORD)

                # (per-recipient errors, server response)
                recipient_errors, response = await smtp.send_message(msg)

        except aiosmtplib.SMTPAuthenticationError as e:
            return self._failure(f"SMTP authentication failed: {e}", to)
        except aiosmtplib.SMTPConnectError as e:
            return self._failure(f"SMTP connection failed: {e}", to)
        except aiosmtplib.SMTPException as e:
            return self._failure(f"SMTP error: {e}", to)
        except OSError as e:
            return self._failure(f"SMTP transport error: {e}", to)

        if recipient_errors:
            error_details = "; ".join(f"{addr}: {err}" for addr, err in recipient_errors.items())
            return self._failure(f"Recipient rejected: {error_details}", to, exc_info=False)

        provider_message_id = msg["Message-ID"]
        logger.info(
            "Email sent via SMTP",
            extra={
                "to": to,
                "subject": subject,
                "provider_message_id": provider_message_id,
                "smtp_host": self.settings.SMTP_HOST,
                "smtp_response": response,
            },
        )
        return EmailSendResult(
            success=True, provider_message_id=provider_message_id, error_message=None
        )

    def get_provider_name(self) -> str:
        return "smtp"

    def _failure(self, error_message: str, to: str, exc_info: bool = True) -> EmailSendResult:
        logger.error(error_message, extra={"to": to}, exc_info=exc_info)
        return EmailSendResult(success=False, provider_message_id=None, error_message=error_message)

    def _html_to_text(self, html: str) -> str:
        clean_text = re.sub(r"<[^>]+>", "", html)
        clean_text = clean_text.replace("&nbsp;", " ").replace("&amp;", "&")
        return re.sub(r"\s+", " ", clean_text).strip()
