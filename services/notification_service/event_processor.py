"""
Handling of ``UserCreatedV1`` events: dedup, token issue, activation email.

Each envelope moves RECEIVED -> DEDUP_CHECK and then either DUPLICATE (drop)
or PROCESS. The ledger row and the token are recorded before the email is
sent, so a redelivered event id never produces a second email.
"""

from __future__ import annotations

import enum
import time
from datetime import timedelta
from typing import Any

from epecuen_core.error_enums import ErrorCode
from epecuen_core.event_enums import ProcessingEvent
from epecuen_core.events.envelope import EventEnvelope
from epecuen_core.user_models import UserCreatedV1
from epecuen_service_libs.error_handling import (
    EpecuenError,
    raise_notification_error,
    raise_template_error,
)
from epecuen_service_libs.logging_utils import create_service_logger, log_event_processing

from services.notification_service.config import Settings
from services.notification_service.metrics import (
    EMAIL_SEND_FAILURES,
    EMAILS_SENT,
    EVENTS_PROCESSED,
    NOTIFICATION_DEAD_LETTERS,
    PROCESSING_DURATION,
)
from services.notification_service.protocols import (
    EmailProvider,
    NotificationRepository,
    TemplateRenderer,
)

logger = create_service_logger("notification_service.event_processor")


class ProcessingOutcome(str, enum.Enum):
    COMPLETED = "completed"
    DUPLICATE = "duplicate"
    RETRY = "retry"
    DEAD_LETTERED = "dead_lettered"

    @property
    def should_commit(self) -> bool:
        return self is not ProcessingOutcome.RETRY


class NotificationEventProcessor:
    def __init__(
        self,
        repository: NotificationRepository,
        template_renderer: TemplateRenderer,
        email_provider: EmailProvider,
        settings: Settings,
    ) -> None:
        self.repository = repository
        self.template_renderer = template_renderer
        self.email_provider = email_provider
        self.settings = settings

    async def process_user_created(
        self, envelope: EventEnvelope[UserCreatedV1]
    ) -> ProcessingOutcome:
        """Send the account activation email for a newly created user, at most once."""
        started = time.perf_counter()
        log_event_processing(logger, "Processing user created event", envelope)
        try:
            outcome = await self._process(envelope)
        finally:
            PROCESSING_DURATION.labels(event_type=envelope.event_type).observe(
                time.perf_counter() - started
            )
        EVENTS_PROCESSED.labels(event_type=envelope.event_type, outcome=outcome.value).inc()
        return outcome

    async def _process(self, envelope: EventEnvelope[UserCreatedV1]) -> ProcessingOutcome:
        user = envelope.data
        template_id = self.settings.ACTIVATION_TEMPLATE_ID

        if not await self.template_renderer.template_exists(template_id):
            # Dead-letter before claiming so no token is issued
            if not await self.repository.record_dead_letter(
                event_id=envelope.event_id,
                event_type=envelope.event_type,
                aggregate_id=envelope.aggregate_id,
                recipient=str(user.email),
                error=f"Template not found: {template_id}",
            ):
                return ProcessingOutcome.DUPLICATE
            self._report_dead_letter(
                envelope, ErrorCode.TEMPLATE_ERROR, f"Template not found: {template_id}"
            )
            return ProcessingOutcome.DEAD_LETTERED

        claim = await self.repository.claim_event(
            event_id=envelope.event_id,
            event_type=envelope.event_type,
            aggregate_id=envelope.aggregate_id,
            recipient=str(user.email),
            token_ttl=timedelta(hours=self.settings.TOKEN_TTL_HOURS),
        )
        if not claim.claimed or claim.token is None:
            logger.info(
                "Duplicate event dropped",
                extra={"event_id": str(envelope.event_id), "user_id": user.user_id},
            )
            return ProcessingOutcome.DUPLICATE

        try:
            await self._send_activation_email(envelope, user, claim.token)
        except EpecuenError as e:
            if e.error_code == ErrorCode.TEMPLATE_ERROR:
                await self.repository.mark_dead_lettered(envelope.event_id, e.error_detail.message)
                self._report_dead_letter(envelope, ErrorCode.TEMPLATE_ERROR, e.error_detail.message)
                return ProcessingOutcome.DEAD_LETTERED
            if e.error_code != ErrorCode.NOTIFICATION_ERROR:
                raise
            return await self._handle_delivery_failure(envelope, e.error_detail.message)

        await self.repository.mark_completed(envelope.event_id)
        logger.info(
            "Activation email sent",
            extra={
                "event_id": str(envelope.event_id),
                "user_id": user.user_id,
                "correlation_id": str(envelope.correlation_id),
            },
        )
        return ProcessingOutcome.COMPLETED

    async def _send_activation_email(
        self, envelope: EventEnvelope[UserCreatedV1], user: UserCreatedV1, token: str
    ) -> None:
        template_id = self.settings.ACTIVATION_TEMPLATE_ID
        variables: dict[str, Any] = {
            "name": user.username,
            "token": token,
            "activation_url": f"{self.settings.ACTIVATION_URL_BASE.rstrip('/')}/{token}/consume",
            "expires_in_hours": str(self.settings.TOKEN_TTL_HOURS),
        }
        try:
            rendered = await self.template_renderer.render(template_id, variables)
        except EpecuenError as e:
            if e.error_code != ErrorCode.TEMPLATE_ERROR:
                raise
            # Re-raise under the event's correlation id
            raise_template_error(
                service="notification_service",
                operation="render_activation_email",
                template_id=template_id,
                message=e.error_detail.message,
                correlation_id=envelope.correlation_id,
                event_id=str(envelope.event_id),
            )

        provider = self.email_provider.get_provider_name()
        result = await self.email_provider.send_email(
            to=str(user.email),
            subject=rendered.subject,
            html_content=rendered.html_content,
            text_content=rendered.text_content,
            from_email=self.settings.DEFAULT_FROM_EMAIL,
            from_name=self.settings.DEFAULT_FROM_NAME,
        )
        if not result.success:
            EMAIL_SEND_FAILURES.labels(provider=provider).inc()
            raise_notification_error(
                service="notification_service",
                operation="send_activation_email",
                recipient=str(user.email),
                message=result.error_message or "Email delivery failed",
                correlation_id=envelope.correlation_id,
                event_id=str(envelope.event_id),
                provider=provider,
            )
        EMAILS_SENT.labels(provider=provider).inc()

    async def _handle_delivery_failure(
        self, envelope: EventEnvelope[UserCreatedV1], error: str
    ) -> ProcessingOutcome:
        attempts = await self.repository.mark_failed(envelope.event_id, error)
        if attempts >= self.settings.MAX_DELIVERY_ATTEMPTS:
            reason = f"Exceeded max delivery attempts ({attempts}): {error}"
            await self.repository.mark_dead_lettered(envelope.event_id, reason)
            self._report_dead_letter(envelope, ErrorCode.NOTIFICATION_ERROR, reason)
            return ProcessingOutcome.DEAD_LETTERED

        logger.warning(
            "Activation email delivery failed, event will be redelivered",
            extra={
                "event_id": str(envelope.event_id),
                "attempts": attempts,
                "max_attempts": self.settings.MAX_DELIVERY_ATTEMPTS,
                "error": error,
            },
        )
        return ProcessingOutcome.RETRY

    def _report_dead_letter(
        self, envelope: EventEnvelope[UserCreatedV1], error_code: ErrorCode, error: str
    ) -> None:
        NOTIFICATION_DEAD_LETTERS.labels(
            event_type=envelope.event_type, reason=error_code.value
        ).inc()
        logger.error(
            "Event dead-lettered",
            extra={
                "dead_letter_event": ProcessingEvent.NOTIFICATION_DEAD_LETTERED.value,
                "event_id": str(envelope.event_id),
                "aggregate_id": envelope.aggregate_id,
                "correlation_id": str(envelope.correlation_id),
                "error_code": error_code.value,
                "error": error,
            },
        )
