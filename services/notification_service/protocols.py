"""Behavioral contracts for Notification Service collaborators."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, NamedTuple, Protocol
from uuid import UUID


class EmailSendResult(NamedTuple):
    success: bool
    provider_message_id: str | None
    error_message: str | None


class RenderedTemplate(NamedTuple):
    subject: str
    html_content: str
    text_content: str


class ClaimResult(NamedTuple):
    """Outcome of ``NotificationRepository.claim_event``.

    ``claimed`` is False when the event id already has a ledger row that is
    not eligible for another attempt. ``attempts`` counts earlier delivery
    attempts for a re-claimed event.
    """

    claimed: bool
    token: str | None
    attempts: int


class TokenConsumption(NamedTuple):
    email: str
    used_at: datetime


class EmailProvider(Protocol):
    """Mail transport."""

    async def send_email(
        self,
        to: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
    ) -> EmailSendResult:
        """Send one message. Transport failures are reported in the result, never raised."""
        ...

    def get_provider_name(self) -> str: ...


class TemplateRenderer(Protocol):
    async def render(self, template_id: str, variables: dict[str, str]) -> RenderedTemplate:
        """Render ``template_id``.

        Raises:
            EpecuenError: TEMPLATE_ERROR when the template is missing or fails to render
        """
        ...

    async def template_exists(self, template_id: str) -> bool: ...


class NotificationRepository(Protocol):
    """Deduplication ledger and validation token store."""

    async def claim_event(
        self,
        event_id: UUID,
        event_type: str,
        aggregate_id: str | None,
        recipient: str,
        token_ttl: timedelta,
    ) -> ClaimResult:
        """Atomically record ``event_id`` as being processed and issue its token.

        A first sighting inserts the ledger row and a new ValidationToken in one
        transaction. A prior ``failed`` attempt is re-claimed and keeps its
        token. Any other existing row yields ``claimed=False``.
        """
        ...

    async def mark_completed(self, event_id: UUID) -> None: ...

    async def mark_failed(self, event_id: UUID, error: str) -> int:
        """Record a failed delivery attempt and return the attempt count."""
        ...

    async def mark_dead_lettered(self, event_id: UUID, error: str) -> None: ...

    async def record_dead_letter(
        self,
        event_id: UUID,
        event_type: str,
        aggregate_id: str | None,
        recipient: str,
        error: str,
    ) -> bool:
        """Dead-letter an event that was never claimed.

        Returns False when the event already reached a terminal state.
        """
        ...

    async def list_dead_letters(self, limit: int = 100) -> list[dict[str, Any]]: ...

    async def consume_token(self, token: str, correlation_id: UUID) -> TokenConsumption:
        """Mark ``token`` used.

        Raises:
            EpecuenError: RESOURCE_NOT_FOUND for unknown tokens, TOKEN_ERROR when
                expired or already used
        """
        ...
