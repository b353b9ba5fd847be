from __future__ import annotations

from prometheus_client import Counter, Histogram

EVENTS_PROCESSED = Counter(
    "notification_service_events_processed_total",
    "Consumed events by processing outcome",
    labelnames=("event_type", "outcome"),
)

EMAILS_SENT = Counter(
    "notification_service_emails_sent_total",
    "Emails accepted by the mail transport",
    labelnames=("provider",),
)

EMAIL_SEND_FAILURES = Counter(
    "notification_service_email_send_failures_total",
    "Emails the mail transport rejected or failed to deliver",
    labelnames=("provider",),
)

NOTIFICATION_DEAD_LETTERS = Counter(
    "notification_dead_letters_total",
    "Events that will not be retried by the notification consumer",
    labelnames=("event_type", "reason"),
)

PROCESSING_DURATION = Histogram(
    "notification_service_event_processing_seconds",
    "Time spent handling one consumed event",
    labelnames=("event_type",),
)

TOKENS_CONSUMED = Counter(
    "notification_service_tokens_consumed_total",
    "Validation token consumption attempts by result",
    labelnames=("result",),
)
