from __future__ import annotations

from prometheus_client import Counter, Histogram

# General request metrics
REQUEST_COUNT = Counter(
    "user_service_requests_total",
    "Total number of user service requests",
    labelnames=("route", "method", "status"),
)

REQUEST_LATENCY = Histogram(
    "user_service_request_duration_seconds",
    "Latency of user service requests",
    labelnames=("route",),
)

# User creation
USERS_CREATED = Counter(
    "user_service_users_created_total",
    "Users stored together with their creation event",
)

USER_CREATION_REJECTED = Counter(
    "user_service_user_creation_rejected_total",
    "User creation requests rejected before any write",
    labelnames=("reason",),
)
