from __future__ import annotations

from prometheus_client import Counter

PRODUCT_OPERATIONS = Counter(
    "product_service_operations_total",
    "Product catalogue operations by outcome",
    labelnames=("operation", "outcome"),
)
