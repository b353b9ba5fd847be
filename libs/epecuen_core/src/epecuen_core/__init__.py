"""
Epecuen Common Core Package.
"""

from .config_enums import Environment
from .domain_enums import Category, Currency, UserRole
from .error_enums import ErrorCode
from .event_enums import ProcessingEvent, topic_name
from .events.envelope import EventEnvelope
from .models.error_models import ErrorDetail
from .user_models import UserCreatedV1

__all__ = [
    "Category",
    "Currency",
    "Environment",
    "ErrorCode",
    "ErrorDetail",
    "EventEnvelope",
    "ProcessingEvent",
    "UserCreatedV1",
    "UserRole",
    "topic_name",
]
