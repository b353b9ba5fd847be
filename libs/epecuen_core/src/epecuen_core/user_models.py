"""User Service event models.

Event data models for the user lifecycle. Published by User Service through
its transactional outbox and consumed by Notification Service.
"""

from __future__ import annotations

from pydantic import BaseModel, EmailStr


class UserCreatedV1(BaseModel):
    """User creation event data.

    Producer: User Service (via outbox relay)
    Consumer: Notification Service (account activation email)
    """

    user_id: str
    username: str
    email: EmailStr
