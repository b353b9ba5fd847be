"""Validation gate for user creation.

Every rule is evaluated on its own and every violation is reported, so a
client sees the complete list of problems from a single request. The gate
only reads from the store; it never writes.
"""

from __future__ import annotations

import re
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from epecuen_service_libs.error_handling import raise_validation_errors
from epecuen_service_libs.logging_utils import create_service_logger

from services.user_service.api.schemas import CreateUserRequest
from services.user_service.protocols import UserRepo

logger = create_service_logger("user_service.domain_handlers.validation_gate")

USERNAME_REQUIRED = "Username is required"
EMAIL_REQUIRED = "Email is required"
EMAIL_INVALID = "Email format is invalid"
EMAIL_IN_USE = "Email is already in use"
PASSWORD_REQUIRED = "Password is required"
PASSWORD_MISMATCH = "Password and Confirm Password do not match"
PASSWORD_WEAK = (
    "Password must be at least 8 characters long, contain at least one uppercase letter, "
    "one lowercase letter, one digit, and one special character"
)

SPECIAL_CHARACTERS = "@$!%*?&#^()-_+=.,;:"
_PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[" + re.escape(SPECIAL_CHARACTERS) + r"]).{8,}$"
)


def is_well_formed_email(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def is_strong_password(password: str) -> bool:
    return _PASSWORD_PATTERN.match(password) is not None


class UserValidationGate:
    def __init__(self, user_repo: UserRepo) -> None:
        self._user_repo = user_repo

    async def validate(self, request: CreateUserRequest) -> list[str]:
        """Return every violated rule, in a stable order. Empty means valid."""
        messages: list[str] = []

        if not (request.username or "").strip():
            messages.append(USERNAME_REQUIRED)

        email = (request.email or "").strip()
        if not email:
            messages.append(EMAIL_REQUIRED)
        elif not is_well_formed_email(email):
            messages.append(EMAIL_INVALID)
        elif await self._user_repo.exists_by_email(email):
            messages.append(EMAIL_IN_USE)

        password = request.password or ""
        if not password:
            messages.append(PASSWORD_REQUIRED)
        else:
            if password != request.confirm_password:
                messages.append(PASSWORD_MISMATCH)
            if not is_strong_password(password):
                messages.append(PASSWORD_WEAK)

        return messages

    async def ensure_valid(self, request: CreateUserRequest, correlation_id: UUID) -> None:
        """Raise a VALIDATION_ERROR carrying all messages when any rule fails."""
        messages = await self.validate(request)
        if messages:
            logger.info(
                "User creation rejected by validation",
                extra={"correlation_id": str(correlation_id), "messages": messages},
            )
            raise_validation_errors(
                service="user_service",
                operation="validate_user",
                messages=messages,
                correlation_id=correlation_id,
            )
