"""User creation domain handler.

Runs the validation gate, hashes the password and hands the user to the
repository's atomic user-plus-outbox write.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from epecuen_service_libs.error_handling import EpecuenError
from epecuen_service_libs.logging_utils import create_service_logger

from services.user_service.api.schemas import CreateUserRequest, UserResponse
from services.user_service.domain_handlers.validation_gate import UserValidationGate
from services.user_service.metrics import USERS_CREATED, USER_CREATION_REJECTED
from services.user_service.protocols import PasswordHasher, UserRepo

logger = create_service_logger("user_service.domain_handlers.user_creation")


class UserCreationHandler:
    def __init__(
        self,
        user_repo: UserRepo,
        password_hasher: PasswordHasher,
        validation_gate: UserValidationGate,
    ) -> None:
        self._user_repo = user_repo
        self._password_hasher = password_hasher
        self._validation_gate = validation_gate

    async def create_user(self, request: CreateUserRequest, correlation_id: UUID) -> UserResponse:
        """
        Create a user and schedule its ``UserCreatedV1`` event.

        Raises:
            EpecuenError: VALIDATION_ERROR with every violated rule, or
                PERSISTENCE_ERROR when the store write fails
        """
        try:
            await self._validation_gate.ensure_valid(request, correlation_id)
        except EpecuenError:
            USER_CREATION_REJECTED.labels(reason="validation").inc()
            raise

        password_hash = self._password_hasher.hash(request.password or "")
        user = await self._user_repo.create_user_with_outbox(request, password_hash, correlation_id)

        USERS_CREATED.inc()
        logger.info(
            "User created",
            extra={"user_id": user["id"], "correlation_id": str(correlation_id)},
        )
        return UserResponse(**user)

    async def list_users(self) -> list[dict[str, Any]]:
        return await self._user_repo.list_users()
