from __future__ import annotations

from typing import Any, Optional, Protocol
from uuid import UUID

from services.user_service.api.schemas import CreateUserRequest


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, hash: str, password: str) -> bool: ...


class UserRepo(Protocol):
    async def create_user_with_outbox(
        self,
        new_user: CreateUserRequest,
        password_hash: str,
        correlation_id: UUID,
    ) -> dict[str, Any]:
        """
        Insert the user and its creation event as one transaction.

        Returns the stored user without the password hash.

        Raises:
            EpecuenError: VALIDATION_ERROR when the email is taken,
                PERSISTENCE_ERROR for any other store failure
        """
        ...

    async def exists_by_email(self, email: str) -> bool: ...
    async def get_user_by_email(self, email: str) -> Optional[dict[str, Any]]: ...
    async def list_users(self) -> list[dict[str, Any]]: ...
