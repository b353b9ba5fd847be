"""Unit tests for UserValidationGate."""

from __future__ import annotations

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from epecuen_core.error_enums import ErrorCode
from epecuen_service_libs.error_handling import EpecuenError

from services.user_service.api.schemas import CreateUserRequest
from services.user_service.domain_handlers.validation_gate import (
    EMAIL_IN_USE,
    EMAIL_INVALID,
    EMAIL_REQUIRED,
    PASSWORD_MISMATCH,
    PASSWORD_REQUIRED,
    PASSWORD_WEAK,
    USERNAME_REQUIRED,
    UserValidationGate,
    is_strong_password,
)
from services.user_service.protocols import UserRepo


@pytest.fixture
def user_repo() -> AsyncMock:
    repo = AsyncMock(spec=UserRepo)
    repo.exists_by_email.return_value = False
    return repo


@pytest.fixture
def gate(user_repo: AsyncMock) -> UserValidationGate:
    return UserValidationGate(user_repo)


def _request(**overrides: str | None) -> CreateUserRequest:
    fields: dict[str, str | None] = {
        "username": "alice",
        "email": "alice@x.io",
        "password": "Str0ng!Pass",
        "confirmPassword": "Str0ng!Pass",
    }
    fields.update(overrides)
    return CreateUserRequest(**fields)


class TestValidRequest:
    async def test_no_messages(self, gate: UserValidationGate, user_repo: AsyncMock) -> None:
        assert await gate.validate(_request()) == []
        user_repo.exists_by_email.assert_awaited_once_with("alice@x.io")

    async def test_ensure_valid_passes(self, gate: UserValidationGate) -> None:
        await gate.ensure_valid(_request(), uuid4())


class TestCollectedMessages:
    async def test_empty_request_reports_every_required_field(
        self, gate: UserValidationGate, user_repo: AsyncMock
    ) -> None:
        messages = await gate.validate(CreateUserRequest())

        assert messages == [USERNAME_REQUIRED, EMAIL_REQUIRED, PASSWORD_REQUIRED]
        user_repo.exists_by_email.assert_not_awaited()

    async def test_malformed_email_skips_uniqueness_lookup(
        self, gate: UserValidationGate, user_repo: AsyncMock
    ) -> None:
        messages = await gate.validate(_request(email="bad-email"))

        assert messages == [EMAIL_INVALID]
        user_repo.exists_by_email.assert_not_awaited()

    async def test_email_in_use(self, gate: UserValidationGate, user_repo: AsyncMock) -> None:
        user_repo.exists_by_email.return_value = True

        assert await gate.validate(_request()) == [EMAIL_IN_USE]

    async def test_mismatch_and_weakness_reported_together(
        self, gate: UserValidationGate
    ) -> None:
        messages = await gate.validate(_request(password="weak", confirmPassword="other"))

        assert messages == [PASSWORD_MISMATCH, PASSWORD_WEAK]

    async def test_unrelated_violations_are_not_short_circuited(
        self, gate: UserValidationGate
    ) -> None:
        messages = await gate.validate(
            _request(username="  ", email="bad-email", confirmPassword="different")
        )

        assert messages == [USERNAME_REQUIRED, EMAIL_INVALID, PASSWORD_MISMATCH]

    async def test_ensure_valid_raises_with_all_messages(self, gate: UserValidationGate) -> None:
        correlation_id = uuid4()

        with pytest.raises(EpecuenError) as exc_info:
            await gate.ensure_valid(_request(username="", email=""), correlation_id)

        detail = exc_info.value.error_detail
        assert detail.error_code == ErrorCode.VALIDATION_ERROR
        assert detail.details["messages"] == [USERNAME_REQUIRED, EMAIL_REQUIRED]
        assert detail.correlation_id == correlation_id


@pytest.mark.parametrize(
    "password, strong",
    [
        ("Str0ng!Pass", True),
        ("Aa1@aaaa", True),
        ("Aa1@aaa", False),  # too short
        ("str0ng!pass", False),  # no uppercase
        ("STR0NG!PASS", False),  # no lowercase
        ("Strong!Pass", False),  # no digit
        ("Str0ngPass1", False),  # no special character
    ],
)
def test_password_strength(password: str, strong: bool) -> None:
    assert is_strong_password(password) is strong
