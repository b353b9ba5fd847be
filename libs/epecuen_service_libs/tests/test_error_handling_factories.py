"""
Unit tests for the error factory functions.

Each factory must raise EpecuenError with the matching error code, the
caller's correlation id and its context merged into ``details``.
"""

from __future__ import annotations

from uuid import UUID

import pytest
from epecuen_core.error_enums import ErrorCode
from epecuen_service_libs.error_handling import (
    EpecuenError,
    raise_notification_error,
    raise_persistence_error,
    raise_publish_error,
    raise_resource_not_found,
    raise_template_error,
    raise_token_error,
    raise_validation_error,
    raise_validation_errors,
)


class TestValidationFactories:
    def test_single_field(self, test_correlation_id: UUID) -> None:
        with pytest.raises(EpecuenError) as exc_info:
            raise_validation_error(
                service="user_service",
                operation="create_user",
                field="email",
                message="Invalid email format",
                correlation_id=test_correlation_id,
                value="not-an-email",
            )

        detail = exc_info.value.error_detail
        assert detail.error_code == ErrorCode.VALIDATION_ERROR
        assert detail.message == "Invalid email format"
        assert detail.correlation_id == test_correlation_id
        assert detail.details == {"field": "email", "value": "not-an-email"}

    def test_value_omitted_when_none(self, test_correlation_id: UUID) -> None:
        with pytest.raises(EpecuenError) as exc_info:
            raise_validation_error("svc", "op", "name", "Name is required", test_correlation_id)

        assert "value" not in exc_info.value.error_detail.details

    def test_collected_messages(self, test_correlation_id: UUID) -> None:
        messages = ["Username is required", "Passwords do not match"]

        with pytest.raises(EpecuenError) as exc_info:
            raise_validation_errors("user_service", "create_user", messages, test_correlation_id)

        detail = exc_info.value.error_detail
        assert detail.details["messages"] == messages
        assert detail.message == "Username is required; Passwords do not match"


class TestResourceFactories:
    def test_not_found_message(self, test_correlation_id: UUID) -> None:
        with pytest.raises(EpecuenError) as exc_info:
            raise_resource_not_found(
                "product_service", "get_product", "Product", "42", test_correlation_id
            )

        detail = exc_info.value.error_detail
        assert detail.error_code == ErrorCode.RESOURCE_NOT_FOUND
        assert detail.message == "Product '42' not found"
        assert detail.details == {"resource_type": "Product", "resource_id": "42"}


@pytest.mark.parametrize(
    "factory, kwargs, expected_code, expected_detail",
    [
        (raise_persistence_error, {}, ErrorCode.PERSISTENCE_ERROR, {}),
        (
            raise_publish_error,
            {"topic": "epecuen.user.created.v1"},
            ErrorCode.PUBLISH_ERROR,
            {"topic": "epecuen.user.created.v1"},
        ),
        (
            raise_notification_error,
            {"recipient": "a@example.com"},
            ErrorCode.NOTIFICATION_ERROR,
            {"recipient": "a@example.com"},
        ),
        (
            raise_template_error,
            {"template_id": "activate_account"},
            ErrorCode.TEMPLATE_ERROR,
            {"template_id": "activate_account"},
        ),
        (raise_token_error, {}, ErrorCode.TOKEN_ERROR, {}),
    ],
)
def test_factory_codes_and_details(
    factory, kwargs, expected_code, expected_detail, test_correlation_id: UUID
) -> None:
    with pytest.raises(EpecuenError) as exc_info:
        factory(
            service="svc",
            operation="op",
            message="failure",
            correlation_id=test_correlation_id,
            extra_context="ctx",
            **kwargs,
        )

    detail = exc_info.value.error_detail
    assert detail.error_code == expected_code
    assert detail.service == "svc"
    assert detail.operation == "op"
    assert detail.details == {**expected_detail, "extra_context": "ctx"}
    assert detail.stack_trace is not None
