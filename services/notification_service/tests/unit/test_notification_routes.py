"""Route tests for Notification Service against an in-memory ledger."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest
from dishka import Provider, Scope, make_async_container
from epecuen_service_libs import EpecuenApp
from prometheus_client import CollectorRegistry
from quart_dishka import QuartDishka
from sqlalchemy.ext.asyncio import AsyncEngine

from services.notification_service.api.admin_routes import bp as admin_bp
from services.notification_service.api.health_routes import bp as health_bp
from services.notification_service.api.token_routes import bp as token_bp
from services.notification_service.config import Settings
from services.notification_service.implementations.repository_impl import (
    PostgreSQLNotificationRepository,
)
from services.notification_service.protocols import NotificationRepository


@pytest.fixture
def test_app(
    engine: AsyncEngine, repository: PostgreSQLNotificationRepository, settings: Settings
) -> EpecuenApp:
    app = EpecuenApp(__name__)
    app.database_engine = engine
    app.register_blueprint(token_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(health_bp)

    provider = Provider()
    provider.provide(lambda: repository, scope=Scope.APP, provides=NotificationRepository)
    provider.provide(lambda: settings, scope=Scope.APP, provides=Settings)
    provider.provide(lambda: CollectorRegistry(), scope=Scope.APP, provides=CollectorRegistry)
    app.container = make_async_container(provider)
    QuartDishka(app=app, container=app.container)
    return app


async def _issue_token(
    repository: PostgreSQLNotificationRepository, ttl: timedelta = timedelta(hours=24)
) -> str:
    claim = await repository.claim_event(
        event_id=uuid4(),
        event_type="epecuen.user.created.v1",
        aggregate_id="user-1",
        recipient="alice@x.io",
        token_ttl=ttl,
    )
    assert claim.token is not None
    return claim.token


class TestConsumeToken:
    async def test_valid_token_is_consumed(
        self, test_app: EpecuenApp, repository: PostgreSQLNotificationRepository
    ) -> None:
        token = await _issue_token(repository)

        response = await test_app.test_client().post(f"/v1/tokens/{token}/consume")

        assert response.status_code == 200
        body = await response.get_json()
        assert body["email"] == "alice@x.io"
        assert body["status"] == "consumed"

    async def test_second_consumption_is_rejected(
        self, test_app: EpecuenApp, repository: PostgreSQLNotificationRepository
    ) -> None:
        token = await _issue_token(repository)
        client = test_app.test_client()
        await client.post(f"/v1/tokens/{token}/consume")

        response = await client.post(f"/v1/tokens/{token}/consume")

        assert response.status_code == 400
        body = await response.get_json()
        assert body["error"]["error_code"] == "TOKEN_ERROR"

    async def test_expired_token_is_rejected(
        self, test_app: EpecuenApp, repository: PostgreSQLNotificationRepository
    ) -> None:
        token = await _issue_token(repository, ttl=timedelta(minutes=-5))

        response = await test_app.test_client().post(f"/v1/tokens/{token}/consume")

        assert response.status_code == 400
        assert (await response.get_json())["error"]["message"] == "Token has expired"

    async def test_unknown_token_is_404(self, test_app: EpecuenApp) -> None:
        response = await test_app.test_client().post("/v1/tokens/unknown/consume")

        assert response.status_code == 404
        body = await response.get_json()
        assert body["error"]["error_code"] == "RESOURCE_NOT_FOUND"


class TestAdminAndHealth:
    async def test_dead_letters_are_listed(
        self, test_app: EpecuenApp, repository: PostgreSQLNotificationRepository
    ) -> None:
        event_id = uuid4()
        await repository.record_dead_letter(
            event_id=event_id,
            event_type="epecuen.user.created.v1",
            aggregate_id="user-1",
            recipient="alice@x.io",
            error="Template not found: activate_account",
        )

        response = await test_app.test_client().get("/admin/dead-letters")

        assert response.status_code == 200
        body = await response.get_json()
        assert body["count"] == 1
        assert body["events"][0]["event_id"] == str(event_id)
        assert body["events"][0]["status"] == "dead_lettered"

    async def test_health_reports_database_and_consumer(self, test_app: EpecuenApp) -> None:
        response = await test_app.test_client().get("/healthz")

        assert response.status_code == 200
        body = await response.get_json()
        assert body["dependencies"]["database"]["status"] == "healthy"
        assert body["dependencies"]["kafka_consumer"]["status"] == "stopped"

    async def test_metrics_endpoint(self, test_app: EpecuenApp) -> None:
        response = await test_app.test_client().get("/metrics")

        assert response.status_code == 200
