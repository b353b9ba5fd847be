"""Configuration settings for Notification Service.

Environment variables are prefixed with ``NOTIFICATION_SERVICE_``; the shared
infrastructure endpoints also accept their unprefixed names.
"""

from __future__ import annotations

import os
from typing import Literal

from dotenv import find_dotenv, load_dotenv
from epecuen_service_libs.config import SecureServiceSettings
from pydantic import AliasChoices, Field
from pydantic_settings import SettingsConfigDict

# Load .env file from repository root
load_dotenv(find_dotenv(".env"))


class Settings(SecureServiceSettings):
    """Configuration settings for Notification Service."""

    model_config = SettingsConfigDict(env_prefix="NOTIFICATION_SERVICE_", extra="ignore")

    SERVICE_NAME: str = "notification_service"
    SERVICE_VERSION: str = "0.1.0"

    # HTTP
    HOST: str = "0.0.0.0"
    PORT: int = 8081
    LOG_LEVEL: str = "INFO"

    # Email provider configuration
    EMAIL_PROVIDER: Literal["mock", "smtp"] = "mock"

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT: int = 30

    DEFAULT_FROM_EMAIL: str = "noreply@epecuen.app"
    DEFAULT_FROM_NAME: str = "Epecuen"

    # Templates
    TEMPLATE_PATH: str = "templates"
    ACTIVATION_TEMPLATE_ID: str = "activate_account"
    ACTIVATION_URL_BASE: str = "http://localhost:8081/v1/tokens"

    # Validation tokens
    TOKEN_TTL_HOURS: int = 24

    # Delivery attempts per event before it is dead-lettered
    MAX_DELIVERY_ATTEMPTS: int = 3
    RETRY_BACKOFF_SECONDS: float = 5.0

    # Mock provider settings (for testing)
    MOCK_PROVIDER_FAILURE_RATE: float = 0.0

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str = Field(
        default="localhost:9092",
        validation_alias=AliasChoices(
            "NOTIFICATION_SERVICE_KAFKA_BOOTSTRAP_SERVERS", "KAFKA_BOOTSTRAP_SERVERS"
        ),
    )
    USER_CREATED_TOPIC: str = "epecuen.user.created.v1"
    CONSUMER_GROUP: str = "add-user-group"
    CONSUMER_AUTO_OFFSET_RESET: Literal["earliest", "latest"] = "earliest"
    CONSUMER_SESSION_TIMEOUT_MS: int = 45000

    # Database pool
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT_SECONDS: float = 10.0

    def __str__(self) -> str:
        """Secure string representation that masks sensitive data."""
        return (
            f"{self.__class__.__name__}("
            f"service={self.SERVICE_NAME}, "
            f"version={self.SERVICE_VERSION}, "
            f"environment={self.ENVIRONMENT.value}, "
            f"email_provider={self.EMAIL_PROVIDER}, "
            f"secrets=***MASKED***)"
        )

    def __repr__(self) -> str:
        return self.__str__()

    @property
    def DATABASE_URL(self) -> str:
        """Return the PostgreSQL database URL for both runtime and migrations."""
        env_type = os.getenv("ENV_TYPE", "development").lower()
        if env_type == "docker":
            dev_host = os.getenv("NOTIFICATION_SERVICE_DB_HOST") or "notification_db"
            dev_port = int(os.getenv("NOTIFICATION_SERVICE_DB_PORT") or "5432")
        else:
            dev_host = "localhost"
            dev_port = 5441

        return self.build_database_url(
            database_name="epecuen_notifications",
            service_env_var_prefix="NOTIFICATION_SERVICE",
            dev_port=dev_port,
            dev_host=dev_host,
        )

    def get_database_url_masked(self) -> str:
        return self.database_url_masked(self.DATABASE_URL)


settings = Settings()
