from __future__ import annotations

import os

from dotenv import find_dotenv, load_dotenv
from epecuen_service_libs.config import SecureServiceSettings
from epecuen_service_libs.outbox import OutboxSettings
from pydantic import AliasChoices, Field
from pydantic_settings import SettingsConfigDict

# Load .env file from repository root
load_dotenv(find_dotenv(".env"))


class Settings(SecureServiceSettings):
    model_config = SettingsConfigDict(env_prefix="USER_SERVICE_", extra="ignore")

    # Service identity
    SERVICE_NAME: str = "user_service"
    SERVICE_VERSION: str = "0.1.0"

    # HTTP
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # Redis / Kafka
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        validation_alias=AliasChoices("USER_SERVICE_REDIS_URL", "REDIS_URL"),
    )
    KAFKA_BOOTSTRAP_SERVERS: str = Field(
        default="localhost:9092",
        validation_alias=AliasChoices(
            "USER_SERVICE_KAFKA_BOOTSTRAP_SERVERS", "KAFKA_BOOTSTRAP_SERVERS"
        ),
    )
    KAFKA_REQUEST_TIMEOUT_MS: int = 30000
    USER_CREATED_TOPIC: str = "epecuen.user.created.v1"

    # Outbox relay
    OUTBOX_POLL_INTERVAL_SECONDS: float = 1.0
    OUTBOX_BATCH_SIZE: int = 100
    OUTBOX_MAX_RETRIES: int = 5
    OUTBOX_ERROR_RETRY_INTERVAL_SECONDS: float = 5.0
    OUTBOX_MAX_BACKOFF_SECONDS: float = 30.0
    OUTBOX_ENABLE_WAKE_NOTIFICATIONS: bool = True

    # Database pool
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT_SECONDS: float = 10.0

    def outbox_settings(self) -> OutboxSettings:
        return OutboxSettings(
            poll_interval_seconds=self.OUTBOX_POLL_INTERVAL_SECONDS,
            batch_size=self.OUTBOX_BATCH_SIZE,
            max_retries=self.OUTBOX_MAX_RETRIES,
            error_retry_interval_seconds=self.OUTBOX_ERROR_RETRY_INTERVAL_SECONDS,
            max_backoff_seconds=self.OUTBOX_MAX_BACKOFF_SECONDS,
            enable_wake_notifications=self.OUTBOX_ENABLE_WAKE_NOTIFICATIONS,
        )

    def __str__(self) -> str:
        """Secure string representation that masks sensitive data."""
        return (
            f"{self.__class__.__name__}("
            f"service={self.SERVICE_NAME}, "
            f"version={self.SERVICE_VERSION}, "
            f"environment={self.ENVIRONMENT.value}, "
            f"secrets=***MASKED***)"
        )

    def __repr__(self) -> str:
        return self.__str__()

    @property
    def DATABASE_URL(self) -> str:
        """Return the PostgreSQL database URL for both runtime and migrations."""
        env_type = os.getenv("ENV_TYPE", "development").lower()
        if env_type == "docker":
            dev_host = os.getenv("USER_SERVICE_DB_HOST") or "user_db"
            dev_port = int(os.getenv("USER_SERVICE_DB_PORT") or "5432")
        else:
            dev_host = "localhost"
            dev_port = 5440

        return self.build_database_url(
            database_name="epecuen_users",
            service_env_var_prefix="USER_SERVICE",
            dev_port=dev_port,
            dev_host=dev_host,
        )

    def get_database_url_masked(self) -> str:
        """Return database URL with masked password for logging."""
        return self.database_url_masked(self.DATABASE_URL)


settings = Settings()
