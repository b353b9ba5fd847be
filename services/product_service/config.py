from __future__ import annotations

import os

from dotenv import find_dotenv, load_dotenv
from epecuen_service_libs.config import SecureServiceSettings
from pydantic_settings import SettingsConfigDict

# Load .env file from repository root
load_dotenv(find_dotenv(".env"))


class Settings(SecureServiceSettings):
    model_config = SettingsConfigDict(env_prefix="PRODUCT_SERVICE_", extra="ignore")

    SERVICE_NAME: str = "product_service"
    SERVICE_VERSION: str = "0.1.0"

    HOST: str = "0.0.0.0"
    PORT: int = 8082
    LOG_LEVEL: str = "INFO"

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
            f"secrets=***MASKED***)"
        )

    def __repr__(self) -> str:
        return self.__str__()

    @property
    def DATABASE_URL(self) -> str:
        """Return the PostgreSQL database URL for both runtime and migrations."""
        env_type = os.getenv("ENV_TYPE", "development").lower()
        if env_type == "docker":
            dev_host = os.getenv("PRODUCT_SERVICE_DB_HOST") or "product_db"
            dev_port = int(os.getenv("PRODUCT_SERVICE_DB_PORT") or "5432")
        else:
            dev_host = "localhost"
            dev_port = 5442

        return self.build_database_url(
            database_name="epecuen_products",
            service_env_var_prefix="PRODUCT_SERVICE",
            dev_port=dev_port,
            dev_host=dev_host,
        )

    def get_database_url_masked(self) -> str:
        return self.database_url_masked(self.DATABASE_URL)


settings = Settings()
