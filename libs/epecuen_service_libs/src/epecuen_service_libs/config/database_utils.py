"""Database URL construction shared by every service's settings."""

from __future__ import annotations

import os
from urllib.parse import quote_plus


def build_database_url(
    *,
    database_name: str,
    service_env_var_prefix: str,
    is_production: bool,
    dev_port: int,
    dev_host: str = "localhost",
    url_encode_password: bool = True,
) -> str:
    """
    Resolve the asyncpg URL for a service database.

    Resolution order:
        1. ``{PREFIX}_DATABASE_URL`` (service-specific override)
        2. ``SERVICE_DATABASE_URL`` (generic override, used by tests and tooling)
        3. Production credentials (``EPECUEN_PROD_DB_*``) when ``is_production``
        4. Development credentials (``EPECUEN_DB_USER`` / ``EPECUEN_DB_PASSWORD``)

    Raises:
        ValueError: If no override is set and credentials are missing
    """
    override = os.getenv(f"{service_env_var_prefix}_DATABASE_URL") or os.getenv(
        "SERVICE_DATABASE_URL"
    )
    if override:
        return override

    user = os.getenv("EPECUEN_DB_USER")
    if is_production:
        host = os.getenv("EPECUEN_PROD_DB_HOST")
        port = os.getenv("EPECUEN_PROD_DB_PORT", "5432")
        password = os.getenv("EPECUEN_PROD_DB_PASSWORD")
        if not (user and host and password):
            raise ValueError(
                "Production database requires EPECUEN_DB_USER, EPECUEN_PROD_DB_HOST "
                "and EPECUEN_PROD_DB_PASSWORD"
            )
    else:
        host = dev_host
        port = str(dev_port)
        password = os.getenv("EPECUEN_DB_PASSWORD")
        if not (user and password):
            raise ValueError(
                "Missing required database credentials: EPECUEN_DB_USER and "
                "EPECUEN_DB_PASSWORD must be set"
            )

    if url_encode_password:
        password = quote_plus(password)

    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{database_name}"
