"""Configuration utilities for Epecuen services."""

from .database_utils import build_database_url
from .secure_base import SecureServiceSettings

__all__ = ["SecureServiceSettings", "build_database_url"]
