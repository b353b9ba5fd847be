"""
epecuen_core.domain_enums - Catalogue enums shared by product producers and readers.
"""

from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    FOOD = "FOOD"
    BEVERAGES = "BEVERAGES"
    CLEANING = "CLEANING"
    PERSONAL_CARE = "PERSONAL_CARE"
    HOME = "HOME"
    OTHER = "OTHER"


class Currency(str, Enum):
    ARS = "ARS"
    USD = "USD"
    EUR = "EUR"


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
