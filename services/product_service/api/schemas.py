"""Request and response models for the Product Service HTTP API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from epecuen_core.domain_enums import Category, Currency
from pydantic import BaseModel, ConfigDict, Field


class ProductRequest(BaseModel):
    """
    Body of ``POST /products``; accepts camelCase or snake_case keys.

    Enum-valued and numeric fields stay loose here so the handler can report
    every rule violation in one response.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = Field(default=None, alias="subCategory")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    package_type: Optional[str] = Field(default=None, alias="packageType")
    content: Optional[str] = None
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    stock: Optional[int] = None
    supplier_id: Optional[int] = Field(default=None, alias="supplierId")


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    category: Category
    sub_category: Optional[str] = None
    image_url: Optional[str] = None
    package_type: Optional[str] = None
    content: Optional[str] = None
    price: Decimal
    currency: Currency
    stock: int
    supplier_id: Optional[int] = None
    active: bool
    created_at: datetime
    updated_at: datetime
