"""SQLAlchemy models for Product Service."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from epecuen_core.domain_enums import Category, Currency
from epecuen_service_libs.outbox.models import utcnow
from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text, text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all SQLAlchemy models in Product Service."""

    pass


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Category] = mapped_column(
        SQLAlchemyEnum(Category, name="product_category_enum", native_enum=False, length=32),
        nullable=False,
        index=True,
    )
    sub_category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    package_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    content: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[Currency] = mapped_column(
        SQLAlchemyEnum(Currency, name="product_currency_enum", native_enum=False, length=8),
        nullable=False,
    )
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    supplier_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Product id={self.id} name={self.name} active={self.active}>"
