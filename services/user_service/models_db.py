"""SQLAlchemy models for User Service."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from epecuen_core.domain_enums import UserRole
from epecuen_service_libs.outbox.models import utcnow
from sqlalchemy import Boolean, DateTime, String, UniqueConstraint, Uuid, text
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

EMAIL_UNIQUE_CONSTRAINT = "uq_users_email"


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all SQLAlchemy models in User Service."""

    pass


class User(Base):
    """Registered user account. Rows are written once by the creation flow."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name=EMAIL_UNIQUE_CONSTRAINT),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    telephone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.USER.value, server_default=UserRole.USER.value
    )
    enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def to_public_dict(self) -> dict[str, Any]:
        """Serializable view without the password hash."""
        return {
            "id": str(self.id),
            "username": self.username,
            "email": self.email,
            "telephone": self.telephone,
            "role": self.role,
            "enabled": self.enabled,
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User id={self.id} email={self.email} role={self.role}>"
