"""Request and response models for the User Service HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateUserRequest(BaseModel):
    """
    Body of ``POST /users``.

    Fields are deliberately loose strings: the validation gate owns every
    rule so that all violations are reported together.
    """

    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(default=None, alias="confirmPassword")


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    telephone: Optional[str] = None
    role: str
    enabled: bool = True
