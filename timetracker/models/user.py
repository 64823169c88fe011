"""User model definitions."""
from datetime import datetime

from pydantic import EmailStr, Field

from timetracker.models.base import ApiModel


class UserBase(ApiModel):
    """Base user fields."""

    email: EmailStr
    name: str


class UserCreate(UserBase):
    """User creation model with password."""

    password: str


class User(UserBase):
    """User model without password (for API responses)."""

    id: str = Field(alias="_id", serialization_alias="id")
    created_at: datetime
    updated_at: datetime

