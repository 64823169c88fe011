"""Customer model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from timetracker.models.base import ApiModel


class CustomerCreate(ApiModel):
    """Customer creation model."""

    name: str


class CustomerUpdate(ApiModel):
    """Customer update model - all fields optional."""

    name: Optional[str] = None


class Customer(ApiModel):
    """Full customer model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    name: str
    created_at: datetime
    updated_at: datetime
