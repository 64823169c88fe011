"""Activity model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from timetracker.models.base import ApiModel


class ActivityCreate(ApiModel):
    """Activity creation model."""

    name: str


class ActivityUpdate(ApiModel):
    """Activity update model - all fields optional."""

    name: Optional[str] = None


class Activity(ApiModel):
    """Full activity model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    name: str
    created_at: datetime
    updated_at: datetime
