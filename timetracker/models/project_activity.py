"""Project activity link model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from timetracker.models.base import ApiModel

DEFAULT_FACTOR = 1.0


class ProjectActivityCreate(ApiModel):
    """Link creation model.

    Linking a pair that already exists updates its factor instead.
    """

    project_id: Optional[str] = None
    activity_id: Optional[str] = None
    factor: Optional[float] = None


class ProjectActivityAttach(ApiModel):
    """Attach an activity to the project given in the URL."""

    activity_id: Optional[str] = None
    factor: Optional[float] = None


class ProjectActivityUpdate(ApiModel):
    """Link update model - all fields optional."""

    project_id: Optional[str] = None
    activity_id: Optional[str] = None
    factor: Optional[float] = None


class ProjectActivity(ApiModel):
    """An activity offered on a project, with its billing factor."""

    id: str = Field(alias="_id", serialization_alias="id")
    project_id: str
    activity_id: str
    factor: float = DEFAULT_FACTOR
    created_at: datetime
    updated_at: datetime
