"""Time booking model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from timetracker.models.base import ApiModel


class TimeBookingCreate(ApiModel):
    """Time booking creation model.

    Timestamps are taken as raw ISO-8601 strings and parsed by the service so
    that malformed values produce a domain validation error. Any duration sent
    by the client is ignored; it is always derived from start and end.
    """

    project_id: Optional[str] = None
    activity_id: Optional[str] = None
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    ticket_number: Optional[str] = None


class TimeBookingUpdate(ApiModel):
    """Time booking update model - only the fields sent are changed.

    An explicit ``activityId: null`` clears the activity.
    """

    project_id: Optional[str] = None
    activity_id: Optional[str] = None
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    ticket_number: Optional[str] = None


class TimeBooking(ApiModel):
    """Time booking as returned by the API."""

    id: str = Field(alias="_id", serialization_alias="id")
    project_id: str
    activity_id: Optional[str] = None
    started_at: datetime
    ended_at: datetime
    ticket_number: str
    duration_minutes: int
    worklog_id: Optional[str] = None
