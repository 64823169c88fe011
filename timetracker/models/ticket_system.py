"""Ticket system configuration models."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from timetracker.models.base import ApiModel


class TicketSystemCreate(ApiModel):
    """Ticket system creation model."""

    type: str = "jira"
    name: str = ""
    username: str = ""
    secret: str = ""
    url: Optional[str] = None


class TicketSystemUpdate(ApiModel):
    """Ticket system update model - all fields optional."""

    type: Optional[str] = None
    name: Optional[str] = None
    username: Optional[str] = None
    secret: Optional[str] = None
    url: Optional[str] = None


class TicketSystem(ApiModel):
    """Ticket system as returned by the API (secret is never echoed)."""

    id: str = Field(alias="_id", serialization_alias="id")
    type: str
    name: str
    username: str
    url: Optional[str] = None
    has_secret: bool = False
    created_at: datetime
    updated_at: datetime
