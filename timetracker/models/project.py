"""Project model definitions."""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from timetracker.models.base import ApiModel


class BudgetType(str, Enum):
    """How a project is billed."""

    NONE = "none"
    FIXED_PRICE = "fixed_price"
    TM = "tm"  # time & material


class ProjectCreate(ApiModel):
    """Project creation model."""

    name: str
    customer_id: str
    ticket_system_id: Optional[str] = None
    budget_type: BudgetType = BudgetType.NONE
    budget: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None


class ProjectUpdate(ApiModel):
    """Project update model - all fields optional.

    An explicit ``ticketSystemId: null`` unlinks the ticket system.
    """

    name: Optional[str] = None
    customer_id: Optional[str] = None
    ticket_system_id: Optional[str] = None
    budget_type: Optional[BudgetType] = None
    budget: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None


class Project(ApiModel):
    """Full project model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    name: str
    customer_id: str
    ticket_system_id: Optional[str] = None
    budget_type: BudgetType = BudgetType.NONE
    budget: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime
