"""Statistics model definitions."""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from timetracker.models.base import ApiModel
from timetracker.models.project import BudgetType


class StatsPeriod(str, Enum):
    """Supported reporting periods."""

    CURRENT_MONTH = "current_month"
    LAST_MONTH = "last_month"
    QUARTER = "quarter"
    YEAR = "year"
    CURRENT_YEAR = "current_year"


class ProjectStats(ApiModel):
    """Booked effort and revenue for one project."""

    project_id: str
    project_name: str
    minutes: int
    hours: float
    revenue: float
    budget_type: BudgetType
    hourly_rate: Optional[Decimal] = None


class StatsTotals(ApiModel):
    """Totals across all projects."""

    minutes: int = 0
    hours: float = 0.0
    revenue: float = 0.0


class StatsOverview(ApiModel):
    """Statistics for a reporting period."""

    period: StatsPeriod
    start: datetime
    end: datetime
    items: list[ProjectStats]
    totals: StatsTotals
