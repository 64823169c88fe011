"""Stats service - booked effort and revenue per project."""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from timetracker.models.project import BudgetType
from timetracker.models.stats import ProjectStats, StatsOverview, StatsPeriod, StatsTotals
from timetracker.utils.ids import to_object_id


def _add_months(moment: datetime, months: int) -> datetime:
    """Shift the first day of a month by a number of months."""
    month_index = moment.month - 1 + months
    return moment.replace(year=moment.year + month_index // 12, month=month_index % 12 + 1)


def parse_period(value: Optional[str]) -> StatsPeriod:
    """Unknown or missing periods fall back to the current month."""
    try:
        return StatsPeriod(value)
    except ValueError:
        return StatsPeriod.CURRENT_MONTH


def compute_range(period: StatsPeriod, now: datetime) -> tuple[datetime, datetime]:
    """
    Compute the half-open range [start, end) covered by a period.

    Examples:
        >>> now = datetime(2024, 5, 17, 9, 30, tzinfo=timezone.utc)
        >>> [d.date().isoformat() for d in compute_range(StatsPeriod.QUARTER, now)]
        ['2024-04-01', '2024-07-01']
    """
    first_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    if period == StatsPeriod.LAST_MONTH:
        return _add_months(first_of_month, -1), first_of_month

    if period == StatsPeriod.QUARTER:
        start = first_of_month.replace(month=(now.month - 1) // 3 * 3 + 1)
        return start, _add_months(start, 3)

    if period in (StatsPeriod.YEAR, StatsPeriod.CURRENT_YEAR):
        start = first_of_month.replace(month=1)
        return start, start.replace(year=start.year + 1)

    return first_of_month, _add_months(first_of_month, 1)


class StatsService:
    """Service aggregating time bookings for reporting."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.time_bookings = db["time_bookings"]
        self.projects = db["projects"]

    async def overview(
        self,
        user_id: Optional[str],
        period: StatsPeriod = StatsPeriod.CURRENT_MONTH,
        now: Optional[datetime] = None,
    ) -> StatsOverview:
        """
        Aggregate booked minutes and revenue per project for a period.

        Revenue is only counted for projects with an hourly rate (time &
        material, or fixed price with a derived rate).

        Args:
            user_id: Restrict to this user's bookings (None for all users)
            period: Reporting period
            now: Reference time (defaults to the current UTC time)

        Returns:
            Per-project items ordered by project name, plus totals
        """
        now = now or datetime.now(timezone.utc)
        start, end = compute_range(period, now)

        match = {"started_at": {"$gte": start, "$lt": end}}
        if user_id is not None:
            match["user_id"] = user_id

        cursor = self.time_bookings.aggregate([
            {"$match": match},
            {"$group": {"_id": "$project_id", "minutes": {"$sum": "$duration_minutes"}}},
        ])
        rows = await cursor.to_list(length=None)

        project_ids = [to_object_id(row["_id"]) for row in rows]
        project_docs = await self.projects.find(
            {"_id": {"$in": [oid for oid in project_ids if oid is not None]}}
        ).to_list(length=None)
        projects_by_id = {str(doc["_id"]): doc for doc in project_docs}

        items = []
        totals = StatsTotals()
        for row in rows:
            project = projects_by_id.get(row["_id"])
            if project is None:
                continue

            minutes = int(row["minutes"])
            hours = Decimal(minutes) / Decimal(60)
            rate = project.get("hourly_rate")
            revenue = hours * Decimal(str(rate)) if rate is not None else Decimal(0)

            items.append(ProjectStats(
                project_id=row["_id"],
                project_name=project["name"],
                minutes=minutes,
                hours=round(float(hours), 2),
                revenue=round(float(revenue), 2),
                budget_type=project.get("budget_type", BudgetType.NONE.value),
                hourly_rate=rate,
            ))
            totals.minutes += minutes
            totals.revenue += float(revenue)

        items.sort(key=lambda item: item.project_name.lower())
        totals.hours = round(totals.minutes / 60, 2)
        totals.revenue = round(totals.revenue, 2)

        return StatsOverview(period=period, start=start, end=end, items=items, totals=totals)
