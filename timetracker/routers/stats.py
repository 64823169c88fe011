"""Stats endpoints - booked hours and revenue per project."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from timetracker.database import get_database
from timetracker.models.stats import StatsOverview
from timetracker.routers.auth import get_current_user_id
from timetracker.services.stats_service import StatsService, parse_period


router = APIRouter(prefix="/stats", tags=["stats"])


def get_stats_service(db=Depends(get_database)) -> StatsService:
    return StatsService(db)


@router.get("", response_model=StatsOverview)
async def overview(
    period: Optional[str] = Query(
        None,
        description="current_month (default), last_month, quarter, year or current_year",
    ),
    user_id: str = Depends(get_current_user_id),
    service: StatsService = Depends(get_stats_service),
):
    """
    Booked minutes, hours and revenue per project for the authenticated user.

    - Unknown periods fall back to the current month
    """
    return await service.overview(user_id=user_id, period=parse_period(period))
