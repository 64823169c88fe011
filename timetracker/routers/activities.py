"""Activity router - API endpoints for activity management."""
from fastapi import APIRouter, Depends, status

from timetracker.database import get_database
from timetracker.models.activity import Activity, ActivityCreate, ActivityUpdate
from timetracker.routers.auth import get_current_user_id
from timetracker.routers.errors import to_http_exception
from timetracker.services.activity_service import ActivityService


router = APIRouter(
    prefix="/activities",
    tags=["activities"],
    dependencies=[Depends(get_current_user_id)],
)


def get_activity_service(db=Depends(get_database)) -> ActivityService:
    return ActivityService(db)


@router.post("", response_model=Activity, status_code=status.HTTP_201_CREATED)
async def create_activity(
    activity: ActivityCreate,
    service: ActivityService = Depends(get_activity_service),
):
    try:
        return await service.create_activity(activity)
    except ValueError as e:
        raise to_http_exception(e, "create activity")


@router.get("", response_model=list[Activity])
async def list_activities(service: ActivityService = Depends(get_activity_service)):
    return await service.list_activities()


@router.get("/{activity_id}", response_model=Activity)
async def get_activity(activity_id: str, service: ActivityService = Depends(get_activity_service)):
    try:
        return await service.get_activity(activity_id)
    except ValueError as e:
        raise to_http_exception(e, "get activity")


@router.patch("/{activity_id}", response_model=Activity)
@router.put("/{activity_id}", response_model=Activity)
async def update_activity(
    activity_id: str,
    activity_update: ActivityUpdate,
    service: ActivityService = Depends(get_activity_service),
):
    try:
        return await service.update_activity(activity_id, activity_update)
    except ValueError as e:
        raise to_http_exception(e, "update activity")


@router.delete("/{activity_id}")
async def delete_activity(activity_id: str, service: ActivityService = Depends(get_activity_service)):
    """Delete an activity; bookings using it lose their activity."""
    try:
        return await service.delete_activity(activity_id)
    except ValueError as e:
        raise to_http_exception(e, "delete activity")
