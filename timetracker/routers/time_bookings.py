"""Time booking endpoints - bookings synced with external worklogs."""
from fastapi import APIRouter, Depends, status

from timetracker.database import get_database
from timetracker.models.time_booking import TimeBooking, TimeBookingCreate, TimeBookingUpdate
from timetracker.routers.auth import get_current_user_id
from timetracker.routers.errors import to_http_exception
from timetracker.services.time_booking_service import TimeBookingService


router = APIRouter(prefix="/time-bookings", tags=["time-bookings"])


def get_time_booking_service(db=Depends(get_database)) -> TimeBookingService:
    """Dependency providing the time booking service."""
    return TimeBookingService(db)


@router.get("", response_model=list[TimeBooking])
async def list_bookings(
    user_id: str = Depends(get_current_user_id),
    service: TimeBookingService = Depends(get_time_booking_service),
):
    """
    List the authenticated user's time bookings.

    - Sorted by start time descending (most recent first)
    """
    return await service.list_bookings(user_id=user_id)


@router.get("/{booking_id}", response_model=TimeBooking)
async def get_booking(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TimeBookingService = Depends(get_time_booking_service),
):
    """Get a single time booking (404 if it does not belong to the user)."""
    try:
        return await service.get_booking(user_id=user_id, booking_id=booking_id)
    except ValueError as e:
        raise to_http_exception(e, "get time booking")


@router.post("", response_model=TimeBooking, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_create: TimeBookingCreate,
    user_id: str = Depends(get_current_user_id),
    service: TimeBookingService = Depends(get_time_booking_service),
):
    """
    Create a time booking.

    - Duration is derived from start/end, rounded up to 15 minutes
    - Overlapping bookings on the same project are rejected (409)
    - A worklog is created when the project links a ticket system
    """
    try:
        return await service.create_booking(user_id=user_id, booking_create=booking_create)
    except (ValueError, RuntimeError) as e:
        raise to_http_exception(e, "create time booking")


@router.patch("/{booking_id}", response_model=TimeBooking)
@router.put("/{booking_id}", response_model=TimeBooking)
async def update_booking(
    booking_id: str,
    booking_update: TimeBookingUpdate,
    user_id: str = Depends(get_current_user_id),
    service: TimeBookingService = Depends(get_time_booking_service),
):
    """
    Update a time booking with partial data.

    - Moving it to another ticket or project moves the external worklog
    """
    try:
        return await service.update_booking(
            user_id=user_id,
            booking_id=booking_id,
            booking_update=booking_update,
        )
    except (ValueError, RuntimeError) as e:
        raise to_http_exception(e, "update time booking")


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TimeBookingService = Depends(get_time_booking_service),
):
    """
    Delete a time booking.

    - The external worklog is deleted first; if that fails the booking is kept (502)
    """
    try:
        return await service.delete_booking(user_id=user_id, booking_id=booking_id)
    except (ValueError, RuntimeError) as e:
        raise to_http_exception(e, "delete time booking")
