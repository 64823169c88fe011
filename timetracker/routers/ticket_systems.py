"""Ticket system router - API endpoints for ticket system configurations."""
from fastapi import APIRouter, Depends, status

from timetracker.database import get_database
from timetracker.models.ticket_system import TicketSystem, TicketSystemCreate, TicketSystemUpdate
from timetracker.routers.auth import get_current_user_id
from timetracker.routers.errors import to_http_exception
from timetracker.services.ticket_system_service import TicketSystemService


router = APIRouter(
    prefix="/ticket-systems",
    tags=["ticket-systems"],
    dependencies=[Depends(get_current_user_id)],
)


def get_ticket_system_service(db=Depends(get_database)) -> TicketSystemService:
    return TicketSystemService(db)


@router.post("", response_model=TicketSystem, status_code=status.HTTP_201_CREATED)
async def create_ticket_system(
    ticket_system: TicketSystemCreate,
    service: TicketSystemService = Depends(get_ticket_system_service),
):
    """
    Create a ticket system configuration.

    - ``secret`` is the API token; it is stored but never returned
    """
    try:
        return await service.create_ticket_system(ticket_system)
    except ValueError as e:
        raise to_http_exception(e, "create ticket system")


@router.get("", response_model=list[TicketSystem])
async def list_ticket_systems(service: TicketSystemService = Depends(get_ticket_system_service)):
    return await service.list_ticket_systems()


@router.get("/{ticket_system_id}", response_model=TicketSystem)
async def get_ticket_system(
    ticket_system_id: str,
    service: TicketSystemService = Depends(get_ticket_system_service),
):
    try:
        return await service.get_ticket_system(ticket_system_id)
    except ValueError as e:
        raise to_http_exception(e, "get ticket system")


@router.patch("/{ticket_system_id}", response_model=TicketSystem)
@router.put("/{ticket_system_id}", response_model=TicketSystem)
async def update_ticket_system(
    ticket_system_id: str,
    ticket_system_update: TicketSystemUpdate,
    service: TicketSystemService = Depends(get_ticket_system_service),
):
    try:
        return await service.update_ticket_system(ticket_system_id, ticket_system_update)
    except ValueError as e:
        raise to_http_exception(e, "update ticket system")


@router.delete("/{ticket_system_id}")
async def delete_ticket_system(
    ticket_system_id: str,
    service: TicketSystemService = Depends(get_ticket_system_service),
):
    try:
        return await service.delete_ticket_system(ticket_system_id)
    except ValueError as e:
        raise to_http_exception(e, "delete ticket system")
