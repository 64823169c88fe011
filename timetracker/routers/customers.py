"""Customer router - API endpoints for customer management."""
from fastapi import APIRouter, Depends, status

from timetracker.database import get_database
from timetracker.models.customer import Customer, CustomerCreate, CustomerUpdate
from timetracker.routers.auth import get_current_user_id
from timetracker.routers.errors import to_http_exception
from timetracker.services.customer_service import CustomerService


router = APIRouter(
    prefix="/customers",
    tags=["customers"],
    dependencies=[Depends(get_current_user_id)],
)


def get_customer_service(db=Depends(get_database)) -> CustomerService:
    return CustomerService(db)


@router.post("", response_model=Customer, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer: CustomerCreate,
    service: CustomerService = Depends(get_customer_service),
):
    try:
        return await service.create_customer(customer)
    except ValueError as e:
        raise to_http_exception(e, "create customer")


@router.get("", response_model=list[Customer])
async def list_customers(service: CustomerService = Depends(get_customer_service)):
    return await service.list_customers()


@router.get("/{customer_id}", response_model=Customer)
async def get_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    try:
        return await service.get_customer(customer_id)
    except ValueError as e:
        raise to_http_exception(e, "get customer")


@router.patch("/{customer_id}", response_model=Customer)
@router.put("/{customer_id}", response_model=Customer)
async def update_customer(
    customer_id: str,
    customer_update: CustomerUpdate,
    service: CustomerService = Depends(get_customer_service),
):
    try:
        return await service.update_customer(customer_id, customer_update)
    except ValueError as e:
        raise to_http_exception(e, "update customer")


@router.delete("/{customer_id}")
async def delete_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    """Delete a customer (400 while projects still reference it)."""
    try:
        return await service.delete_customer(customer_id)
    except ValueError as e:
        raise to_http_exception(e, "delete customer")
