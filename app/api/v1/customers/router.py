from typing import List, Optional

from fastapi import APIRouter, Depends, status, Query

from app.api.v1.customers.schemas import CreateCustomerRequest, CustomerResponse, UpdateCustomerRequest
from app.api.v1.customers.service import CustomerService
from app.api.v1.reservations.schemas import ReservationResponse
from app.core.deps import get_storage, require_permission
from app.models.enums import Permission
from app.storage.base import Storage

router = APIRouter()

can_view = require_permission(Permission.view_customers, Permission.manage_customers)
can_manage = require_permission(Permission.manage_customers)


@router.get(
    "/",
    response_model=List[CustomerResponse],
    summary="Get all customers",
    dependencies=[Depends(can_view)],
)
async def get_all_customers(
    search: Optional[str] = Query(None, description="Search by name, email or phone"),
    storage: Storage = Depends(get_storage),
):
    customers = await CustomerService(storage).get_all_customers(search=search)
    return [CustomerResponse.model_validate(c) for c in customers]


@router.post(
    "/",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create customer",
    dependencies=[Depends(can_manage)],
)
async def create_customer(customer_data: CreateCustomerRequest, storage: Storage = Depends(get_storage)):
    customer = await CustomerService(storage).create_customer(customer_data)
    return CustomerResponse.model_validate(customer)


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Get customer by ID",
    dependencies=[Depends(can_view)],
)
async def get_customer(customer_id: int, storage: Storage = Depends(get_storage)):
    return CustomerResponse.model_validate(await CustomerService(storage).get_customer_by_id(customer_id))


@router.put(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Update customer",
    dependencies=[Depends(can_manage)],
)
async def update_customer(
    customer_id: int,
    customer_data: UpdateCustomerRequest,
    storage: Storage = Depends(get_storage),
):
    customer = await CustomerService(storage).update_customer(customer_id, customer_data)
    return CustomerResponse.model_validate(customer)


@router.delete(
    "/{customer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete customer",
    description="Refused with 409 while the customer still has reservations.",
    dependencies=[Depends(can_manage)],
)
async def delete_customer(customer_id: int, storage: Storage = Depends(get_storage)):
    await CustomerService(storage).delete_customer(customer_id)


@router.get(
    "/{customer_id}/reservations",
    response_model=List[ReservationResponse],
    summary="Reservations of a customer",
    dependencies=[Depends(require_permission(Permission.view_reservations, Permission.manage_reservations))],
)
async def get_customer_reservations(customer_id: int, storage: Storage = Depends(get_storage)):
    await CustomerService(storage).get_customer_by_id(customer_id)
    reservations = await storage.get_reservations_by_customer(customer_id)
    return [ReservationResponse.model_validate(r) for r in reservations]
