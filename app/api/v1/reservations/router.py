from typing import List, Optional

from fastapi import APIRouter, Depends, status, Query

from app.api.v1.reservations.schemas import (
    AvailabilityCheckResponse,
    CreateReservationRequest,
    ReservationResponse,
    UpdateReservationRequest,
)
from app.api.v1.reservations.service import ReservationService
from app.core.deps import get_storage, require_permission
from app.core.exceptions import AppException
from app.models.enums import Permission
from app.models.user import User
from app.storage.base import Storage

router = APIRouter()

can_view = require_permission(Permission.view_reservations, Permission.manage_reservations)
can_manage = require_permission(Permission.manage_reservations)


def _many(reservations) -> List[ReservationResponse]:
    return [ReservationResponse.model_validate(r) for r in reservations]


@router.get(
    "/",
    response_model=List[ReservationResponse],
    summary="Get all reservations",
    description="Every non-deleted reservation, newest start date first.",
    dependencies=[Depends(can_view)],
)
async def get_all_reservations(storage: Storage = Depends(get_storage)):
    return _many(await storage.get_all_reservations())


@router.get(
    "/range",
    response_model=List[ReservationResponse],
    summary="Reservations overlapping a date range",
    dependencies=[Depends(can_view)],
)
async def get_reservations_in_range(
    start_date: str = Query(..., description="YYYY-MM-DD"),
    end_date: str = Query(..., description="YYYY-MM-DD"),
    storage: Storage = Depends(get_storage),
):
    return _many(await storage.get_reservations_in_date_range(start_date, end_date))


@router.get(
    "/upcoming",
    response_model=List[ReservationResponse],
    summary="Next reservations from today",
    dependencies=[Depends(can_view)],
)
async def get_upcoming_reservations(
    limit: int = Query(5, ge=1, le=100),
    storage: Storage = Depends(get_storage),
):
    return _many(await storage.get_upcoming_reservations(limit))


@router.get(
    "/check-availability/{vehicle_id}",
    response_model=AvailabilityCheckResponse,
    summary="Check a vehicle for conflicting bookings",
    dependencies=[Depends(can_view)],
)
async def check_availability(
    vehicle_id: int,
    start_date: str = Query(..., description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD; empty = open-ended"),
    exclude_reservation_id: Optional[int] = Query(None, description="Reservation being edited"),
    is_maintenance_block: bool = Query(False),
    storage: Storage = Depends(get_storage),
):
    if await storage.get_vehicle(vehicle_id) is None:
        AppException().raise_404(f"Vehicle with id {vehicle_id} not found")
    conflicts = await storage.check_reservation_conflicts(
        vehicle_id, start_date, end_date, exclude_reservation_id, is_maintenance_block
    )
    return AvailabilityCheckResponse(vehicle_id=vehicle_id, available=not conflicts, conflicts=_many(conflicts))


@router.get(
    "/vehicle/{vehicle_id}",
    response_model=List[ReservationResponse],
    summary="Reservations of a vehicle",
    dependencies=[Depends(can_view)],
)
async def get_reservations_by_vehicle(vehicle_id: int, storage: Storage = Depends(get_storage)):
    return _many(await storage.get_reservations_by_vehicle(vehicle_id))


@router.post(
    "/",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create reservation",
    description="Fails with 409 and the conflicting reservations when the vehicle is already booked.",
)
async def create_reservation(
    data: CreateReservationRequest,
    current_user: User = Depends(can_manage),
    storage: Storage = Depends(get_storage),
):
    reservation = await ReservationService(storage).create_reservation(data, current_user)
    return ReservationResponse.model_validate(reservation)


@router.get(
    "/{reservation_id}",
    response_model=ReservationResponse,
    summary="Get reservation by ID",
    dependencies=[Depends(can_view)],
)
async def get_reservation(reservation_id: int, storage: Storage = Depends(get_storage)):
    return ReservationResponse.model_validate(await ReservationService(storage).get_reservation_by_id(reservation_id))


@router.patch(
    "/{reservation_id}",
    response_model=ReservationResponse,
    summary="Update reservation",
    description="Conflict check ignores the reservation itself.",
)
async def update_reservation(
    reservation_id: int,
    data: UpdateReservationRequest,
    current_user: User = Depends(can_manage),
    storage: Storage = Depends(get_storage),
):
    reservation = await ReservationService(storage).update_reservation(reservation_id, data, current_user)
    return ReservationResponse.model_validate(reservation)


@router.delete(
    "/{reservation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete reservation (soft)",
    dependencies=[Depends(can_manage)],
)
async def delete_reservation(reservation_id: int, storage: Storage = Depends(get_storage)):
    await ReservationService(storage).delete_reservation(reservation_id)
