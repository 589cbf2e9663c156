from typing import List, Optional

from fastapi import APIRouter, Depends, status, Query

from app.api.v1.reservations.schemas import ReservationResponse
from app.api.v1.spares.schemas import (
    AssignVehicleRequest,
    CloseRequest,
    CreatePlaceholderRequest,
    CreateReplacementRequest,
)
from app.core.config import settings
from app.core.deps import get_storage, require_permission
from app.core.exceptions import AppException
from app.models.enums import Permission
from app.storage.base import Storage

router = APIRouter()

can_view = require_permission(Permission.view_reservations, Permission.manage_reservations)
can_manage = require_permission(Permission.manage_reservations)


@router.get(
    "/placeholders",
    response_model=List[ReservationResponse],
    summary="Unassigned spare placeholders",
    description="Optionally only those overlapping [start_date, end_date].",
    dependencies=[Depends(can_view)],
)
async def get_placeholders(
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    storage: Storage = Depends(get_storage),
):
    placeholders = await storage.get_placeholder_reservations(start_date, end_date)
    return [ReservationResponse.model_validate(r) for r in placeholders]


@router.get(
    "/placeholders/needing-assignment",
    response_model=List[ReservationResponse],
    summary="Placeholders starting soon",
    description="Placeholders starting within days_ahead days, overdue ones included, earliest first.",
    dependencies=[Depends(can_view)],
)
async def get_placeholders_needing_assignment(
    days_ahead: Optional[int] = Query(None, ge=0, description="Defaults to PLACEHOLDER_LOOKAHEAD_DAYS"),
    storage: Storage = Depends(get_storage),
):
    days = settings.PLACEHOLDER_LOOKAHEAD_DAYS if days_ahead is None else days_ahead
    placeholders = await storage.get_placeholder_reservations_needing_assignment(days)
    return [ReservationResponse.model_validate(r) for r in placeholders]


@router.post(
    "/placeholders",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a TBD spare placeholder",
    description="Raises a high-priority spare_assignment notification for the staff.",
    dependencies=[Depends(can_manage)],
)
async def create_placeholder(data: CreatePlaceholderRequest, storage: Storage = Depends(get_storage)):
    placeholder = await storage.create_placeholder_reservation(
        data.original_reservation_id, data.customer_id, data.start_date, data.end_date
    )
    return ReservationResponse.model_validate(placeholder)


@router.post(
    "/placeholders/{reservation_id}/assign",
    response_model=ReservationResponse,
    summary="Assign a vehicle to a placeholder",
    dependencies=[Depends(can_manage)],
)
async def assign_vehicle(
    reservation_id: int,
    data: AssignVehicleRequest,
    storage: Storage = Depends(get_storage),
):
    reservation = await storage.assign_vehicle_to_placeholder(reservation_id, data.vehicle_id, data.end_date)
    return ReservationResponse.model_validate(reservation)


@router.get(
    "/replacements/by-original/{original_reservation_id}",
    response_model=ReservationResponse,
    summary="Active replacement for a reservation",
    dependencies=[Depends(can_view)],
)
async def get_active_replacement(original_reservation_id: int, storage: Storage = Depends(get_storage)):
    replacement = await storage.get_active_replacement_by_original(original_reservation_id)
    if replacement is None:
        AppException().raise_404(f"No active replacement for reservation {original_reservation_id}")
    return ReservationResponse.model_validate(replacement)


@router.post(
    "/replacements",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a spare vehicle",
    description="Books the spare and puts the original vehicle in service behind a maintenance block.",
    dependencies=[Depends(can_manage)],
)
async def create_replacement(data: CreateReplacementRequest, storage: Storage = Depends(get_storage)):
    replacement = await storage.create_replacement_reservation(
        data.original_reservation_id, data.spare_vehicle_id, data.start_date, data.end_date
    )
    return ReservationResponse.model_validate(replacement)


@router.post(
    "/replacements/{reservation_id}/close",
    response_model=ReservationResponse,
    summary="Close a replacement",
    description="Completes the replacement, restores the original vehicle and closes its maintenance blocks.",
    dependencies=[Depends(can_manage)],
)
async def close_replacement(reservation_id: int, data: CloseRequest, storage: Storage = Depends(get_storage)):
    replacement = await storage.close_replacement_reservation(reservation_id, data.end_date)
    return ReservationResponse.model_validate(replacement)
