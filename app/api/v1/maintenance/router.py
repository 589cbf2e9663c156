from typing import List

from fastapi import APIRouter, Depends, status

from app.api.v1.maintenance.schemas import CloseMaintenanceBlockRequest, CreateMaintenanceBlockRequest
from app.api.v1.reservations.schemas import ReservationResponse
from app.core.deps import get_storage, require_permission
from app.models.enums import Permission
from app.storage.base import Storage

router = APIRouter()

can_manage = require_permission(Permission.manage_maintenance)


@router.get(
    "/upcoming",
    response_model=List[ReservationResponse],
    summary="Upcoming maintenance blocks",
    dependencies=[Depends(require_permission(
        Permission.manage_maintenance, Permission.view_vehicles, Permission.view_reservations
    ))],
)
async def get_upcoming_maintenance(storage: Storage = Depends(get_storage)):
    return [ReservationResponse.model_validate(r) for r in await storage.get_upcoming_maintenance_reservations()]


@router.post(
    "/blocks",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Block a vehicle for maintenance",
    description="409 when another maintenance block overlaps. Rentals on the vehicle are not checked.",
    dependencies=[Depends(can_manage)],
)
async def create_maintenance_block(data: CreateMaintenanceBlockRequest, storage: Storage = Depends(get_storage)):
    block = await storage.create_maintenance_block(data.vehicle_id, data.start_date, data.end_date, data.notes)
    return ReservationResponse.model_validate(block)


@router.post(
    "/blocks/{reservation_id}/close",
    response_model=ReservationResponse,
    summary="Close a maintenance block",
    dependencies=[Depends(can_manage)],
)
async def close_maintenance_block(
    reservation_id: int,
    data: CloseMaintenanceBlockRequest,
    storage: Storage = Depends(get_storage),
):
    block = await storage.close_maintenance_block(reservation_id, data.end_date)
    return ReservationResponse.model_validate(block)
