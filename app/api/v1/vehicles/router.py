from typing import List, Optional

from fastapi import APIRouter, Depends, status, Query

from app.api.v1.vehicles.schemas import (
    AvailabilityStatusRequest,
    AvailabilityStatusResponse,
    CreateVehicleRequest,
    MarkForServiceRequest,
    UpdateVehicleRequest,
    VehicleResponse,
    VehicleStatusResponse,
)
from app.api.v1.vehicles.service import VehicleService
from app.core.deps import get_storage, require_permission
from app.core.vehicle_status import calculate_correct_status
from app.models.enums import Permission
from app.storage.base import Storage

router = APIRouter()

can_view = require_permission(Permission.view_vehicles, Permission.manage_vehicles)
can_manage = require_permission(Permission.manage_vehicles)


@router.get(
    "/",
    response_model=List[VehicleResponse],
    summary="Get all vehicles",
    description="List vehicles, optionally filtered by maintenance status or searched by plate, brand or model.",
    dependencies=[Depends(can_view)],
)
async def get_all_vehicles(
    search: Optional[str] = Query(None, description="Search by license plate, brand or model"),
    maintenance_status: Optional[str] = Query(None, description="ok/scheduled/in_service/needs_repair"),
    storage: Storage = Depends(get_storage),
):
    vehicles = await VehicleService(storage).get_all_vehicles(search=search, maintenance_status=maintenance_status)
    return [VehicleResponse.model_validate(v) for v in vehicles]


@router.get(
    "/available",
    response_model=List[VehicleResponse],
    summary="Vehicles available today",
    dependencies=[Depends(can_view)],
)
async def get_available_vehicles(storage: Storage = Depends(get_storage)):
    return [VehicleResponse.model_validate(v) for v in await storage.get_available_vehicles()]


@router.get(
    "/available-in-range",
    response_model=List[VehicleResponse],
    summary="Vehicles available for a date range",
    description="Vehicles with no overlapping rental in [start_date, end_date] and maintenance status ok.",
    dependencies=[Depends(can_view)],
)
async def get_available_vehicles_in_range(
    start_date: str = Query(..., description="YYYY-MM-DD"),
    end_date: str = Query(..., description="YYYY-MM-DD"),
    exclude_vehicle_id: Optional[int] = Query(None, description="Leave this vehicle out (e.g. the broken one)"),
    storage: Storage = Depends(get_storage),
):
    vehicles = await storage.get_available_vehicles_in_range(start_date, end_date, exclude_vehicle_id)
    return [VehicleResponse.model_validate(v) for v in vehicles]


@router.post(
    "/",
    response_model=VehicleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new vehicle",
    dependencies=[Depends(can_manage)],
)
async def create_vehicle(vehicle_data: CreateVehicleRequest, storage: Storage = Depends(get_storage)):
    vehicle = await VehicleService(storage).create_vehicle(vehicle_data)
    return VehicleResponse.model_validate(vehicle)


@router.get(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    summary="Get vehicle by ID",
    dependencies=[Depends(can_view)],
)
async def get_vehicle_by_id(vehicle_id: int, storage: Storage = Depends(get_storage)):
    return VehicleResponse.model_validate(await VehicleService(storage).get_vehicle_by_id(vehicle_id))


@router.put(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    summary="Update vehicle",
    dependencies=[Depends(can_manage)],
)
async def update_vehicle(
    vehicle_id: int,
    vehicle_data: UpdateVehicleRequest,
    storage: Storage = Depends(get_storage),
):
    vehicle = await VehicleService(storage).update_vehicle(vehicle_id, vehicle_data)
    return VehicleResponse.model_validate(vehicle)


@router.delete(
    "/{vehicle_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete vehicle",
    description="Refused with 409 while the vehicle still has open reservations.",
    dependencies=[Depends(can_manage)],
)
async def delete_vehicle(vehicle_id: int, storage: Storage = Depends(get_storage)):
    await VehicleService(storage).delete_vehicle(vehicle_id)


@router.post(
    "/{vehicle_id}/service",
    response_model=VehicleResponse,
    summary="Set maintenance status",
    description="Mark a vehicle in service, scheduled, needing repair, or back to ok.",
    dependencies=[Depends(require_permission(Permission.manage_maintenance, Permission.manage_vehicles))],
)
async def mark_vehicle_for_service(
    vehicle_id: int,
    data: MarkForServiceRequest,
    storage: Storage = Depends(get_storage),
):
    vehicle = await storage.mark_vehicle_for_service(vehicle_id, data.maintenance_status, data.maintenance_note)
    return VehicleResponse.model_validate(vehicle)


@router.get(
    "/{vehicle_id}/status",
    response_model=VehicleStatusResponse,
    summary="Derived availability status",
    description="Status the vehicle should show today, computed from its reservations and maintenance blocks.",
    dependencies=[Depends(can_view)],
)
async def get_vehicle_status(vehicle_id: int, storage: Storage = Depends(get_storage)):
    context = await VehicleService(storage).get_status_context(vehicle_id)
    return VehicleStatusResponse(
        vehicle_id=vehicle_id,
        stored_status=context.vehicle.availability_status,
        calculated_status=calculate_correct_status(context),
        has_picked_up_reservation=context.has_picked_up_reservation,
        has_booked_reservation=context.has_booked_reservation,
        has_maintenance_block=context.has_maintenance_block,
        active_reservation_ids=[r.id for r in context.active_reservations],
    )


@router.patch(
    "/{vehicle_id}/availability-status",
    response_model=AvailabilityStatusResponse,
    summary="Change availability status manually",
    description="Rejected with 409 when the change contradicts the vehicle's current rentals or maintenance.",
    dependencies=[Depends(can_manage)],
)
async def set_availability_status(
    vehicle_id: int,
    data: AvailabilityStatusRequest,
    storage: Storage = Depends(get_storage),
):
    vehicle, transition = await VehicleService(storage).set_availability_status(vehicle_id, data.availability_status)
    return AvailabilityStatusResponse(vehicle=VehicleResponse.model_validate(vehicle), warning=transition.warning)
