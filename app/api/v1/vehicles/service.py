from typing import List, Optional

from app.api.v1.vehicles.schemas import CreateVehicleRequest, UpdateVehicleRequest
from app.core.exceptions import AppException
from app.core.vehicle_status import (
    StatusTransition,
    VehicleStatusContext,
    get_vehicle_status_context,
    validate_manual_status_change,
)
from app.models.enums import AvailabilityStatus
from app.models.vehicle import Vehicle
from app.storage import rules
from app.storage.base import Storage


class VehicleService:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def create_vehicle(self, vehicle_data: CreateVehicleRequest) -> Vehicle:
        data = vehicle_data.model_dump()
        if data.get("maintenance_status"):
            data["maintenance_status"] = rules.validate_maintenance_status(data["maintenance_status"])
        return await self.storage.create_vehicle(data)

    async def get_vehicle_by_id(self, vehicle_id: int) -> Vehicle:
        vehicle = await self.storage.get_vehicle(vehicle_id)
        if vehicle is None:
            AppException().raise_404(f"Vehicle with id {vehicle_id} not found")
        return vehicle

    async def get_all_vehicles(
        self, search: Optional[str] = None, maintenance_status: Optional[str] = None
    ) -> List[Vehicle]:
        return await self.storage.get_all_vehicles(search=search, maintenance_status=maintenance_status)

    async def update_vehicle(self, vehicle_id: int, vehicle_data: UpdateVehicleRequest) -> Vehicle:
        vehicle = await self.storage.update_vehicle(vehicle_id, vehicle_data.model_dump(exclude_unset=True))
        if vehicle is None:
            AppException().raise_404(f"Vehicle with id {vehicle_id} not found")
        return vehicle

    async def delete_vehicle(self, vehicle_id: int) -> None:
        if not await self.storage.delete_vehicle(vehicle_id):
            AppException().raise_404(f"Vehicle with id {vehicle_id} not found")

    async def get_status_context(self, vehicle_id: int) -> VehicleStatusContext:
        vehicle = await self.get_vehicle_by_id(vehicle_id)
        reservations = await self.storage.get_reservations_by_vehicle(vehicle_id)
        return get_vehicle_status_context(vehicle, reservations)

    async def set_availability_status(self, vehicle_id: int, new_status: str) -> tuple[Vehicle, StatusTransition]:
        if new_status not in {s.value for s in AvailabilityStatus}:
            AppException().raise_400(
                f"Invalid availability status. Must be one of: {[s.value for s in AvailabilityStatus]}"
            )
        context = await self.get_status_context(vehicle_id)
        current = context.vehicle.availability_status or AvailabilityStatus.available.value
        transition = validate_manual_status_change(current, new_status, context)
        if not transition.allowed:
            AppException().raise_409(transition.error)
        vehicle = await self.storage.update_vehicle(vehicle_id, {"availability_status": transition.new_status})
        return vehicle, transition
