from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field


class CreateVehicleRequest(BaseModel):
    license_plate: str = Field(..., min_length=1, description="License plate, unique")
    brand: str = Field(..., description="Vehicle manufacturer")
    model: str = Field(..., description="Vehicle model")
    vehicle_type: Optional[str] = Field(None, description="e.g. car, van")
    fuel: Optional[str] = Field(None, description="Fuel type")
    daily_price: Optional[float] = Field(None, ge=0)
    monthly_price: Optional[float] = Field(None, ge=0)
    maintenance_status: Optional[str] = Field(None, description="ok/scheduled/in_service/needs_repair")
    remarks: Optional[str] = None


class UpdateVehicleRequest(BaseModel):
    license_plate: Optional[str] = Field(None, min_length=1)
    brand: Optional[str] = None
    model: Optional[str] = None
    vehicle_type: Optional[str] = None
    fuel: Optional[str] = None
    daily_price: Optional[float] = Field(None, ge=0)
    monthly_price: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = None


class MarkForServiceRequest(BaseModel):
    maintenance_status: str = Field(..., description="ok/scheduled/in_service/needs_repair")
    maintenance_note: Optional[str] = None


class AvailabilityStatusRequest(BaseModel):
    availability_status: str = Field(..., description="available/rented/scheduled/needs_fixing/not_for_rental")


class VehicleResponse(BaseModel):
    id: int
    license_plate: str
    brand: str
    model: str
    vehicle_type: Optional[str] = None
    fuel: Optional[str] = None
    daily_price: Optional[float] = None
    monthly_price: Optional[float] = None
    maintenance_status: str
    maintenance_note: Optional[str] = None
    availability_status: str
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VehicleStatusResponse(BaseModel):
    vehicle_id: int
    stored_status: str
    calculated_status: str
    has_picked_up_reservation: bool
    has_booked_reservation: bool
    has_maintenance_block: bool
    active_reservation_ids: List[int]


class AvailabilityStatusResponse(BaseModel):
    vehicle: VehicleResponse
    warning: Optional[str] = None
