from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field


class CreateReservationRequest(BaseModel):
    vehicle_id: Optional[int] = Field(None, description="Vehicle to book; empty for an unassigned booking")
    customer_id: Optional[int] = None
    start_date: str = Field(..., description="YYYY-MM-DD")
    end_date: Optional[str] = Field(None, description="YYYY-MM-DD; empty for an open-ended rental")
    status: Optional[str] = Field(None, description="Defaults to pending")
    type: Optional[str] = Field(None, description="standard/replacement/maintenance_block")
    total_price: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class UpdateReservationRequest(BaseModel):
    vehicle_id: Optional[int] = None
    customer_id: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    total_price: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class ReservationResponse(BaseModel):
    id: int
    vehicle_id: Optional[int] = None
    customer_id: Optional[int] = None
    start_date: str
    end_date: Optional[str] = None
    status: str
    type: str
    placeholder_spare: bool = False
    replacement_for_reservation_id: Optional[int] = None
    total_price: Optional[float] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AvailabilityCheckResponse(BaseModel):
    vehicle_id: int
    available: bool
    conflicts: List[ReservationResponse]
