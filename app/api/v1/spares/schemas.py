from typing import Optional

from pydantic import BaseModel, Field


class CreatePlaceholderRequest(BaseModel):
    original_reservation_id: int = Field(..., description="Reservation whose vehicle dropped out")
    customer_id: Optional[int] = Field(None, description="Defaults to the original reservation's customer")
    start_date: str = Field(..., description="YYYY-MM-DD")
    end_date: Optional[str] = Field(None, description="YYYY-MM-DD; empty = open-ended")


class AssignVehicleRequest(BaseModel):
    vehicle_id: int
    end_date: Optional[str] = Field(None, description="Required when the placeholder is open-ended")


class CreateReplacementRequest(BaseModel):
    original_reservation_id: int
    spare_vehicle_id: int
    start_date: str = Field(..., description="YYYY-MM-DD")
    end_date: Optional[str] = Field(None, description="Defaults to the original reservation's end date")


class CloseRequest(BaseModel):
    end_date: str = Field(..., description="YYYY-MM-DD")
