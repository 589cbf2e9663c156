from typing import Optional

from pydantic import BaseModel, Field


class CreateMaintenanceBlockRequest(BaseModel):
    vehicle_id: int
    start_date: str = Field(..., description="YYYY-MM-DD")
    end_date: Optional[str] = Field(None, description="YYYY-MM-DD; empty = until closed")
    notes: Optional[str] = None


class CloseMaintenanceBlockRequest(BaseModel):
    end_date: str = Field(..., description="YYYY-MM-DD")
