from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, Numeric, String

from app.core.database import Base
from app.models.enums import AvailabilityStatus, MaintenanceStatus


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    license_plate = Column(String, unique=True, index=True, nullable=False)
    brand = Column(String, nullable=False)
    model = Column(String, nullable=False)
    vehicle_type = Column(String, nullable=True)
    fuel = Column(String, nullable=True)
    daily_price = Column(Numeric(10, 2), nullable=True)
    monthly_price = Column(Numeric(10, 2), nullable=True)
    maintenance_status = Column(String, default=MaintenanceStatus.ok.value, nullable=False)
    maintenance_note = Column(String, nullable=True)
    availability_status = Column(String, default=AvailabilityStatus.available.value, nullable=False)
    remarks = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return f"{self.license_plate} ({self.brand} {self.model})"
