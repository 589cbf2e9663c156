from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String

from app.core.database import Base
from app.core.dates import DateInterval
from app.models.enums import NON_BLOCKING_STATUSES, ReservationStatus, ReservationType


class Reservation(Base):
    """
    A booking, a spare-vehicle replacement or a maintenance block.
    start_date / end_date are ISO date strings; end_date NULL = open-ended rental.
    vehicle_id NULL together with placeholder_spare = an unassigned ("TBD") spare.
    """
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    start_date = Column(String(10), nullable=False)
    end_date = Column(String(10), nullable=True)
    status = Column(String(20), default=ReservationStatus.pending.value, nullable=False)
    type = Column(String(20), default=ReservationType.standard.value, nullable=False)
    placeholder_spare = Column(Boolean, default=False, nullable=False)
    replacement_for_reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=True, index=True)
    total_price = Column(Numeric(10, 2), nullable=True)
    notes = Column(String, nullable=True)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (Index("ix_reservations_vehicle_dates", "vehicle_id", "start_date", "end_date"),)

    @property
    def interval(self) -> DateInterval:
        return DateInterval.from_values(self.start_date, self.end_date)

    @property
    def is_maintenance_block(self) -> bool:
        return self.type == ReservationType.maintenance_block.value

    @property
    def is_placeholder(self) -> bool:
        return (
            bool(self.placeholder_spare)
            and self.vehicle_id is None
            and self.type == ReservationType.replacement.value
        )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def occupies_vehicle(self) -> bool:
        """True while the row still blocks its vehicle for conflict purposes."""
        return not self.is_deleted and self.status not in NON_BLOCKING_STATUSES
