"""
Storage interface shared by the in-memory and database backends.

Every method is async so route handlers and background jobs can use either
backend interchangeably. Precondition failures raise the domain errors from
app.core.exceptions (ValidationError / NotFoundError / ConflictError); lookups
that find nothing return None.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from app.models.customer import Customer
from app.models.notification import CustomNotification
from app.models.reservation import Reservation
from app.models.user import User
from app.models.vehicle import Vehicle


class Storage(ABC):
    # ------------------------------------------------------------------ users
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def get_all_users(self) -> list[User]: ...

    @abstractmethod
    async def count_users(self) -> int: ...

    @abstractmethod
    async def create_user(self, data: dict[str, Any]) -> User: ...

    @abstractmethod
    async def update_user(self, user_id: int, data: dict[str, Any]) -> Optional[User]: ...

    @abstractmethod
    async def delete_user(self, user_id: int) -> bool: ...

    # --------------------------------------------------------------- vehicles
    @abstractmethod
    async def get_all_vehicles(
        self, search: Optional[str] = None, maintenance_status: Optional[str] = None
    ) -> list[Vehicle]: ...

    @abstractmethod
    async def get_vehicle(self, vehicle_id: int) -> Optional[Vehicle]: ...

    @abstractmethod
    async def get_vehicle_by_plate(self, license_plate: str) -> Optional[Vehicle]: ...

    @abstractmethod
    async def create_vehicle(self, data: dict[str, Any]) -> Vehicle: ...

    @abstractmethod
    async def update_vehicle(self, vehicle_id: int, data: dict[str, Any]) -> Optional[Vehicle]: ...

    @abstractmethod
    async def delete_vehicle(self, vehicle_id: int) -> bool: ...

    @abstractmethod
    async def get_available_vehicles(self) -> list[Vehicle]:
        """Vehicles free today: get_available_vehicles_in_range(today, today)."""

    @abstractmethod
    async def get_available_vehicles_in_range(
        self, start_date: str, end_date: str, exclude_vehicle_id: Optional[int] = None
    ) -> list[Vehicle]:
        """
        Vehicles with no blocking standard/replacement reservation overlapping
        [start_date, end_date] and maintenance_status == ok.
        """

    @abstractmethod
    async def mark_vehicle_for_service(
        self, vehicle_id: int, maintenance_status: str, maintenance_note: Optional[str] = None
    ) -> Vehicle: ...

    # -------------------------------------------------------------- customers
    @abstractmethod
    async def get_all_customers(self, search: Optional[str] = None) -> list[Customer]: ...

    @abstractmethod
    async def get_customer(self, customer_id: int) -> Optional[Customer]: ...

    @abstractmethod
    async def create_customer(self, data: dict[str, Any]) -> Customer: ...

    @abstractmethod
    async def update_customer(self, customer_id: int, data: dict[str, Any]) -> Optional[Customer]: ...

    @abstractmethod
    async def delete_customer(self, customer_id: int) -> bool: ...

    # ----------------------------------------------------------- reservations
    @abstractmethod
    async def get_all_reservations(self) -> list[Reservation]: ...

    @abstractmethod
    async def get_reservation(self, reservation_id: int) -> Optional[Reservation]: ...

    @abstractmethod
    async def create_reservation(self, data: dict[str, Any]) -> Reservation:
        """Insert after a conflict check on the target vehicle; raises ConflictError."""

    @abstractmethod
    async def update_reservation(self, reservation_id: int, data: dict[str, Any]) -> Reservation:
        """Apply changes after a conflict check that excludes the row itself."""

    @abstractmethod
    async def delete_reservation(self, reservation_id: int) -> bool:
        """Soft delete (sets deleted_at)."""

    @abstractmethod
    async def get_reservations_in_date_range(self, start_date: str, end_date: str) -> list[Reservation]: ...

    @abstractmethod
    async def get_upcoming_reservations(self, limit: int = 5) -> list[Reservation]: ...

    @abstractmethod
    async def get_upcoming_maintenance_reservations(self) -> list[Reservation]: ...

    @abstractmethod
    async def get_reservations_by_vehicle(self, vehicle_id: int) -> list[Reservation]: ...

    @abstractmethod
    async def get_reservations_by_customer(self, customer_id: int) -> list[Reservation]: ...

    @abstractmethod
    async def check_reservation_conflicts(
        self,
        vehicle_id: int,
        start_date: str,
        end_date: Optional[str],
        exclude_reservation_id: Optional[int] = None,
        is_maintenance_block: bool = False,
    ) -> list[Reservation]:
        """
        Reservations on vehicle_id whose interval overlaps [start_date, end_date]
        (None = open-ended). Maintenance blocks only ever conflict with other
        maintenance blocks. Cancelled, completed and soft-deleted rows never conflict.
        """

    # ------------------------------------------------- spare vehicle workflow
    @abstractmethod
    async def get_active_replacement_by_original(self, original_reservation_id: int) -> Optional[Reservation]: ...

    @abstractmethod
    async def create_replacement_reservation(
        self,
        original_reservation_id: int,
        spare_vehicle_id: int,
        start_date: str,
        end_date: Optional[str] = None,
    ) -> Reservation: ...

    @abstractmethod
    async def close_replacement_reservation(self, replacement_reservation_id: int, end_date: str) -> Reservation: ...

    @abstractmethod
    async def create_maintenance_block(
        self, vehicle_id: int, start_date: str, end_date: Optional[str] = None, notes: Optional[str] = None
    ) -> Reservation: ...

    @abstractmethod
    async def close_maintenance_block(self, block_reservation_id: int, end_date: str) -> Reservation: ...

    @abstractmethod
    async def get_placeholder_reservations(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> list[Reservation]: ...

    @abstractmethod
    async def get_placeholder_reservations_needing_assignment(self, days_ahead: int = 7) -> list[Reservation]: ...

    @abstractmethod
    async def create_placeholder_reservation(
        self,
        original_reservation_id: int,
        customer_id: Optional[int],
        start_date: str,
        end_date: Optional[str] = None,
    ) -> Reservation: ...

    @abstractmethod
    async def assign_vehicle_to_placeholder(
        self, reservation_id: int, vehicle_id: int, end_date: Optional[str] = None
    ) -> Reservation: ...

    # ---------------------------------------------------------- notifications
    @abstractmethod
    async def get_all_custom_notifications(self, unread_only: bool = False) -> list[CustomNotification]: ...

    @abstractmethod
    async def get_custom_notification(self, notification_id: int) -> Optional[CustomNotification]: ...

    @abstractmethod
    async def get_custom_notifications_by_type(self, notification_type: str) -> list[CustomNotification]: ...

    @abstractmethod
    async def create_custom_notification(self, data: dict[str, Any]) -> CustomNotification: ...

    @abstractmethod
    async def set_custom_notification_read(self, notification_id: int, is_read: bool = True) -> bool: ...

    @abstractmethod
    async def delete_custom_notification(self, notification_id: int) -> bool: ...
