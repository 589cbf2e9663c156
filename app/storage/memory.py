"""
In-memory storage backend.

Keeps ORM model instances (never attached to a session) in plain dicts. Used
for local demos and fast tests; selected with STORAGE_BACKEND=memory. A single
asyncio.Lock serialises every write so a conflict check and the write that
depends on it can never interleave with another request.
"""
import asyncio
import logging
from datetime import datetime
from itertools import count
from typing import Any, Optional

from app.core.dates import DateInterval, days_from_today, parse_date, today, today_iso
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.customer import Customer
from app.models.enums import (
    MaintenanceStatus,
    NON_BLOCKING_STATUSES,
    NotificationType,
    ReservationStatus,
    ReservationType,
    Role,
)
from app.models.notification import CustomNotification
from app.models.reservation import Reservation
from app.models.user import User
from app.models.vehicle import Vehicle
from app.storage import rules
from app.storage.base import Storage

logger = logging.getLogger(__name__)


def _stamp(obj, data: dict[str, Any]) -> None:
    for field, value in data.items():
        setattr(obj, field, value)
    obj.updated_at = datetime.utcnow()


class MemStorage(Storage):
    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.vehicles: dict[int, Vehicle] = {}
        self.customers: dict[int, Customer] = {}
        self.reservations: dict[int, Reservation] = {}
        self.notifications: dict[int, CustomNotification] = {}
        self._ids = {name: count(1) for name in ("user", "vehicle", "customer", "reservation", "notification")}
        self._lock = asyncio.Lock()

    def _next_id(self, kind: str) -> int:
        return next(self._ids[kind])

    def _live_reservations(self) -> list[Reservation]:
        return [r for r in self.reservations.values() if not r.is_deleted]

    # ------------------------------------------------------------------ users
    async def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.username == username), None)

    async def get_all_users(self) -> list[User]:
        return sorted(self.users.values(), key=lambda u: u.id)

    async def count_users(self) -> int:
        return len(self.users)

    async def create_user(self, data: dict[str, Any]) -> User:
        async with self._lock:
            if await self.get_user_by_username(data["username"]):
                raise ValidationError(f"Username {data['username']} already exists")
            now = datetime.utcnow()
            user = User(
                id=self._next_id("user"),
                role=Role.user.value,
                permissions=[],
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            _stamp(user, data)
            self.users[user.id] = user
            return user

    async def update_user(self, user_id: int, data: dict[str, Any]) -> Optional[User]:
        async with self._lock:
            user = self.users.get(user_id)
            if user is None:
                return None
            _stamp(user, data)
            return user

    async def delete_user(self, user_id: int) -> bool:
        async with self._lock:
            return self.users.pop(user_id, None) is not None

    # --------------------------------------------------------------- vehicles
    async def get_all_vehicles(
        self, search: Optional[str] = None, maintenance_status: Optional[str] = None
    ) -> list[Vehicle]:
        vehicles = sorted(self.vehicles.values(), key=lambda v: v.id)
        if maintenance_status:
            vehicles = [v for v in vehicles if v.maintenance_status == maintenance_status]
        if search:
            plate = search.replace("-", "").upper()
            term = search.upper()
            vehicles = [
                v for v in vehicles
                if plate in v.license_plate.replace("-", "").upper()
                or term in v.brand.upper()
                or term in v.model.upper()
            ]
        return vehicles

    async def get_vehicle(self, vehicle_id: int) -> Optional[Vehicle]:
        return self.vehicles.get(vehicle_id)

    async def get_vehicle_by_plate(self, license_plate: str) -> Optional[Vehicle]:
        return next((v for v in self.vehicles.values() if v.license_plate == license_plate), None)

    async def create_vehicle(self, data: dict[str, Any]) -> Vehicle:
        async with self._lock:
            if await self.get_vehicle_by_plate(data["license_plate"]):
                raise ValidationError(f"Vehicle with license plate {data['license_plate']} already exists")
            now = datetime.utcnow()
            vehicle = Vehicle(
                id=self._next_id("vehicle"),
                maintenance_status=MaintenanceStatus.ok.value,
                availability_status="available",
                created_at=now,
                updated_at=now,
            )
            _stamp(vehicle, {k: v for k, v in data.items() if v is not None})
            self.vehicles[vehicle.id] = vehicle
            logger.info("Vehicle %s created (%s)", vehicle.id, vehicle.license_plate)
            return vehicle

    async def update_vehicle(self, vehicle_id: int, data: dict[str, Any]) -> Optional[Vehicle]:
        async with self._lock:
            vehicle = self.vehicles.get(vehicle_id)
            if vehicle is None:
                return None
            plate = data.get("license_plate")
            if plate and plate != vehicle.license_plate and await self.get_vehicle_by_plate(plate):
                raise ValidationError(f"Vehicle with license plate {plate} already exists")
            _stamp(vehicle, data)
            return vehicle

    async def delete_vehicle(self, vehicle_id: int) -> bool:
        async with self._lock:
            if vehicle_id not in self.vehicles:
                return False
            if any(r.vehicle_id == vehicle_id and r.occupies_vehicle for r in self.reservations.values()):
                raise ConflictError("Cannot delete vehicle that has open reservations")
            del self.vehicles[vehicle_id]
            return True

    async def get_available_vehicles(self) -> list[Vehicle]:
        day = today_iso()
        return await self.get_available_vehicles_in_range(day, day)

    async def get_available_vehicles_in_range(
        self, start_date: str, end_date: str, exclude_vehicle_id: Optional[int] = None
    ) -> list[Vehicle]:
        window = DateInterval.from_values(start_date, end_date).validate()
        busy = {
            r.vehicle_id
            for r in self.reservations.values()
            if r.vehicle_id is not None
            and r.occupies_vehicle
            and not r.is_maintenance_block
            and r.interval.overlaps(window)
        }
        available = [
            v for v in sorted(self.vehicles.values(), key=lambda v: v.id)
            if v.id not in busy
            and v.id != exclude_vehicle_id
            and v.maintenance_status == MaintenanceStatus.ok.value
        ]
        logger.debug("Available vehicles %s..%s: %s", start_date, end_date, [v.id for v in available])
        return available

    async def mark_vehicle_for_service(
        self, vehicle_id: int, maintenance_status: str, maintenance_note: Optional[str] = None
    ) -> Vehicle:
        async with self._lock:
            return self._mark_vehicle(vehicle_id, maintenance_status, maintenance_note)

    def _mark_vehicle(self, vehicle_id: int, maintenance_status: str, maintenance_note: Optional[str] = None) -> Vehicle:
        value = rules.validate_maintenance_status(maintenance_status)
        vehicle = rules.require_vehicle(self.vehicles.get(vehicle_id), vehicle_id)
        _stamp(vehicle, {"maintenance_status": value, "maintenance_note": maintenance_note})
        logger.info("Vehicle %s maintenance status -> %s", vehicle_id, value)
        return vehicle

    # -------------------------------------------------------------- customers
    async def get_all_customers(self, search: Optional[str] = None) -> list[Customer]:
        customers = sorted(self.customers.values(), key=lambda c: c.id)
        if search:
            needle = search.lower()
            customers = [
                c for c in customers
                if needle in (c.name or "").lower()
                or needle in (c.email or "").lower()
                or needle in (c.phone or "").lower()
            ]
        return customers

    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        return self.customers.get(customer_id)

    async def create_customer(self, data: dict[str, Any]) -> Customer:
        async with self._lock:
            now = datetime.utcnow()
            customer = Customer(id=self._next_id("customer"), created_at=now, updated_at=now)
            _stamp(customer, data)
            self.customers[customer.id] = customer
            return customer

    async def update_customer(self, customer_id: int, data: dict[str, Any]) -> Optional[Customer]:
        async with self._lock:
            customer = self.customers.get(customer_id)
            if customer is None:
                return None
            _stamp(customer, data)
            return customer

    async def delete_customer(self, customer_id: int) -> bool:
        async with self._lock:
            if customer_id not in self.customers:
                return False
            if any(r.customer_id == customer_id for r in self._live_reservations()):
                raise ConflictError("Cannot delete customer that has reservations")
            del self.customers[customer_id]
            return True

    # ----------------------------------------------------------- reservations
    async def get_all_reservations(self) -> list[Reservation]:
        return sorted(self._live_reservations(), key=lambda r: r.start_date, reverse=True)

    async def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        reservation = self.reservations.get(reservation_id)
        if reservation is None or reservation.is_deleted:
            return None
        return reservation

    def _conflicts(
        self,
        vehicle_id: int,
        start_date: str,
        end_date: Optional[str],
        exclude_reservation_id: Optional[int] = None,
        is_maintenance_block: bool = False,
    ) -> list[Reservation]:
        interval = DateInterval.from_values(start_date, end_date)
        return sorted(
            (
                r for r in self.reservations.values()
                if rules.is_conflict_candidate(r, vehicle_id, interval, exclude_reservation_id, is_maintenance_block)
            ),
            key=lambda r: r.start_date,
        )

    async def check_reservation_conflicts(
        self,
        vehicle_id: int,
        start_date: str,
        end_date: Optional[str],
        exclude_reservation_id: Optional[int] = None,
        is_maintenance_block: bool = False,
    ) -> list[Reservation]:
        return self._conflicts(vehicle_id, start_date, end_date, exclude_reservation_id, is_maintenance_block)

    def _insert_reservation(self, data: dict[str, Any]) -> Reservation:
        now = datetime.utcnow()
        reservation = Reservation(
            id=self._next_id("reservation"),
            status=ReservationStatus.pending.value,
            type=ReservationType.standard.value,
            placeholder_spare=False,
            end_date=None,
            deleted_at=None,
            created_at=now,
            updated_at=now,
        )
        _stamp(reservation, data)
        self.reservations[reservation.id] = reservation
        return reservation

    def _guard_conflicts(self, data: dict[str, Any], existing: Optional[Reservation] = None) -> None:
        vehicle_id = rules.merged_value("vehicle_id", data, existing)
        status = rules.merged_value("status", data, existing, ReservationStatus.pending.value)
        if not rules.needs_conflict_check(vehicle_id, status):
            return
        if vehicle_id not in self.vehicles:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        kind = rules.merged_value("type", data, existing, ReservationType.standard.value)
        conflicts = self._conflicts(
            vehicle_id,
            rules.merged_value("start_date", data, existing),
            rules.merged_value("end_date", data, existing),
            existing.id if existing else None,
            kind == ReservationType.maintenance_block.value,
        )
        if conflicts:
            raise rules.conflict_error(conflicts)

    async def create_reservation(self, data: dict[str, Any]) -> Reservation:
        clean = rules.normalize_reservation_data(data)
        async with self._lock:
            self._guard_conflicts(clean)
            reservation = self._insert_reservation(clean)
            logger.info("Reservation %s created for vehicle %s", reservation.id, reservation.vehicle_id)
            return reservation

    async def update_reservation(self, reservation_id: int, data: dict[str, Any]) -> Reservation:
        async with self._lock:
            existing = rules.require_reservation(self.reservations.get(reservation_id), reservation_id)
            clean = rules.normalize_reservation_data(data, existing)
            self._guard_conflicts(clean, existing)
            _stamp(existing, clean)
            return existing

    async def delete_reservation(self, reservation_id: int) -> bool:
        async with self._lock:
            reservation = self.reservations.get(reservation_id)
            if reservation is None or reservation.is_deleted:
                return False
            reservation.deleted_at = datetime.utcnow()
            logger.info("Reservation %s soft-deleted", reservation_id)
            return True

    async def get_reservations_in_date_range(self, start_date: str, end_date: str) -> list[Reservation]:
        window = DateInterval.from_values(start_date, end_date).validate()
        return sorted(
            (r for r in self._live_reservations() if r.interval.overlaps(window)),
            key=lambda r: r.start_date,
        )

    async def get_upcoming_reservations(self, limit: int = 5) -> list[Reservation]:
        day = today_iso()
        upcoming = [
            r for r in self._live_reservations()
            if r.start_date >= day
            and r.status != ReservationStatus.cancelled.value
            and not r.is_maintenance_block
        ]
        return sorted(upcoming, key=lambda r: r.start_date)[:limit]

    async def get_upcoming_maintenance_reservations(self) -> list[Reservation]:
        day = today_iso()
        blocks = [
            r for r in self._live_reservations()
            if r.is_maintenance_block and r.start_date >= day and r.status not in NON_BLOCKING_STATUSES
        ]
        return sorted(blocks, key=lambda r: r.start_date)

    async def get_reservations_by_vehicle(self, vehicle_id: int) -> list[Reservation]:
        return sorted(
            (r for r in self._live_reservations() if r.vehicle_id == vehicle_id),
            key=lambda r: r.start_date,
            reverse=True,
        )

    async def get_reservations_by_customer(self, customer_id: int) -> list[Reservation]:
        return sorted(
            (r for r in self._live_reservations() if r.customer_id == customer_id),
            key=lambda r: r.start_date,
            reverse=True,
        )

    # ------------------------------------------------- spare vehicle workflow
    def _active_replacement(self, original_reservation_id: int) -> Optional[Reservation]:
        return next(
            (r for r in self.reservations.values() if rules.is_active_replacement_for(r, original_reservation_id)),
            None,
        )

    async def get_active_replacement_by_original(self, original_reservation_id: int) -> Optional[Reservation]:
        return self._active_replacement(original_reservation_id)

    def _create_block(self, vehicle_id: int, start_date: str, end_date: Optional[str], notes: Optional[str] = None) -> Reservation:
        conflicts = self._conflicts(vehicle_id, start_date, end_date, None, is_maintenance_block=True)
        if conflicts:
            raise rules.conflict_error(conflicts, "Vehicle already has a maintenance block during this period")
        block = self._insert_reservation(rules.maintenance_block_data(vehicle_id, start_date, end_date, notes))
        logger.info("Maintenance block %s created for vehicle %s", block.id, vehicle_id)
        return block

    async def create_replacement_reservation(
        self,
        original_reservation_id: int,
        spare_vehicle_id: int,
        start_date: str,
        end_date: Optional[str] = None,
    ) -> Reservation:
        async with self._lock:
            original = rules.require_reservation(
                self.reservations.get(original_reservation_id), original_reservation_id, "Original reservation"
            )
            if spare_vehicle_id == original.vehicle_id:
                raise ValidationError("Spare vehicle cannot be the same as original vehicle")
            spare = rules.require_vehicle(self.vehicles.get(spare_vehicle_id), spare_vehicle_id)
            rules.ensure_not_in_service(spare)
            rules.ensure_no_active_replacement(self._active_replacement(original_reservation_id))

            interval = DateInterval.from_values(start_date, end_date or original.end_date).validate()
            start_iso = interval.start.isoformat()
            end_iso = interval.end.isoformat() if interval.end else None
            conflicts = self._conflicts(spare_vehicle_id, start_iso, end_iso)
            if conflicts:
                raise rules.conflict_error(conflicts, "Spare vehicle has conflicting reservations")

            replacement = self._insert_reservation(
                rules.replacement_data(original, spare_vehicle_id, start_iso, end_iso, spare.display_name)
            )
            if original.vehicle_id is not None and original.vehicle_id in self.vehicles:
                self._mark_vehicle(original.vehicle_id, MaintenanceStatus.in_service.value,
                                   f"Spare {spare.license_plate} issued for reservation #{original.id}")
                if not self._conflicts(original.vehicle_id, start_iso, end_iso, None, is_maintenance_block=True):
                    self._create_block(original.vehicle_id, start_iso, end_iso)
            logger.info(
                "Replacement %s created: spare vehicle %s covers reservation %s",
                replacement.id, spare_vehicle_id, original.id,
            )
            return replacement

    async def close_replacement_reservation(self, replacement_reservation_id: int, end_date: str) -> Reservation:
        end_iso = parse_date(end_date, "end date").isoformat()
        async with self._lock:
            replacement = rules.require_reservation(
                self.reservations.get(replacement_reservation_id), replacement_reservation_id, "Replacement reservation"
            )
            if replacement.type != ReservationType.replacement.value:
                raise ValidationError(f"Reservation {replacement_reservation_id} is not a replacement reservation")
            DateInterval.from_values(replacement.start_date, end_iso).validate()
            _stamp(replacement, {"end_date": end_iso, "status": ReservationStatus.completed.value})

            original = self.reservations.get(replacement.replacement_for_reservation_id)
            if original is None or original.vehicle_id is None:
                logger.warning("Replacement %s closed without an original vehicle to restore", replacement.id)
                return replacement
            if original.vehicle_id in self.vehicles:
                self._mark_vehicle(original.vehicle_id, MaintenanceStatus.ok.value)
            for block in self._open_blocks(original.vehicle_id):
                self._close_block(block, end_iso)
            logger.info("Replacement %s closed on %s", replacement.id, end_iso)
            return replacement

    def _open_blocks(self, vehicle_id: int) -> list[Reservation]:
        return [
            r for r in self.reservations.values()
            if r.is_maintenance_block and r.vehicle_id == vehicle_id and r.occupies_vehicle
        ]

    def _close_block(self, block: Reservation, end_iso: str) -> None:
        # A block that had not started yet by end_iso collapses to a single day
        end = max(end_iso, block.start_date)
        _stamp(block, {"end_date": end, "status": ReservationStatus.completed.value})
        logger.info("Maintenance block %s closed on %s", block.id, end)

    async def create_maintenance_block(
        self, vehicle_id: int, start_date: str, end_date: Optional[str] = None, notes: Optional[str] = None
    ) -> Reservation:
        interval = DateInterval.from_values(start_date, end_date).validate()
        async with self._lock:
            rules.require_vehicle(self.vehicles.get(vehicle_id), vehicle_id)
            return self._create_block(
                vehicle_id,
                interval.start.isoformat(),
                interval.end.isoformat() if interval.end else None,
                notes,
            )

    async def close_maintenance_block(self, block_reservation_id: int, end_date: str) -> Reservation:
        end_iso = parse_date(end_date, "end date").isoformat()
        async with self._lock:
            block = rules.require_reservation(
                self.reservations.get(block_reservation_id), block_reservation_id, "Maintenance block"
            )
            if not block.is_maintenance_block:
                raise ValidationError(f"Reservation {block_reservation_id} is not a maintenance block")
            DateInterval.from_values(block.start_date, end_iso).validate()
            self._close_block(block, end_iso)
            return block

    async def get_placeholder_reservations(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> list[Reservation]:
        placeholders = [
            r for r in self._live_reservations()
            if r.is_placeholder and r.occupies_vehicle and rules.placeholder_in_window(r, start_date, end_date)
        ]
        return sorted(placeholders, key=lambda r: r.start_date)

    async def get_placeholder_reservations_needing_assignment(self, days_ahead: int = 7) -> list[Reservation]:
        cutoff = days_from_today(days_ahead).isoformat()
        return [r for r in await self.get_placeholder_reservations() if r.start_date <= cutoff]

    async def create_placeholder_reservation(
        self,
        original_reservation_id: int,
        customer_id: Optional[int],
        start_date: str,
        end_date: Optional[str] = None,
    ) -> Reservation:
        interval = DateInterval.from_values(start_date, end_date).validate()
        async with self._lock:
            original = rules.require_reservation(
                self.reservations.get(original_reservation_id), original_reservation_id, "Original reservation"
            )
            rules.ensure_no_active_replacement(self._active_replacement(original_reservation_id))
            placeholder = self._insert_reservation(
                rules.placeholder_data(
                    original.id,
                    customer_id if customer_id is not None else original.customer_id,
                    interval.start.isoformat(),
                    interval.end.isoformat() if interval.end else None,
                )
            )
            self._insert_notification(rules.spare_assignment_notification(placeholder))
            logger.info("Placeholder %s created for reservation %s", placeholder.id, original.id)
            return placeholder

    async def assign_vehicle_to_placeholder(
        self, reservation_id: int, vehicle_id: int, end_date: Optional[str] = None
    ) -> Reservation:
        async with self._lock:
            reservation = rules.require_reservation(self.reservations.get(reservation_id), reservation_id)
            rules.ensure_open_placeholder(reservation)
            vehicle = rules.require_vehicle(self.vehicles.get(vehicle_id), vehicle_id)
            rules.ensure_not_in_service(vehicle)
            end_iso = rules.resolve_assignment_end(reservation, end_date)
            conflicts = self._conflicts(vehicle_id, reservation.start_date, end_iso, reservation_id)
            if conflicts:
                raise rules.conflict_error(
                    conflicts, "Vehicle has conflicting reservations during the assignment period"
                )
            _stamp(reservation, {
                "vehicle_id": vehicle_id,
                "end_date": end_iso,
                "placeholder_spare": False,
                "status": ReservationStatus.confirmed.value,
                "notes": (
                    f"Spare vehicle {vehicle.display_name} assigned for reservation "
                    f"#{reservation.replacement_for_reservation_id}"
                ),
            })
            for notification in self.notifications.values():
                if (
                    notification.type == NotificationType.spare_assignment.value
                    and notification.reservation_id == reservation_id
                    and not notification.is_read
                ):
                    _stamp(notification, {"is_read": True})
            logger.info("Vehicle %s assigned to placeholder %s", vehicle_id, reservation_id)
            return reservation

    # ---------------------------------------------------------- notifications
    async def get_all_custom_notifications(self, unread_only: bool = False) -> list[CustomNotification]:
        items = [n for n in self.notifications.values() if not (unread_only and n.is_read)]
        return sorted(items, key=lambda n: (n.created_at, n.id), reverse=True)

    async def get_custom_notification(self, notification_id: int) -> Optional[CustomNotification]:
        return self.notifications.get(notification_id)

    async def get_custom_notifications_by_type(self, notification_type: str) -> list[CustomNotification]:
        items = [n for n in self.notifications.values() if n.type == notification_type]
        return sorted(items, key=lambda n: (n.created_at, n.id), reverse=True)

    def _insert_notification(self, data: dict[str, Any]) -> CustomNotification:
        now = datetime.utcnow()
        notification = CustomNotification(
            id=self._next_id("notification"),
            type=NotificationType.custom.value,
            is_read=False,
            priority="normal",
            user_id=None,
            reservation_id=None,
            date=today().isoformat(),
            created_at=now,
            updated_at=now,
        )
        _stamp(notification, data)
        self.notifications[notification.id] = notification
        return notification

    async def create_custom_notification(self, data: dict[str, Any]) -> CustomNotification:
        async with self._lock:
            return self._insert_notification(data)

    async def set_custom_notification_read(self, notification_id: int, is_read: bool = True) -> bool:
        async with self._lock:
            notification = self.notifications.get(notification_id)
            if notification is None:
                return False
            _stamp(notification, {"is_read": is_read})
            return True

    async def delete_custom_notification(self, notification_id: int) -> bool:
        async with self._lock:
            return self.notifications.pop(notification_id, None) is not None
