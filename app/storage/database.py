"""
SQLAlchemy-backed storage.

Every write that depends on a conflict check runs as one unit: the target
vehicle row is locked (SELECT ... FOR UPDATE), overlapping reservations are
queried, and the insert/update is committed together. On any error the
transaction is rolled back so a failed assignment leaves the placeholder as it was.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dates import DateInterval, days_from_today, parse_date, today_iso
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.customer import Customer
from app.models.enums import (
    MaintenanceStatus,
    NON_BLOCKING_STATUSES,
    NotificationType,
    ReservationStatus,
    ReservationType,
)
from app.models.notification import CustomNotification
from app.models.reservation import Reservation
from app.models.user import User
from app.models.vehicle import Vehicle
from app.storage import rules
from app.storage.base import Storage

logger = logging.getLogger(__name__)

MAINTENANCE_BLOCK = ReservationType.maintenance_block.value


def _apply(obj, data: dict[str, Any]) -> None:
    for field, value in data.items():
        setattr(obj, field, value)


def _live():
    return Reservation.deleted_at.is_(None)


def _blocking():
    return and_(_live(), Reservation.status.notin_(NON_BLOCKING_STATUSES))


def _overlapping(start_iso: str, end_iso: str):
    """Rows whose [start, end or forever] meets [start_iso, end_iso]; ISO strings sort as dates."""
    return and_(
        Reservation.start_date <= end_iso,
        or_(Reservation.end_date.is_(None), Reservation.end_date >= start_iso),
    )


class DatabaseStorage(Storage):
    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _transaction(self):
        try:
            yield
            await self.db.commit()
        except Exception:
            # Detach first so rows already loaded (e.g. conflicts carried by the error) stay readable
            self.db.expunge_all()
            await self.db.rollback()
            raise

    async def _scalars(self, query) -> list:
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _scalar(self, query):
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _lock_vehicle(self, vehicle_id: int) -> Optional[Vehicle]:
        # populate_existing so the locked read wins over a stale identity-map copy
        return await self._scalar(
            select(Vehicle)
            .where(Vehicle.id == vehicle_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

    async def _load_reservation(self, reservation_id: int, label: str = "Reservation") -> Reservation:
        reservation = await self.db.get(Reservation, reservation_id)
        return rules.require_reservation(reservation, reservation_id, label)

    # ------------------------------------------------------------------ users
    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return await self._scalar(select(User).where(User.username == username))

    async def get_all_users(self) -> list[User]:
        return await self._scalars(select(User).order_by(User.id))

    async def count_users(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(User))
        return result.scalar_one()

    async def create_user(self, data: dict[str, Any]) -> User:
        async with self._transaction():
            if await self.get_user_by_username(data["username"]):
                raise ValidationError(f"Username {data['username']} already exists")
            user = User(**data)
            self.db.add(user)
            await self.db.flush()
        await self.db.refresh(user)
        return user

    async def update_user(self, user_id: int, data: dict[str, Any]) -> Optional[User]:
        async with self._transaction():
            user = await self.db.get(User, user_id)
            if user is None:
                return None
            _apply(user, data)
        await self.db.refresh(user)
        return user

    async def delete_user(self, user_id: int) -> bool:
        async with self._transaction():
            user = await self.db.get(User, user_id)
            if user is None:
                return False
            await self.db.delete(user)
        return True

    # --------------------------------------------------------------- vehicles
    async def get_all_vehicles(
        self, search: Optional[str] = None, maintenance_status: Optional[str] = None
    ) -> list[Vehicle]:
        query = select(Vehicle)
        if maintenance_status:
            query = query.where(Vehicle.maintenance_status == maintenance_status)
        if search:
            plate = f"%{search.replace('-', '').upper()}%"
            term = f"%{search.upper()}%"
            query = query.where(
                or_(
                    func.upper(func.replace(Vehicle.license_plate, "-", "")).like(plate),
                    func.upper(Vehicle.brand).like(term),
                    func.upper(Vehicle.model).like(term),
                )
            )
        return await self._scalars(query.order_by(Vehicle.id))

    async def get_vehicle(self, vehicle_id: int) -> Optional[Vehicle]:
        return await self.db.get(Vehicle, vehicle_id)

    async def get_vehicle_by_plate(self, license_plate: str) -> Optional[Vehicle]:
        return await self._scalar(select(Vehicle).where(Vehicle.license_plate == license_plate))

    async def create_vehicle(self, data: dict[str, Any]) -> Vehicle:
        async with self._transaction():
            if await self.get_vehicle_by_plate(data["license_plate"]):
                raise ValidationError(f"Vehicle with license plate {data['license_plate']} already exists")
            vehicle = Vehicle(**{k: v for k, v in data.items() if v is not None})
            self.db.add(vehicle)
            await self.db.flush()
        await self.db.refresh(vehicle)
        logger.info("Vehicle %s created (%s)", vehicle.id, vehicle.license_plate)
        return vehicle

    async def update_vehicle(self, vehicle_id: int, data: dict[str, Any]) -> Optional[Vehicle]:
        async with self._transaction():
            vehicle = await self._lock_vehicle(vehicle_id)
            if vehicle is None:
                return None
            plate = data.get("license_plate")
            if plate and plate != vehicle.license_plate and await self.get_vehicle_by_plate(plate):
                raise ValidationError(f"Vehicle with license plate {plate} already exists")
            _apply(vehicle, data)
        await self.db.refresh(vehicle)
        return vehicle

    async def delete_vehicle(self, vehicle_id: int) -> bool:
        async with self._transaction():
            vehicle = await self._lock_vehicle(vehicle_id)
            if vehicle is None:
                return False
            open_rows = await self._scalars(
                select(Reservation.id).where(Reservation.vehicle_id == vehicle_id, _blocking()).limit(1)
            )
            if open_rows:
                raise ConflictError("Cannot delete vehicle that has open reservations")
            await self.db.delete(vehicle)
        return True

    async def get_available_vehicles(self) -> list[Vehicle]:
        day = today_iso()
        return await self.get_available_vehicles_in_range(day, day)

    async def get_available_vehicles_in_range(
        self, start_date: str, end_date: str, exclude_vehicle_id: Optional[int] = None
    ) -> list[Vehicle]:
        start_iso, end_iso = DateInterval.from_values(start_date, end_date).validate().iso_bounds()
        busy = (
            select(Reservation.vehicle_id)
            .where(
                Reservation.vehicle_id.is_not(None),
                _blocking(),
                Reservation.type != MAINTENANCE_BLOCK,
                _overlapping(start_iso, end_iso),
            )
        )
        query = select(Vehicle).where(
            Vehicle.id.notin_(busy),
            Vehicle.maintenance_status == MaintenanceStatus.ok.value,
        )
        if exclude_vehicle_id is not None:
            query = query.where(Vehicle.id != exclude_vehicle_id)
        vehicles = await self._scalars(query.order_by(Vehicle.id))
        logger.debug("Available vehicles %s..%s: %s", start_date, end_date, [v.id for v in vehicles])
        return vehicles

    async def mark_vehicle_for_service(
        self, vehicle_id: int, maintenance_status: str, maintenance_note: Optional[str] = None
    ) -> Vehicle:
        async with self._transaction():
            vehicle = await self._mark_vehicle(vehicle_id, maintenance_status, maintenance_note)
        await self.db.refresh(vehicle)
        return vehicle

    async def _mark_vehicle(
        self, vehicle_id: int, maintenance_status: str, maintenance_note: Optional[str] = None
    ) -> Vehicle:
        value = rules.validate_maintenance_status(maintenance_status)
        vehicle = rules.require_vehicle(await self._lock_vehicle(vehicle_id), vehicle_id)
        vehicle.maintenance_status = value
        vehicle.maintenance_note = maintenance_note
        logger.info("Vehicle %s maintenance status -> %s", vehicle_id, value)
        return vehicle

    # -------------------------------------------------------------- customers
    async def get_all_customers(self, search: Optional[str] = None) -> list[Customer]:
        query = select(Customer)
        if search:
            term = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Customer.name).like(term),
                    func.lower(Customer.email).like(term),
                    func.lower(Customer.phone).like(term),
                )
            )
        return await self._scalars(query.order_by(Customer.id))

    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        return await self.db.get(Customer, customer_id)

    async def create_customer(self, data: dict[str, Any]) -> Customer:
        async with self._transaction():
            customer = Customer(**data)
            self.db.add(customer)
            await self.db.flush()
        await self.db.refresh(customer)
        return customer

    async def update_customer(self, customer_id: int, data: dict[str, Any]) -> Optional[Customer]:
        async with self._transaction():
            customer = await self.db.get(Customer, customer_id)
            if customer is None:
                return None
            _apply(customer, data)
        await self.db.refresh(customer)
        return customer

    async def delete_customer(self, customer_id: int) -> bool:
        async with self._transaction():
            customer = await self.db.get(Customer, customer_id)
            if customer is None:
                return False
            booked = await self._scalars(
                select(Reservation.id).where(Reservation.customer_id == customer_id, _live()).limit(1)
            )
            if booked:
                raise ConflictError("Cannot delete customer that has reservations")
            await self.db.delete(customer)
        return True

    # ----------------------------------------------------------- reservations
    async def get_all_reservations(self) -> list[Reservation]:
        return await self._scalars(
            select(Reservation).where(_live()).order_by(Reservation.start_date.desc(), Reservation.id.desc())
        )

    async def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        reservation = await self.db.get(Reservation, reservation_id)
        if reservation is None or reservation.is_deleted:
            return None
        return reservation

    async def check_reservation_conflicts(
        self,
        vehicle_id: int,
        start_date: str,
        end_date: Optional[str],
        exclude_reservation_id: Optional[int] = None,
        is_maintenance_block: bool = False,
    ) -> list[Reservation]:
        start_iso, end_iso = DateInterval.from_values(start_date, end_date).iso_bounds()
        query = select(Reservation).where(
            Reservation.vehicle_id == vehicle_id,
            _blocking(),
            _overlapping(start_iso, end_iso),
        )
        if is_maintenance_block:
            query = query.where(Reservation.type == MAINTENANCE_BLOCK)
        else:
            query = query.where(Reservation.type != MAINTENANCE_BLOCK)
        if exclude_reservation_id is not None:
            query = query.where(Reservation.id != exclude_reservation_id)
        return await self._scalars(query.order_by(Reservation.start_date))

    async def _guard_conflicts(self, data: dict[str, Any], existing: Optional[Reservation] = None) -> None:
        vehicle_id = rules.merged_value("vehicle_id", data, existing)
        status = rules.merged_value("status", data, existing, ReservationStatus.pending.value)
        if not rules.needs_conflict_check(vehicle_id, status):
            return
        if await self._lock_vehicle(vehicle_id) is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        kind = rules.merged_value("type", data, existing, ReservationType.standard.value)
        conflicts = await self.check_reservation_conflicts(
            vehicle_id,
            rules.merged_value("start_date", data, existing),
            rules.merged_value("end_date", data, existing),
            existing.id if existing else None,
            kind == MAINTENANCE_BLOCK,
        )
        if conflicts:
            raise rules.conflict_error(conflicts)

    async def _insert_reservation(self, data: dict[str, Any]) -> Reservation:
        reservation = Reservation(**data)
        self.db.add(reservation)
        await self.db.flush()
        return reservation

    async def create_reservation(self, data: dict[str, Any]) -> Reservation:
        clean = rules.normalize_reservation_data(data)
        async with self._transaction():
            await self._guard_conflicts(clean)
            reservation = await self._insert_reservation(clean)
        await self.db.refresh(reservation)
        logger.info("Reservation %s created for vehicle %s", reservation.id, reservation.vehicle_id)
        return reservation

    async def update_reservation(self, reservation_id: int, data: dict[str, Any]) -> Reservation:
        async with self._transaction():
            existing = await self._load_reservation(reservation_id)
            clean = rules.normalize_reservation_data(data, existing)
            await self._guard_conflicts(clean, existing)
            _apply(existing, clean)
        await self.db.refresh(existing)
        return existing

    async def delete_reservation(self, reservation_id: int) -> bool:
        async with self._transaction():
            reservation = await self.db.get(Reservation, reservation_id)
            if reservation is None or reservation.is_deleted:
                return False
            reservation.deleted_at = datetime.utcnow()
        logger.info("Reservation %s soft-deleted", reservation_id)
        return True

    async def get_reservations_in_date_range(self, start_date: str, end_date: str) -> list[Reservation]:
        start_iso, end_iso = DateInterval.from_values(start_date, end_date).validate().iso_bounds()
        return await self._scalars(
            select(Reservation)
            .where(_live(), _overlapping(start_iso, end_iso))
            .order_by(Reservation.start_date, Reservation.id)
        )

    async def get_upcoming_reservations(self, limit: int = 5) -> list[Reservation]:
        return await self._scalars(
            select(Reservation)
            .where(
                _live(),
                Reservation.start_date >= today_iso(),
                Reservation.status != ReservationStatus.cancelled.value,
                Reservation.type != MAINTENANCE_BLOCK,
            )
            .order_by(Reservation.start_date, Reservation.id)
            .limit(limit)
        )

    async def get_upcoming_maintenance_reservations(self) -> list[Reservation]:
        return await self._scalars(
            select(Reservation)
            .where(_blocking(), Reservation.type == MAINTENANCE_BLOCK, Reservation.start_date >= today_iso())
            .order_by(Reservation.start_date, Reservation.id)
        )

    async def get_reservations_by_vehicle(self, vehicle_id: int) -> list[Reservation]:
        return await self._scalars(
            select(Reservation)
            .where(_live(), Reservation.vehicle_id == vehicle_id)
            .order_by(Reservation.start_date.desc(), Reservation.id.desc())
        )

    async def get_reservations_by_customer(self, customer_id: int) -> list[Reservation]:
        return await self._scalars(
            select(Reservation)
            .where(_live(), Reservation.customer_id == customer_id)
            .order_by(Reservation.start_date.desc(), Reservation.id.desc())
        )

    # ------------------------------------------------- spare vehicle workflow
    async def get_active_replacement_by_original(self, original_reservation_id: int) -> Optional[Reservation]:
        rows = await self._scalars(
            select(Reservation)
            .where(
                _blocking(),
                Reservation.type == ReservationType.replacement.value,
                Reservation.replacement_for_reservation_id == original_reservation_id,
            )
            .order_by(Reservation.id)
            .limit(1)
        )
        return rows[0] if rows else None

    async def _create_block(
        self, vehicle_id: int, start_date: str, end_date: Optional[str], notes: Optional[str] = None
    ) -> Reservation:
        conflicts = await self.check_reservation_conflicts(vehicle_id, start_date, end_date, is_maintenance_block=True)
        if conflicts:
            raise rules.conflict_error(conflicts, "Vehicle already has a maintenance block during this period")
        block = await self._insert_reservation(rules.maintenance_block_data(vehicle_id, start_date, end_date, notes))
        logger.info("Maintenance block %s created for vehicle %s", block.id, vehicle_id)
        return block

    async def create_replacement_reservation(
        self,
        original_reservation_id: int,
        spare_vehicle_id: int,
        start_date: str,
        end_date: Optional[str] = None,
    ) -> Reservation:
        async with self._transaction():
            original = await self._load_reservation(original_reservation_id, "Original reservation")
            if spare_vehicle_id == original.vehicle_id:
                raise ValidationError("Spare vehicle cannot be the same as original vehicle")
            spare = rules.require_vehicle(await self._lock_vehicle(spare_vehicle_id), spare_vehicle_id)
            rules.ensure_not_in_service(spare)
            rules.ensure_no_active_replacement(await self.get_active_replacement_by_original(original_reservation_id))

            interval = DateInterval.from_values(start_date, end_date or original.end_date).validate()
            start_iso = interval.start.isoformat()
            end_iso = interval.end.isoformat() if interval.end else None
            conflicts = await self.check_reservation_conflicts(spare_vehicle_id, start_iso, end_iso)
            if conflicts:
                raise rules.conflict_error(conflicts, "Spare vehicle has conflicting reservations")

            replacement = await self._insert_reservation(
                rules.replacement_data(original, spare_vehicle_id, start_iso, end_iso, spare.display_name)
            )
            if original.vehicle_id is not None and await self.get_vehicle(original.vehicle_id) is not None:
                await self._mark_vehicle(
                    original.vehicle_id,
                    MaintenanceStatus.in_service.value,
                    f"Spare {spare.license_plate} issued for reservation #{original.id}",
                )
                existing_blocks = await self.check_reservation_conflicts(
                    original.vehicle_id, start_iso, end_iso, is_maintenance_block=True
                )
                if not existing_blocks:
                    await self._create_block(original.vehicle_id, start_iso, end_iso)
        await self.db.refresh(replacement)
        logger.info(
            "Replacement %s created: spare vehicle %s covers reservation %s",
            replacement.id, spare_vehicle_id, original_reservation_id,
        )
        return replacement

    async def _close_open_blocks(self, vehicle_id: int, end_iso: str) -> None:
        blocks = await self._scalars(
            select(Reservation).where(
                Reservation.vehicle_id == vehicle_id,
                Reservation.type == MAINTENANCE_BLOCK,
                _blocking(),
            )
        )
        for block in blocks:
            self._close_block(block, end_iso)

    @staticmethod
    def _close_block(block: Reservation, end_iso: str) -> None:
        # A block that had not started yet by end_iso collapses to a single day
        block.end_date = max(end_iso, block.start_date)
        block.status = ReservationStatus.completed.value
        logger.info("Maintenance block %s closed on %s", block.id, block.end_date)

    async def close_replacement_reservation(self, replacement_reservation_id: int, end_date: str) -> Reservation:
        end_iso = parse_date(end_date, "end date").isoformat()
        async with self._transaction():
            replacement = await self._load_reservation(replacement_reservation_id, "Replacement reservation")
            if replacement.type != ReservationType.replacement.value:
                raise ValidationError(f"Reservation {replacement_reservation_id} is not a replacement reservation")
            DateInterval.from_values(replacement.start_date, end_iso).validate()
            replacement.end_date = end_iso
            replacement.status = ReservationStatus.completed.value

            original = None
            if replacement.replacement_for_reservation_id is not None:
                original = await self.db.get(Reservation, replacement.replacement_for_reservation_id)
            if original is None or original.vehicle_id is None:
                logger.warning("Replacement %s closed without an original vehicle to restore", replacement.id)
            else:
                if await self.get_vehicle(original.vehicle_id) is not None:
                    await self._mark_vehicle(original.vehicle_id, MaintenanceStatus.ok.value)
                await self._close_open_blocks(original.vehicle_id, end_iso)
        await self.db.refresh(replacement)
        logger.info("Replacement %s closed on %s", replacement.id, end_iso)
        return replacement

    async def create_maintenance_block(
        self, vehicle_id: int, start_date: str, end_date: Optional[str] = None, notes: Optional[str] = None
    ) -> Reservation:
        interval = DateInterval.from_values(start_date, end_date).validate()
        async with self._transaction():
            rules.require_vehicle(await self._lock_vehicle(vehicle_id), vehicle_id)
            block = await self._create_block(
                vehicle_id,
                interval.start.isoformat(),
                interval.end.isoformat() if interval.end else None,
                notes,
            )
        await self.db.refresh(block)
        return block

    async def close_maintenance_block(self, block_reservation_id: int, end_date: str) -> Reservation:
        end_iso = parse_date(end_date, "end date").isoformat()
        async with self._transaction():
            block = await self._load_reservation(block_reservation_id, "Maintenance block")
            if not block.is_maintenance_block:
                raise ValidationError(f"Reservation {block_reservation_id} is not a maintenance block")
            DateInterval.from_values(block.start_date, end_iso).validate()
            self._close_block(block, end_iso)
        await self.db.refresh(block)
        return block

    def _placeholder_query(self):
        return select(Reservation).where(
            _blocking(),
            Reservation.placeholder_spare.is_(True),
            Reservation.vehicle_id.is_(None),
            Reservation.type == ReservationType.replacement.value,
        )

    async def get_placeholder_reservations(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> list[Reservation]:
        query = self._placeholder_query()
        if start_date is not None or end_date is not None:
            window_start = parse_date(start_date).isoformat() if start_date else "0001-01-01"
            window = DateInterval.from_values(window_start, end_date)
            query = query.where(_overlapping(*window.iso_bounds()))
        return await self._scalars(query.order_by(Reservation.start_date, Reservation.id))

    async def get_placeholder_reservations_needing_assignment(self, days_ahead: int = 7) -> list[Reservation]:
        cutoff = days_from_today(days_ahead).isoformat()
        return await self._scalars(
            self._placeholder_query()
            .where(Reservation.start_date <= cutoff)
            .order_by(Reservation.start_date, Reservation.id)
        )

    async def create_placeholder_reservation(
        self,
        original_reservation_id: int,
        customer_id: Optional[int],
        start_date: str,
        end_date: Optional[str] = None,
    ) -> Reservation:
        interval = DateInterval.from_values(start_date, end_date).validate()
        async with self._transaction():
            original = await self._load_reservation(original_reservation_id, "Original reservation")
            if original.vehicle_id is not None:
                # serialises concurrent placeholder requests for the same booking
                await self._lock_vehicle(original.vehicle_id)
            rules.ensure_no_active_replacement(await self.get_active_replacement_by_original(original_reservation_id))
            placeholder = await self._insert_reservation(
                rules.placeholder_data(
                    original.id,
                    customer_id if customer_id is not None else original.customer_id,
                    interval.start.isoformat(),
                    interval.end.isoformat() if interval.end else None,
                )
            )
            self.db.add(CustomNotification(**rules.spare_assignment_notification(placeholder)))
        await self.db.refresh(placeholder)
        logger.info("Placeholder %s created for reservation %s", placeholder.id, original_reservation_id)
        return placeholder

    async def assign_vehicle_to_placeholder(
        self, reservation_id: int, vehicle_id: int, end_date: Optional[str] = None
    ) -> Reservation:
        async with self._transaction():
            reservation = await self._load_reservation(reservation_id)
            rules.ensure_open_placeholder(reservation)
            vehicle = rules.require_vehicle(await self._lock_vehicle(vehicle_id), vehicle_id)
            rules.ensure_not_in_service(vehicle)
            end_iso = rules.resolve_assignment_end(reservation, end_date)
            conflicts = await self.check_reservation_conflicts(
                vehicle_id, reservation.start_date, end_iso, reservation_id
            )
            if conflicts:
                raise rules.conflict_error(
                    conflicts, "Vehicle has conflicting reservations during the assignment period"
                )
            reservation.vehicle_id = vehicle_id
            reservation.end_date = end_iso
            reservation.placeholder_spare = False
            reservation.status = ReservationStatus.confirmed.value
            reservation.notes = (
                f"Spare vehicle {vehicle.display_name} assigned for reservation "
                f"#{reservation.replacement_for_reservation_id}"
            )
            await self.db.execute(
                update(CustomNotification)
                .where(
                    CustomNotification.type == NotificationType.spare_assignment.value,
                    CustomNotification.reservation_id == reservation_id,
                    CustomNotification.is_read.is_(False),
                )
                .values(is_read=True, updated_at=datetime.utcnow())
                .execution_options(synchronize_session="fetch")
            )
        await self.db.refresh(reservation)
        logger.info("Vehicle %s assigned to placeholder %s", vehicle_id, reservation_id)
        return reservation

    # ---------------------------------------------------------- notifications
    async def get_all_custom_notifications(self, unread_only: bool = False) -> list[CustomNotification]:
        query = select(CustomNotification)
        if unread_only:
            query = query.where(CustomNotification.is_read.is_(False))
        return await self._scalars(query.order_by(CustomNotification.created_at.desc(), CustomNotification.id.desc()))

    async def get_custom_notification(self, notification_id: int) -> Optional[CustomNotification]:
        return await self.db.get(CustomNotification, notification_id)

    async def get_custom_notifications_by_type(self, notification_type: str) -> list[CustomNotification]:
        return await self._scalars(
            select(CustomNotification)
            .where(CustomNotification.type == notification_type)
            .order_by(CustomNotification.created_at.desc(), CustomNotification.id.desc())
        )

    async def create_custom_notification(self, data: dict[str, Any]) -> CustomNotification:
        payload = {"date": today_iso(), **data}
        async with self._transaction():
            notification = CustomNotification(**payload)
            self.db.add(notification)
            await self.db.flush()
        await self.db.refresh(notification)
        return notification

    async def set_custom_notification_read(self, notification_id: int, is_read: bool = True) -> bool:
        async with self._transaction():
            notification = await self.db.get(CustomNotification, notification_id)
            if notification is None:
                return False
            notification.is_read = is_read
        return True

    async def delete_custom_notification(self, notification_id: int) -> bool:
        async with self._transaction():
            notification = await self.db.get(CustomNotification, notification_id)
            if notification is None:
                return False
            await self.db.delete(notification)
        return True
