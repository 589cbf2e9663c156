"""
Backend-independent reservation rules: payload normalisation, the conflict
predicate used by the in-memory store, and the precondition checks of the
spare-vehicle workflow. Both storage backends call these so the two stay in
lockstep.
"""
from datetime import date
from typing import Any, Optional

from app.core.dates import DateInterval, parse_date, parse_optional_date, today
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.enums import (
    MaintenanceStatus,
    NotificationPriority,
    NotificationType,
    ReservationStatus,
    ReservationType,
)
from app.models.reservation import Reservation
from app.models.vehicle import Vehicle

RESERVATION_TYPES = {t.value for t in ReservationType}
RESERVATION_STATUSES = {s.value for s in ReservationStatus}
MAINTENANCE_STATUSES = {s.value for s in MaintenanceStatus}

PLACEHOLDER_EXISTS_MESSAGE = "A placeholder spare reservation already exists for this original reservation"
REPLACEMENT_EXISTS_MESSAGE = "A replacement reservation already exists for this original reservation"
VEHICLE_IN_SERVICE_MESSAGE = "Vehicle is currently in service and not available"


def normalize_reservation_data(data: dict[str, Any], existing: Optional[Reservation] = None) -> dict[str, Any]:
    """
    Validate and canonicalise a create/update payload. Dates become ISO strings,
    end_date None stays None (open-ended). For updates the merged interval is checked.
    """
    clean = dict(data)
    if existing is not None and "vehicle_id" in clean:
        ensure_vehicle_change_allowed(existing, clean["vehicle_id"])
    if "start_date" in clean:
        if clean["start_date"] is None:
            raise ValidationError("Start date is required")
        clean["start_date"] = parse_date(clean["start_date"], "start date").isoformat()
    if "end_date" in clean:
        end = parse_optional_date(clean["end_date"])
        clean["end_date"] = end.isoformat() if end else None
    if "type" in clean:
        if clean["type"] is None:
            raise ValidationError("Reservation type is required")
        clean["type"] = getattr(clean["type"], "value", clean["type"])
        if clean["type"] not in RESERVATION_TYPES:
            raise ValidationError(f"Invalid reservation type. Must be one of: {sorted(RESERVATION_TYPES)}")
    if "status" in clean:
        if clean["status"] is None:
            raise ValidationError("Reservation status is required")
        clean["status"] = getattr(clean["status"], "value", clean["status"])
        if clean["status"] not in RESERVATION_STATUSES:
            raise ValidationError(f"Invalid reservation status. Must be one of: {sorted(RESERVATION_STATUSES)}")

    start = clean.get("start_date", existing.start_date if existing else None)
    if start is None:
        raise ValidationError("Start date is required")
    end = clean["end_date"] if "end_date" in clean else (existing.end_date if existing else None)
    DateInterval.from_values(start, end).validate()
    return clean


def ensure_vehicle_change_allowed(existing: Reservation, vehicle_id: Optional[int]) -> None:
    if vehicle_id == existing.vehicle_id:
        return
    if existing.placeholder_spare:
        raise ValidationError(
            f"Reservation {existing.id} is a placeholder spare reservation; "
            f"assign its vehicle through /spare-vehicles/placeholders/{existing.id}/assign"
        )
    if vehicle_id is None and existing.vehicle_id is not None:
        raise ValidationError("Vehicle cannot be removed from an assigned reservation")


def merged_value(field: str, data: dict[str, Any], existing: Optional[Reservation], default: Any = None) -> Any:
    if field in data:
        return data[field]
    if existing is not None:
        return getattr(existing, field)
    return default


def needs_conflict_check(vehicle_id: Optional[int], status: Optional[str]) -> bool:
    return vehicle_id is not None and status not in (
        ReservationStatus.cancelled.value,
        ReservationStatus.completed.value,
    )


def is_conflict_candidate(
    reservation: Reservation,
    vehicle_id: int,
    interval: DateInterval,
    exclude_reservation_id: Optional[int],
    is_maintenance_block: bool,
) -> bool:
    """In-memory form of the conflict predicate (the database backend expresses it in SQL)."""
    if reservation.vehicle_id != vehicle_id:
        return False
    if exclude_reservation_id is not None and reservation.id == exclude_reservation_id:
        return False
    if not reservation.occupies_vehicle:
        return False
    # Maintenance only collides with maintenance; rentals continue on a spare.
    if reservation.is_maintenance_block != is_maintenance_block:
        return False
    return reservation.interval.overlaps(interval)


def conflict_error(conflicts: list[Reservation], message: Optional[str] = None) -> ConflictError:
    ids = ", ".join(f"#{r.id}" for r in conflicts)
    return ConflictError(
        message or f"Reservation conflicts with existing bookings ({ids})",
        conflicts=conflicts,
    )


def vehicle_label(vehicle: Optional[Vehicle], vehicle_id: Optional[int]) -> str:
    if vehicle is None:
        return f"Vehicle ID {vehicle_id}"
    return vehicle.display_name


def require_vehicle(vehicle: Optional[Vehicle], vehicle_id: int) -> Vehicle:
    if vehicle is None:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    return vehicle


def require_reservation(reservation: Optional[Reservation], reservation_id: int, label: str = "Reservation") -> Reservation:
    if reservation is None or reservation.is_deleted:
        raise NotFoundError(f"{label} {reservation_id} not found")
    return reservation


def ensure_not_in_service(vehicle: Vehicle) -> None:
    if vehicle.maintenance_status == MaintenanceStatus.in_service.value:
        raise ConflictError(VEHICLE_IN_SERVICE_MESSAGE)


def ensure_open_placeholder(reservation: Reservation) -> None:
    if not reservation.is_placeholder:
        raise ValidationError(f"Reservation {reservation.id} is not an unassigned placeholder spare reservation")
    if not reservation.occupies_vehicle:
        raise ValidationError(f"Placeholder reservation {reservation.id} is {reservation.status}")


def resolve_assignment_end(reservation: Reservation, end_date: Optional[str]) -> str:
    """An assigned spare needs a concrete end date; explicit end wins over the placeholder's."""
    end = parse_optional_date(end_date) or parse_optional_date(reservation.end_date)
    if end is None:
        raise ValidationError(
            "End date must be specified when assigning vehicle to open-ended placeholder reservation"
        )
    DateInterval.from_values(reservation.start_date, end).validate()
    return end.isoformat()


def ensure_no_active_replacement(existing: Optional[Reservation]) -> None:
    if existing is None:
        return
    if existing.is_placeholder:
        raise ConflictError(PLACEHOLDER_EXISTS_MESSAGE)
    raise ConflictError(REPLACEMENT_EXISTS_MESSAGE)


def is_active_replacement_for(reservation: Reservation, original_reservation_id: int) -> bool:
    return (
        reservation.type == ReservationType.replacement.value
        and reservation.replacement_for_reservation_id == original_reservation_id
        and reservation.occupies_vehicle
    )


def placeholder_data(
    original_reservation_id: int, customer_id: Optional[int], start_date: str, end_date: Optional[str]
) -> dict[str, Any]:
    return {
        "vehicle_id": None,
        "customer_id": customer_id,
        "start_date": start_date,
        "end_date": end_date,
        "status": ReservationStatus.pending.value,
        "type": ReservationType.replacement.value,
        "replacement_for_reservation_id": original_reservation_id,
        "placeholder_spare": True,
        "notes": f"TBD spare vehicle for reservation #{original_reservation_id}",
    }


def spare_assignment_notification(placeholder: Reservation) -> dict[str, Any]:
    period = placeholder.start_date + (f" - {placeholder.end_date}" if placeholder.end_date else "")
    return {
        "title": "Spare Vehicle Assignment Required",
        "description": f"TBD spare vehicle needs assignment for {period}",
        "date": placeholder.start_date,
        "type": NotificationType.spare_assignment.value,
        "is_read": False,
        "link": "/dashboard",
        "icon": "Car",
        "priority": NotificationPriority.high.value,
        "user_id": None,
        "reservation_id": placeholder.id,
    }


def replacement_data(
    original: Reservation,
    spare_vehicle_id: int,
    start_date: str,
    end_date: Optional[str],
    spare_label: str,
) -> dict[str, Any]:
    started = parse_date(start_date) <= today()
    return {
        "vehicle_id": spare_vehicle_id,
        "customer_id": original.customer_id,
        "start_date": start_date,
        "end_date": end_date,
        "status": ReservationStatus.active.value if started else ReservationStatus.pending.value,
        "type": ReservationType.replacement.value,
        "replacement_for_reservation_id": original.id,
        "placeholder_spare": False,
        "notes": f"Spare vehicle {spare_label} for reservation #{original.id}",
    }


def maintenance_block_data(
    vehicle_id: int, start_date: str, end_date: Optional[str], notes: Optional[str] = None
) -> dict[str, Any]:
    return {
        "vehicle_id": vehicle_id,
        "customer_id": None,
        "start_date": start_date,
        "end_date": end_date,
        "status": ReservationStatus.active.value,
        "type": ReservationType.maintenance_block.value,
        "replacement_for_reservation_id": None,
        "placeholder_spare": False,
        "notes": notes or "Vehicle maintenance block",
    }


def validate_maintenance_status(maintenance_status: str) -> str:
    value = getattr(maintenance_status, "value", maintenance_status)
    if value not in MAINTENANCE_STATUSES:
        raise ValidationError(f"Invalid maintenance status. Must be one of: {sorted(MAINTENANCE_STATUSES)}")
    return value


def placeholder_in_window(reservation: Reservation, start_date: Optional[str], end_date: Optional[str]) -> bool:
    if start_date is None and end_date is None:
        return True
    window = DateInterval(
        parse_date(start_date) if start_date else date.min,
        parse_optional_date(end_date),
    )
    return reservation.interval.overlaps(window)
