"""
Derived vehicle availability status.

The stored ``availability_status`` is partly manual (needs_fixing,
not_for_rental) and partly a reflection of today's reservations (rented,
scheduled). These helpers compute the status a vehicle should show and decide
whether a manual change makes sense.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from app.core.dates import DateInterval, today
from app.models.enums import AvailabilityStatus, ReservationStatus
from app.models.reservation import Reservation
from app.models.vehicle import Vehicle

# Statuses after which a reservation no longer says anything about the vehicle today
_FINISHED = {
    ReservationStatus.cancelled.value,
    ReservationStatus.completed.value,
    ReservationStatus.returned.value,
}
_STICKY = {AvailabilityStatus.needs_fixing.value, AvailabilityStatus.not_for_rental.value}


@dataclass
class VehicleStatusContext:
    vehicle: Vehicle
    active_reservations: list[Reservation] = field(default_factory=list)
    has_picked_up_reservation: bool = False
    has_booked_reservation: bool = False
    has_maintenance_block: bool = False


@dataclass
class StatusTransition:
    allowed: bool
    new_status: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None


def get_vehicle_status_context(
    vehicle: Vehicle, reservations: Iterable[Reservation], on: Optional[date] = None
) -> VehicleStatusContext:
    day = on or today()
    relevant = [
        r for r in reservations
        if r.vehicle_id == vehicle.id and not r.is_deleted and r.status not in _FINISHED
    ]
    running = [r for r in relevant if DateInterval.from_values(r.start_date, r.end_date).contains(day)]
    active = [r for r in running if not r.is_maintenance_block]
    return VehicleStatusContext(
        vehicle=vehicle,
        active_reservations=active,
        has_picked_up_reservation=any(r.status == ReservationStatus.picked_up.value for r in active),
        has_booked_reservation=any(r.status == ReservationStatus.booked.value for r in active),
        has_maintenance_block=any(r.is_maintenance_block for r in running),
    )


def calculate_correct_status(context: VehicleStatusContext) -> str:
    current = context.vehicle.availability_status or AvailabilityStatus.available.value
    if current in _STICKY:
        return current
    if context.has_picked_up_reservation:
        return AvailabilityStatus.rented.value
    if context.has_maintenance_block:
        return AvailabilityStatus.needs_fixing.value
    if context.has_booked_reservation:
        return AvailabilityStatus.scheduled.value
    return AvailabilityStatus.available.value


def validate_manual_status_change(current: str, new: str, context: VehicleStatusContext) -> StatusTransition:
    if current == new:
        return StatusTransition(allowed=True, new_status=new)

    if context.has_picked_up_reservation:
        if new == AvailabilityStatus.available.value:
            return StatusTransition(
                allowed=False,
                error='Cannot set vehicle to "available" while it has an active picked-up rental. '
                      'Please return the vehicle first.',
            )
        if new == AvailabilityStatus.needs_fixing.value:
            return StatusTransition(
                allowed=True,
                new_status=new,
                warning='Vehicle has an active rental. It will need attention after return.',
            )
        if new == AvailabilityStatus.not_for_rental.value:
            return StatusTransition(
                allowed=True,
                new_status=new,
                warning='Vehicle has an active rental. It will be marked as "not for rental" after the rental ends.',
            )

    if context.has_maintenance_block:
        if new == AvailabilityStatus.available.value:
            return StatusTransition(
                allowed=False,
                error='Cannot set vehicle to "available" while it has an active maintenance block. '
                      'Please close the maintenance first.',
            )
        if new == AvailabilityStatus.not_for_rental.value:
            return StatusTransition(
                allowed=True,
                new_status=new,
                warning='Vehicle has active maintenance. It will be marked as "not for rental" after maintenance.',
            )

    if context.has_booked_reservation and new in _STICKY:
        return StatusTransition(
            allowed=True,
            new_status=new,
            warning="Vehicle has booked reservations. Changing status may require rescheduling those bookings.",
        )

    if new == AvailabilityStatus.rented.value and not context.has_picked_up_reservation:
        return StatusTransition(
            allowed=False,
            error='Cannot manually set vehicle to "rented". This status is set automatically on pickup.',
        )
    if new == AvailabilityStatus.scheduled.value and not context.has_booked_reservation:
        return StatusTransition(
            allowed=False,
            error='Cannot manually set vehicle to "scheduled". This status is set automatically from bookings.',
        )
    return StatusTransition(allowed=True, new_status=new)
