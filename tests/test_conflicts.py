import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.enums import ReservationStatus, ReservationType


async def test_overlapping_rental_conflicts(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    booked = await make_reservation(vehicle.id, "2024-06-01", "2024-06-10", status="confirmed")

    conflicts = await storage.check_reservation_conflicts(vehicle.id, "2024-06-05", "2024-06-15")

    assert [r.id for r in conflicts] == [booked.id]


async def test_maintenance_block_does_not_block_rentals(storage, make_vehicle):
    vehicle = await make_vehicle()
    await storage.create_maintenance_block(vehicle.id, "2024-06-01", "2024-06-10")

    assert await storage.check_reservation_conflicts(vehicle.id, "2024-06-05", "2024-06-08") == []


async def test_maintenance_check_only_sees_blocks(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    await make_reservation(vehicle.id, "2024-06-01", "2024-06-10", status="confirmed")
    block = await storage.create_maintenance_block(vehicle.id, "2024-06-03", "2024-06-04")

    conflicts = await storage.check_reservation_conflicts(
        vehicle.id, "2024-06-01", "2024-06-10", is_maintenance_block=True
    )

    assert [r.id for r in conflicts] == [block.id]


async def test_open_ended_reservation_blocks_the_future(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    open_rental = await make_reservation(vehicle.id, "2024-06-01", None, status="active")

    conflicts = await storage.check_reservation_conflicts(vehicle.id, "2031-01-01", "2031-01-05")

    assert [r.id for r in conflicts] == [open_rental.id]
    assert await storage.check_reservation_conflicts(vehicle.id, "2024-05-01", "2024-05-31") == []


async def test_open_ended_candidate(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    later = await make_reservation(vehicle.id, "2025-01-10", "2025-01-20")

    conflicts = await storage.check_reservation_conflicts(vehicle.id, "2024-12-01", None)

    assert [r.id for r in conflicts] == [later.id]


async def test_touching_end_and_start_days_conflict(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    await make_reservation(vehicle.id, "2024-06-01", "2024-06-10")

    assert len(await storage.check_reservation_conflicts(vehicle.id, "2024-06-10", "2024-06-12")) == 1
    assert await storage.check_reservation_conflicts(vehicle.id, "2024-06-11", "2024-06-12") == []


@pytest.mark.parametrize("status", [ReservationStatus.cancelled.value, ReservationStatus.completed.value])
async def test_finished_reservations_never_conflict(storage, make_vehicle, make_reservation, status):
    vehicle = await make_vehicle()
    await make_reservation(vehicle.id, "2024-06-01", "2024-06-10", status=status)

    assert await storage.check_reservation_conflicts(vehicle.id, "2024-06-01", "2024-06-10") == []


async def test_soft_deleted_reservation_never_conflicts(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    reservation = await make_reservation(vehicle.id, "2024-06-01", "2024-06-10")

    assert await storage.delete_reservation(reservation.id)

    assert await storage.check_reservation_conflicts(vehicle.id, "2024-06-01", "2024-06-10") == []
    assert await storage.get_reservation(reservation.id) is None


async def test_other_vehicles_are_ignored(storage, make_vehicle, make_reservation):
    first = await make_vehicle()
    second = await make_vehicle()
    await make_reservation(first.id, "2024-06-01", "2024-06-10")

    assert await storage.check_reservation_conflicts(second.id, "2024-06-01", "2024-06-10") == []


async def test_create_rejects_overlap_with_conflicts_attached(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    existing = await make_reservation(vehicle.id, "2024-06-01", "2024-06-10", status="confirmed")

    with pytest.raises(ConflictError) as exc_info:
        await make_reservation(vehicle.id, "2024-06-05", "2024-06-15")

    assert [r.id for r in exc_info.value.conflicts] == [existing.id]
    assert len(await storage.get_reservations_by_vehicle(vehicle.id)) == 1


async def test_rental_can_be_booked_over_a_maintenance_block(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    await storage.create_maintenance_block(vehicle.id, "2024-06-01", "2024-06-10")

    rental = await make_reservation(vehicle.id, "2024-06-05", "2024-06-08")

    assert rental.type == ReservationType.standard.value


async def test_update_excludes_the_reservation_itself(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    reservation = await make_reservation(vehicle.id, "2024-06-01", "2024-06-10")

    updated = await storage.update_reservation(reservation.id, {"end_date": "2024-06-12"})

    assert updated.end_date == "2024-06-12"


async def test_update_into_another_booking_conflicts(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    await make_reservation(vehicle.id, "2024-06-01", "2024-06-10")
    later = await make_reservation(vehicle.id, "2024-06-20", "2024-06-25")

    with pytest.raises(ConflictError):
        await storage.update_reservation(later.id, {"start_date": "2024-06-09"})

    assert (await storage.get_reservation(later.id)).start_date == "2024-06-20"


async def test_cancelling_frees_the_slot(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    first = await make_reservation(vehicle.id, "2024-06-01", "2024-06-10")
    await storage.update_reservation(first.id, {"status": "cancelled"})

    second = await make_reservation(vehicle.id, "2024-06-01", "2024-06-10")

    assert second.id != first.id


async def test_create_validates_dates(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()

    with pytest.raises(ValidationError):
        await make_reservation(vehicle.id, "2024-06-10", "2024-06-01")
    with pytest.raises(ValidationError):
        await make_reservation(vehicle.id, "not-a-date")


async def test_create_on_unknown_vehicle(storage, make_reservation):
    with pytest.raises(NotFoundError):
        await make_reservation(999, "2024-06-01", "2024-06-02")


@pytest.mark.parametrize("field", ["status", "type"])
async def test_update_rejects_explicit_null_status_or_type(storage, make_vehicle, make_reservation, field):
    vehicle = await make_vehicle()
    reservation = await make_reservation(vehicle.id, "2024-06-01", "2024-06-10")

    with pytest.raises(ValidationError, match="is required"):
        await storage.update_reservation(reservation.id, {field: None})

    reloaded = await storage.get_reservation(reservation.id)
    assert reloaded.status == ReservationStatus.pending.value
    assert reloaded.type == ReservationType.standard.value
