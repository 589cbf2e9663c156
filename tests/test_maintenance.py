import pytest
from conftest import day

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.enums import MaintenanceStatus, ReservationStatus, ReservationType


async def test_create_maintenance_block(storage, make_vehicle):
    vehicle = await make_vehicle()

    block = await storage.create_maintenance_block(vehicle.id, "2024-06-01", "2024-06-03", "APK")

    assert block.type == ReservationType.maintenance_block.value
    assert block.status == ReservationStatus.active.value
    assert block.customer_id is None
    assert block.notes == "APK"


async def test_overlapping_maintenance_blocks_conflict(storage, make_vehicle):
    vehicle = await make_vehicle()
    await storage.create_maintenance_block(vehicle.id, "2024-06-01", None)

    with pytest.raises(ConflictError):
        await storage.create_maintenance_block(vehicle.id, "2024-07-01", "2024-07-02")


async def test_maintenance_block_ignores_rentals(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    await make_reservation(vehicle.id, "2024-06-01", "2024-06-10", status="confirmed")

    block = await storage.create_maintenance_block(vehicle.id, "2024-06-02", "2024-06-03")

    assert block.vehicle_id == vehicle.id


async def test_maintenance_block_on_unknown_vehicle(storage):
    with pytest.raises(NotFoundError):
        await storage.create_maintenance_block(999, "2024-06-01")


async def test_close_maintenance_block(storage, make_vehicle):
    vehicle = await make_vehicle()
    block = await storage.create_maintenance_block(vehicle.id, "2024-06-01", None)

    closed = await storage.close_maintenance_block(block.id, "2024-06-04")

    assert closed.end_date == "2024-06-04"
    assert closed.status == ReservationStatus.completed.value
    # the slot is free again for a new block
    await storage.create_maintenance_block(vehicle.id, "2024-06-02", "2024-06-03")


async def test_close_maintenance_block_rejects_rentals_and_bad_dates(storage, make_vehicle, make_reservation):
    vehicle = await make_vehicle()
    rental = await make_reservation(vehicle.id, "2024-06-01", "2024-06-10")
    block = await storage.create_maintenance_block(vehicle.id, "2024-06-05", None)

    with pytest.raises(ValidationError):
        await storage.close_maintenance_block(rental.id, "2024-06-10")
    with pytest.raises(ValidationError):
        await storage.close_maintenance_block(block.id, "2024-06-01")


async def test_upcoming_maintenance(storage, make_vehicle):
    vehicle = await make_vehicle()
    await storage.create_maintenance_block(vehicle.id, day(-5), day(-4))
    later = await storage.create_maintenance_block(vehicle.id, day(10), day(11))
    sooner = await storage.create_maintenance_block(vehicle.id, day(2), day(3))

    upcoming = await storage.get_upcoming_maintenance_reservations()

    assert [b.id for b in upcoming] == [sooner.id, later.id]


async def test_mark_vehicle_for_service(storage, make_vehicle):
    vehicle = await make_vehicle()

    updated = await storage.mark_vehicle_for_service(vehicle.id, "needs_repair", "Flat tyre")

    assert updated.maintenance_status == MaintenanceStatus.needs_repair.value
    assert updated.maintenance_note == "Flat tyre"
    with pytest.raises(ValidationError):
        await storage.mark_vehicle_for_service(vehicle.id, "broken")
    with pytest.raises(NotFoundError):
        await storage.mark_vehicle_for_service(999, "ok")
