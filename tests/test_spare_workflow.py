import pytest
from conftest import day

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.enums import MaintenanceStatus, NotificationType, ReservationStatus, ReservationType
from app.storage.rules import PLACEHOLDER_EXISTS_MESSAGE, VEHICLE_IN_SERVICE_MESSAGE


@pytest.fixture
async def original(make_vehicle, make_customer, make_reservation):
    vehicle = await make_vehicle(license_plate="BROKEN-1")
    customer = await make_customer()
    return await make_reservation(
        vehicle.id, day(1), day(10), customer_id=customer.id, status="confirmed"
    )


async def test_create_placeholder(storage, original):
    placeholder = await storage.create_placeholder_reservation(original.id, None, day(2), day(10))

    assert placeholder.vehicle_id is None
    assert placeholder.placeholder_spare is True
    assert placeholder.type == ReservationType.replacement.value
    assert placeholder.status == ReservationStatus.pending.value
    assert placeholder.replacement_for_reservation_id == original.id
    assert placeholder.customer_id == original.customer_id
    assert placeholder.notes == f"TBD spare vehicle for reservation #{original.id}"

    notifications = await storage.get_custom_notifications_by_type(NotificationType.spare_assignment.value)
    assert len(notifications) == 1
    assert notifications[0].priority == "high"
    assert notifications[0].reservation_id == placeholder.id
    assert notifications[0].is_read is False


async def test_second_placeholder_for_same_reservation_is_rejected(storage, original):
    await storage.create_placeholder_reservation(original.id, None, day(2), day(10))

    with pytest.raises(ConflictError, match=PLACEHOLDER_EXISTS_MESSAGE):
        await storage.create_placeholder_reservation(original.id, None, day(2), day(10))

    assert len(await storage.get_placeholder_reservations()) == 1


async def test_placeholder_for_unknown_reservation(storage):
    with pytest.raises(NotFoundError):
        await storage.create_placeholder_reservation(4242, None, day(2), day(10))


async def test_placeholder_listing_and_window(storage, original, make_vehicle, make_reservation):
    other_vehicle = await make_vehicle()
    other = await make_reservation(other_vehicle.id, day(30), day(40))
    soon = await storage.create_placeholder_reservation(original.id, None, day(2), day(10))
    later = await storage.create_placeholder_reservation(other.id, None, day(30), None)

    assert [p.id for p in await storage.get_placeholder_reservations()] == [soon.id, later.id]
    assert [p.id for p in await storage.get_placeholder_reservations(day(0), day(5))] == [soon.id]
    # the open-ended one reaches into any later window
    assert [p.id for p in await storage.get_placeholder_reservations(day(100), day(110))] == [later.id]


async def test_needing_assignment_is_a_lookahead_worklist(storage, original, make_vehicle, make_reservation):
    other_vehicle = await make_vehicle()
    far = await make_reservation(other_vehicle.id, day(30), day(40))
    overdue_original = await make_reservation(other_vehicle.id, day(-10), day(-5))
    soon = await storage.create_placeholder_reservation(original.id, None, day(2), day(10))
    await storage.create_placeholder_reservation(far.id, None, day(30), day(40))
    overdue = await storage.create_placeholder_reservation(overdue_original.id, None, day(-3), day(-1))

    due = await storage.get_placeholder_reservations_needing_assignment(days_ahead=7)

    assert [p.id for p in due] == [overdue.id, soon.id]


async def test_assign_vehicle_to_placeholder(storage, original, make_vehicle):
    placeholder = await storage.create_placeholder_reservation(original.id, None, day(2), day(10))
    spare = await make_vehicle(license_plate="SPARE-1", brand="Toyota", model="Yaris")

    assigned = await storage.assign_vehicle_to_placeholder(placeholder.id, spare.id)

    assert assigned.vehicle_id == spare.id
    assert assigned.placeholder_spare is False
    assert assigned.status == ReservationStatus.confirmed.value
    assert assigned.end_date == day(10)
    assert "SPARE-1 (Toyota Yaris)" in assigned.notes
    assert await storage.get_placeholder_reservations() == []
    notifications = await storage.get_custom_notifications_by_type(NotificationType.spare_assignment.value)
    assert all(n.is_read for n in notifications)


async def test_assign_open_ended_placeholder_needs_end_date(storage, original, make_vehicle):
    placeholder = await storage.create_placeholder_reservation(original.id, None, day(2), None)
    spare = await make_vehicle()

    with pytest.raises(ValidationError, match="End date must be specified"):
        await storage.assign_vehicle_to_placeholder(placeholder.id, spare.id)

    assigned = await storage.assign_vehicle_to_placeholder(placeholder.id, spare.id, day(6))
    assert assigned.end_date == day(6)


async def test_assign_end_before_start_is_rejected(storage, original, make_vehicle):
    placeholder = await storage.create_placeholder_reservation(original.id, None, day(5), None)
    spare = await make_vehicle()

    with pytest.raises(ValidationError):
        await storage.assign_vehicle_to_placeholder(placeholder.id, spare.id, day(4))


async def test_assign_in_service_vehicle_is_rejected(storage, original, make_vehicle):
    placeholder = await storage.create_placeholder_reservation(original.id, None, day(2), day(10))
    spare = await make_vehicle()
    await storage.mark_vehicle_for_service(spare.id, MaintenanceStatus.in_service.value)

    with pytest.raises(ConflictError, match=VEHICLE_IN_SERVICE_MESSAGE):
        await storage.assign_vehicle_to_placeholder(placeholder.id, spare.id)


async def test_conflicting_assignment_leaves_placeholder_untouched(storage, original, make_vehicle, make_reservation):
    placeholder_id = (await storage.create_placeholder_reservation(original.id, None, day(2), day(10))).id
    spare = await make_vehicle()
    busy = await make_reservation(spare.id, day(8), day(12), status="confirmed")

    with pytest.raises(ConflictError) as exc_info:
        await storage.assign_vehicle_to_placeholder(placeholder_id, spare.id)

    assert [r.id for r in exc_info.value.conflicts] == [busy.id]
    placeholder = await storage.get_reservation(placeholder_id)
    assert placeholder.vehicle_id is None
    assert placeholder.placeholder_spare is True
    assert placeholder.status == ReservationStatus.pending.value


async def test_assign_requires_a_placeholder(storage, original, make_vehicle):
    spare = await make_vehicle()

    with pytest.raises(ValidationError):
        await storage.assign_vehicle_to_placeholder(original.id, spare.id)
    with pytest.raises(NotFoundError):
        await storage.assign_vehicle_to_placeholder(4242, spare.id)


async def test_assign_unknown_vehicle(storage, original):
    placeholder = await storage.create_placeholder_reservation(original.id, None, day(2), day(10))

    with pytest.raises(NotFoundError):
        await storage.assign_vehicle_to_placeholder(placeholder.id, 4242)


async def test_assigned_spare_blocks_later_bookings(storage, original, make_vehicle, make_reservation):
    placeholder = await storage.create_placeholder_reservation(original.id, None, day(2), day(10))
    spare = await make_vehicle()
    await storage.assign_vehicle_to_placeholder(placeholder.id, spare.id)

    with pytest.raises(ConflictError):
        await make_reservation(spare.id, day(5), day(6))


async def test_create_replacement_reservation(storage, original, make_vehicle):
    spare = await make_vehicle(license_plate="SPARE-2")

    replacement = await storage.create_replacement_reservation(original.id, spare.id, day(0))

    assert replacement.vehicle_id == spare.id
    assert replacement.type == ReservationType.replacement.value
    assert replacement.replacement_for_reservation_id == original.id
    assert replacement.end_date == original.end_date
    assert replacement.status == ReservationStatus.active.value
    assert (await storage.get_vehicle(original.vehicle_id)).maintenance_status == MaintenanceStatus.in_service.value
    blocks = await storage.check_reservation_conflicts(
        original.vehicle_id, day(0), day(10), is_maintenance_block=True
    )
    assert len(blocks) == 1
    assert (await storage.get_active_replacement_by_original(original.id)).id == replacement.id


async def test_future_replacement_is_pending(storage, original, make_vehicle):
    spare = await make_vehicle()

    replacement = await storage.create_replacement_reservation(original.id, spare.id, day(3), day(5))

    assert replacement.status == ReservationStatus.pending.value


async def test_replacement_reuses_existing_maintenance_block(storage, original, make_vehicle):
    await storage.create_maintenance_block(original.vehicle_id, day(0), None)
    spare = await make_vehicle()

    await storage.create_replacement_reservation(original.id, spare.id, day(1), day(10))

    blocks = await storage.check_reservation_conflicts(
        original.vehicle_id, day(0), None, is_maintenance_block=True
    )
    assert len(blocks) == 1


async def test_replacement_with_same_vehicle_is_rejected(storage, original):
    with pytest.raises(ValidationError, match="cannot be the same"):
        await storage.create_replacement_reservation(original.id, original.vehicle_id, day(1))


async def test_replacement_with_busy_spare_is_rejected(storage, original, make_vehicle, make_reservation):
    spare = await make_vehicle()
    await make_reservation(spare.id, day(5), day(6))

    with pytest.raises(ConflictError):
        await storage.create_replacement_reservation(original.id, spare.id, day(1), day(10))

    vehicle = await storage.get_vehicle(original.vehicle_id)
    assert vehicle.maintenance_status == MaintenanceStatus.ok.value


async def test_close_replacement_restores_original_vehicle(storage, original, make_vehicle):
    spare = await make_vehicle()
    replacement = await storage.create_replacement_reservation(original.id, spare.id, day(0), day(10))

    closed = await storage.close_replacement_reservation(replacement.id, day(4))

    assert closed.status == ReservationStatus.completed.value
    assert closed.end_date == day(4)
    assert (await storage.get_vehicle(original.vehicle_id)).maintenance_status == MaintenanceStatus.ok.value
    assert await storage.check_reservation_conflicts(
        original.vehicle_id, day(0), None, is_maintenance_block=True
    ) == []
    assert await storage.get_active_replacement_by_original(original.id) is None


async def test_close_replacement_requires_replacement(storage, original):
    with pytest.raises(ValidationError):
        await storage.close_replacement_reservation(original.id, day(4))


async def test_generic_update_cannot_assign_a_placeholder(storage, original, make_vehicle):
    spare = await make_vehicle()
    placeholder = await storage.create_placeholder_reservation(original.id, None, day(2))

    with pytest.raises(ValidationError, match="assign"):
        await storage.update_reservation(placeholder.id, {"vehicle_id": spare.id})

    reloaded = await storage.get_reservation(placeholder.id)
    assert reloaded.vehicle_id is None
    assert reloaded.placeholder_spare is True
    assert [p.id for p in await storage.get_placeholder_reservations()] == [placeholder.id]


async def test_placeholder_notes_can_still_be_updated(storage, original):
    placeholder = await storage.create_placeholder_reservation(original.id, None, day(2))

    updated = await storage.update_reservation(placeholder.id, {"vehicle_id": None, "notes": "customer called"})

    assert updated.notes == "customer called"
    assert updated.placeholder_spare is True


async def test_vehicle_cannot_be_removed_from_assigned_reservation(storage, original):
    with pytest.raises(ValidationError, match="cannot be removed"):
        await storage.update_reservation(original.id, {"vehicle_id": None})

    assert (await storage.get_reservation(original.id)).vehicle_id is not None
