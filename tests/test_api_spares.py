import pytest
from conftest import day


@pytest.fixture
async def fleet(client, admin_headers):
    ids = []
    for plate in ("BROKEN-1", "SPARE-1"):
        response = await client.post(
            "/api/v1/vehicles/", json={"license_plate": plate, "brand": "Ford", "model": "Focus"}, headers=admin_headers
        )
        ids.append(response.json()["id"])
    return ids


@pytest.fixture
async def original(client, admin_headers, fleet):
    response = await client.post(
        "/api/v1/reservations/",
        json={"vehicle_id": fleet[0], "start_date": day(1), "end_date": day(10), "status": "confirmed"},
        headers=admin_headers,
    )
    return response.json()


async def test_placeholder_assignment_flow(client, admin_headers, fleet, original):
    created = await client.post(
        "/api/v1/spare-vehicles/placeholders",
        json={"original_reservation_id": original["id"], "start_date": day(2)},
        headers=admin_headers,
    )
    assert created.status_code == 201
    placeholder = created.json()
    assert placeholder["placeholder_spare"] is True

    duplicate = await client.post(
        "/api/v1/spare-vehicles/placeholders",
        json={"original_reservation_id": original["id"], "start_date": day(2)},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == (
        "A placeholder spare reservation already exists for this original reservation"
    )

    worklist = await client.get("/api/v1/spare-vehicles/placeholders/needing-assignment", headers=admin_headers)
    assert [p["id"] for p in worklist.json()] == [placeholder["id"]]

    alerts = await client.get(
        "/api/v1/notifications/", params={"unread_only": True, "type": "spare_assignment"}, headers=admin_headers
    )
    assert [n["reservation_id"] for n in alerts.json()] == [placeholder["id"]]
    assert alerts.json()[0]["priority"] == "high"

    missing_end = await client.post(
        f"/api/v1/spare-vehicles/placeholders/{placeholder['id']}/assign",
        json={"vehicle_id": fleet[1]},
        headers=admin_headers,
    )
    assert missing_end.status_code == 400

    assigned = await client.post(
        f"/api/v1/spare-vehicles/placeholders/{placeholder['id']}/assign",
        json={"vehicle_id": fleet[1], "end_date": day(9)},
        headers=admin_headers,
    )
    assert assigned.status_code == 200
    assert assigned.json()["status"] == "confirmed"
    assert assigned.json()["vehicle_id"] == fleet[1]

    alerts = await client.get("/api/v1/notifications/", params={"unread_only": True}, headers=admin_headers)
    assert alerts.json() == []


async def test_assign_in_service_vehicle_returns_409(client, admin_headers, fleet, original):
    placeholder = (await client.post(
        "/api/v1/spare-vehicles/placeholders",
        json={"original_reservation_id": original["id"], "start_date": day(2), "end_date": day(5)},
        headers=admin_headers,
    )).json()
    await client.post(
        f"/api/v1/vehicles/{fleet[1]}/service", json={"maintenance_status": "in_service"}, headers=admin_headers
    )

    response = await client.post(
        f"/api/v1/spare-vehicles/placeholders/{placeholder['id']}/assign",
        json={"vehicle_id": fleet[1]},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Vehicle is currently in service and not available"


async def test_replacement_round_trip(client, admin_headers, fleet, original):
    created = await client.post(
        "/api/v1/spare-vehicles/replacements",
        json={"original_reservation_id": original["id"], "spare_vehicle_id": fleet[1], "start_date": day(1)},
        headers=admin_headers,
    )
    assert created.status_code == 201
    replacement = created.json()
    assert replacement["end_date"] == day(10)

    broken = await client.get(f"/api/v1/vehicles/{fleet[0]}", headers=admin_headers)
    assert broken.json()["maintenance_status"] == "in_service"
    upcoming = await client.get("/api/v1/maintenance/upcoming", headers=admin_headers)
    assert [b["vehicle_id"] for b in upcoming.json()] == [fleet[0]]

    active = await client.get(
        f"/api/v1/spare-vehicles/replacements/by-original/{original['id']}", headers=admin_headers
    )
    assert active.json()["id"] == replacement["id"]

    closed = await client.post(
        f"/api/v1/spare-vehicles/replacements/{replacement['id']}/close",
        json={"end_date": day(5)},
        headers=admin_headers,
    )
    assert closed.json()["status"] == "completed"
    broken = await client.get(f"/api/v1/vehicles/{fleet[0]}", headers=admin_headers)
    assert broken.json()["maintenance_status"] == "ok"
    assert (await client.get("/api/v1/maintenance/upcoming", headers=admin_headers)).json() == []


async def test_same_vehicle_replacement_returns_400(client, admin_headers, fleet, original):
    response = await client.post(
        "/api/v1/spare-vehicles/replacements",
        json={"original_reservation_id": original["id"], "spare_vehicle_id": fleet[0], "start_date": day(1)},
        headers=admin_headers,
    )

    assert response.status_code == 400


async def test_maintenance_block_endpoints(client, admin_headers, fleet):
    created = await client.post(
        "/api/v1/maintenance/blocks",
        json={"vehicle_id": fleet[0], "start_date": day(3), "notes": "APK keuring"},
        headers=admin_headers,
    )
    assert created.status_code == 201

    overlapping = await client.post(
        "/api/v1/maintenance/blocks", json={"vehicle_id": fleet[0], "start_date": day(20)}, headers=admin_headers
    )
    assert overlapping.status_code == 409

    closed = await client.post(
        f"/api/v1/maintenance/blocks/{created.json()['id']}/close", json={"end_date": day(4)}, headers=admin_headers
    )
    assert closed.json()["end_date"] == day(4)


async def test_custom_notifications(client, admin_headers):
    created = await client.post(
        "/api/v1/notifications/",
        json={"title": "APK due", "description": "Check GH-123-J", "priority": "low"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    notification_id = created.json()["id"]

    read = await client.patch(
        f"/api/v1/notifications/{notification_id}/read", json={"is_read": True}, headers=admin_headers
    )
    assert read.json()["is_read"] is True

    deleted = await client.delete(f"/api/v1/notifications/{notification_id}", headers=admin_headers)
    assert deleted.status_code == 204
    assert (await client.get("/api/v1/notifications/", headers=admin_headers)).json() == []
