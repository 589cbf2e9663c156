import pytest
from conftest import day


@pytest.fixture
async def vehicle(client, admin_headers):
    response = await client.post(
        "/api/v1/vehicles/",
        json={"license_plate": "GH-123-J", "brand": "Renault", "model": "Clio"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
async def customer(client, admin_headers):
    response = await client.post(
        "/api/v1/customers/",
        json={"name": "Pieter Bakker", "email": "pieter@example.com"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()


async def _book(client, headers, vehicle_id, start, end, **extra):
    return await client.post(
        "/api/v1/reservations/",
        json={"vehicle_id": vehicle_id, "start_date": start, "end_date": end, **extra},
        headers=headers,
    )


async def test_create_and_get_reservation(client, admin_headers, vehicle, customer):
    response = await _book(client, admin_headers, vehicle["id"], "2024-06-01", "2024-06-10", customer_id=customer["id"])

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["type"] == "standard"
    assert body["created_by"] == "admin"

    fetched = await client.get(f"/api/v1/reservations/{body['id']}", headers=admin_headers)
    assert fetched.json()["customer_id"] == customer["id"]


async def test_conflict_returns_409_with_conflicting_rows(client, admin_headers, vehicle):
    first = await _book(client, admin_headers, vehicle["id"], "2024-06-01", "2024-06-10", status="confirmed")

    response = await _book(client, admin_headers, vehicle["id"], "2024-06-05", "2024-06-15")

    assert response.status_code == 409
    body = response.json()
    assert "conflicts" in body["message"]
    assert [c["id"] for c in body["conflicts"]] == [first.json()["id"]]


async def test_bad_dates_return_400(client, admin_headers, vehicle):
    response = await _book(client, admin_headers, vehicle["id"], "2024-06-10", "2024-06-01")

    assert response.status_code == 400
    assert response.json() == {"message": "End date cannot be before start date"}


async def test_unknown_customer_returns_404(client, admin_headers, vehicle):
    response = await _book(client, admin_headers, vehicle["id"], "2024-06-01", "2024-06-02", customer_id=999)

    assert response.status_code == 404


async def test_update_and_soft_delete(client, admin_headers, vehicle):
    created = (await _book(client, admin_headers, vehicle["id"], "2024-06-01", "2024-06-10")).json()

    updated = await client.patch(
        f"/api/v1/reservations/{created['id']}", json={"end_date": None, "status": "active"}, headers=admin_headers
    )
    assert updated.status_code == 200
    assert updated.json()["end_date"] is None

    deleted = await client.delete(f"/api/v1/reservations/{created['id']}", headers=admin_headers)
    assert deleted.status_code == 204
    missing = await client.get(f"/api/v1/reservations/{created['id']}", headers=admin_headers)
    assert missing.status_code == 404


async def test_check_availability(client, admin_headers, vehicle):
    await _book(client, admin_headers, vehicle["id"], "2024-06-01", "2024-06-10")

    busy = await client.get(
        f"/api/v1/reservations/check-availability/{vehicle['id']}",
        params={"start_date": "2024-06-09", "end_date": "2024-06-12"},
        headers=admin_headers,
    )
    free = await client.get(
        f"/api/v1/reservations/check-availability/{vehicle['id']}",
        params={"start_date": "2024-06-11"},
        headers=admin_headers,
    )

    assert busy.json()["available"] is False
    assert len(busy.json()["conflicts"]) == 1
    assert free.json() == {"vehicle_id": vehicle["id"], "available": True, "conflicts": []}


async def test_range_upcoming_and_by_vehicle(client, admin_headers, vehicle):
    past = (await _book(client, admin_headers, vehicle["id"], day(-10), day(-8))).json()
    soon = (await _book(client, admin_headers, vehicle["id"], day(2), day(4))).json()

    in_range = await client.get(
        "/api/v1/reservations/range", params={"start_date": day(-9), "end_date": day(-9)}, headers=admin_headers
    )
    upcoming = await client.get("/api/v1/reservations/upcoming", headers=admin_headers)
    by_vehicle = await client.get(f"/api/v1/reservations/vehicle/{vehicle['id']}", headers=admin_headers)

    assert [r["id"] for r in in_range.json()] == [past["id"]]
    assert [r["id"] for r in upcoming.json()] == [soon["id"]]
    assert [r["id"] for r in by_vehicle.json()] == [soon["id"], past["id"]]


async def test_available_vehicles_endpoints(client, admin_headers, vehicle):
    await _book(client, admin_headers, vehicle["id"], day(0), day(3), status="picked_up")

    today = await client.get("/api/v1/vehicles/available", headers=admin_headers)
    later = await client.get(
        "/api/v1/vehicles/available-in-range",
        params={"start_date": day(5), "end_date": day(6)},
        headers=admin_headers,
    )

    assert today.json() == []
    assert [v["id"] for v in later.json()] == [vehicle["id"]]


async def test_vehicle_status_and_manual_change(client, admin_headers, vehicle):
    await _book(client, admin_headers, vehicle["id"], day(-1), day(3), status="picked_up")

    derived = await client.get(f"/api/v1/vehicles/{vehicle['id']}/status", headers=admin_headers)
    assert derived.json()["calculated_status"] == "rented"

    refused = await client.patch(
        f"/api/v1/vehicles/{vehicle['id']}/availability-status",
        json={"availability_status": "available"},
        headers=admin_headers,
    )
    assert refused.status_code == 409

    accepted = await client.patch(
        f"/api/v1/vehicles/{vehicle['id']}/availability-status",
        json={"availability_status": "needs_fixing"},
        headers=admin_headers,
    )
    assert accepted.status_code == 200
    assert accepted.json()["vehicle"]["availability_status"] == "needs_fixing"
    assert accepted.json()["warning"]


async def test_customer_with_reservations_cannot_be_deleted(client, admin_headers, vehicle, customer):
    await _book(client, admin_headers, vehicle["id"], "2024-06-01", "2024-06-02", customer_id=customer["id"])

    response = await client.delete(f"/api/v1/customers/{customer['id']}", headers=admin_headers)
    listed = await client.get(f"/api/v1/customers/{customer['id']}/reservations", headers=admin_headers)

    assert response.status_code == 409
    assert len(listed.json()) == 1


async def test_duplicate_license_plate(client, admin_headers, vehicle):
    response = await client.post(
        "/api/v1/vehicles/",
        json={"license_plate": vehicle["license_plate"], "brand": "Fiat", "model": "500"},
        headers=admin_headers,
    )

    assert response.status_code == 400


async def test_patch_with_null_status_returns_400(client, admin_headers, vehicle):
    created = (await _book(client, admin_headers, vehicle["id"], "2024-06-01", "2024-06-10")).json()

    response = await client.patch(
        f"/api/v1/reservations/{created['id']}", json={"status": None}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Reservation status is required"}
