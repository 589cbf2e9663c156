async def test_health(client):
    response = await client.get("/api/v1/health/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_login_and_me(client, admin_headers):
    response = await client.post("/api/v1/auth/login", json={"username": "admin", "password": "Secret@123"})

    assert response.status_code == 200
    token = response.json()["access_token"]
    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["username"] == "admin"
    assert me.json()["role"] == "admin"


async def test_login_with_wrong_password(client, admin_headers):
    response = await client.post("/api/v1/auth/login", json={"username": "admin", "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"message": "Incorrect username or password"}


async def test_requires_token(client):
    response = await client.get("/api/v1/vehicles/")

    assert response.status_code == 401


async def test_invalid_token(client):
    response = await client.get("/api/v1/vehicles/", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


async def test_permission_is_enforced(client, viewer_headers):
    listed = await client.get("/api/v1/vehicles/", headers=viewer_headers)
    created = await client.post(
        "/api/v1/vehicles/",
        json={"license_plate": "XX-01", "brand": "Kia", "model": "Picanto"},
        headers=viewer_headers,
    )

    assert listed.status_code == 200
    assert created.status_code == 403
    assert "manage_vehicles" in created.json()["message"]


async def test_user_management_is_admin_only(client, admin_headers, viewer_headers):
    forbidden = await client.get("/api/v1/users/", headers=viewer_headers)
    assert forbidden.status_code == 403

    created = await client.post(
        "/api/v1/users/",
        json={
            "username": "planner",
            "password": "Planner@123",
            "permissions": ["view_reservations", "manage_reservations"],
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    body = created.json()
    assert body["role"] == "user"
    assert body["permissions"] == ["view_reservations", "manage_reservations"]
    assert "password_hash" not in body

    duplicate = await client.post(
        "/api/v1/users/",
        json={"username": "planner", "password": "Planner@123"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400

    login = await client.post("/api/v1/auth/login", json={"username": "planner", "password": "Planner@123"})
    assert login.status_code == 200
