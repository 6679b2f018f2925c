DEFAULT_PASSWORD = "secret123"


async def register(client, **overrides):
    payload = {
        "name": "Olena",
        "email": "olena@example.com",
        "password": "secret123",
        "phone_number": "+380501112233",
    }
    payload.update(overrides)
    return await client.post("/api/auth/register", json=payload)


async def test_register_returns_session_without_private_fields(client):
    response = await register(client, role="owner")
    assert response.status_code == 201

    body = response.json()
    assert body["success"] is True
    assert body["message"] == "User registered successfully"
    user = body["data"]["user"]
    assert user["role"] == "owner"
    assert "password" not in user
    assert "google_id" not in user
    assert body["data"]["token"]


async def test_register_rejects_admin_role_and_weak_password(client):
    response = await register(client, role="admin")
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "role"

    response = await register(client, email="weak@example.com", password="abcdefg")
    assert response.status_code == 400
    assert response.json()["message"] == "Password must contain at least one number"


async def test_register_duplicate_email_and_phone(client):
    await register(client)

    response = await register(client, email="OLENA@example.com", phone_number=None)
    assert response.status_code == 400
    assert response.json()["message"] == "User with this email already exists"

    response = await register(client, email="other@example.com")
    assert response.status_code == 400
    assert response.json()["code"] == "PHONE_ALREADY_REGISTERED"


async def test_login_by_email_and_phone(client):
    await register(client)

    response = await client.post("/api/auth/login", json={"email": "olena@example.com", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["data"]["token"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["user"]["email"] == "olena@example.com"

    response = await client.post("/api/auth/login/phone", json={"phone_number": "+380501112233", "password": "secret123"})
    assert response.status_code == 200

    response = await client.post("/api/auth/login", json={"email": "olena@example.com", "password": "wrong123"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


async def test_login_of_deactivated_user(client, make_user):
    user = await make_user(is_active=False)
    response = await client.post("/api/auth/login", json={"email": user["email"], "password": DEFAULT_PASSWORD})
    assert response.status_code == 401
    assert response.json()["code"] == "ACCOUNT_DEACTIVATED"


async def test_missing_and_invalid_tokens(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["message"] == "No authorization header provided"

    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer broken"})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


async def test_token_of_deactivated_user_is_rejected(client, make_user, auth, db):
    user = await make_user()
    headers = auth(user)
    await db.users.update({"_id": user["_id"]}, {"is_active": False})

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "User account is deactivated"


async def test_google_login_links_existing_account(client, make_user):
    user = await make_user()
    response = await client.post("/api/auth/google", json={
        "google_id": "google-123",
        "email": user["email"],
        "photo_url": "https://example.com/me.png",
    })
    assert response.status_code == 200
    data = response.json()["data"]["user"]
    assert data["_id"] == str(user["_id"])
    assert data["photo_url"] == "https://example.com/me.png"

    response = await client.post("/api/auth/google", json={"google_id": "google-456", "email": "new@example.com"})
    assert response.json()["data"]["user"]["name"] == "User"


async def test_google_user_must_set_password(client, auth):
    response = await client.post("/api/auth/google", json={"google_id": "g-1", "email": "g@example.com", "name": "Gena"})
    headers = {"Authorization": f"Bearer {response.json()['data']['token']}"}

    response = await client.post("/api/auth/login", json={"email": "g@example.com", "password": "secret123"})
    assert response.json()["code"] == "PASSWORD_NOT_SET"

    response = await client.post("/api/auth/set-password", json={"password": "secret123"}, headers=headers)
    assert response.status_code == 200

    response = await client.post("/api/auth/login", json={"email": "g@example.com", "password": "secret123"})
    assert response.status_code == 200


async def test_profile_preferences_and_password(client, make_user, auth):
    user = await make_user(photo_url="https://example.com/old.png")
    headers = auth(user)

    response = await client.put("/api/auth/profile", json={"name": "Renamed", "bio": "Hi"}, headers=headers)
    assert response.json()["data"]["user"]["name"] == "Renamed"

    response = await client.put("/api/auth/profile", json={"remove_photo": True}, headers=headers)
    assert response.json()["data"]["user"]["photo_url"] is None

    response = await client.put("/api/auth/preferences", json={"is_dark_mode": False, "locale": "uk"}, headers=headers)
    assert response.json()["data"]["user"]["is_dark_mode"] is False
    assert response.json()["data"]["user"]["locale"] == "uk"

    response = await client.put(
        "/api/auth/change-password",
        json={"current_password": "wrong999", "new_password": "newpass1"},
        headers=headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Current password is incorrect"

    response = await client.put(
        "/api/auth/change-password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "newpass1"},
        headers=headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["token"]


async def test_logout_clears_push_token_and_writes_audit(client, make_user, auth, db):
    user = await make_user()
    headers = auth(user)

    await client.put("/api/auth/fcm-token", json={"fcm_token": "device-1"}, headers=headers)
    stored = await db.users.find_one({"_id": user["_id"]})
    assert stored["fcm_token"] == "device-1"

    response = await client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 200
    stored = await db.users.find_one({"_id": user["_id"]})
    assert stored["fcm_token"] is None
    assert await db.logs.count_documents({"event_type": "logout", "user_id": user["_id"]}) == 1


async def test_unknown_route_and_health(client):
    response = await client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json()["message"] == "Not Found - /api/nowhere"

    response = await client.get("/api/health")
    assert response.json()["message"] == "API is running"

    response = await client.get("/")
    assert response.json()["data"]["documentation"] == "/api/health"
