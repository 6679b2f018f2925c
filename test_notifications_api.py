from api.notification_service import NotificationService


async def seed(db, user, count):
    notifier = NotificationService(db)
    return [
        await notifier.notify(user["_id"], "system", f"Notice {number}", "Scheduled maintenance tonight")
        for number in range(count)
    ]


async def test_list_and_unread_count(client, make_user, auth, db):
    user = await make_user()
    await seed(db, user, 3)
    await seed(db, await make_user(), 2)

    response = await client.get("/api/notifications", headers=auth(user))
    assert response.json()["pagination"]["total"] == 3
    assert all(item["is_read"] is False for item in response.json()["data"]["notifications"])

    response = await client.get("/api/notifications/unread-count", headers=auth(user))
    assert response.json()["data"]["unread_count"] == 3


async def test_mark_read_and_delete(client, make_user, auth, db):
    user = await make_user()
    other = await make_user()
    first, second, _ = await seed(db, user, 3)
    headers = auth(user)

    response = await client.put(f"/api/notifications/{first['_id']}/read", headers=auth(other))
    assert response.status_code == 403

    response = await client.put(f"/api/notifications/{first['_id']}/read", headers=headers)
    assert response.status_code == 200
    response = await client.get("/api/notifications/unread-count", headers=headers)
    assert response.json()["data"]["unread_count"] == 2

    response = await client.delete(f"/api/notifications/{second['_id']}", headers=headers)
    assert response.status_code == 200
    assert await db.notifications.count_documents({"user_id": user["_id"]}) == 2

    response = await client.put("/api/notifications/read-all", headers=headers)
    assert response.json()["message"] == "All notifications marked as read"
    response = await client.get("/api/notifications/unread-count", headers=headers)
    assert response.json()["data"]["unread_count"] == 0

    await seed(db, other, 1)
    response = await client.delete("/api/notifications", headers=headers)
    assert response.status_code == 200
    assert await db.notifications.count_documents({"user_id": user["_id"]}) == 0
    assert await db.notifications.count_documents({"user_id": other["_id"]}) == 1


async def test_admin_creates_notification(client, make_user, auth, db):
    admin = await make_user("admin")
    user = await make_user()
    payload = {"user_id": str(user["_id"]), "title": "Welcome", "body": "Thanks for joining"}

    response = await client.post("/api/notifications", json=payload, headers=auth(user))
    assert response.status_code == 403

    response = await client.post("/api/notifications", json=payload, headers=auth(admin))
    assert response.status_code == 201
    assert response.json()["data"]["notification"]["type"] == "system"
    assert await db.notifications.count_documents({"user_id": user["_id"]}) == 1

    response = await client.post(
        "/api/notifications",
        json={**payload, "user_id": "000000000000000000000000"},
        headers=auth(admin)
    )
    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"


async def test_unknown_notification(client, make_user, auth):
    user = await make_user()
    response = await client.delete("/api/notifications/not-an-id", headers=auth(user))
    assert response.status_code == 404
    assert response.json()["code"] == "NOTIFICATION_NOT_FOUND"
