from api.notification_service import NotificationService, SequentialAdminFanout
from api.repository import NotificationRepository


class FlakyNotificationService(NotificationService):
    """Сервіс, у якому запис сповіщення одному адміністратору падає."""

    def __init__(self, db, broken_id):
        super().__init__(db, fanout=SequentialAdminFanout())
        self.broken_id = broken_id

    async def notify(self, user_id, *args, **kwargs):
        if user_id == self.broken_id:
            raise RuntimeError("store unavailable")
        return await super().notify(user_id, *args, **kwargs)


class RecordingFanout:
    def __init__(self):
        self.calls = []

    async def deliver(self, service, admins, event):
        self.calls.append(([admin["_id"] for admin in admins], event))
        return 0


async def test_failed_admin_does_not_stop_fanout(db, make_user):
    first = await make_user("admin")
    broken = await make_user("admin")
    last = await make_user("admin")
    await make_user("owner")

    service = FlakyNotificationService(db, broken["_id"])
    delivered = await service.notify_all_admins("system", "Maintenance", "Nightly backup at 2am")

    assert delivered == 2
    notifications = NotificationRepository(db)
    assert await notifications.count({"user_id": first["_id"]}) == 1
    assert await notifications.count({"user_id": last["_id"]}) == 1
    assert await notifications.count({"user_id": broken["_id"]}) == 0


async def test_fanout_strategy_is_swappable(db, make_user):
    admin = await make_user("admin")
    fanout = RecordingFanout()

    await NotificationService(db, fanout=fanout).notify_all_admins("system", "Hello", "Queued delivery")

    assert fanout.calls == [([admin["_id"]], {"type": "system", "title": "Hello", "body": "Queued delivery", "data": None})]
    assert await db.notifications.count_documents({}) == 0


async def test_property_submission_succeeds_when_one_admin_fails(client, make_user, auth, db, monkeypatch):
    owner = await make_user("owner")
    healthy = await make_user("admin")
    broken = await make_user("admin")
    original_notify = NotificationService.notify

    async def notify(self, user_id, *args, **kwargs):
        if user_id == broken["_id"]:
            raise RuntimeError("store unavailable")
        return await original_notify(self, user_id, *args, **kwargs)

    monkeypatch.setattr(NotificationService, "notify", notify)

    response = await client.post("/api/properties", json={
        "title": "Flat near the station",
        "description": "Two rooms, renovated kitchen, close to the metro",
        "price": 900,
        "location": "Lviv, Sykhiv",
    }, headers=auth(owner))

    assert response.status_code == 201
    assert await db.notifications.count_documents({"user_id": healthy["_id"]}) == 1
    assert await db.notifications.count_documents({"user_id": broken["_id"]}) == 0
