from tools.security import PasswordHasher
from tools.seed import MESSAGES, PROPERTIES, USERS, seed


async def test_seed_creates_consistent_demo_data(db):
    result = await seed(db)

    assert await db.users.count_documents({}) == len(USERS)
    assert await db.properties.count_documents({}) == len(PROPERTIES)
    assert await db.properties.count_documents({"is_approved": True}) == 6
    assert await db.properties.count_documents({"status": "pending"}) == 1
    assert await db.properties.count_documents({"status": "rejected"}) == 1

    admin = await db.users.find_one({"email": "admin@rentalapp.com"})
    assert admin["role"] == "admin"
    assert PasswordHasher.verify("Admin123", admin["password"])

    downtown, beach, loft = result["properties"][:3]
    stored = await db.properties.find_one({"_id": downtown["_id"]})
    assert (stored["average_rating"], stored["review_count"]) == (4.5, 2)
    stored = await db.properties.find_one({"_id": beach["_id"]})
    assert (stored["average_rating"], stored["review_count"]) == (5.0, 1)
    stored = await db.properties.find_one({"_id": loft["_id"]})
    assert (stored["average_rating"], stored["review_count"]) == (0, 0)

    mike = result["users"]["mike@rentalapp.com"]
    john = result["users"]["john@rentalapp.com"]
    chat = await db.chats.find_one({"_id": result["chat"]["_id"]})
    assert chat["last_message"] == MESSAGES[-1][2]
    assert chat["unread_counts"][str(john["_id"])] == 2
    assert chat["unread_counts"][str(mike["_id"])] == 1
    assert await db.messages.count_documents({"chat_id": chat["_id"]}) == 3

    assert await db.notifications.count_documents({"user_id": john["_id"], "type": "viewing"}) == 1
    assert await db.viewings.count_documents({"status": "confirmed"}) == 1


async def test_seed_can_be_rerun(db, make_user):
    await make_user()
    await seed(db)
    await seed(db)

    assert await db.users.count_documents({}) == len(USERS)
    assert await db.reviews.count_documents({}) == 4
    assert await db.favorites.count_documents({}) == 4
    assert await db.chats.count_documents({}) == 1
