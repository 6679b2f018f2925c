from datetime import datetime

import pytest
from bson import ObjectId
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.models.entities import ChatDocument, ReviewDocument
from api.repository import ChatRepository, PropertyRepository, ReviewRepository, UserRepository


async def test_create_sets_id_and_timestamps(db, make_user):
    user = await make_user(email="Mixed.Case@Example.com ")

    assert isinstance(user["_id"], ObjectId)
    assert isinstance(user["created_at"], datetime)
    assert user["created_at"] == user["updated_at"]
    assert user["email"] == "mixed.case@example.com"
    assert user["is_dark_mode"] is True
    assert user["locale"] == "en"


async def test_invalid_id_is_not_found(db):
    properties = PropertyRepository(db)
    with pytest.raises(ApiException) as error:
        await properties.find_by_id("not-an-id")
    assert error.value.error_code is ApiErrorCode.PROPERTY_NOT_FOUND
    assert error.value.status_code == 404

    with pytest.raises(ApiException):
        await properties.find_by_id(ObjectId())


async def test_update_revalidates_document(db, make_user, make_property):
    owner = await make_user("owner")
    property_doc = await make_property(owner, status="pending")
    properties = PropertyRepository(db)

    with pytest.raises(ValidationError):
        await properties.update(property_doc["_id"], {"price": -5})

    updated = await properties.update(property_doc["_id"], {"status": "approved"})
    assert updated["is_approved"] is True

    updated = await properties.update(property_doc["_id"], {"status": "rejected"})
    assert updated["is_approved"] is False


async def test_optional_phone_is_sparse(db, make_user):
    await make_user()
    await make_user()

    first = await make_user(phone_number="+380 50 111 22 33")
    assert "phone_number" in first

    with pytest.raises(DuplicateKeyError):
        await make_user(phone_number="+380 50 111 22 33")

    updated = await UserRepository(db).update(first["_id"], {"phone_number": None})
    assert "phone_number" not in updated


async def test_duplicate_review_maps_to_api_error(db, make_user, make_property):
    owner = await make_user("owner")
    reviewer = await make_user()
    property_doc = await make_property(owner)
    reviews = ReviewRepository(db)
    data = {
        "property_id": property_doc["_id"],
        "user_id": reviewer["_id"],
        "user_name": reviewer["name"],
        "rating": 5,
        "review_text": "Great location and friendly owner",
    }

    await reviews.create(data)
    with pytest.raises(ApiException) as error:
        await reviews.create(dict(data))
    assert error.value.error_code is ApiErrorCode.REVIEW_ALREADY_EXISTS


async def test_find_paginates(db, make_user, make_property):
    owner = await make_user("owner")
    for price in range(5):
        await make_property(owner, price=price * 100)

    items, total = await PropertyRepository(db).find({}, sort=[("price", 1)], page=2, limit=2)
    assert total == 5
    assert [item["price"] for item in items] == [200, 300]


async def test_attach_users_embeds_summary(db, make_user, make_property):
    owner = await make_user("owner", bio="Landlord")
    properties = PropertyRepository(db)
    property_doc = await make_property(owner)

    items = await properties.find_all({"_id": property_doc["_id"]})
    await properties.attach_users(items, "owner_id", "owner")
    assert items[0]["owner"]["name"] == owner["name"]
    assert "password" not in items[0]["owner"]
    assert "bio" not in items[0]["owner"]


def test_safe_user_hides_private_fields():
    user = {"_id": ObjectId(), "name": "Ann", "password": "hash", "google_id": "g-1", "fcm_token": "t"}
    assert UserRepository.safe(user) == {"_id": user["_id"], "name": "Ann"}


def test_chat_requires_two_distinct_participants():
    first = ObjectId()
    with pytest.raises(ValidationError):
        ChatDocument(participants=[first, first])
    with pytest.raises(ValidationError):
        ChatDocument(participants=[first])

    second = ObjectId()
    with pytest.raises(ValidationError):
        ChatDocument(participants=[first, second], unread_counts={str(ObjectId()): 1})

    chat = ChatDocument(participants=[first, str(second)])
    assert chat.unread_counts == {str(first): 0, str(second): 0}
    assert chat.last_messages == {str(first): "", str(second): ""}


def test_review_helpful_ids_are_unique():
    voter = ObjectId()
    review = ReviewDocument(
        property_id=ObjectId(),
        user_id=ObjectId(),
        user_name="Ann",
        rating=4,
        review_text="Quiet street and good transport",
        helpful_user_ids=[voter, voter],
    )
    assert review.helpful_user_ids == [voter]
    assert review.helpful_count == 1


async def test_find_or_create_chat_is_order_independent(db, make_user):
    first = await make_user()
    second = await make_user()
    chats = ChatRepository(db)

    direct = await chats.find_or_create(first["_id"], second["_id"])
    assert (await chats.find_or_create(second["_id"], first["_id"]))["_id"] == direct["_id"]

    support = await chats.find_or_create(first["_id"], second["_id"], is_admin_support=True)
    assert support["_id"] != direct["_id"]
    assert await chats.count({}) == 2


async def test_find_or_create_chat_after_concurrent_insert(db, make_user, monkeypatch):
    first = await make_user()
    second = await make_user()
    chats = ChatRepository(db)
    existing = await chats.create({"participants": [first["_id"], second["_id"]]})

    original_find_one = chats.find_one
    lookups = []

    # Перший пошук не бачить чат, створений іншим запитом
    async def stale_find_one(query, sort=None):
        lookups.append(query)
        if len(lookups) == 1:
            return None
        return await original_find_one(query, sort)

    monkeypatch.setattr(chats, "find_one", stale_find_one)

    chat = await chats.find_or_create(second["_id"], first["_id"])
    assert chat["_id"] == existing["_id"]
    assert len(lookups) == 2
    assert await chats.count({}) == 1
