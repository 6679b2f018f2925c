"""
Наповнення бази демонстраційними даними для розробки.

Запуск: python -m tools.seed

Усі записи створюються через репозиторії, тому рейтинги об'єктів і
зведення чатів рахуються так само, як у робочому API.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict

from api.models.enums import NotificationType, PropertyStatus, Role, ViewingStatus
from api.notification_service import NotificationService
from api.repository import (
    ChatRepository,
    FavoriteRepository,
    MessageRepository,
    PropertyRepository,
    ReviewRepository,
    UserRepository,
    ViewingRepository,
)
from tools.database import Database
from tools.logger import Logger
from tools.security import PasswordHasher

logger = Logger()

COLLECTIONS = ("users", "properties", "reviews", "favorites", "viewings", "chats", "messages", "notifications")

USERS = [
    {
        "name": "Admin User",
        "email": "admin@rentalapp.com",
        "password": "Admin123",
        "role": Role.ADMIN,
        "bio": "Platform administrator",
        "photo_url": "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e?w=200",
    },
    {
        "name": "John Owner",
        "email": "john@rentalapp.com",
        "password": "John1234",
        "role": Role.OWNER,
        "bio": "Property owner with multiple listings in prime locations",
        "photo_url": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=200",
    },
    {
        "name": "Jane Owner",
        "email": "jane@rentalapp.com",
        "password": "Jane1234",
        "role": Role.OWNER,
        "bio": "Real estate investor and landlord",
        "photo_url": "https://images.unsplash.com/photo-1494790108377-be9c29b29330?w=200",
    },
    {
        "name": "Mike User",
        "email": "mike@rentalapp.com",
        "password": "Mike1234",
        "role": Role.USER,
        "bio": "Looking for a cozy place downtown",
        "photo_url": "https://images.unsplash.com/photo-1500648767791-00dcc994a43e?w=200",
    },
    {
        "name": "Sarah User",
        "email": "sarah@rentalapp.com",
        "password": "Sarah1234",
        "role": Role.USER,
        "bio": "Young professional relocating for work",
        "photo_url": "https://images.unsplash.com/photo-1438761681033-6461ffad8d80?w=200",
    },
]

# owner - email власника, status - стан модерації
PROPERTIES = [
    {
        "owner": "john@rentalapp.com",
        "title": "Luxury Downtown Apartment",
        "description": "Stunning apartment in the heart of downtown with panoramic city views.",
        "price": 3500,
        "location": "New York, NY",
        "property_type": "apartment",
        "bedrooms": 2,
        "bathrooms": 2,
        "square_feet": 1200,
        "amenities": ["WiFi", "Air Conditioning", "Gym", "Parking", "Doorman"],
        "images": ["https://images.unsplash.com/photo-1522708323590-d24dbb6b0267?w=800"],
    },
    {
        "owner": "john@rentalapp.com",
        "title": "Cozy Beach House",
        "description": "Beautiful beach house steps away from the ocean. Perfect for families.",
        "price": 4200,
        "location": "Miami, FL",
        "property_type": "house",
        "bedrooms": 3,
        "bathrooms": 2,
        "square_feet": 1800,
        "amenities": ["WiFi", "Beach Access", "Pool", "Parking", "BBQ Grill"],
        "images": ["https://images.unsplash.com/photo-1499793983690-e29da59ef1c2?w=800"],
    },
    {
        "owner": "jane@rentalapp.com",
        "title": "Modern Loft Studio",
        "description": "Trendy loft studio in the arts district with high ceilings.",
        "price": 2100,
        "location": "Los Angeles, CA",
        "property_type": "studio",
        "bedrooms": 1,
        "bathrooms": 1,
        "square_feet": 650,
        "amenities": ["WiFi", "Air Conditioning", "Washer/Dryer"],
        "images": ["https://images.unsplash.com/photo-1502672260266-1c1ef2d93688?w=800"],
    },
    {
        "owner": "jane@rentalapp.com",
        "title": "Suburban Family Home",
        "description": "Spacious family home in a quiet neighborhood with a large backyard.",
        "price": 2800,
        "location": "Austin, TX",
        "property_type": "house",
        "bedrooms": 4,
        "bathrooms": 3,
        "square_feet": 2400,
        "amenities": ["WiFi", "Garage", "Backyard", "Washer/Dryer", "Dishwasher"],
        "images": ["https://images.unsplash.com/photo-1568605114967-8130f3a36994?w=800"],
    },
    {
        "owner": "john@rentalapp.com",
        "title": "Downtown Penthouse",
        "description": "Exclusive penthouse with a private terrace and skyline views.",
        "price": 6500,
        "location": "Chicago, IL",
        "property_type": "apartment",
        "bedrooms": 3,
        "bathrooms": 3,
        "square_feet": 2200,
        "amenities": ["WiFi", "Concierge", "Gym", "Pool", "Terrace"],
        "images": ["https://images.unsplash.com/photo-1512917774080-9991f1c4c750?w=800"],
    },
    {
        "owner": "jane@rentalapp.com",
        "title": "Cozy Mountain Cabin",
        "description": "Rustic cabin surrounded by pine forest, close to hiking trails.",
        "price": 1800,
        "location": "Denver, CO",
        "property_type": "house",
        "bedrooms": 2,
        "bathrooms": 1,
        "square_feet": 900,
        "amenities": ["WiFi", "Fireplace", "Hiking Trails", "Parking"],
        "images": ["https://images.unsplash.com/photo-1449158743715-0a90ebb6d2d8?w=800"],
    },
    {
        "owner": "john@rentalapp.com",
        "title": "Riverside Condo",
        "description": "Fresh listing waiting for moderation, quiet riverside location.",
        "price": 2500,
        "location": "Portland, OR",
        "property_type": "condo",
        "status": PropertyStatus.PENDING,
    },
    {
        "owner": "jane@rentalapp.com",
        "title": "Shared Room Near Campus",
        "description": "Bed in a shared room, walking distance to the university.",
        "price": 600,
        "location": "Boston, MA",
        "property_type": "room",
        "status": PropertyStatus.REJECTED,
        "rejection_reason": "Please add photos of the room",
    },
]

# (автор, індекс об'єкта, оцінка, текст)
REVIEWS = [
    ("mike@rentalapp.com", 0, 5, "Absolutely loved this place! The view is incredible."),
    ("sarah@rentalapp.com", 0, 4, "Great apartment, but parking was a bit tight."),
    ("mike@rentalapp.com", 1, 5, "Perfect beach vacation. Will definitely come back!"),
    ("sarah@rentalapp.com", 3, 5, "Great family home. The backyard is huge!"),
]

FAVORITES = [
    ("mike@rentalapp.com", 0),
    ("mike@rentalapp.com", 2),
    ("sarah@rentalapp.com", 1),
    ("sarah@rentalapp.com", 3),
]

# (відвідувач, індекс об'єкта, через скільки днів, статус, примітка)
VIEWINGS = [
    ("mike@rentalapp.com", 0, 1, ViewingStatus.PENDING, "Would like to see it in the afternoon"),
    ("sarah@rentalapp.com", 2, 2, ViewingStatus.CONFIRMED, "Morning viewing preferred"),
]

# (відправник, отримувач, текст)
MESSAGES = [
    ("mike@rentalapp.com", "john@rentalapp.com", "Hi, is the downtown apartment still available?"),
    ("john@rentalapp.com", "mike@rentalapp.com", "Yes it is! Would you like to schedule a viewing?"),
    ("mike@rentalapp.com", "john@rentalapp.com", "That would be great. How about tomorrow?"),
]


async def clear(db: Database):
    for name in COLLECTIONS:
        removed = await getattr(db, name).delete({})
        logger.info(f"🧹 {name}: removed {removed}")


async def seed(db: Database) -> Dict[str, Any]:
    """Очищує колекції та створює демонстраційні дані.

    Повертає створених користувачів (за email) та об'єкти (у порядку списку).
    """
    await clear(db)

    hasher = PasswordHasher()
    users = UserRepository(db)
    properties = PropertyRepository(db)
    reviews = ReviewRepository(db)
    favorites = FavoriteRepository(db)
    viewings = ViewingRepository(db)
    chats = ChatRepository(db)
    messages = MessageRepository(db)
    notifications = NotificationService(db)

    created_users = {}
    for data in USERS:
        user = await users.create({**data, "password": hasher.hash(data["password"])})
        created_users[user["email"]] = user
    logger.info(f"👤 Created {len(created_users)} users")

    created_properties = []
    for data in PROPERTIES:
        fields = {key: value for key, value in data.items() if key != "owner"}
        fields.setdefault("status", PropertyStatus.APPROVED)
        fields["owner_id"] = created_users[data["owner"]]["_id"]
        created_properties.append(await properties.create(fields))
    logger.info(f"🏠 Created {len(created_properties)} properties")

    # Рейтинг об'єкта перераховує сам репозиторій відгуків
    for email, index, rating, text in REVIEWS:
        author = created_users[email]
        await reviews.create({
            "property_id": created_properties[index]["_id"],
            "user_id": author["_id"],
            "user_name": author["name"],
            "user_photo_url": author.get("photo_url"),
            "rating": rating,
            "review_text": text,
        })
    logger.info(f"⭐ Created {len(REVIEWS)} reviews")

    for email, index in FAVORITES:
        await favorites.create({
            "user_id": created_users[email]["_id"],
            "property_id": created_properties[index]["_id"],
        })

    now = datetime.utcnow()
    for email, index, days, status, note in VIEWINGS:
        property_doc = created_properties[index]
        await viewings.create({
            "property_id": property_doc["_id"],
            "user_id": created_users[email]["_id"],
            "owner_id": property_doc["owner_id"],
            "date": now + timedelta(days=days),
            "status": status,
            "note": note,
        })

    mike = created_users["mike@rentalapp.com"]
    john = created_users["john@rentalapp.com"]
    sarah = created_users["sarah@rentalapp.com"]

    chat = await chats.find_or_create(mike["_id"], john["_id"])
    for sender, receiver, content in MESSAGES:
        await messages.create({
            "chat_id": chat["_id"],
            "sender_id": created_users[sender]["_id"],
            "receiver_id": created_users[receiver]["_id"],
            "content": content,
        })
    logger.info(f"💬 Created chat with {len(MESSAGES)} messages")

    await notifications.notify(
        john["_id"],
        NotificationType.VIEWING,
        "New Viewing Request",
        f"{mike['name']} requested a viewing for {created_properties[0]['title']}",
        {"property_id": str(created_properties[0]["_id"])},
    )
    await notifications.notify(
        sarah["_id"],
        NotificationType.VIEWING,
        "Viewing Confirmed",
        f"Your viewing for {created_properties[2]['title']} has been confirmed",
        {"property_id": str(created_properties[2]["_id"])},
    )

    return {"users": created_users, "properties": created_properties, "chat": chat}


async def main():
    db = Database()
    try:
        await db.setup_indexes()
        await seed(db)
    finally:
        Database.close()

    logger.info("✅ Seed completed. Test accounts:")
    for data in USERS:
        logger.info(f"   {data['role'].value:<6} {data['email']:<22} {data['password']}")


if __name__ == "__main__":
    asyncio.run(main())
