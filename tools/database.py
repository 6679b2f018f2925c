from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument
from tools.logger import Logger
from tools.config import DatabaseConfig
from typing import Optional, List, Dict

logger = Logger()


class Database:
    # Один клієнт (пул з'єднань) на весь процес
    _client: Optional[AsyncIOMotorClient] = None

    def __init__(self):
        self.config = DatabaseConfig()
        self.uri = self.config.get_connection_string()

        # Ініціалізація властивостей для колекцій
        self.users = CollectionHandler(self, "users")
        self.properties = CollectionHandler(self, "properties")
        self.reviews = CollectionHandler(self, "reviews")
        self.favorites = CollectionHandler(self, "favorites")
        self.viewings = CollectionHandler(self, "viewings")
        self.chats = CollectionHandler(self, "chats")
        self.messages = CollectionHandler(self, "messages")
        self.notifications = CollectionHandler(self, "notifications")
        self.logs = CollectionHandler(self, "logs")

    @classmethod
    def use_client(cls, client) -> None:
        """Підставляє готового клієнта (наприклад, in-memory для тестів)."""
        cls._client = client

    @classmethod
    def close(cls) -> None:
        if cls._client is not None:
            cls._client.close()
            cls._client = None

    async def _get_client(self) -> AsyncIOMotorClient:
        """Повертає асинхронного клієнта MongoDB."""
        if Database._client is None:
            Database._client = AsyncIOMotorClient(
                self.uri,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                socketTimeoutMS=20000
            )
        return Database._client

    async def _get_collection(self, collection_name: str):
        """Повертає колекцію з бази даних."""
        client = await self._get_client()
        return client[self.config.DB_NAME][collection_name]

    async def setup_indexes(self):
        """Створює індекси, зокрема унікальні обмеження."""
        # Індекси для users
        await self.users.create_index([("email", 1)], unique=True)
        await self.users.create_index([("phone_number", 1)], unique=True, sparse=True)
        await self.users.create_index([("role", 1)])
        await self.users.create_index([("google_id", 1)], sparse=True)

        # Індекси для properties
        await self.properties.create_index([("owner_id", 1)])
        await self.properties.create_index([("status", 1)])
        await self.properties.create_index([("is_approved", 1)])
        await self.properties.create_index([("is_available", 1)])
        await self.properties.create_index([("property_type", 1)])
        await self.properties.create_index([("price", 1)])

        # Індекси для reviews - один відгук на пару (користувач, об'єкт)
        await self.reviews.create_index([("property_id", 1)])
        await self.reviews.create_index([("user_id", 1)])
        await self.reviews.create_index([("property_id", 1), ("user_id", 1)], unique=True)

        # Індекси для favorites
        await self.favorites.create_index([("user_id", 1)])
        await self.favorites.create_index([("property_id", 1)])
        await self.favorites.create_index([("user_id", 1), ("property_id", 1)], unique=True)

        # Індекси для viewings
        await self.viewings.create_index([("property_id", 1)])
        await self.viewings.create_index([("user_id", 1)])
        await self.viewings.create_index([("owner_id", 1)])
        await self.viewings.create_index([("status", 1)])
        await self.viewings.create_index([("date", 1)])

        # Індекси для chats / messages
        await self.chats.create_index([("participants", 1)])
        await self.chats.create_index([("participant_key", 1)], unique=True, sparse=True)
        await self.chats.create_index([("is_admin_support", 1)])
        await self.chats.create_index([("last_message_time", -1)])
        await self.messages.create_index([("chat_id", 1)])
        await self.messages.create_index([("sender_id", 1)])
        await self.messages.create_index([("receiver_id", 1)])
        await self.messages.create_index([("created_at", -1)])

        # Індекси для notifications
        await self.notifications.create_index([("user_id", 1), ("is_read", 1)])
        await self.notifications.create_index([("created_at", -1)])

        # TTL для логів (7 днів)
        await self.logs.create_index([("timestamp", 1)], expireAfterSeconds=604800)

        logger.info("Indexes created")

    async def setup_geo_indexes(self):
        """Геоіндекс окремо: in-memory сховища його не підтримують."""
        try:
            await self.properties.create_index([("coordinates", "2dsphere")])
        except Exception as e:
            logger.warning(f"2dsphere index was not created: {e}")


class CollectionHandler:
    """Обробник операцій для конкретної колекції.

    Помилки драйвера логуються і прокидаються далі: обробник помилок API
    перетворює їх на відповіді (зокрема DuplicateKeyError -> 400).
    """

    def __init__(self, db_instance: Database, collection_name: str):
        self.db = db_instance
        self.collection_name = collection_name

    async def create(self, data: Dict) -> str:
        """Створює новий документ в колекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            result = await collection.insert_one(data)
            return str(result.inserted_id)
        except Exception as e:
            logger.error(f"Error creating document in {self.collection_name}: {e}")
            raise

    async def update(self, query: Dict, update_data: Dict) -> int:
        """Оновлює документи в колекції ($set)."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            result = await collection.update_many(query, {"$set": update_data})
            return result.modified_count
        except Exception as e:
            logger.error(f"Error updating documents in {self.collection_name}: {e}")
            raise

    async def update_one(self, query: Dict, update_data: Dict) -> int:
        """Оновлює один документ в колекції (довільні оператори оновлення)."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            result = await collection.update_one(query, update_data)
            return result.modified_count
        except Exception as e:
            logger.error(f"Error updating document in {self.collection_name}: {e}")
            raise

    async def find_one_and_update(self, query: Dict, update_data: Dict) -> Optional[Dict]:
        """Оновлює один документ і повертає його новий стан."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            return await collection.find_one_and_update(
                query, update_data, return_document=ReturnDocument.AFTER
            )
        except Exception as e:
            logger.error(f"Error updating document in {self.collection_name}: {e}")
            raise

    async def delete(self, query: Dict) -> int:
        """Видаляє документи з колекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            result = await collection.delete_many(query)
            return result.deleted_count
        except Exception as e:
            logger.error(f"Error deleting documents from {self.collection_name}: {e}")
            raise

    async def delete_one(self, query: Dict) -> int:
        """Видаляє один документ з колекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            result = await collection.delete_one(query)
            return result.deleted_count
        except Exception as e:
            logger.error(f"Error deleting document from {self.collection_name}: {e}")
            raise

    async def find_one(self, query: Dict, sort: list = None) -> Optional[Dict]:
        """Знаходить один документ в колекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            return await collection.find_one(query, sort=sort)
        except Exception as e:
            logger.error(f"Error finding document in {self.collection_name}: {e}")
            raise

    async def count_documents(self, query: Dict) -> int:
        """Підраховує кількість документів в колекції, що відповідають запиту."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            return await collection.count_documents(query)
        except Exception as e:
            logger.error(f"Error counting documents in {self.collection_name}: {e}")
            raise

    async def find(self, query: Dict, skip: int = 0, limit: int = 0, sort: list = None, projection: Dict = None) -> List[Dict]:
        """Знаходить документи з підтримкою пагінації, сортування та проекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            cursor = collection.find(query, projection, skip=skip, limit=limit, sort=sort)
            return await cursor.to_list(length=None)
        except Exception as e:
            logger.error(f"Error finding documents in {self.collection_name}: {e}")
            raise

    async def aggregate(self, pipeline: List[Dict]) -> List[Dict]:
        """Виконує агрегацію в колекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            cursor = collection.aggregate(pipeline)
            return await cursor.to_list(length=None)
        except Exception as e:
            logger.error(f"Error aggregating in {self.collection_name}: {e}")
            raise

    async def create_index(self, keys: List[tuple], **kwargs) -> str:
        """Створює індекс в колекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            return await collection.create_index(keys, **kwargs)
        except Exception as e:
            logger.error(f"Error creating index in {self.collection_name}: {e}")
            raise
