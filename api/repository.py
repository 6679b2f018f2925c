"""
Типізований доступ до колекцій.

Кожен репозиторій прив'язаний до колекції `Database` та pydantic-схеми
документа. Документ валідується схемою при створенні та при кожному
оновленні; порушення унікальних індексів перетворюються на ApiException
з кодом дублікату, якщо він заданий для сутності.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from api.aggregation import AggregationMaintainer
from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.models.entities import (
    DocumentModel,
    UserDocument,
    PropertyDocument,
    ReviewDocument,
    FavoriteDocument,
    ViewingDocument,
    ChatDocument,
    MessageDocument,
    NotificationDocument,
    chat_key,
    to_object_id,
)
from tools.database import Database

USER_SUMMARY_FIELDS = ("name", "email", "phone_number", "photo_url")
PROPERTY_SUMMARY_FIELDS = ("title", "images", "location", "price")


class Repository:
    collection_name: str = ""
    schema: Type[DocumentModel] = DocumentModel
    not_found_code: ApiErrorCode = ApiErrorCode.INVALID_ID
    duplicate_code: Optional[ApiErrorCode] = None
    # Необов'язкові унікальні поля: порожні значення не зберігаються (sparse-індекс)
    sparse_fields: Tuple[str, ...] = ()

    def __init__(self, db: Optional[Database] = None):
        self.db = db or Database()
        self.collection = getattr(self.db, self.collection_name)

    def object_id(self, value: Any) -> ObjectId:
        """ID, який не можна розібрати, ніколи не знайде документ."""
        try:
            return to_object_id(value)
        except ValueError:
            raise ApiException(self.not_found_code)

    def _validate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        document = self.schema(**data).model_dump()
        for field in self.sparse_fields:
            if not document.get(field):
                document.pop(field, None)
        return document

    def _raise_duplicate(self, error: DuplicateKeyError):
        if self.duplicate_code:
            raise ApiException(self.duplicate_code) from error
        raise error

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        document = self._validate(data)
        now = datetime.utcnow()
        document["created_at"] = now
        document["updated_at"] = now

        try:
            inserted_id = await self.collection.create(document)
        except DuplicateKeyError as e:
            self._raise_duplicate(e)

        document["_id"] = ObjectId(inserted_id)
        await self.after_create(document)
        return document

    async def find_by_id(self, document_id: Any) -> Dict[str, Any]:
        document = await self.collection.find_one({"_id": self.object_id(document_id)})
        if not document:
            raise ApiException(self.not_found_code)
        return document

    async def find_one(self, query: Dict[str, Any], sort: list = None) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one(query, sort=sort)

    async def find(
        self,
        query: Dict[str, Any],
        sort: list = None,
        page: int = 1,
        limit: int = 20,
        projection: Dict[str, Any] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Сторінка документів (сторінки нумеруються з 1) та загальна кількість."""
        skip = (page - 1) * limit
        items = await self.collection.find(query, skip=skip, limit=limit, sort=sort, projection=projection)
        total = await self.collection.count_documents(query)
        return items, total

    async def find_all(self, query: Dict[str, Any], sort: list = None, projection: Dict[str, Any] = None) -> List[Dict[str, Any]]:
        return await self.collection.find(query, sort=sort, projection=projection)

    async def count(self, query: Dict[str, Any]) -> int:
        return await self.collection.count_documents(query)

    async def update(self, document_id: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Часткове оновлення з повторною валідацією всього документа."""
        current = await self.find_by_id(document_id)
        document = self.schema(**{**current, **changes}).model_dump()

        to_set = {key: value for key, value in document.items() if current.get(key) != value}
        to_unset = {}
        for field in self.sparse_fields:
            if not document.get(field):
                to_set.pop(field, None)
                if field in current:
                    to_unset[field] = ""
        to_set["updated_at"] = datetime.utcnow()

        operations = {"$set": to_set}
        if to_unset:
            operations["$unset"] = to_unset

        try:
            updated = await self.collection.find_one_and_update({"_id": current["_id"]}, operations)
        except DuplicateKeyError as e:
            self._raise_duplicate(e)

        if not updated:
            raise ApiException(self.not_found_code)
        await self.after_update(current, updated)
        return updated

    async def update_where(self, query: Dict[str, Any], operations: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Атомарне оновлення одного документа операторами MongoDB ($inc, $addToSet...)."""
        return await self.collection.find_one_and_update(query, operations)

    async def update_many(self, query: Dict[str, Any], fields: Dict[str, Any]) -> int:
        return await self.collection.update(query, fields)

    async def delete(self, document_id: Any) -> Dict[str, Any]:
        document = await self.find_by_id(document_id)
        await self.collection.delete_one({"_id": document["_id"]})
        await self.after_delete(document)
        return document

    async def delete_where(self, query: Dict[str, Any]) -> int:
        return await self.collection.delete(query)

    async def after_create(self, document: Dict[str, Any]):
        pass

    async def after_update(self, before: Dict[str, Any], after: Dict[str, Any]):
        pass

    async def after_delete(self, document: Dict[str, Any]):
        pass

    async def attach_users(
        self,
        documents: List[Dict[str, Any]],
        source_field: str,
        target_field: str,
        fields: Iterable[str] = USER_SUMMARY_FIELDS
    ) -> List[Dict[str, Any]]:
        """Підставляє короткі дані користувачів замість посилань (populate)."""
        return await self._attach(self.db.users, documents, source_field, target_field, fields)

    async def attach_properties(
        self,
        documents: List[Dict[str, Any]],
        source_field: str = "property_id",
        target_field: str = "property",
        fields: Iterable[str] = PROPERTY_SUMMARY_FIELDS
    ) -> List[Dict[str, Any]]:
        return await self._attach(self.db.properties, documents, source_field, target_field, fields)

    @staticmethod
    async def _attach(collection, documents, source_field, target_field, fields):
        ids = list({doc[source_field] for doc in documents if doc.get(source_field)})
        if not ids:
            for doc in documents:
                doc[target_field] = None
            return documents

        related = await collection.find({"_id": {"$in": ids}}, projection={field: 1 for field in fields})
        by_id = {item["_id"]: item for item in related}
        for doc in documents:
            doc[target_field] = by_id.get(doc.get(source_field))
        return documents


class UserRepository(Repository):
    collection_name = "users"
    schema = UserDocument
    not_found_code = ApiErrorCode.USER_NOT_FOUND
    sparse_fields = ("phone_number",)

    PRIVATE_FIELDS = ("password", "google_id", "fcm_token")

    @classmethod
    def safe(cls, user: Dict[str, Any]) -> Dict[str, Any]:
        """Копія користувача без пароля, зовнішнього ID та push-токена."""
        return {key: value for key, value in user.items() if key not in cls.PRIVATE_FIELDS}

    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return await self.find_one({"email": email.strip().lower()})

    async def find_admins(self, active_only: bool = False) -> List[Dict[str, Any]]:
        query = {"role": "admin"}
        if active_only:
            query["is_active"] = True
        return await self.find_all(query, sort=[("created_at", 1)])


class PropertyRepository(Repository):
    collection_name = "properties"
    schema = PropertyDocument
    not_found_code = ApiErrorCode.PROPERTY_NOT_FOUND


class ReviewRepository(Repository):
    collection_name = "reviews"
    schema = ReviewDocument
    not_found_code = ApiErrorCode.REVIEW_NOT_FOUND
    duplicate_code = ApiErrorCode.REVIEW_ALREADY_EXISTS

    def __init__(self, db: Optional[Database] = None):
        super().__init__(db)
        self.maintainer = AggregationMaintainer(self.db)

    # Рейтинг об'єкта перераховується в межах того ж запиту
    async def after_create(self, document):
        await self.maintainer.recalculate_property_rating(document["property_id"])

    async def after_update(self, before, after):
        await self.maintainer.recalculate_property_rating(after["property_id"])

    async def after_delete(self, document):
        await self.maintainer.recalculate_property_rating(document["property_id"])


class FavoriteRepository(Repository):
    collection_name = "favorites"
    schema = FavoriteDocument
    not_found_code = ApiErrorCode.FAVORITE_NOT_FOUND
    duplicate_code = ApiErrorCode.FAVORITE_ALREADY_EXISTS


class ViewingRepository(Repository):
    collection_name = "viewings"
    schema = ViewingDocument
    not_found_code = ApiErrorCode.VIEWING_NOT_FOUND


class ChatRepository(Repository):
    collection_name = "chats"
    schema = ChatDocument
    not_found_code = ApiErrorCode.CHAT_NOT_FOUND

    async def find_or_create(self, first_id: ObjectId, second_id: ObjectId, is_admin_support: bool = False) -> Dict[str, Any]:
        key = chat_key(first_id, second_id, is_admin_support)
        chat = await self.find_one({"participant_key": key})
        if chat:
            return chat
        try:
            return await self.create({
                "participants": [first_id, second_id],
                "is_admin_support": is_admin_support
            })
        except DuplicateKeyError:
            # Паралельний запит уже створив чат для цієї пари
            return await self.find_one({"participant_key": key})


class MessageRepository(Repository):
    collection_name = "messages"
    schema = MessageDocument
    not_found_code = ApiErrorCode.MESSAGE_NOT_FOUND

    def __init__(self, db: Optional[Database] = None):
        super().__init__(db)
        self.maintainer = AggregationMaintainer(self.db)

    async def after_create(self, document):
        await self.maintainer.on_message_created(document)


class NotificationRepository(Repository):
    collection_name = "notifications"
    schema = NotificationDocument
    not_found_code = ApiErrorCode.NOTIFICATION_NOT_FOUND
