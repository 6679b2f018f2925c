"""
Підтримка денормалізованих полів.

- рейтинг об'єкта (average_rating, review_count) з відгуків;
- зведення чату: останнє повідомлення та лічильники непрочитаних
  для кожного учасника;
- голоси "корисно" для відгуку.

Оновлення виконуються окремими записами після основного запису, без
транзакції. Перерахунок рейтингу ідемпотентний, тому повторний виклик
виправляє пропущене оновлення.
"""

import math
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from bson import ObjectId

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from tools.database import Database
from tools.logger import Logger

logger = Logger()


def round_rating(value: float) -> float:
    """Округлення до одного знака після коми, половина - вгору."""
    return math.floor(value * 10 + 0.5) / 10


class AggregationMaintainer:
    def __init__(self, db: Optional[Database] = None):
        self.db = db or Database()

    async def recalculate_property_rating(self, property_id: ObjectId) -> Tuple[float, int]:
        pipeline = [
            {"$match": {"property_id": property_id}},
            {"$group": {
                "_id": "$property_id",
                "average_rating": {"$avg": "$rating"},
                "review_count": {"$sum": 1}
            }}
        ]
        result = await self.db.reviews.aggregate(pipeline)

        if result:
            average_rating = round_rating(result[0]["average_rating"])
            review_count = result[0]["review_count"]
        else:
            average_rating, review_count = 0, 0

        await self.db.properties.update_one(
            {"_id": property_id},
            {"$set": {"average_rating": average_rating, "review_count": review_count}}
        )
        logger.debug(f"Rating for property {property_id}: {average_rating} ({review_count})")
        return average_rating, review_count

    async def on_message_created(self, message: Dict[str, Any]):
        """Нове повідомлення оновлює зведення чату для обох учасників."""
        sender = str(message["sender_id"])
        receiver = str(message["receiver_id"])
        content = message["content"]
        sent_at = message["created_at"]

        await self.db.chats.update_one(
            {"_id": message["chat_id"]},
            {
                "$set": {
                    "last_message": content,
                    "last_message_time": sent_at,
                    f"last_messages.{sender}": content,
                    f"last_messages.{receiver}": content,
                    f"last_message_times.{sender}": sent_at,
                    f"last_message_times.{receiver}": sent_at,
                    "updated_at": datetime.utcnow()
                },
                "$inc": {f"unread_counts.{receiver}": 1}
            }
        )

    async def refresh_last_message_for(self, chat_id: ObjectId, viewer_id: ObjectId) -> Optional[Dict[str, Any]]:
        """Перераховує останнє повідомлення чату з точки зору одного учасника.

        Враховуються лише повідомлення, які учасник не видалив для себе.
        Якщо таких не лишилось, зведення очищується.
        """
        latest = await self.db.messages.find_one(
            {"chat_id": chat_id, "deleted_by": {"$ne": viewer_id}},
            sort=[("created_at", -1), ("_id", -1)]
        )
        viewer = str(viewer_id)
        await self.db.chats.update_one(
            {"_id": chat_id},
            {"$set": {
                f"last_messages.{viewer}": latest["content"] if latest else "",
                f"last_message_times.{viewer}": latest["created_at"] if latest else None
            }}
        )
        return latest

    async def mark_chat_read(self, chat_id: ObjectId, reader_id: ObjectId) -> int:
        """Скидає лічильник непрочитаних і позначає вхідні повідомлення прочитаними."""
        await self.db.chats.update_one(
            {"_id": chat_id},
            {"$set": {f"unread_counts.{reader_id}": 0}}
        )
        return await self.db.messages.update(
            {"chat_id": chat_id, "receiver_id": reader_id, "is_read": False},
            {"is_read": True}
        )

    async def toggle_helpful(self, review_id: ObjectId, user_id: ObjectId) -> Tuple[int, bool]:
        """Додає або знімає голос користувача. Повертає (helpful_count, is_helpful)."""
        added = await self.db.reviews.find_one_and_update(
            {"_id": review_id, "helpful_user_ids": {"$ne": user_id}},
            {"$addToSet": {"helpful_user_ids": user_id}}
        )
        if added:
            return await self._sync_helpful_count(added), True

        removed = await self.db.reviews.find_one_and_update(
            {"_id": review_id, "helpful_user_ids": user_id},
            {"$pull": {"helpful_user_ids": user_id}}
        )
        if not removed:
            raise ApiException(ApiErrorCode.REVIEW_NOT_FOUND)
        return await self._sync_helpful_count(removed), False

    async def _sync_helpful_count(self, review: Dict[str, Any]) -> int:
        helpful_count = len(review.get("helpful_user_ids", []))
        await self.db.reviews.update_one(
            {"_id": review["_id"]},
            {"$set": {"helpful_count": helpful_count}}
        )
        return helpful_count
