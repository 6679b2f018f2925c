from typing import Any, Dict

from fastapi import Depends, Query, status

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.jwt_handler import JWTHandler
from api.models.enums import NotificationType
from api.models.requests import ReviewCreateRequest, ReviewUpdateRequest
from api.notification_service import NotificationService
from api.policies import ensure_owner_or_admin
from api.repository import ReviewRepository, PropertyRepository, UserRepository
from api.response import Response, pagination
from tools.database import Database
from tools.logger import Logger

logger = Logger()
jwt_handler = JWTHandler()

SORT_FIELDS = {
    "created_at": "created_at",
    "createdAt": "created_at",
    "rating": "rating",
    "helpful_count": "helpful_count",
    "helpfulCount": "helpful_count",
}


class ReviewsEndpoints:
    def __init__(self):
        self.db = Database()
        self.reviews = ReviewRepository(self.db)
        self.properties = PropertyRepository(self.db)
        self.users = UserRepository(self.db)
        self.notifier = NotificationService(self.db)
        self.maintainer = self.reviews.maintainer

    async def get_property_reviews(
        self,
        property_id: str,
        sort_by: str = Query("created_at"),
        sort_order: str = Query("desc", pattern="^(asc|desc)$"),
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100)
    ) -> Dict[str, Any]:
        """🌍 ПУБЛІЧНИЙ ENDPOINT: відгуки про об'єкт."""
        query = {"property_id": self.properties.object_id(property_id)}
        sort = [(SORT_FIELDS.get(sort_by, "created_at"), 1 if sort_order == "asc" else -1)]

        items, total = await self.reviews.find(query, sort=sort, page=page, limit=limit)
        await self.reviews.attach_users(items, "user_id", "user", ("name", "photo_url"))
        return Response.success({"reviews": items}, pagination=pagination(page, limit, total))

    async def get_user_reviews(
        self,
        user_id: str,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100)
    ) -> Dict[str, Any]:
        query = {"user_id": self.users.object_id(user_id)}
        items, total = await self.reviews.find(query, sort=[("created_at", -1)], page=page, limit=limit)
        await self.reviews.attach_properties(items, fields=("title", "images", "location"))
        return Response.success({"reviews": items}, pagination=pagination(page, limit, total))

    async def create_review(
        self,
        data: ReviewCreateRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """
        Новий відгук. Один відгук на об'єкт від користувача, власник не може
        оцінювати свій об'єкт. Рейтинг об'єкта перераховується одразу.
        """
        property_doc = await self.properties.find_by_id(data.property_id)

        existing = await self.reviews.find_one({
            "property_id": property_doc["_id"],
            "user_id": current_user["_id"]
        })
        if existing:
            raise ApiException(ApiErrorCode.REVIEW_ALREADY_EXISTS)

        if str(property_doc["owner_id"]) == str(current_user["_id"]):
            raise ApiException(ApiErrorCode.OWN_PROPERTY_REVIEW)

        review = await self.reviews.create({
            "property_id": property_doc["_id"],
            "user_id": current_user["_id"],
            "user_name": current_user["name"],
            "user_photo_url": current_user.get("photo_url"),
            "rating": data.rating,
            "review_text": data.review_text
        })

        await self.notifier.notify(
            property_doc["owner_id"],
            NotificationType.REVIEW,
            "New Review",
            f'{current_user["name"]} left a {data.rating}-star review on "{property_doc["title"]}".',
            {"property_id": str(property_doc["_id"]), "review_id": str(review["_id"])}
        )
        logger.info(f"⭐ Review {review['_id']} on property {property_doc['_id']}")

        return Response.success(
            {"review": review},
            message="Review created successfully",
            status_code=status.HTTP_201_CREATED
        )

    async def update_review(
        self,
        review_id: str,
        data: ReviewUpdateRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        review = await self.reviews.find_by_id(review_id)
        ensure_owner_or_admin(current_user, review["user_id"], "Not authorized to update this review")

        updated = await self.reviews.update(review["_id"], data.model_dump(exclude_none=True))
        return Response.success({"review": updated}, message="Review updated successfully")

    async def delete_review(
        self,
        review_id: str,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        review = await self.reviews.find_by_id(review_id)
        ensure_owner_or_admin(current_user, review["user_id"], "Not authorized to delete this review")

        await self.reviews.delete(review["_id"])
        return Response.success(message="Review deleted successfully")

    async def toggle_helpful(
        self,
        review_id: str,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """Голос "корисно": повторний виклик знімає голос."""
        review = await self.reviews.find_by_id(review_id)
        helpful_count, is_helpful = await self.maintainer.toggle_helpful(review["_id"], current_user["_id"])
        return Response.success({"helpful_count": helpful_count, "is_helpful": is_helpful})
