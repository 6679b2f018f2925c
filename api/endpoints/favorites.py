from typing import Any, Dict

from fastapi import Depends, Query, status

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.jwt_handler import JWTHandler
from api.models.requests import FavoriteCreateRequest
from api.repository import FavoriteRepository, PropertyRepository
from api.response import Response, pagination
from tools.database import Database

jwt_handler = JWTHandler()

OWNER_FIELDS = ("name", "email", "phone_number", "photo_url")


class FavoritesEndpoints:
    def __init__(self):
        self.db = Database()
        self.favorites = FavoriteRepository(self.db)
        self.properties = PropertyRepository(self.db)

    async def get_favorites(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """Обране користувача з даними об'єкта та власника.

        Записи, об'єкт яких уже видалено, пропускаються.
        """
        query = {"user_id": current_user["_id"]}
        items, total = await self.favorites.find(query, sort=[("created_at", -1)], page=page, limit=limit)

        related = await self.properties.find_all({"_id": {"$in": [item["property_id"] for item in items]}})
        await self.properties.attach_users(related, "owner_id", "owner", OWNER_FIELDS)
        by_id = {property_doc["_id"]: property_doc for property_doc in related}

        favorites = []
        for item in items:
            property_doc = by_id.get(item["property_id"])
            if property_doc is None:
                continue
            item["property"] = property_doc
            favorites.append(item)

        return Response.success({"favorites": favorites}, pagination=pagination(page, limit, total))

    async def get_favorite_ids(self, current_user: Dict = Depends(jwt_handler.get_current_user)) -> Dict[str, Any]:
        favorites = await self.favorites.find_all({"user_id": current_user["_id"]}, projection={"property_id": 1})
        return Response.success({"property_ids": [str(item["property_id"]) for item in favorites]})

    async def check_favorite(
        self,
        property_id: str,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        favorite = await self.favorites.find_one({
            "user_id": current_user["_id"],
            "property_id": self.properties.object_id(property_id)
        })
        return Response.success({"is_favorited": favorite is not None})

    async def add_favorite(
        self,
        data: FavoriteCreateRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        property_doc = await self.properties.find_by_id(data.property_id)

        existing = await self.favorites.find_one({
            "user_id": current_user["_id"],
            "property_id": property_doc["_id"]
        })
        if existing:
            raise ApiException(ApiErrorCode.FAVORITE_ALREADY_EXISTS)

        favorite = await self.favorites.create({
            "user_id": current_user["_id"],
            "property_id": property_doc["_id"]
        })
        return Response.success(
            {"favorite": favorite},
            message="Property added to favorites",
            status_code=status.HTTP_201_CREATED
        )

    async def remove_favorite(
        self,
        property_id: str,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        deleted = await self.favorites.delete_where({
            "user_id": current_user["_id"],
            "property_id": self.properties.object_id(property_id)
        })
        if not deleted:
            raise ApiException(ApiErrorCode.FAVORITE_NOT_FOUND)
        return Response.success(message="Property removed from favorites")

    async def toggle_favorite(
        self,
        property_id: str,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """Додає об'єкт до обраного або прибирає його звідти."""
        property_doc = await self.properties.find_by_id(property_id)
        query = {"user_id": current_user["_id"], "property_id": property_doc["_id"]}

        if await self.favorites.delete_where(query):
            return Response.success({"is_favorited": False}, message="Property removed from favorites")

        await self.favorites.create(query)
        return Response.success({"is_favorited": True}, message="Property added to favorites")
