from typing import Any, Dict, Optional

from fastapi import Depends, Query, status

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.jwt_handler import JWTHandler
from api.models.enums import Role, ViewingStatus, NotificationType
from api.models.requests import ViewingCreateRequest, ViewingStatusRequest
from api.notification_service import NotificationService
from api.policies import ViewingTransitions, ensure_owner_or_admin
from api.repository import ViewingRepository, PropertyRepository
from api.response import Response, pagination
from tools.database import Database
from tools.logger import Logger

logger = Logger()
jwt_handler = JWTHandler()

PROPERTY_FIELDS = ("title", "images", "location", "price")

# Хто отримує сповіщення про зміну статусу та з яким текстом
STATUS_NOTIFICATIONS = {
    ViewingStatus.CONFIRMED: ("user_id", "Viewing Confirmed", 'Your viewing request for "{title}" has been confirmed.'),
    ViewingStatus.REJECTED: ("user_id", "Viewing Rejected", 'Your viewing request for "{title}" has been rejected.'),
    ViewingStatus.CANCELLED: ("owner_id", "Viewing Cancelled", 'A viewing request for "{title}" has been cancelled.'),
}


class ViewingsEndpoints:
    def __init__(self):
        self.db = Database()
        self.viewings = ViewingRepository(self.db)
        self.properties = PropertyRepository(self.db)
        self.notifier = NotificationService(self.db)

    async def _list(self, query: Dict[str, Any], counterpart: str, page: int, limit: int) -> Dict[str, Any]:
        items, total = await self.viewings.find(query, sort=[("date", -1)], page=page, limit=limit)
        await self.viewings.attach_properties(items, fields=PROPERTY_FIELDS)
        await self.viewings.attach_users(items, f"{counterpart}_id", counterpart)
        return Response.success({"viewings": items}, pagination=pagination(page, limit, total))

    async def get_user_viewings(
        self,
        status_filter: Optional[ViewingStatus] = Query(None, alias="status"),
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """Запити на перегляд, створені поточним користувачем."""
        query: Dict[str, Any] = {"user_id": current_user["_id"]}
        if status_filter:
            query["status"] = status_filter.value
        return await self._list(query, "owner", page, limit)

    async def get_owner_viewings(
        self,
        status_filter: Optional[ViewingStatus] = Query(None, alias="status"),
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.require_roles(Role.OWNER, Role.ADMIN))
    ) -> Dict[str, Any]:
        """Запити на перегляд об'єктів поточного власника."""
        query: Dict[str, Any] = {"owner_id": current_user["_id"]}
        if status_filter:
            query["status"] = status_filter.value
        return await self._list(query, "user", page, limit)

    async def create_viewing(
        self,
        data: ViewingCreateRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """
        Запит на перегляд об'єкта.

        Не можна просити перегляд власного об'єкта, а також мати більше
        одного запиту в статусі pending на той самий об'єкт.
        """
        property_doc = await self.properties.find_by_id(data.property_id)

        if str(property_doc["owner_id"]) == str(current_user["_id"]):
            raise ApiException(ApiErrorCode.OWN_PROPERTY_VIEWING)

        pending = await self.viewings.find_one({
            "property_id": property_doc["_id"],
            "user_id": current_user["_id"],
            "status": ViewingStatus.PENDING.value
        })
        if pending:
            raise ApiException(ApiErrorCode.VIEWING_ALREADY_PENDING)

        viewing = await self.viewings.create({
            "property_id": property_doc["_id"],
            "user_id": current_user["_id"],
            "owner_id": property_doc["owner_id"],
            "date": data.date,
            "note": data.note
        })

        await self.notifier.notify(
            property_doc["owner_id"],
            NotificationType.VIEWING,
            "New Viewing Request",
            f'{current_user["name"]} has requested a viewing for "{property_doc["title"]}".',
            {"property_id": str(property_doc["_id"]), "viewing_id": str(viewing["_id"])}
        )
        logger.info(f"📅 Viewing {viewing['_id']} requested for property {property_doc['_id']}")

        await self.viewings.attach_properties([viewing], fields=("title", "images", "location"))
        return Response.success(
            {"viewing": viewing},
            message="Viewing request created successfully",
            status_code=status.HTTP_201_CREATED
        )

    async def update_viewing_status(
        self,
        viewing_id: str,
        data: ViewingStatusRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        viewing = await self.viewings.find_by_id(viewing_id)
        target = ViewingStatus(data.status)
        ViewingTransitions.ensure_allowed(viewing, current_user, target)

        changes: Dict[str, Any] = {"status": target.value}
        if data.cancel_reason:
            changes["cancel_reason"] = data.cancel_reason
        updated = await self.viewings.update(viewing["_id"], changes)

        if target in STATUS_NOTIFICATIONS:
            recipient_field, title, body = STATUS_NOTIFICATIONS[target]
            property_doc = await self.properties.find_one({"_id": updated["property_id"]})
            property_title = property_doc["title"] if property_doc else "a property"
            await self.notifier.notify(
                updated[recipient_field],
                NotificationType.VIEWING,
                title,
                body.format(title=property_title),
                {"viewing_id": str(updated["_id"])}
            )

        return Response.success({"viewing": updated}, message=f"Viewing {target.value}")

    async def delete_viewing(
        self,
        viewing_id: str,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        viewing = await self.viewings.find_by_id(viewing_id)
        ensure_owner_or_admin(current_user, viewing["user_id"], "Not authorized to delete this viewing")

        await self.viewings.delete(viewing["_id"])
        return Response.success(message="Viewing deleted successfully")
