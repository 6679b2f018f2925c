import re
from typing import Any, Dict, Optional

from fastapi import Depends, Query, status

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.jwt_handler import JWTHandler
from api.models.enums import Role, PropertyStatus, PropertyType, NotificationType
from api.models.requests import PropertyCreateRequest, PropertyUpdateRequest, RejectPropertyRequest
from api.notification_service import NotificationService
from api.policies import PropertyApproval, ensure_owner_or_admin, is_admin
from api.repository import PropertyRepository
from api.response import Response, pagination
from tools.database import Database
from tools.event_logger import EventLogger
from tools.logger import Logger

logger = Logger()
jwt_handler = JWTHandler()

SORT_FIELDS = {
    "created_at": "created_at",
    "createdAt": "created_at",
    "price": "price",
    "average_rating": "average_rating",
    "rating": "average_rating",
    "views": "views",
    "bedrooms": "bedrooms",
}
OWNER_FIELDS = ("name", "email", "phone_number", "photo_url")
NULLABLE_FIELDS = ("square_feet", "available_from", "sharing_type", "available_beds")


class PropertiesEndpoints:
    def __init__(self):
        self.db = Database()
        self.properties = PropertyRepository(self.db)
        self.notifier = NotificationService(self.db)

    async def list_properties(
        self,
        location: Optional[str] = Query(None, description="Підрядок у локації"),
        property_type: Optional[PropertyType] = Query(None),
        min_price: Optional[float] = Query(None, ge=0),
        max_price: Optional[float] = Query(None, ge=0),
        bedrooms: Optional[int] = Query(None, ge=0, description="Мінімальна кількість спалень"),
        bathrooms: Optional[int] = Query(None, ge=0, description="Мінімальна кількість ванних"),
        amenities: Optional[str] = Query(None, description="Зручності через кому (всі мають бути)"),
        sort_by: str = Query("created_at"),
        sort_order: str = Query("desc", pattern="^(asc|desc)$"),
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100)
    ) -> Dict[str, Any]:
        """
        🌍 ПУБЛІЧНИЙ ENDPOINT: пошук серед схвалених об'єктів.

        Приклад запиту:
        GET /api/properties?location=kyiv&min_price=100&bedrooms=2&amenities=wifi,parking
        """
        query: Dict[str, Any] = {"is_approved": True, "status": PropertyStatus.APPROVED.value}

        if location:
            query["location"] = {"$regex": re.escape(location), "$options": "i"}
        if property_type:
            query["property_type"] = property_type.value
        if min_price is not None or max_price is not None:
            query["price"] = {}
            if min_price is not None:
                query["price"]["$gte"] = min_price
            if max_price is not None:
                query["price"]["$lte"] = max_price
        if bedrooms:
            query["bedrooms"] = {"$gte": bedrooms}
        if bathrooms:
            query["bathrooms"] = {"$gte": bathrooms}
        if amenities:
            amenity_list = [item.strip() for item in amenities.split(",") if item.strip()]
            if amenity_list:
                query["amenities"] = {"$all": amenity_list}

        sort_field = SORT_FIELDS.get(sort_by, "created_at")
        sort = [(sort_field, 1 if sort_order == "asc" else -1)]

        items, total = await self.properties.find(query, sort=sort, page=page, limit=limit)
        await self.properties.attach_users(items, "owner_id", "owner", OWNER_FIELDS)
        return Response.success({"properties": items}, pagination=pagination(page, limit, total))

    async def get_property(
        self,
        property_id: str,
        current_user: Optional[Dict] = Depends(jwt_handler.get_optional_user)
    ) -> Dict[str, Any]:
        """Об'єкт за ID. Не схвалені об'єкти бачать лише власник та адміністратор."""
        property_doc = await self.properties.find_by_id(property_id)

        if property_doc["status"] != PropertyStatus.APPROVED.value:
            visible = current_user is not None and (
                str(current_user["_id"]) == str(property_doc["owner_id"]) or is_admin(current_user)
            )
            if not visible:
                raise ApiException(ApiErrorCode.PROPERTY_NOT_FOUND)

        await self.properties.attach_users([property_doc], "owner_id", "owner", OWNER_FIELDS + ("bio",))
        return Response.success({"property": property_doc})

    async def increment_view(self, property_id: str) -> Dict[str, Any]:
        updated = await self.properties.update_where(
            {"_id": self.properties.object_id(property_id)},
            {"$inc": {"views": 1}}
        )
        if not updated:
            raise ApiException(ApiErrorCode.PROPERTY_NOT_FOUND)
        return Response.success({"views": updated["views"]})

    async def get_my_properties(
        self,
        status_filter: Optional[PropertyStatus] = Query(None, alias="status"),
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"owner_id": current_user["_id"]}
        if status_filter:
            query["status"] = status_filter.value

        items, total = await self.properties.find(query, sort=[("created_at", -1)], page=page, limit=limit)
        return Response.success({"properties": items}, pagination=pagination(page, limit, total))

    async def create_property(
        self,
        data: PropertyCreateRequest,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.OWNER, Role.ADMIN))
    ) -> Dict[str, Any]:
        """
        🔒 Створення об'єкта. Новий об'єкт завжди чекає на модерацію,
        всі адміністратори отримують сповіщення.
        """
        property_data = data.model_dump(exclude_none=True)
        property_data["owner_id"] = current_user["_id"]
        property_data["status"] = PropertyStatus.PENDING.value

        property_doc = await self.properties.create(property_data)

        await self.notifier.notify_all_admins(
            NotificationType.PROPERTY_UPDATE,
            "New Property Submitted",
            f'A new property "{property_doc["title"]}" has been submitted for review.',
            {"property_id": str(property_doc["_id"])}
        )
        logger.info(f"🏠 Property {property_doc['_id']} submitted by {current_user['_id']}")

        return Response.success(
            {"property": property_doc},
            message="Property created successfully. Pending admin approval.",
            status_code=status.HTTP_201_CREATED
        )

    async def update_property(
        self,
        property_id: str,
        data: PropertyUpdateRequest,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.OWNER, Role.ADMIN))
    ) -> Dict[str, Any]:
        """Оновлення об'єкта; зміни від власника знімають схвалення."""
        property_doc = await self.properties.find_by_id(property_id)
        ensure_owner_or_admin(current_user, property_doc["owner_id"], "Not authorized to update this property")

        changes = {
            key: value for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_FIELDS
        }
        changes = PropertyApproval.edit(property_doc, current_user, changes)

        updated = await self.properties.update(property_doc["_id"], changes)
        await self.properties.attach_users([updated], "owner_id", "owner", OWNER_FIELDS)
        return Response.success({"property": updated}, message="Property updated successfully")

    async def delete_property(
        self,
        property_id: str,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.OWNER, Role.ADMIN))
    ) -> Dict[str, Any]:
        property_doc = await self.properties.find_by_id(property_id)
        ensure_owner_or_admin(current_user, property_doc["owner_id"], "Not authorized to delete this property")

        await self.properties.delete(property_doc["_id"])
        return Response.success(message="Property deleted successfully")

    async def resubmit_property(
        self,
        property_id: str,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.OWNER, Role.ADMIN))
    ) -> Dict[str, Any]:
        """Повторна подача відхиленого об'єкта (лише власник)."""
        property_doc = await self.properties.find_by_id(property_id)
        changes = PropertyApproval.resubmit(property_doc, current_user)
        updated = await self.properties.update(property_doc["_id"], changes)

        await self.notifier.notify_all_admins(
            NotificationType.PROPERTY_UPDATE,
            "Property Resubmitted",
            f'Property "{updated["title"]}" has been resubmitted for review.',
            {"property_id": str(updated["_id"])}
        )
        await EventLogger(current_user, self.db).log_property_moderation(updated["_id"], "resubmitted")
        return Response.success({"property": updated}, message="Property resubmitted for review")

    async def toggle_availability(
        self,
        property_id: str,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.OWNER, Role.ADMIN))
    ) -> Dict[str, Any]:
        property_doc = await self.properties.find_by_id(property_id)
        ensure_owner_or_admin(current_user, property_doc["owner_id"])

        updated = await self.properties.update(
            property_doc["_id"], {"is_available": not property_doc.get("is_available", True)}
        )
        state = "available" if updated["is_available"] else "unavailable"
        return Response.success({"property": updated}, message=f"Property is now {state}")

    async def _moderation_queue(self, property_status: PropertyStatus, page: int, limit: int) -> Dict[str, Any]:
        query = {"status": property_status.value}
        items, total = await self.properties.find(query, sort=[("created_at", -1)], page=page, limit=limit)
        await self.properties.attach_users(items, "owner_id", "owner", ("name", "email", "phone_number"))
        return Response.success({"properties": items}, pagination=pagination(page, limit, total))

    async def get_pending_properties(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))
    ) -> Dict[str, Any]:
        """🔒 АДМІНСЬКИЙ ENDPOINT: черга на модерацію."""
        return await self._moderation_queue(PropertyStatus.PENDING, page, limit)

    async def get_rejected_properties(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))
    ) -> Dict[str, Any]:
        """🔒 АДМІНСЬКИЙ ENDPOINT: відхилені об'єкти."""
        return await self._moderation_queue(PropertyStatus.REJECTED, page, limit)

    async def approve_property(
        self,
        property_id: str,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))
    ) -> Dict[str, Any]:
        property_doc = await self.properties.find_by_id(property_id)
        updated = await self.properties.update(property_doc["_id"], PropertyApproval.approve(property_doc))

        await self.notifier.notify(
            updated["owner_id"],
            NotificationType.APPROVAL,
            "Property Approved",
            f'Your property "{updated["title"]}" has been approved and is now live.',
            {"property_id": str(updated["_id"])}
        )
        await EventLogger(current_user, self.db).log_property_moderation(updated["_id"], "approved")
        return Response.success({"property": updated}, message="Property approved successfully")

    async def reject_property(
        self,
        property_id: str,
        data: Optional[RejectPropertyRequest] = None,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))
    ) -> Dict[str, Any]:
        property_doc = await self.properties.find_by_id(property_id)
        reason = data.reason if data else None
        updated = await self.properties.update(property_doc["_id"], PropertyApproval.reject(property_doc, reason))

        await self.notifier.notify(
            updated["owner_id"],
            NotificationType.APPROVAL,
            "Property Rejected",
            f'Your property "{updated["title"]}" has been rejected. Reason: {updated["rejection_reason"]}',
            {"property_id": str(updated["_id"])}
        )
        await EventLogger(current_user, self.db).log_property_moderation(
            updated["_id"], "rejected", updated["rejection_reason"]
        )
        return Response.success({"property": updated}, message="Property rejected")
