from typing import Any, Dict

from fastapi import Depends, Query, status

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.jwt_handler import JWTHandler
from api.models.enums import Role
from api.models.requests import NotificationCreateRequest
from api.notification_service import NotificationService
from api.repository import NotificationRepository, UserRepository
from api.response import Response, pagination
from tools.database import Database

jwt_handler = JWTHandler()


class NotificationsEndpoints:
    def __init__(self):
        self.db = Database()
        self.notifications = NotificationRepository(self.db)
        self.users = UserRepository(self.db)
        self.notifier = NotificationService(self.db)

    async def _get_own(self, notification_id: str, current_user: Dict) -> Dict[str, Any]:
        notification = await self.notifications.find_by_id(notification_id)
        if notification["user_id"] != current_user["_id"]:
            raise ApiException(ApiErrorCode.INSUFFICIENT_PERMISSIONS, "Not authorized")
        return notification

    async def get_notifications(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        query = {"user_id": current_user["_id"]}
        items, total = await self.notifications.find(query, sort=[("created_at", -1)], page=page, limit=limit)
        return Response.success({"notifications": items}, pagination=pagination(page, limit, total))

    async def get_unread_count(self, current_user: Dict = Depends(jwt_handler.get_current_user)) -> Dict[str, Any]:
        """Кількість непрочитаних рахується запитом, без збереженого лічильника."""
        count = await self.notifications.count({"user_id": current_user["_id"], "is_read": False})
        return Response.success({"unread_count": count})

    async def mark_as_read(
        self,
        notification_id: str,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        notification = await self._get_own(notification_id, current_user)
        await self.notifications.update(notification["_id"], {"is_read": True})
        return Response.success(message="Notification marked as read")

    async def mark_all_as_read(self, current_user: Dict = Depends(jwt_handler.get_current_user)) -> Dict[str, Any]:
        await self.notifications.update_many({"user_id": current_user["_id"], "is_read": False}, {"is_read": True})
        return Response.success(message="All notifications marked as read")

    async def delete_notification(
        self,
        notification_id: str,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        notification = await self._get_own(notification_id, current_user)
        await self.notifications.delete(notification["_id"])
        return Response.success(message="Notification deleted")

    async def delete_all_notifications(self, current_user: Dict = Depends(jwt_handler.get_current_user)) -> Dict[str, Any]:
        await self.notifications.delete_where({"user_id": current_user["_id"]})
        return Response.success(message="All notifications deleted")

    async def create_notification(
        self,
        data: NotificationCreateRequest,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))
    ) -> Dict[str, Any]:
        """🔒 АДМІНСЬКИЙ ENDPOINT: ручне сповіщення користувачу."""
        user = await self.users.find_by_id(data.user_id)
        notification = await self.notifier.notify(user["_id"], data.type, data.title, data.body, data.data)
        return Response.success({"notification": notification}, status_code=status.HTTP_201_CREATED)
