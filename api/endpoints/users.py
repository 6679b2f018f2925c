import re
from typing import Any, Dict, Optional

from fastapi import Depends, Query

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.jwt_handler import JWTHandler
from api.models.enums import Role
from api.models.requests import AdminUserUpdateRequest
from api.policies import ensure_not_self
from api.repository import UserRepository
from api.response import Response, pagination
from tools.database import Database
from tools.event_logger import EventLogger
from tools.logger import Logger

logger = Logger()
jwt_handler = JWTHandler()


class UsersEndpoints:
    def __init__(self):
        self.db = Database()
        self.users = UserRepository(self.db)

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        """🌍 ПУБЛІЧНИЙ ENDPOINT: профіль користувача без приватних полів."""
        user = await self.users.find_by_id(user_id)
        return Response.success({"user": UserRepository.safe(user)})

    async def get_all_users(
        self,
        role: Optional[Role] = Query(None),
        search: Optional[str] = Query(None, description="Пошук за ім'ям або email"),
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))
    ) -> Dict[str, Any]:
        """🔒 АДМІНСЬКИЙ ENDPOINT: список користувачів."""
        query: Dict[str, Any] = {}
        if role:
            query["role"] = role.value
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"email": pattern}]

        items, total = await self.users.find(query, sort=[("created_at", -1)], page=page, limit=limit)
        users = [UserRepository.safe(user) for user in items]
        return Response.success({"users": users}, pagination=pagination(page, limit, total))

    async def get_user_stats(self, current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))) -> Dict[str, Any]:
        total_users = await self.users.count({})
        owners = await self.users.count({"role": Role.OWNER.value})
        admins = await self.users.count({"role": Role.ADMIN.value})
        active_users = await self.users.count({"is_active": True})

        return Response.success({
            "total_users": total_users,
            "owners": owners,
            "admins": admins,
            "regular_users": total_users - owners - admins,
            "active_users": active_users,
            "inactive_users": total_users - active_users
        })

    async def update_user(
        self,
        user_id: str,
        data: AdminUserUpdateRequest,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))
    ) -> Dict[str, Any]:
        user = await self.users.find_by_id(user_id)
        changes = data.model_dump(mode="json", exclude_unset=True)

        if changes.get("is_active") is False:
            ensure_not_self(current_user, user["_id"], "Cannot deactivate your own account")

        if changes.get("email"):
            existing = await self.users.find_by_email(changes["email"])
            if existing and existing["_id"] != user["_id"]:
                raise ApiException(ApiErrorCode.EMAIL_ALREADY_REGISTERED)
        if changes.get("phone_number"):
            existing = await self.users.find_one({"phone_number": changes["phone_number"]})
            if existing and existing["_id"] != user["_id"]:
                raise ApiException(ApiErrorCode.PHONE_ALREADY_REGISTERED)

        updated = await self.users.update(user["_id"], changes)
        await EventLogger(current_user, self.db).log_user_admin_action(user["_id"], "updated", changes)
        return Response.success({"user": UserRepository.safe(updated)}, message="User updated successfully")

    async def delete_user(
        self,
        user_id: str,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))
    ) -> Dict[str, Any]:
        user = await self.users.find_by_id(user_id)
        ensure_not_self(current_user, user["_id"], "Cannot delete your own account")

        await self.users.delete(user["_id"])
        await EventLogger(current_user, self.db).log_user_admin_action(user["_id"], "deleted")
        logger.warning(f"🗑️ User {user['_id']} deleted by admin {current_user['_id']}")
        return Response.success(message="User deleted successfully")

    async def toggle_user_active(
        self,
        user_id: str,
        current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))
    ) -> Dict[str, Any]:
        user = await self.users.find_by_id(user_id)
        ensure_not_self(current_user, user["_id"], "Cannot deactivate your own account")

        updated = await self.users.update(user["_id"], {"is_active": not user.get("is_active", True)})
        state = "activated" if updated["is_active"] else "deactivated"
        await EventLogger(current_user, self.db).log_user_admin_action(user["_id"], state)
        return Response.success({"user": UserRepository.safe(updated)}, message=f"User {state}")
