from typing import Any, Dict, List

from fastapi import Depends, Query, status

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.jwt_handler import JWTHandler
from api.models.enums import Role, NotificationType
from api.models.requests import ChatCreateRequest, SendMessageRequest
from api.notification_service import NotificationService
from api.repository import ChatRepository, MessageRepository, UserRepository
from api.response import Response, pagination
from tools.database import Database
from tools.logger import Logger

logger = Logger()
jwt_handler = JWTHandler()

PARTICIPANT_FIELDS = ("name", "email", "photo_url", "role")
PREVIEW_LENGTH = 100


class ChatsEndpoints:
    def __init__(self):
        self.db = Database()
        self.chats = ChatRepository(self.db)
        self.messages = MessageRepository(self.db)
        self.users = UserRepository(self.db)
        self.notifier = NotificationService(self.db)
        self.maintainer = self.messages.maintainer

    async def _populate_participants(self, chats: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Замінює ID учасників на їхні короткі профілі."""
        ids = list({participant for chat in chats for participant in chat["participants"]})
        users = await self.users.find_all({"_id": {"$in": ids}}, projection={field: 1 for field in PARTICIPANT_FIELDS})
        by_id = {user["_id"]: user for user in users}
        for chat in chats:
            chat["participants"] = [by_id.get(participant, {"_id": participant}) for participant in chat["participants"]]
        return chats

    async def _get_participant_chat(self, chat_id: str, current_user: Dict, message: str = "Not authorized") -> Dict[str, Any]:
        chat = await self.chats.find_by_id(chat_id)
        if current_user["_id"] not in chat["participants"]:
            raise ApiException(ApiErrorCode.INSUFFICIENT_PERMISSIONS, message)
        return chat

    @staticmethod
    def _for_viewer(chat: Dict[str, Any], viewer_key: str) -> Dict[str, Any]:
        """Останнє повідомлення та лічильник з точки зору одного учасника."""
        # Порожній запис учасника означає, що він видалив усі повідомлення
        chat["last_message"] = chat.get("last_messages", {}).get(viewer_key, chat.get("last_message", ""))
        chat["last_message_time"] = chat.get("last_message_times", {}).get(viewer_key, chat.get("last_message_time"))
        chat["unread_count"] = chat.get("unread_counts", {}).get(viewer_key, 0)
        return chat

    async def get_chats(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        query = {"participants": current_user["_id"]}
        items, total = await self.chats.find(query, sort=[("last_message_time", -1)], page=page, limit=limit)

        viewer_key = str(current_user["_id"])
        items = [self._for_viewer(chat, viewer_key) for chat in items]
        await self._populate_participants(items)
        return Response.success({"chats": items}, pagination=pagination(page, limit, total))

    async def get_admin_support_chats(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.require_roles(Role.ADMIN))
    ) -> Dict[str, Any]:
        """🔒 АДМІНСЬКИЙ ENDPOINT: всі чати підтримки."""
        query = {"is_admin_support": True}
        items, total = await self.chats.find(query, sort=[("last_message_time", -1)], page=page, limit=limit)
        await self._populate_participants(items)
        return Response.success({"chats": items}, pagination=pagination(page, limit, total))

    async def get_or_create_chat(
        self,
        data: ChatCreateRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        other_user = await self.users.find_by_id(data.user_id)
        if other_user["_id"] == current_user["_id"]:
            raise ApiException(ApiErrorCode.VALIDATION_FAILED, "Cannot start a chat with yourself")

        chat = await self.chats.find_or_create(current_user["_id"], other_user["_id"], data.is_admin_support)
        await self._populate_participants([chat])
        return Response.success({"chat": chat})

    async def get_or_create_support_chat(self, current_user: Dict = Depends(jwt_handler.get_current_user)) -> Dict[str, Any]:
        """Чат підтримки з першим активним адміністратором."""
        admin = await self.users.find_one(
            {"role": Role.ADMIN.value, "is_active": True, "_id": {"$ne": current_user["_id"]}},
            sort=[("created_at", 1)]
        )
        if not admin:
            raise ApiException(ApiErrorCode.NO_SUPPORT_ADMIN)

        chat = await self.chats.find_or_create(current_user["_id"], admin["_id"], is_admin_support=True)
        await self._populate_participants([chat])
        return Response.success({"chat": chat})

    async def get_messages(
        self,
        chat_id: str,
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=100),
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """
        Сторінка повідомлень чату.

        Сторінка 1 - найновіші повідомлення, всередині сторінки вони
        йдуть від старіших до новіших. Повідомлення, видалені
        користувачем для себе, не повертаються.
        """
        chat = await self._get_participant_chat(chat_id, current_user, "Not authorized to view this chat")

        query = {"chat_id": chat["_id"], "deleted_by": {"$ne": current_user["_id"]}}
        items, total = await self.messages.find(
            query, sort=[("created_at", -1), ("_id", -1)], page=page, limit=limit
        )
        items.reverse()
        await self.messages.attach_users(items, "sender_id", "sender", ("name", "photo_url"))
        return Response.success({"messages": items}, pagination=pagination(page, limit, total))

    async def send_message(
        self,
        chat_id: str,
        data: SendMessageRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        chat = await self._get_participant_chat(chat_id, current_user, "Not authorized to send messages in this chat")
        receiver_id = next(participant for participant in chat["participants"] if participant != current_user["_id"])

        message = await self.messages.create({
            "chat_id": chat["_id"],
            "sender_id": current_user["_id"],
            "receiver_id": receiver_id,
            "content": data.content
        })

        await self.notifier.notify(
            receiver_id,
            NotificationType.SUPPORT_MESSAGE if chat.get("is_admin_support") else NotificationType.MESSAGE,
            "New Message",
            f"{current_user['name']}: {data.content[:PREVIEW_LENGTH]}",
            {"chat_id": str(chat["_id"]), "message_id": str(message["_id"])}
        )

        await self.messages.attach_users([message], "sender_id", "sender", ("name", "photo_url"))
        return Response.success({"message": message}, status_code=status.HTTP_201_CREATED)

    async def delete_message(
        self,
        chat_id: str,
        message_id: str,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """Видалення повідомлення лише для поточного користувача."""
        chat = await self._get_participant_chat(chat_id, current_user)
        message = await self.messages.find_by_id(message_id)
        if message["chat_id"] != chat["_id"]:
            raise ApiException(ApiErrorCode.MESSAGE_NOT_IN_CHAT)

        await self.messages.update_where(
            {"_id": message["_id"]},
            {"$addToSet": {"deleted_by": current_user["_id"]}}
        )
        await self.maintainer.refresh_last_message_for(chat["_id"], current_user["_id"])
        return Response.success(message="Message deleted")

    async def mark_as_read(
        self,
        chat_id: str,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        chat = await self._get_participant_chat(chat_id, current_user)
        await self.maintainer.mark_chat_read(chat["_id"], current_user["_id"])
        return Response.success(message="Messages marked as read")

    async def get_unread_count(self, current_user: Dict = Depends(jwt_handler.get_current_user)) -> Dict[str, Any]:
        """Сума лічильників непрочитаних по всіх чатах користувача."""
        viewer_key = str(current_user["_id"])
        chats = await self.chats.find_all({"participants": current_user["_id"]}, projection={"unread_counts": 1})
        total = sum(chat.get("unread_counts", {}).get(viewer_key, 0) for chat in chats)
        return Response.success({"unread_count": total})
