from typing import Any, Dict, List, Optional

from api.models.enums import NotificationType
from api.repository import NotificationRepository, UserRepository
from tools.database import Database
from tools.logger import Logger

logger = Logger()

TITLE_LIMIT = 200
BODY_LIMIT = 500


class SequentialAdminFanout:
    """Розсилка адміністраторам по черзі.

    Помилка для одного адміністратора не зупиняє розсилку і не
    скасовує вже створені сповіщення.
    """

    async def deliver(self, service: "NotificationService", admins: List[Dict[str, Any]], event: Dict[str, Any]) -> int:
        delivered = 0
        for admin in admins:
            try:
                await service.notify(admin["_id"], **event)
                delivered += 1
            except Exception as e:
                logger.error(f"Failed to notify admin {admin['_id']}: {e}")
        return delivered


class NotificationService:
    def __init__(self, db: Optional[Database] = None, fanout=None):
        self.notifications = NotificationRepository(db)
        self.users = UserRepository(db)
        self.fanout = fanout or SequentialAdminFanout()

    async def notify(
        self,
        user_id,
        type: NotificationType,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Створює сповіщення для одного користувача."""
        return await self.notifications.create({
            "user_id": user_id,
            "type": type,
            "title": title[:TITLE_LIMIT],
            "body": body[:BODY_LIMIT],
            "data": data
        })

    async def notify_all_admins(
        self,
        type: NotificationType,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None
    ) -> int:
        admins = await self.users.find_admins()
        event = {"type": type, "title": title, "body": body, "data": data}
        delivered = await self.fanout.deliver(self, admins, event)
        logger.info(f"📣 Admin notification '{title}': {delivered}/{len(admins)} delivered")
        return delivered
