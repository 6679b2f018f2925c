from datetime import datetime
from typing import Dict, Optional, Any
from tools.logger import Logger
from tools.database import Database

logger = Logger()


class EventLogger:
    """Журнал бізнес-подій у колекції `logs` (TTL 7 днів).

    Помилка запису в журнал не повинна зривати запит, тому вона лише логується.
    """

    def __init__(self, user: Optional[Dict] = None, db: Optional[Database] = None):
        self.db = db or Database()
        self.user = user  # Користувач, що виконує дію

    async def _log_event(
            self,
            event_type: str,
            description: str,
            metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Зберігає подію в колекції `logs`."""
        try:
            event_data = {
                "timestamp": datetime.utcnow(),
                "event_type": event_type,
                "description": description,
                "user_id": self.user["_id"] if self.user else None,
                "metadata": metadata or {}
            }
            await self.db.logs.create(event_data)
            return True
        except Exception as e:
            logger.error(f"Failed to write audit event {event_type}: {e}")
            return False

    # Автентифікація
    async def log_registration(self, role: str) -> bool:
        return await self._log_event(
            event_type="registration",
            description=f"New {role} account registered",
            metadata={"role": role}
        )

    async def log_login_success(self, method: str = "password") -> bool:
        return await self._log_event(
            event_type="login_success",
            description="User logged in",
            metadata={"method": method}
        )

    async def log_login_failed(self, reason: str) -> bool:
        return await self._log_event(
            event_type="login_failed",
            description=f"Failed login attempt: {reason}",
            metadata={"reason": reason}
        )

    async def log_logout(self) -> bool:
        return await self._log_event(
            event_type="logout",
            description="User logged out"
        )

    async def log_password_change(self) -> bool:
        return await self._log_event(
            event_type="password_change",
            description="User changed password"
        )

    # Модерація об'єктів
    async def log_property_moderation(self, property_id: Any, action: str, reason: Optional[str] = None) -> bool:
        return await self._log_event(
            event_type=f"property_{action}",
            description=f"Property {property_id} {action}",
            metadata={"property_id": str(property_id), "reason": reason}
        )

    # Адміністрування користувачів
    async def log_user_admin_action(self, target_id: Any, action: str, changes: Optional[Dict[str, Any]] = None) -> bool:
        return await self._log_event(
            event_type=f"user_{action}",
            description=f"Admin {action} user {target_id}",
            metadata={"target_id": str(target_id), "changes": changes or {}}
        )
