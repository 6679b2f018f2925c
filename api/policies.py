"""
Правила доступу та переходи станів.

Порядок перевірок у кожній операції: існування ресурсу (репозиторій),
потім права доступу, потім бізнес-правило.
"""

from typing import Any, Dict, Optional

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.models.enums import Role, PropertyStatus, ViewingStatus


def resolve_role(user: Dict[str, Any]) -> Role:
    """Роль користувача як enum; невідома роль не отримує жодних прав."""
    try:
        return Role(user.get("role"))
    except ValueError:
        raise ApiException(ApiErrorCode.INSUFFICIENT_PERMISSIONS)


def is_admin(user: Dict[str, Any]) -> bool:
    role = resolve_role(user)
    if role is Role.ADMIN:
        return True
    if role in (Role.OWNER, Role.USER):
        return False
    raise ApiException(ApiErrorCode.INSUFFICIENT_PERMISSIONS)


def ensure_roles(user: Dict[str, Any], *roles: Role):
    if resolve_role(user) not in roles:
        raise ApiException(ApiErrorCode.INSUFFICIENT_PERMISSIONS)


def ensure_owner_or_admin(user: Dict[str, Any], owner_id: Any, message: Optional[str] = None):
    """Змінювати ресурс може його власник/автор або адміністратор."""
    if str(owner_id) == str(user["_id"]):
        return
    if is_admin(user):
        return
    raise ApiException(ApiErrorCode.INSUFFICIENT_PERMISSIONS, message)


def ensure_not_self(actor: Dict[str, Any], target_id: Any, message: str):
    if str(actor["_id"]) == str(target_id):
        raise ApiException(ApiErrorCode.SELF_MODIFICATION_FORBIDDEN, message)


class PropertyApproval:
    """Модерація об'єктів: pending -> approved | rejected, rejected -> pending."""

    @staticmethod
    def approve(property_doc: Dict[str, Any]) -> Dict[str, Any]:
        if property_doc["status"] != PropertyStatus.PENDING.value:
            raise ApiException(
                ApiErrorCode.INVALID_PROPERTY_TRANSITION,
                "Only pending properties can be approved"
            )
        return {
            "status": PropertyStatus.APPROVED.value,
            "is_resubmitted": False,
            "rejection_reason": None
        }

    @staticmethod
    def reject(property_doc: Dict[str, Any], reason: Optional[str] = None) -> Dict[str, Any]:
        if property_doc["status"] != PropertyStatus.PENDING.value:
            raise ApiException(
                ApiErrorCode.INVALID_PROPERTY_TRANSITION,
                "Only pending properties can be rejected"
            )
        return {
            "status": PropertyStatus.REJECTED.value,
            "rejection_reason": reason or "No reason provided"
        }

    @staticmethod
    def resubmit(property_doc: Dict[str, Any], actor: Dict[str, Any]) -> Dict[str, Any]:
        if str(property_doc["owner_id"]) != str(actor["_id"]):
            raise ApiException(ApiErrorCode.INSUFFICIENT_PERMISSIONS, "Not authorized")
        if property_doc["status"] != PropertyStatus.REJECTED.value:
            raise ApiException(
                ApiErrorCode.INVALID_PROPERTY_TRANSITION,
                "Only rejected properties can be resubmitted"
            )
        return {"status": PropertyStatus.PENDING.value, "is_resubmitted": True}

    @staticmethod
    def edit(property_doc: Dict[str, Any], actor: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
        """Зміни від власника знімають схвалення; статус напряму не редагується."""
        changes = {
            key: value for key, value in changes.items()
            if key not in ("status", "is_approved", "is_resubmitted", "rejection_reason")
        }
        if not is_admin(actor) and property_doc["status"] == PropertyStatus.APPROVED.value:
            changes["status"] = PropertyStatus.PENDING.value
        return changes


class ViewingTransitions:
    """Переходи статусів перегляду та хто може їх виконувати."""

    ALLOWED = {
        ViewingStatus.PENDING: {
            ViewingStatus.CONFIRMED,
            ViewingStatus.REJECTED,
            ViewingStatus.COMPLETED,
            ViewingStatus.CANCELLED,
        },
        ViewingStatus.CONFIRMED: {ViewingStatus.COMPLETED, ViewingStatus.CANCELLED},
        ViewingStatus.REJECTED: set(),
        ViewingStatus.CANCELLED: set(),
        ViewingStatus.COMPLETED: set(),
    }

    OWNER_TARGETS = {ViewingStatus.CONFIRMED, ViewingStatus.REJECTED, ViewingStatus.COMPLETED}

    @classmethod
    def ensure_allowed(cls, viewing: Dict[str, Any], actor: Dict[str, Any], target: ViewingStatus):
        actor_id = str(actor["_id"])
        admin = is_admin(actor)

        if target is ViewingStatus.CANCELLED:
            if actor_id != str(viewing["user_id"]) and not admin:
                raise ApiException(ApiErrorCode.INSUFFICIENT_PERMISSIONS, "Not authorized to cancel this viewing")
        elif target in cls.OWNER_TARGETS:
            if actor_id != str(viewing["owner_id"]) and not admin:
                raise ApiException(ApiErrorCode.INSUFFICIENT_PERMISSIONS, "Not authorized to update this viewing")
        else:
            raise ApiException(ApiErrorCode.INVALID_VIEWING_TRANSITION)

        current = ViewingStatus(viewing["status"])
        if target not in cls.ALLOWED[current]:
            raise ApiException(
                ApiErrorCode.INVALID_VIEWING_TRANSITION,
                f"Cannot change viewing status from {current.value} to {target.value}"
            )
