"""
Довідники (enum) предметної області.

Значення збігаються з тим, що зберігається в базі та повертається клієнту.
"""

from enum import Enum


class Role(str, Enum):
    """Ролі користувачів."""
    ADMIN = "admin"
    OWNER = "owner"
    USER = "user"


class PropertyStatus(str, Enum):
    """Статуси модерації об'єкта нерухомості."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PropertyType(str, Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    STUDIO = "studio"
    VILLA = "villa"
    ROOM = "room"
    OTHER = "other"


class SharingType(str, Enum):
    ENTIRE = "entire"
    PRIVATE_ROOM = "private_room"
    SHARED_ROOM = "shared_room"


class ViewingStatus(str, Enum):
    """Статуси запиту на перегляд."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    """Типи сповіщень."""
    MESSAGE = "message"
    PROPERTY_UPDATE = "propertyUpdate"
    REVIEW = "review"
    SYSTEM = "system"
    SUPPORT_MESSAGE = "supportMessage"
    VIEWING = "viewing"
    APPROVAL = "approval"
