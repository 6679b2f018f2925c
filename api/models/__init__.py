"""
API Models module.

Цей модуль містить всі моделі даних для API.
"""

from .enums import (
    Role,
    PropertyStatus,
    PropertyType,
    SharingType,
    ViewingStatus,
    NotificationType
)
from .entities import (
    PyObjectId,
    UserDocument,
    PropertyDocument,
    ReviewDocument,
    FavoriteDocument,
    ViewingDocument,
    ChatDocument,
    MessageDocument,
    NotificationDocument
)

__all__ = [
    "Role",
    "PropertyStatus",
    "PropertyType",
    "SharingType",
    "ViewingStatus",
    "NotificationType",
    "PyObjectId",
    "UserDocument",
    "PropertyDocument",
    "ReviewDocument",
    "FavoriteDocument",
    "ViewingDocument",
    "ChatDocument",
    "MessageDocument",
    "NotificationDocument"
]
