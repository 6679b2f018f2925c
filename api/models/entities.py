"""
Схеми документів, що зберігаються в MongoDB.

Репозиторій валідує кожен документ цими моделями перед записом
(як при створенні, так і при оновленні), тому обмеження на довжину,
діапазони та допустимі значення enum діють на рівні збереження.
"""

import re
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, BeforeValidator, field_validator, model_validator

from api.models.enums import (
    Role,
    PropertyStatus,
    PropertyType,
    SharingType,
    ViewingStatus,
    NotificationType,
)

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


def to_object_id(value: Any) -> ObjectId:
    """Перетворює рядок на ObjectId; некоректні значення відхиляються."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError("Invalid ID format")


PyObjectId = Annotated[ObjectId, BeforeValidator(to_object_id)]


def chat_key(first_id: Any, second_id: Any, is_admin_support: bool = False) -> str:
    """Ключ чату, що не залежить від порядку учасників."""
    low, high = sorted((str(first_id), str(second_id)))
    return f"{low}:{high}:{'support' if is_admin_support else 'direct'}"


class DocumentModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        arbitrary_types_allowed=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )


class GeoPoint(DocumentModel):
    type: str = "Point"
    coordinates: List[float] = Field(default_factory=lambda: [0.0, 0.0])  # [lng, lat]

    @field_validator("coordinates")
    @classmethod
    def check_pair(cls, value: List[float]) -> List[float]:
        if len(value) != 2:
            raise ValueError("Coordinates must be [longitude, latitude]")
        return value


class UserDocument(DocumentModel):
    email: str
    password: Optional[str] = None  # bcrypt-хеш
    name: str = Field(min_length=2, max_length=100)
    role: Role = Role.USER
    photo_url: Optional[str] = None
    phone_number: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    is_dark_mode: bool = True
    locale: str = "en"
    is_active: bool = True
    google_id: Optional[str] = None
    fcm_token: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email")
        return value


class PropertyDocument(DocumentModel):
    owner_id: PyObjectId
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10, max_length=2000)
    price: float = Field(ge=0)
    location: str = Field(min_length=1)
    images: List[str] = Field(default_factory=list)
    property_type: PropertyType = PropertyType.APARTMENT
    bedrooms: int = Field(default=1, ge=0)
    bathrooms: int = Field(default=1, ge=0)
    square_feet: Optional[float] = Field(default=None, ge=0)
    amenities: List[str] = Field(default_factory=list)
    is_available: bool = True
    is_approved: bool = False
    status: PropertyStatus = PropertyStatus.PENDING
    is_resubmitted: bool = False
    rejection_reason: Optional[str] = None
    views: int = 0
    average_rating: float = Field(default=0, ge=0, le=5)
    review_count: int = 0
    available_from: Optional[datetime] = None
    sharing_type: Optional[SharingType] = None
    available_beds: Optional[int] = None
    coordinates: GeoPoint = Field(default_factory=GeoPoint)

    @model_validator(mode="after")
    def sync_approval_flag(self):
        # is_approved завжди похідне від статусу
        self.is_approved = self.status == PropertyStatus.APPROVED
        return self


class ReviewDocument(DocumentModel):
    property_id: PyObjectId
    user_id: PyObjectId
    user_name: str
    user_photo_url: Optional[str] = None
    rating: int = Field(ge=1, le=5)
    review_text: str = Field(min_length=10, max_length=1000)
    helpful_count: int = 0
    helpful_user_ids: List[PyObjectId] = Field(default_factory=list)

    @model_validator(mode="after")
    def sync_helpful_count(self):
        unique_ids = list(dict.fromkeys(self.helpful_user_ids))
        self.helpful_user_ids = unique_ids
        self.helpful_count = len(unique_ids)
        return self


class FavoriteDocument(DocumentModel):
    user_id: PyObjectId
    property_id: PyObjectId


class ViewingDocument(DocumentModel):
    property_id: PyObjectId
    user_id: PyObjectId
    owner_id: PyObjectId
    date: datetime
    status: ViewingStatus = ViewingStatus.PENDING
    note: Optional[str] = Field(default=None, max_length=500)
    cancel_reason: Optional[str] = None


class ChatDocument(DocumentModel):
    participants: List[PyObjectId]
    is_admin_support: bool = False
    # Канонічна пара учасників, унікальна в межах типу чату
    participant_key: str = ""
    last_message: str = ""
    last_message_time: Optional[datetime] = Field(default_factory=datetime.utcnow)
    # Стан для кожного учасника, ключ - str(id учасника)
    last_messages: Dict[str, str] = Field(default_factory=dict)
    last_message_times: Dict[str, Optional[datetime]] = Field(default_factory=dict)
    unread_counts: Dict[str, int] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_participants(self):
        if len(self.participants) != 2 or self.participants[0] == self.participants[1]:
            raise ValueError("A chat must have exactly two different participants")

        keys = {str(participant) for participant in self.participants}
        for mapping in (self.last_messages, self.last_message_times, self.unread_counts):
            unknown = set(mapping) - keys
            if unknown:
                raise ValueError(f"Unknown participant keys: {', '.join(sorted(unknown))}")

        for key in keys:
            self.last_messages.setdefault(key, "")
            self.last_message_times.setdefault(key, None)
            self.unread_counts.setdefault(key, 0)
        self.participant_key = chat_key(*self.participants, self.is_admin_support)
        return self


class MessageDocument(DocumentModel):
    chat_id: PyObjectId
    sender_id: PyObjectId
    receiver_id: PyObjectId
    content: str = Field(min_length=1, max_length=2000)
    deleted_by: List[PyObjectId] = Field(default_factory=list)
    is_read: bool = False


class NotificationDocument(DocumentModel):
    user_id: PyObjectId
    type: NotificationType
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=500)
    data: Optional[Any] = None
    is_read: bool = False
