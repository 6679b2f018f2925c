"""
Тіла запитів API.

FastAPI валідує їх до виклику обробника; помилки перетворюються на
відповідь 400 зі списком помилок по полях.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.models.enums import (
    Role,
    PropertyType,
    SharingType,
    ViewingStatus,
    NotificationType,
)

PHONE_PATTERN = re.compile(r"^[\d\s\-+()]+$")


def _check_password(value: str) -> str:
    if not re.search(r"\d", value):
        raise ValueError("Password must contain at least one number")
    return value


def _check_phone(value: Optional[str]) -> Optional[str]:
    if value and not PHONE_PATTERN.match(value):
        raise ValueError("Please enter a valid phone number")
    return value


class RequestModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


# Автентифікація

class RegisterRequest(RequestModel):
    name: str = Field(min_length=2, max_length=100)
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    phone_number: Optional[str] = None
    role: Role = Role.USER

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password(value)

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)

    @field_validator("role")
    @classmethod
    def self_service_role(cls, value: Role) -> Role:
        if value not in (Role.USER, Role.OWNER):
            raise ValueError("Role must be either user or owner")
        return value


class LoginRequest(RequestModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class PhoneLoginRequest(RequestModel):
    phone_number: str = Field(min_length=1)
    password: str = Field(min_length=1)


class GoogleAuthRequest(RequestModel):
    google_id: str = Field(min_length=1)
    email: str = Field(min_length=3)
    name: Optional[str] = None
    photo_url: Optional[str] = None


class SetPasswordRequest(RequestModel):
    password: str = Field(min_length=6)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password(value)


class ChangePasswordRequest(RequestModel):
    current_password: Optional[str] = None
    new_password: str = Field(min_length=6)

    @field_validator("new_password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password(value)


class UpdateProfileRequest(RequestModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    remove_photo: bool = False

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)


class PreferencesRequest(RequestModel):
    is_dark_mode: Optional[bool] = None
    locale: Optional[str] = Field(default=None, min_length=2, max_length=10)


class FcmTokenRequest(RequestModel):
    fcm_token: Optional[str] = None


# Об'єкти нерухомості

class CoordinatesIn(RequestModel):
    type: str = "Point"
    coordinates: List[float] = Field(min_length=2, max_length=2)


class PropertyCreateRequest(RequestModel):
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
    available_from: Optional[datetime] = None
    sharing_type: Optional[SharingType] = None
    available_beds: Optional[int] = Field(default=None, ge=0)
    coordinates: Optional[CoordinatesIn] = None


class PropertyUpdateRequest(RequestModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10, max_length=2000)
    price: Optional[float] = Field(default=None, ge=0)
    location: Optional[str] = Field(default=None, min_length=1)
    images: Optional[List[str]] = None
    property_type: Optional[PropertyType] = None
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    square_feet: Optional[float] = Field(default=None, ge=0)
    amenities: Optional[List[str]] = None
    is_available: Optional[bool] = None
    available_from: Optional[datetime] = None
    sharing_type: Optional[SharingType] = None
    available_beds: Optional[int] = Field(default=None, ge=0)
    coordinates: Optional[CoordinatesIn] = None


class RejectPropertyRequest(RequestModel):
    reason: Optional[str] = Field(default=None, max_length=500)


# Відгуки

class ReviewCreateRequest(RequestModel):
    property_id: str
    rating: int = Field(ge=1, le=5)
    review_text: str = Field(min_length=10, max_length=1000)


class ReviewUpdateRequest(RequestModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    review_text: Optional[str] = Field(default=None, min_length=10, max_length=1000)


# Обране

class FavoriteCreateRequest(RequestModel):
    property_id: str


# Перегляди

class ViewingCreateRequest(RequestModel):
    property_id: str
    date: datetime
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("date")
    @classmethod
    def in_future(cls, value: datetime) -> datetime:
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        if value <= datetime.utcnow():
            raise ValueError("Viewing date must be in the future")
        return value


class ViewingStatusRequest(RequestModel):
    status: ViewingStatus
    cancel_reason: Optional[str] = Field(default=None, max_length=500)


# Чати

class ChatCreateRequest(RequestModel):
    user_id: str
    is_admin_support: bool = False


class SendMessageRequest(RequestModel):
    content: str = Field(min_length=1, max_length=2000)


# Сповіщення

class NotificationCreateRequest(RequestModel):
    user_id: str
    type: NotificationType = NotificationType.SYSTEM
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=500)
    data: Optional[Dict[str, Any]] = None


# Користувачі (адміністрування)

class AdminUserUpdateRequest(RequestModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[str] = None
    phone_number: Optional[str] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    bio: Optional[str] = Field(default=None, max_length=500)

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)


# Файли

class DeleteImageRequest(RequestModel):
    image_url: str = Field(min_length=1)
