from enum import Enum
from typing import Dict, List, Optional
from fastapi import HTTPException, status


class ErrorKind(Enum):
    VALIDATION = "VALIDATION_ERROR"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INTERNAL = "INTERNAL_ERROR"


KIND_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_KEY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ApiErrorCode(Enum):
    # Загальні помилки
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_ID = "INVALID_ID"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Помилки автентифікації
    NO_TOKEN = "NO_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_GENERATION_ERROR = "TOKEN_GENERATION_ERROR"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"
    PASSWORD_NOT_SET = "PASSWORD_NOT_SET"
    WRONG_CURRENT_PASSWORD = "WRONG_CURRENT_PASSWORD"

    # Помилки користувача
    USER_NOT_FOUND = "USER_NOT_FOUND"
    EMAIL_ALREADY_REGISTERED = "EMAIL_ALREADY_REGISTERED"
    PHONE_ALREADY_REGISTERED = "PHONE_ALREADY_REGISTERED"
    SELF_MODIFICATION_FORBIDDEN = "SELF_MODIFICATION_FORBIDDEN"

    # Помилки об'єктів нерухомості
    PROPERTY_NOT_FOUND = "PROPERTY_NOT_FOUND"
    INVALID_PROPERTY_TRANSITION = "INVALID_PROPERTY_TRANSITION"

    # Помилки відгуків
    REVIEW_NOT_FOUND = "REVIEW_NOT_FOUND"
    REVIEW_ALREADY_EXISTS = "REVIEW_ALREADY_EXISTS"
    OWN_PROPERTY_REVIEW = "OWN_PROPERTY_REVIEW"

    # Помилки обраного
    FAVORITE_NOT_FOUND = "FAVORITE_NOT_FOUND"
    FAVORITE_ALREADY_EXISTS = "FAVORITE_ALREADY_EXISTS"

    # Помилки переглядів
    VIEWING_NOT_FOUND = "VIEWING_NOT_FOUND"
    VIEWING_ALREADY_PENDING = "VIEWING_ALREADY_PENDING"
    OWN_PROPERTY_VIEWING = "OWN_PROPERTY_VIEWING"
    INVALID_VIEWING_TRANSITION = "INVALID_VIEWING_TRANSITION"

    # Помилки чатів
    CHAT_NOT_FOUND = "CHAT_NOT_FOUND"
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
    MESSAGE_NOT_IN_CHAT = "MESSAGE_NOT_IN_CHAT"
    NO_SUPPORT_ADMIN = "NO_SUPPORT_ADMIN"

    # Помилки сповіщень
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"

    # Помилки файлів
    NO_FILE_PROVIDED = "NO_FILE_PROVIDED"
    INVALID_FILE = "INVALID_FILE"
    UPLOAD_FAILED = "UPLOAD_FAILED"

    # Загальний "не знайдено" для невідомих маршрутів
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"


ERROR_MESSAGES = {
    ApiErrorCode.VALIDATION_FAILED: (ErrorKind.VALIDATION, "Validation failed"),
    ApiErrorCode.INVALID_ID: (ErrorKind.VALIDATION, "Invalid ID format"),
    ApiErrorCode.INSUFFICIENT_PERMISSIONS: (ErrorKind.FORBIDDEN, "Access denied. Insufficient permissions"),
    ApiErrorCode.INTERNAL_ERROR: (ErrorKind.INTERNAL, "Internal Server Error"),

    ApiErrorCode.NO_TOKEN: (ErrorKind.UNAUTHENTICATED, "No authorization header provided"),
    ApiErrorCode.INVALID_TOKEN: (ErrorKind.UNAUTHENTICATED, "Invalid token"),
    ApiErrorCode.TOKEN_EXPIRED: (ErrorKind.UNAUTHENTICATED, "Token has expired"),
    ApiErrorCode.TOKEN_GENERATION_ERROR: (ErrorKind.INTERNAL, "Failed to generate token"),
    ApiErrorCode.INVALID_CREDENTIALS: (ErrorKind.UNAUTHENTICATED, "Invalid email or password"),
    ApiErrorCode.ACCOUNT_DEACTIVATED: (ErrorKind.UNAUTHENTICATED, "Your account has been deactivated"),
    ApiErrorCode.PASSWORD_NOT_SET: (ErrorKind.UNAUTHENTICATED, "Please login with Google or set a password"),
    ApiErrorCode.WRONG_CURRENT_PASSWORD: (ErrorKind.VALIDATION, "Current password is incorrect"),

    ApiErrorCode.USER_NOT_FOUND: (ErrorKind.NOT_FOUND, "User not found"),
    ApiErrorCode.EMAIL_ALREADY_REGISTERED: (ErrorKind.DUPLICATE_KEY, "User with this email already exists"),
    ApiErrorCode.PHONE_ALREADY_REGISTERED: (ErrorKind.DUPLICATE_KEY, "Phone number is already registered"),
    ApiErrorCode.SELF_MODIFICATION_FORBIDDEN: (ErrorKind.VALIDATION, "Cannot modify your own account"),

    ApiErrorCode.PROPERTY_NOT_FOUND: (ErrorKind.NOT_FOUND, "Property not found"),
    ApiErrorCode.INVALID_PROPERTY_TRANSITION: (ErrorKind.VALIDATION, "Invalid property status transition"),

    ApiErrorCode.REVIEW_NOT_FOUND: (ErrorKind.NOT_FOUND, "Review not found"),
    ApiErrorCode.REVIEW_ALREADY_EXISTS: (ErrorKind.DUPLICATE_KEY, "You have already reviewed this property"),
    ApiErrorCode.OWN_PROPERTY_REVIEW: (ErrorKind.VALIDATION, "You cannot review your own property"),

    ApiErrorCode.FAVORITE_NOT_FOUND: (ErrorKind.NOT_FOUND, "Favorite not found"),
    ApiErrorCode.FAVORITE_ALREADY_EXISTS: (ErrorKind.DUPLICATE_KEY, "Property is already in favorites"),

    ApiErrorCode.VIEWING_NOT_FOUND: (ErrorKind.NOT_FOUND, "Viewing not found"),
    ApiErrorCode.VIEWING_ALREADY_PENDING: (ErrorKind.VALIDATION, "You already have a pending viewing request for this property"),
    ApiErrorCode.OWN_PROPERTY_VIEWING: (ErrorKind.VALIDATION, "You cannot request a viewing for your own property"),
    ApiErrorCode.INVALID_VIEWING_TRANSITION: (ErrorKind.VALIDATION, "Invalid viewing status transition"),

    ApiErrorCode.CHAT_NOT_FOUND: (ErrorKind.NOT_FOUND, "Chat not found"),
    ApiErrorCode.MESSAGE_NOT_FOUND: (ErrorKind.NOT_FOUND, "Message not found"),
    ApiErrorCode.MESSAGE_NOT_IN_CHAT: (ErrorKind.VALIDATION, "Message does not belong to this chat"),
    ApiErrorCode.NO_SUPPORT_ADMIN: (ErrorKind.NOT_FOUND, "No admin available for support"),

    ApiErrorCode.NOTIFICATION_NOT_FOUND: (ErrorKind.NOT_FOUND, "Notification not found"),

    ApiErrorCode.NO_FILE_PROVIDED: (ErrorKind.VALIDATION, "No image file provided"),
    ApiErrorCode.INVALID_FILE: (ErrorKind.VALIDATION, "Only image files (JPEG, PNG, GIF, WEBP) are allowed"),
    ApiErrorCode.UPLOAD_FAILED: (ErrorKind.INTERNAL, "Failed to upload image to cloud storage"),

    ApiErrorCode.ROUTE_NOT_FOUND: (ErrorKind.NOT_FOUND, "Not Found"),
}


class ApiException(HTTPException):
    """Єдиний виняток API: код помилки визначає вид, статус та типове повідомлення."""

    def __init__(
        self,
        error_code: ApiErrorCode,
        message: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
    ):
        """
        :param error_code: Код помилки.
        :param message: Повідомлення замість типового (для конкретного випадку).
        :param errors: Помилки по полях (для помилок валідації).
        """
        self.error_code = error_code

        kind, default_message = ERROR_MESSAGES.get(
            error_code, (ErrorKind.INTERNAL, "Unknown error")
        )
        self.kind = kind
        self.message = message or default_message
        self.errors = errors

        super().__init__(
            status_code=KIND_STATUS[kind],
            detail={
                "detail": self.message,
                "code": error_code.value
            }
        )
