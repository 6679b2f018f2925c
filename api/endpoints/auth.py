from typing import Any, Dict

from fastapi import Depends, status

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.jwt_handler import JWTHandler
from api.models.requests import (
    RegisterRequest,
    LoginRequest,
    PhoneLoginRequest,
    GoogleAuthRequest,
    SetPasswordRequest,
    UpdateProfileRequest,
    PreferencesRequest,
    ChangePasswordRequest,
    FcmTokenRequest,
)
from api.repository import UserRepository
from api.response import Response
from tools.database import Database
from tools.event_logger import EventLogger
from tools.logger import Logger
from tools.security import PasswordHasher

logger = Logger()
jwt_handler = JWTHandler()


class AuthEndpoints:
    def __init__(self):
        self.db = Database()
        self.users = UserRepository(self.db)
        self.jwt_handler = jwt_handler
        self.hasher = PasswordHasher()

    def _session(self, user: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "user": UserRepository.safe(user),
            "token": self.jwt_handler.generate_token(str(user["_id"]))
        }

    async def register(self, data: RegisterRequest) -> Dict[str, Any]:
        """
        Реєстрація користувача (ролі user або owner).

        Email та телефон мають бути унікальними.
        """
        if await self.users.find_by_email(data.email):
            raise ApiException(ApiErrorCode.EMAIL_ALREADY_REGISTERED)

        if data.phone_number and await self.users.find_one({"phone_number": data.phone_number}):
            raise ApiException(ApiErrorCode.PHONE_ALREADY_REGISTERED)

        user = await self.users.create({
            "name": data.name,
            "email": data.email,
            "password": self.hasher.hash(data.password),
            "phone_number": data.phone_number,
            "role": data.role
        })

        await EventLogger(user, self.db).log_registration(user["role"])
        logger.info(f"✅ Registered {user['role']} {user['email']}")

        return Response.success(
            self._session(user),
            message="User registered successfully",
            status_code=status.HTTP_201_CREATED
        )

    async def login(self, data: LoginRequest) -> Dict[str, Any]:
        """Вхід за email та паролем."""
        user = await self.users.find_by_email(data.email)
        if not user:
            await EventLogger(db=self.db).log_login_failed(f"unknown email {data.email}")
            raise ApiException(ApiErrorCode.INVALID_CREDENTIALS)

        if not user.get("is_active", True):
            raise ApiException(ApiErrorCode.ACCOUNT_DEACTIVATED)

        if not user.get("password"):
            raise ApiException(ApiErrorCode.PASSWORD_NOT_SET)

        if not self.hasher.verify(data.password, user["password"]):
            await EventLogger(user, self.db).log_login_failed("wrong password")
            raise ApiException(ApiErrorCode.INVALID_CREDENTIALS)

        await EventLogger(user, self.db).log_login_success()
        return Response.success(self._session(user), message="Login successful")

    async def login_with_phone(self, data: PhoneLoginRequest) -> Dict[str, Any]:
        """Вхід за номером телефону та паролем."""
        user = await self.users.find_one({"phone_number": data.phone_number})
        if not user:
            raise ApiException(ApiErrorCode.INVALID_CREDENTIALS, "No account found with this phone number")

        if not user.get("is_active", True):
            raise ApiException(ApiErrorCode.ACCOUNT_DEACTIVATED)

        if not user.get("password"):
            raise ApiException(ApiErrorCode.PASSWORD_NOT_SET, "Please set a password first")

        if not self.hasher.verify(data.password, user["password"]):
            raise ApiException(ApiErrorCode.INVALID_CREDENTIALS, "Invalid phone number or password")

        await EventLogger(user, self.db).log_login_success("phone")
        return Response.success(self._session(user), message="Login successful")

    async def google_auth(self, data: GoogleAuthRequest) -> Dict[str, Any]:
        """
        Вхід через Google.

        Шукаємо користувача за google_id, потім за email (прив'язуємо акаунт),
        інакше створюємо нового.
        """
        user = await self.users.find_one({"google_id": data.google_id})
        if not user:
            user = await self.users.find_by_email(data.email)
            if user:
                changes = {"google_id": data.google_id}
                if not user.get("photo_url") and data.photo_url:
                    changes["photo_url"] = data.photo_url
                user = await self.users.update(user["_id"], changes)
            else:
                user = await self.users.create({
                    "email": data.email,
                    "name": data.name or "User",
                    "google_id": data.google_id,
                    "photo_url": data.photo_url,
                    "role": "user"
                })
                await EventLogger(user, self.db).log_registration(user["role"])

        if not user.get("is_active", True):
            raise ApiException(ApiErrorCode.ACCOUNT_DEACTIVATED)

        await EventLogger(user, self.db).log_login_success("google")
        return Response.success(self._session(user), message="Login successful")

    async def set_password(
        self,
        data: SetPasswordRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """Встановлення пароля (для користувачів, що входили через Google)."""
        await self.users.update(current_user["_id"], {"password": self.hasher.hash(data.password)})
        return Response.success(
            {"token": self.jwt_handler.generate_token(str(current_user["_id"]))},
            message="Password set successfully"
        )

    async def get_profile(self, current_user: Dict = Depends(jwt_handler.get_current_user)) -> Dict[str, Any]:
        return Response.success({"user": UserRepository.safe(current_user)})

    async def update_profile(
        self,
        data: UpdateProfileRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        changes = data.model_dump(exclude_unset=True, exclude={"remove_photo", "photo_url"})
        if data.remove_photo:
            changes["photo_url"] = None
        elif "photo_url" in data.model_fields_set:
            changes["photo_url"] = data.photo_url

        if changes.get("phone_number"):
            owner = await self.users.find_one({"phone_number": changes["phone_number"]})
            if owner and owner["_id"] != current_user["_id"]:
                raise ApiException(ApiErrorCode.PHONE_ALREADY_REGISTERED)

        user = await self.users.update(current_user["_id"], changes)
        return Response.success({"user": UserRepository.safe(user)}, message="Profile updated successfully")

    async def update_preferences(
        self,
        data: PreferencesRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        changes = data.model_dump(exclude_none=True)
        user = await self.users.update(current_user["_id"], changes)
        return Response.success({"user": UserRepository.safe(user)}, message="Preferences updated successfully")

    async def change_password(
        self,
        data: ChangePasswordRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """Зміна пароля; поточний пароль перевіряється, якщо він встановлений."""
        if current_user.get("password"):
            if not data.current_password or not self.hasher.verify(data.current_password, current_user["password"]):
                raise ApiException(ApiErrorCode.WRONG_CURRENT_PASSWORD)

        await self.users.update(current_user["_id"], {"password": self.hasher.hash(data.new_password)})
        await EventLogger(current_user, self.db).log_password_change()
        return Response.success(
            {"token": self.jwt_handler.generate_token(str(current_user["_id"]))},
            message="Password changed successfully"
        )

    async def update_fcm_token(
        self,
        data: FcmTokenRequest,
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        await self.users.update(current_user["_id"], {"fcm_token": data.fcm_token})
        return Response.success(message="FCM token updated")

    async def refresh_token(self, current_user: Dict = Depends(jwt_handler.get_current_user)) -> Dict[str, Any]:
        return Response.success(
            {"token": self.jwt_handler.generate_token(str(current_user["_id"]))},
            message="Token refreshed successfully"
        )

    async def logout(self, current_user: Dict = Depends(jwt_handler.get_current_user)) -> Dict[str, Any]:
        """Вихід: push-токен пристрою більше не потрібен."""
        await self.users.update(current_user["_id"], {"fcm_token": None})
        await EventLogger(current_user, self.db).log_logout()
        return Response.success(message="Logged out successfully")
