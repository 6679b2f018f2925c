from datetime import datetime, timedelta
from typing import Dict, Optional
import hmac
import hashlib
import jwt as PyJWT
import uuid

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from tools.config import Config
from tools.logger import Logger
from tools.database import Database
from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.models.enums import Role
from api.policies import ensure_roles
from api.repository import UserRepository

bearer_scheme = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    sub: str  # ID користувача
    jti: str  # Унікальний ідентифікатор токена
    exp: datetime
    token_type: Optional[str] = "access"


class JWTHandler:
    def __init__(self):
        self.config = Config()
        self.logger = Logger()
        self.db = Database()
        self.algorithm = 'HS256'
        # Базовий секретний ключ з конфігурації
        self.base_secret_key = self.config.JWT_SECRET_KEY
        self.access_token_expire_days = self.config.JWT_EXPIRES_DAYS

    def _derive_key(self, user_id: str) -> str:
        """
        Повертає ключ підпису, похідний від базового секрету та user_id (HMAC-SHA256).
        Токен одного користувача не можна перепідписати під іншого.
        """
        return hmac.new(
            key=self.base_secret_key.encode('utf-8'),
            msg=user_id.encode('utf-8'),
            digestmod=hashlib.sha256
        ).hexdigest()

    def generate_token(self, user_id: str) -> str:
        """Генерує access-токен для користувача."""
        try:
            now = datetime.utcnow()
            payload = {
                "sub": str(user_id),
                "jti": str(uuid.uuid4()),
                "exp": now + timedelta(days=self.access_token_expire_days),
                "iat": now,
                "token_type": "access"
            }
            return PyJWT.encode(payload, self._derive_key(str(user_id)), algorithm=self.algorithm)
        except Exception as e:
            self.logger.error(f"Token generation error: {str(e)}")
            raise ApiException(ApiErrorCode.TOKEN_GENERATION_ERROR)

    def validate_token(self, token: str) -> TokenPayload:
        """Перевіряє підпис і термін дії токена."""
        try:
            # Спочатку декодуємо без перевірки підпису, щоб отримати user_id для ключа
            unverified = PyJWT.decode(token, options={"verify_signature": False})
            user_id = unverified.get("sub")
            if not user_id:
                raise ApiException(ApiErrorCode.INVALID_TOKEN)

            decoded = PyJWT.decode(
                token,
                self._derive_key(str(user_id)),
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]}
            )
            payload = TokenPayload(**decoded)
        except ApiException:
            raise
        except PyJWT.ExpiredSignatureError:
            raise ApiException(ApiErrorCode.TOKEN_EXPIRED)
        except Exception as e:
            self.logger.debug(f"Token validation failed: {e}")
            raise ApiException(ApiErrorCode.INVALID_TOKEN)

        if payload.token_type != "access":
            raise ApiException(ApiErrorCode.INVALID_TOKEN)
        return payload

    async def _load_user(self, token: str) -> Dict:
        payload = self.validate_token(token)
        users = UserRepository(self.db)
        try:
            user = await users.find_by_id(payload.sub)
        except ApiException:
            raise ApiException(ApiErrorCode.INVALID_TOKEN, "User not found")

        if not user.get("is_active", True):
            raise ApiException(ApiErrorCode.ACCOUNT_DEACTIVATED, "User account is deactivated")
        return user

    async def get_current_user(
        self,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
    ) -> Dict:
        """Залежність FastAPI: активний користувач з Bearer-токена."""
        if credentials is None or not credentials.credentials:
            raise ApiException(ApiErrorCode.NO_TOKEN)
        return await self._load_user(credentials.credentials)

    async def get_optional_user(
        self,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
    ) -> Optional[Dict]:
        """Як get_current_user, але без токена (або з недійсним) повертає None."""
        if credentials is None or not credentials.credentials:
            return None
        try:
            return await self._load_user(credentials.credentials)
        except ApiException:
            return None

    def require_roles(self, *roles: Role):
        """Залежність FastAPI: поточний користувач з однією з ролей."""
        async def dependency(user: Dict = Depends(self.get_current_user)) -> Dict:
            ensure_roles(user, *roles)
            return user
        return dependency
