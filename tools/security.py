from typing import Optional

import bcrypt

from tools.config import Config


class PasswordHasher:
    def __init__(self):
        self.rounds = Config().BCRYPT_ROUNDS

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify(password: str, hashed: Optional[str]) -> bool:
        """Користувач без пароля (вхід через Google) не проходить перевірку."""
        if not hashed:
            return False
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
