import os
from dotenv import load_dotenv


class ConfigError(Exception):
    """Виняток для помилок конфігурації"""
    pass


class Config:
    def __init__(self):
        # Завантаження змінних з кореневого .env файлу проекту
        load_dotenv()

        required_vars = ["JWT_SECRET_KEY"]
        missing_vars = [var for var in required_vars if not os.getenv(var)]

        if missing_vars:
            raise ConfigError(
                f"Missing required variables in .env: {', '.join(missing_vars)}"
            )

        self.JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")  # базовий секрет для підпису токенів
        self.JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
        self.BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))
        self.APP_ENV = os.getenv("APP_ENV", "development")

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"


class CloudinaryConfig:
    def __init__(self):
        load_dotenv()

        self.CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
        self.CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
        self.CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")

    def has_credentials(self) -> bool:
        """Перевіряє чи є необхідні credentials"""
        return bool(
            self.CLOUDINARY_CLOUD_NAME
            and self.CLOUDINARY_API_KEY
            and self.CLOUDINARY_API_SECRET
        )


class DatabaseConfig:
    DEFAULT_DB_NAME = "rental_app"

    def __init__(self):
        load_dotenv()

        self.DB_URI = os.getenv("DB_URI")

        if not self.DB_URI:
            raise ConfigError(
                "Missing required variable DB_URI in .env. "
                "Example: DB_URI=mongodb://localhost:27017/rental_app"
            )

        # Назва бази - останній сегмент шляху URI (без query-параметрів)
        tail = self.DB_URI.split("://", 1)[-1]
        path = tail.split("/", 1)[1] if "/" in tail else ""
        db_name = path.split("?", 1)[0]
        self.DB_NAME = db_name or self.DEFAULT_DB_NAME

    def get_connection_string(self):
        """Повертає рядок підключення до бази даних."""
        return self.DB_URI
