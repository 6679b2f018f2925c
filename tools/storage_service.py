import asyncio
import re
from typing import Any, Dict, List, Optional

import cloudinary
import cloudinary.uploader

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from tools.config import CloudinaryConfig
from tools.logger import Logger

logger = Logger()

ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
MAX_FILES = 10

UPLOAD_TRANSFORMATION = [
    {"width": 1200, "height": 800, "crop": "limit"},
    {"quality": "auto"},
    {"fetch_format": "auto"},
]


def public_id_from_url(image_url: str) -> str:
    """Витягує public_id з URL Cloudinary (без версії та розширення)."""
    path = image_url.split("/upload/", 1)[-1]
    path = re.sub(r"^v\d+/", "", path)
    return re.sub(r"\.[^/.]+$", "", path)


class CloudinaryStorage:
    """Сховище зображень у Cloudinary.

    SDK синхронний, тому виклики виконуються в executor.
    """

    def __init__(self):
        self.config = CloudinaryConfig()
        if self.config.has_credentials():
            cloudinary.config(
                cloud_name=self.config.CLOUDINARY_CLOUD_NAME,
                api_key=self.config.CLOUDINARY_API_KEY,
                api_secret=self.config.CLOUDINARY_API_SECRET,
                secure=True,
            )

    async def upload(self, content: bytes, folder: str) -> Dict[str, Any]:
        if not self.config.has_credentials():
            logger.error("Cloudinary credentials are not configured")
            raise ApiException(ApiErrorCode.UPLOAD_FAILED)

        try:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(
                None,
                lambda: cloudinary.uploader.upload(
                    content,
                    folder=folder,
                    resource_type="image",
                    transformation=UPLOAD_TRANSFORMATION,
                ),
            )
        except Exception as e:
            logger.error(f"Cloudinary upload failed: {e}")
            raise ApiException(ApiErrorCode.UPLOAD_FAILED) from e

        return {
            "url": result.get("secure_url"),
            "public_id": result.get("public_id"),
            "width": result.get("width"),
            "height": result.get("height"),
            "format": result.get("format"),
        }

    async def upload_many(self, contents: List[bytes], folder: str) -> List[str]:
        results = await asyncio.gather(*(self.upload(content, folder) for content in contents))
        return [result["url"] for result in results]

    async def delete(self, image_url: str) -> Optional[Dict[str, Any]]:
        """Видаляє зображення; помилки лише логуються."""
        try:
            public_id = public_id_from_url(image_url)
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, lambda: cloudinary.uploader.destroy(public_id))
        except Exception as e:
            logger.warning(f"Cloudinary delete failed for {image_url}: {e}")
            return None


def get_storage() -> CloudinaryStorage:
    """Залежність FastAPI; у тестах підміняється через dependency_overrides."""
    return CloudinaryStorage()
