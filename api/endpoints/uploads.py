from typing import Any, Dict, List, Optional

from fastapi import Depends, File, Form, UploadFile, status

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.jwt_handler import JWTHandler
from api.models.enums import Role
from api.models.requests import DeleteImageRequest
from api.policies import ensure_owner_or_admin, is_admin
from api.repository import PropertyRepository, UserRepository
from api.response import Response
from tools.database import Database
from tools.logger import Logger
from tools.storage_service import (
    ALLOWED_MIME_TYPES,
    MAX_FILE_SIZE,
    MAX_FILES,
    CloudinaryStorage,
    get_storage,
)

logger = Logger()
jwt_handler = JWTHandler()


async def read_image(file: UploadFile) -> bytes:
    """Читає файл зображення, перевіряючи тип та розмір."""
    if file.content_type not in ALLOWED_MIME_TYPES:
        raise ApiException(ApiErrorCode.INVALID_FILE)

    content = await file.read()
    if len(content) > MAX_FILE_SIZE:
        raise ApiException(ApiErrorCode.INVALID_FILE, "File size must not exceed 5MB")
    return content


async def read_images(files: Optional[List[UploadFile]]) -> List[bytes]:
    if not files:
        raise ApiException(ApiErrorCode.NO_FILE_PROVIDED, "No image files provided")
    if len(files) > MAX_FILES:
        raise ApiException(ApiErrorCode.INVALID_FILE, f"You can upload at most {MAX_FILES} images at once")
    return [await read_image(file) for file in files]


class UploadsEndpoints:
    def __init__(self):
        self.db = Database()
        self.users = UserRepository(self.db)
        self.properties = PropertyRepository(self.db)

    async def upload_image(
        self,
        image: Optional[UploadFile] = File(None),
        folder: str = Form("rental_app/general"),
        storage: CloudinaryStorage = Depends(get_storage),
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        if image is None:
            raise ApiException(ApiErrorCode.NO_FILE_PROVIDED)

        result = await storage.upload(await read_image(image), folder)
        return Response.success(result, message="Image uploaded successfully", status_code=status.HTTP_201_CREATED)

    async def upload_images(
        self,
        images: Optional[List[UploadFile]] = File(None),
        folder: str = Form("rental_app/properties"),
        storage: CloudinaryStorage = Depends(get_storage),
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        urls = await storage.upload_many(await read_images(images), folder)
        return Response.success(
            {"urls": urls, "count": len(urls)},
            message=f"{len(urls)} image(s) uploaded successfully",
            status_code=status.HTTP_201_CREATED
        )

    async def upload_profile_photo(
        self,
        image: Optional[UploadFile] = File(None),
        storage: CloudinaryStorage = Depends(get_storage),
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """Завантажує фото профілю та одразу зберігає його URL у користувача."""
        if image is None:
            raise ApiException(ApiErrorCode.NO_FILE_PROVIDED)

        result = await storage.upload(await read_image(image), "rental_app/profiles")
        user = await self.users.update(current_user["_id"], {"photo_url": result["url"]})
        return Response.success(
            {"url": result["url"], "user": UserRepository.safe(user)},
            message="Profile photo uploaded successfully",
            status_code=status.HTTP_201_CREATED
        )

    async def upload_property_images(
        self,
        property_id: str,
        images: Optional[List[UploadFile]] = File(None),
        storage: CloudinaryStorage = Depends(get_storage),
        current_user: Dict = Depends(jwt_handler.require_roles(Role.OWNER, Role.ADMIN))
    ) -> Dict[str, Any]:
        """Додає зображення до об'єкта (власник або адміністратор)."""
        property_doc = await self.properties.find_by_id(property_id)
        ensure_owner_or_admin(
            current_user, property_doc["owner_id"], "Not authorized to upload images for this property"
        )

        contents = await read_images(images)
        urls = await storage.upload_many(contents, f"rental_app/properties/{property_doc['_id']}")

        updated = await self.properties.update_where(
            {"_id": property_doc["_id"]},
            {"$push": {"images": {"$each": urls}}}
        )
        return Response.success(
            {"urls": urls, "all_images": updated["images"] if updated else urls},
            message=f"{len(urls)} image(s) uploaded successfully",
            status_code=status.HTTP_201_CREATED
        )

    async def delete_image(
        self,
        data: DeleteImageRequest,
        storage: CloudinaryStorage = Depends(get_storage),
        current_user: Dict = Depends(jwt_handler.get_current_user)
    ) -> Dict[str, Any]:
        """Видаляє зображення за URL.

        Користувач може видалити лише своє фото профілю або зображення
        власного об'єкта, адміністратор - будь-яке.
        """
        if not is_admin(current_user):
            owns_image = current_user.get("photo_url") == data.image_url or await self.properties.count({
                "owner_id": current_user["_id"],
                "images": data.image_url
            })
            if not owns_image:
                raise ApiException(ApiErrorCode.INSUFFICIENT_PERMISSIONS, "Not authorized to delete this image")

        await storage.delete(data.image_url)
        return Response.success(message="Image deleted successfully")

    async def delete_property_image(
        self,
        property_id: str,
        data: DeleteImageRequest,
        storage: CloudinaryStorage = Depends(get_storage),
        current_user: Dict = Depends(jwt_handler.require_roles(Role.OWNER, Role.ADMIN))
    ) -> Dict[str, Any]:
        """Прибирає зображення з об'єкта, потім видаляє його зі сховища."""
        property_doc = await self.properties.find_by_id(property_id)
        ensure_owner_or_admin(
            current_user, property_doc["owner_id"], "Not authorized to delete images for this property"
        )

        updated = await self.properties.update_where(
            {"_id": property_doc["_id"]},
            {"$pull": {"images": data.image_url}}
        )
        await storage.delete(data.image_url)
        return Response.success(
            {"remaining_images": updated["images"] if updated else []},
            message="Image deleted successfully"
        )
