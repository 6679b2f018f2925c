import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import status
from fastapi.responses import JSONResponse


def convert_objectid(data):
    """Конвертує ObjectId та datetime в рядки для серіалізації в JSON."""
    if isinstance(data, dict):
        return {key: convert_objectid(value) for key, value in data.items()}
    if isinstance(data, list):
        return [convert_objectid(item) for item in data]
    if isinstance(data, ObjectId):
        return str(data)
    if isinstance(data, datetime):
        return data.isoformat()
    return data


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0
    }


class Response:
    @staticmethod
    def success(
            data: Optional[Dict[str, Any]] = None,
            message: Optional[str] = None,
            status_code: int = status.HTTP_200_OK,
            pagination: Optional[Dict[str, int]] = None
    ) -> JSONResponse:
        """
        Стандартна успішна відповідь сервера.

        :param data: Дані, які повертаються клієнту.
        :param message: Повідомлення про успішне виконання.
        :param status_code: HTTP статус-код (за замовчуванням 200).
        :param pagination: Параметри сторінки для списків.
        :return: JSONResponse із стандартизованою відповіддю.
        """
        content: Dict[str, Any] = {"success": True}
        if message:
            content["message"] = message
        if data is not None:
            content["data"] = convert_objectid(data)
        if pagination is not None:
            content["pagination"] = pagination
        return JSONResponse(content=content, status_code=status_code)

    @staticmethod
    def error(
            message: str = "An error occurred",
            status_code: int = status.HTTP_400_BAD_REQUEST,
            code: Optional[str] = None,
            errors: Optional[List[Dict[str, str]]] = None,
            details: Optional[Dict[str, Any]] = None
    ) -> JSONResponse:
        """
        Стандартна відповідь сервера з помилкою.

        :param message: Повідомлення про помилку.
        :param status_code: HTTP статус-код (за замовчуванням 400).
        :param code: Стабільний код помилки.
        :param errors: Помилки по полях.
        :param details: Внутрішні деталі (лише поза production).
        :return: JSONResponse із стандартизованою відповіддю.
        """
        content: Dict[str, Any] = {"success": False, "message": message}
        if code:
            content["code"] = code
        if errors:
            content["errors"] = errors
        if details:
            content["details"] = details
        return JSONResponse(content=content, status_code=status_code)
