import traceback
from typing import Any, Dict, Iterable, List

from bson.errors import InvalidId
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.exceptions.api_exceptions import ApiException
from api.response import Response
from tools.config import Config
from tools.logger import Logger

logger = Logger()

# Службові частини шляху до поля, які не потрібні клієнту
LOCATION_PREFIXES = ("body", "query", "path", "header")


def _field_errors(raw_errors: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    errors = []
    for error in raw_errors:
        location = [str(part) for part in error.get("loc", ()) if part not in LOCATION_PREFIXES]
        message = str(error.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(location), "message": message})
    return errors


def _duplicate_field(exc: DuplicateKeyError) -> str:
    details = exc.details or {}
    key_value = details.get("keyValue") or details.get("keyPattern")
    if key_value:
        return next(iter(key_value))
    # Повідомлення виду "... index: email_1 dup key ..."
    message = str(exc)
    if "index: " in message:
        index_name = message.split("index: ", 1)[1].split(" ", 1)[0]
        return index_name.rsplit("_", 1)[0]
    return "Value"


async def api_exception_handler(request: Request, exc: ApiException):
    return Response.error(
        message=exc.message,
        status_code=exc.status_code,
        code=exc.error_code.value,
        errors=exc.errors
    )


async def validation_exception_handler(request: Request, exc: Exception):
    errors = _field_errors(exc.errors())
    message = ", ".join(error["message"] for error in errors) or "Validation failed"
    return Response.error(
        message=message,
        status_code=status.HTTP_400_BAD_REQUEST,
        code="VALIDATION_FAILED",
        errors=errors
    )


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    return Response.error(
        message=f"{_duplicate_field(exc)} already exists",
        status_code=status.HTTP_400_BAD_REQUEST,
        code="DUPLICATE_KEY"
    )


async def invalid_id_handler(request: Request, exc: InvalidId):
    return Response.error(
        message="Invalid ID format",
        status_code=status.HTTP_400_BAD_REQUEST,
        code="INVALID_ID"
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return Response.error(
            message=f"Not Found - {request.url.path}",
            status_code=exc.status_code,
            code="ROUTE_NOT_FOUND"
        )
    return Response.error(message=str(exc.detail), status_code=exc.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)

    details = None
    if not Config().is_production:
        details = {
            "error": str(exc),
            "stack": traceback.format_exception(type(exc), exc, exc.__traceback__)
        }
    return Response.error(
        message="Internal Server Error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_ERROR",
        details=details
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ApiException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(InvalidId, invalid_id_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
