import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from api.exceptions.handlers import register_exception_handlers
from api.router import Router, API_VERSION
from tools.database import Database
from tools.logger import Logger

logger = Logger()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управління життєвим циклом додатка"""
    # Startup
    logger.info("🚀 Запуск API сервера...")

    # Ініціалізація бази даних
    db = Database()
    await db.setup_indexes()
    await db.setup_geo_indexes()

    try:
        yield
    finally:
        # Shutdown
        logger.info("🛑 Зупинка API сервера...")
        Database.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Rental App API",
        description="API маркетплейсу оренди нерухомості",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=600,
    )

    register_exception_handlers(app)
    Router(app).initialize()
    return app


app = create_app()


if __name__ == "__main__":
    print("🚀 Запуск Rental API сервера...")
    print("📍 Документація буде доступна за адресою: http://0.0.0.0:3000/docs")

    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=3000,
        reload=True,
        log_level="info"
    )
