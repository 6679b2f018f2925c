import itertools
import os
import tempfile

# Змінні середовища потрібні до імпорту застосунку
os.environ["DB_URI"] = "mongodb://localhost:27017/rental_test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_ENV"] = "test"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="rental-logs-")
for key in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
    os.environ.pop(key, None)

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from api.jwt_handler import JWTHandler
from api.main import app
from api.repository import PropertyRepository, UserRepository
from tools.database import Database
from tools.security import PasswordHasher

_sequence = itertools.count(1)

DEFAULT_PASSWORD = "secret123"


@pytest.fixture
async def db():
    """Свіже in-memory сховище для кожного тесту."""
    Database.use_client(AsyncMongoMockClient())
    database = Database()
    await database.setup_indexes()
    yield database
    Database.use_client(None)


@pytest.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    users = UserRepository(db)
    hasher = PasswordHasher()

    async def _make_user(role: str = "user", password: str = DEFAULT_PASSWORD, **fields):
        number = next(_sequence)
        data = {
            "name": f"User {number}",
            "email": f"user{number}@example.com",
            "password": hasher.hash(password) if password else None,
            "role": role,
        }
        data.update(fields)
        return await users.create(data)

    return _make_user


@pytest.fixture
def make_property(db):
    properties = PropertyRepository(db)

    async def _make_property(owner, status: str = "approved", **fields):
        data = {
            "owner_id": owner["_id"],
            "title": "Sunny apartment",
            "description": "Bright two-room apartment near the park",
            "price": 1200,
            "location": "Kyiv, Podil",
            "status": status,
        }
        data.update(fields)
        return await properties.create(data)

    return _make_property


@pytest.fixture
def auth():
    handler = JWTHandler()

    def _auth(user):
        return {"Authorization": f"Bearer {handler.generate_token(str(user['_id']))}"}

    return _auth
