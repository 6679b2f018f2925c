import pytest

from api.main import app
from tools.storage_service import MAX_FILE_SIZE, get_storage, public_id_from_url

PNG = ("photo.png", b"\x89PNG fake image", "image/png")


class FakeStorage:
    def __init__(self):
        self.uploaded = []
        self.deleted = []

    async def upload(self, content, folder):
        url = f"https://res.cloudinary.com/demo/image/upload/v1/{folder}/img{len(self.uploaded)}.png"
        self.uploaded.append((folder, content))
        return {"url": url, "public_id": f"{folder}/img{len(self.uploaded)}"}

    async def upload_many(self, contents, folder):
        return [(await self.upload(content, folder))["url"] for content in contents]

    async def delete(self, image_url):
        self.deleted.append(image_url)
        return {"result": "ok"}


@pytest.fixture
def storage(client):
    fake = FakeStorage()
    app.dependency_overrides[get_storage] = lambda: fake
    return fake


def test_public_id_from_url():
    url = "https://res.cloudinary.com/demo/image/upload/v1712345/rental_app/properties/abc.jpg"
    assert public_id_from_url(url) == "rental_app/properties/abc"


async def test_upload_single_image(client, storage, make_user, auth):
    user = await make_user()

    response = await client.post(
        "/api/upload/image",
        files={"image": PNG},
        data={"folder": "rental_app/tests"},
        headers=auth(user)
    )
    assert response.status_code == 201
    assert response.json()["data"]["url"].endswith("rental_app/tests/img0.png")
    assert storage.uploaded[0][0] == "rental_app/tests"

    response = await client.post("/api/upload/image", headers=auth(user))
    assert response.status_code == 400
    assert response.json()["code"] == "NO_FILE_PROVIDED"


async def test_rejects_invalid_files(client, storage, make_user, auth):
    user = await make_user()

    response = await client.post(
        "/api/upload/image",
        files={"image": ("notes.txt", b"plain text", "text/plain")},
        headers=auth(user)
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_FILE"

    response = await client.post(
        "/api/upload/image",
        files={"image": ("big.png", b"0" * (MAX_FILE_SIZE + 1), "image/png")},
        headers=auth(user)
    )
    assert response.json()["message"] == "File size must not exceed 5MB"
    assert storage.uploaded == []


async def test_upload_many_images(client, storage, make_user, auth):
    user = await make_user()

    response = await client.post(
        "/api/upload/images",
        files=[("images", PNG), ("images", PNG)],
        headers=auth(user)
    )
    assert response.status_code == 201
    assert response.json()["data"]["count"] == 2

    response = await client.post(
        "/api/upload/images",
        files=[("images", PNG)] * 11,
        headers=auth(user)
    )
    assert response.status_code == 400


async def test_profile_photo_updates_user(client, storage, make_user, auth, db):
    user = await make_user()

    response = await client.post("/api/upload/profile-photo", files={"image": PNG}, headers=auth(user))
    url = response.json()["data"]["url"]
    assert "rental_app/profiles" in url

    stored = await db.users.find_one({"_id": user["_id"]})
    assert stored["photo_url"] == url


async def test_property_images(client, storage, make_user, make_property, auth):
    owner = await make_user("owner")
    stranger = await make_user("owner")
    property_doc = await make_property(owner, images=["https://example.com/existing.jpg"])
    url = f"/api/upload/property/{property_doc['_id']}"

    response = await client.post(url, files=[("images", PNG)], headers=auth(stranger))
    assert response.status_code == 403

    response = await client.post(url, files=[("images", PNG)], headers=auth(owner))
    data = response.json()["data"]
    assert len(data["all_images"]) == 2
    new_url = data["urls"][0]

    response = await client.request(
        "DELETE",
        f"{url}/image",
        json={"image_url": new_url},
        headers=auth(owner)
    )
    assert response.json()["data"]["remaining_images"] == ["https://example.com/existing.jpg"]
    assert storage.deleted == [new_url]


async def test_upload_without_credentials_fails(client, make_user, auth):
    user = await make_user()
    response = await client.post("/api/upload/image", files={"image": PNG}, headers=auth(user))
    assert response.status_code == 500
    assert response.json()["code"] == "UPLOAD_FAILED"


async def test_delete_image_requires_ownership(client, storage, make_user, make_property, auth):
    owner = await make_user("owner", photo_url="https://example.com/owner.png")
    stranger = await make_user()
    admin = await make_user("admin")
    await make_property(owner, images=["https://example.com/listing.jpg"])

    for image_url in ("https://example.com/owner.png", "https://example.com/listing.jpg"):
        response = await client.request("DELETE", "/api/upload/image", json={"image_url": image_url}, headers=auth(stranger))
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to delete this image"
    assert storage.deleted == []

    response = await client.request(
        "DELETE", "/api/upload/image", json={"image_url": "https://example.com/owner.png"}, headers=auth(owner)
    )
    assert response.status_code == 200

    response = await client.request(
        "DELETE", "/api/upload/image", json={"image_url": "https://example.com/listing.jpg"}, headers=auth(owner)
    )
    assert response.status_code == 200

    response = await client.request(
        "DELETE", "/api/upload/image", json={"image_url": "https://example.com/anything.jpg"}, headers=auth(admin)
    )
    assert response.status_code == 200
    assert len(storage.deleted) == 3
