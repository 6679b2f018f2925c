REVIEW_TEXT = "Great flat, friendly landlord and quiet neighbours"


async def post_review(client, auth, user, property_doc, rating=5, text=REVIEW_TEXT):
    return await client.post(
        "/api/reviews",
        json={"property_id": str(property_doc["_id"]), "rating": rating, "review_text": text},
        headers=auth(user)
    )


async def test_create_review_updates_rating_and_notifies(client, make_user, make_property, auth, db):
    owner = await make_user("owner")
    first = await make_user(name="Iryna")
    second = await make_user()
    property_doc = await make_property(owner, title="Riverside flat")

    response = await post_review(client, auth, first, property_doc, rating=5)
    assert response.status_code == 201
    review = response.json()["data"]["review"]
    assert review["user_name"] == "Iryna"
    assert review["helpful_count"] == 0

    await post_review(client, auth, second, property_doc, rating=2)
    stored = await db.properties.find_one({"_id": property_doc["_id"]})
    assert stored["average_rating"] == 3.5
    assert stored["review_count"] == 2

    notification = await db.notifications.find_one({"user_id": owner["_id"], "type": "review"})
    assert notification["title"] == "New Review"
    assert notification["body"] == 'Iryna left a 5-star review on "Riverside flat".'


async def test_review_rules(client, make_user, make_property, auth):
    owner = await make_user("owner")
    reviewer = await make_user()
    property_doc = await make_property(owner)

    response = await post_review(client, auth, owner, property_doc)
    assert response.status_code == 400
    assert response.json()["code"] == "OWN_PROPERTY_REVIEW"

    await post_review(client, auth, reviewer, property_doc)
    response = await post_review(client, auth, reviewer, property_doc)
    assert response.status_code == 400
    assert response.json()["code"] == "REVIEW_ALREADY_EXISTS"

    response = await post_review(client, auth, await make_user(), property_doc, rating=6)
    assert response.status_code == 400

    response = await post_review(client, auth, await make_user(), property_doc, text="short")
    assert response.status_code == 400


async def test_update_and_delete_review(client, make_user, make_property, auth, db):
    owner = await make_user("owner")
    reviewer = await make_user()
    stranger = await make_user()
    admin = await make_user("admin")
    property_doc = await make_property(owner)
    review_id = (await post_review(client, auth, reviewer, property_doc, rating=5)).json()["data"]["review"]["_id"]

    response = await client.put(f"/api/reviews/{review_id}", json={"rating": 1}, headers=auth(stranger))
    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized to update this review"

    response = await client.put(f"/api/reviews/{review_id}", json={"rating": 3}, headers=auth(reviewer))
    assert response.json()["data"]["review"]["rating"] == 3
    stored = await db.properties.find_one({"_id": property_doc["_id"]})
    assert stored["average_rating"] == 3.0

    response = await client.delete(f"/api/reviews/{review_id}", headers=auth(admin))
    assert response.status_code == 200
    stored = await db.properties.find_one({"_id": property_doc["_id"]})
    assert stored["review_count"] == 0
    assert stored["average_rating"] == 0


async def test_helpful_toggle(client, make_user, make_property, auth):
    owner = await make_user("owner")
    reviewer = await make_user()
    voter = await make_user()
    property_doc = await make_property(owner)
    review_id = (await post_review(client, auth, reviewer, property_doc)).json()["data"]["review"]["_id"]
    url = f"/api/reviews/{review_id}/helpful"

    response = await client.post(url, headers=auth(voter))
    assert response.json()["data"] == {"helpful_count": 1, "is_helpful": True}

    response = await client.post(url, headers=auth(voter))
    assert response.json()["data"] == {"helpful_count": 0, "is_helpful": False}

    response = await client.post("/api/reviews/000000000000000000000000/helpful", headers=auth(voter))
    assert response.status_code == 404


async def test_list_reviews(client, make_user, make_property, auth):
    owner = await make_user("owner")
    property_doc = await make_property(owner, title="Old town flat")
    low = await make_user(name="Low")
    high = await make_user(name="High")
    await post_review(client, auth, low, property_doc, rating=2)
    await post_review(client, auth, high, property_doc, rating=5)

    response = await client.get(
        f"/api/reviews/property/{property_doc['_id']}",
        params={"sort_by": "rating", "sort_order": "asc"}
    )
    reviews = response.json()["data"]["reviews"]
    assert [review["rating"] for review in reviews] == [2, 5]
    assert reviews[0]["user"]["name"] == "Low"
    assert response.json()["pagination"]["total"] == 2

    response = await client.get(f"/api/reviews/user/{high['_id']}")
    reviews = response.json()["data"]["reviews"]
    assert len(reviews) == 1
    assert reviews[0]["property"]["title"] == "Old town flat"
