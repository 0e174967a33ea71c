"""
End-to-end tests of the HTTP surface against in-memory storage.
"""
import json

import pytest
from fastapi.testclient import TestClient

from app.core.security import create_access_token
from app.main import app
from app.models.user import User
from factories import DELHI, offset_north

NEW_PRODUCT = {
    "name": "Road bike",
    "description": "Aluminium frame, 21 gears",
    "price": 320.0,
    "category": "Sports",
    "condition": "good",
    "lat": DELHI[0],
    "lng": DELHI[1],
    "image": "uploads/pimage-1.jpg"
}


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def register(**fields) -> str:
    return app.state.user_store.add_user(User(**fields)).id


def create(client: TestClient, user_id: str, **overrides) -> dict:
    response = client.post("/api/products", json={**NEW_PRODUCT, **overrides}, headers=auth_headers(user_id))
    assert response.status_code == 201
    return response.json()["data"]["product"]


class TestProductEndpoints:
    """Test listing lifecycle endpoints."""

    def test_create(self, client):
        """Test a listing is created with server-owned fields set."""
        owner = register()
        response = client.post("/api/products", json=NEW_PRODUCT, headers=auth_headers(owner))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Product added successfully"
        product = body["data"]["product"]
        assert product["owner_id"] == owner
        assert product["likes_count"] == 0
        assert product["status"] == "active"
        assert product["location"] == {"lat": DELHI[0], "lng": DELHI[1]}

    def test_create_requires_token(self, client):
        response = client.post("/api/products", json=NEW_PRODUCT)

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Access token is required"}
        assert response.headers["www-authenticate"] == "Bearer"

    def test_create_rejects_unknown_fields(self, client):
        owner = register()
        response = client.post(
            "/api/products",
            json={**NEW_PRODUCT, "likes_count": 500},
            headers=auth_headers(owner)
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert any(e.startswith("likes_count") for e in body["errors"])

    def test_create_rejects_bad_price(self, client):
        owner = register()
        response = client.post("/api/products", json={**NEW_PRODUCT, "price": -5}, headers=auth_headers(owner))

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    def test_create_rejects_infinite_price(self, client):
        """Test the JSON Infinity literal is not accepted as a price."""
        owner = register()
        response = client.post(
            "/api/products",
            content=json.dumps({**NEW_PRODUCT, "price": float("inf")}),
            headers={**auth_headers(owner), "Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert any(e.startswith("price") for e in response.json()["errors"])

    def test_update_rejects_infinite_price(self, client):
        owner = register()
        product = create(client, owner)

        response = client.put(
            f"/api/products/{product['id']}",
            content=json.dumps({"price": float("inf")}),
            headers={**auth_headers(owner), "Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert client.get(f"/api/products/{product['id']}").json()["data"]["product"]["price"] == NEW_PRODUCT["price"]

    def test_deactivated_account(self, client):
        owner = register(is_active=False)
        response = client.post("/api/products", json=NEW_PRODUCT, headers=auth_headers(owner))

        assert response.status_code == 401
        assert response.json()["message"] == "User account is deactivated"

    def test_detail_counts_views(self, client):
        owner = register()
        product = create(client, owner)

        client.get(f"/api/products/{product['id']}")
        response = client.get(f"/api/products/{product['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["product"]["views_count"] == 2
        assert response.json()["data"]["product"]["is_liked"] is None

    def test_detail_missing(self, client):
        response = client.get("/api/products/65f1c0ffee0000000000abcd")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_update_by_owner(self, client):
        owner = register()
        product = create(client, owner)

        response = client.put(
            f"/api/products/{product['id']}",
            json={"price": 250.0, "location": {"lat": 19.076, "lng": 72.8777}},
            headers=auth_headers(owner)
        )

        assert response.status_code == 200
        updated = response.json()["data"]["product"]
        assert updated["price"] == 250.0
        assert updated["location"] == {"lat": 19.076, "lng": 72.8777}
        assert updated["name"] == NEW_PRODUCT["name"]

    def test_update_cannot_touch_counters(self, client):
        owner = register()
        product = create(client, owner)

        response = client.put(
            f"/api/products/{product['id']}",
            json={"views_count": 1000},
            headers=auth_headers(owner)
        )

        assert response.status_code == 400

    def test_delete_by_non_owner(self, client):
        """Test a non-owner cannot delete and the listing stays retrievable."""
        owner = register()
        intruder = register()
        product = create(client, owner)

        response = client.delete(f"/api/products/{product['id']}", headers=auth_headers(intruder))

        assert response.status_code == 403
        assert response.json()["success"] is False
        assert client.get(f"/api/products/{product['id']}").status_code == 200

    def test_delete_by_owner(self, client):
        owner = register()
        product = create(client, owner)

        response = client.delete(f"/api/products/{product['id']}", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json()["message"] == "Product deleted successfully"
        assert client.get(f"/api/products/{product['id']}").status_code == 404

    def test_my_products(self, client):
        owner = register()
        other = register()
        create(client, owner, name="Mine")
        create(client, other, name="Theirs")

        response = client.post("/api/products/mine", headers=auth_headers(owner))

        assert [p["name"] for p in response.json()["data"]["products"]] == ["Mine"]


class TestDiscoveryEndpoints:
    """Test browse and search endpoints."""

    def test_browse_sorted_by_price(self, client):
        owner = register()
        create(client, owner, name="Cheap", price=10.0)
        create(client, owner, name="Dear", price=90.0)

        response = client.get("/api/products", params={"sortBy": "price-desc", "category": "Sports"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert [p["name"] for p in data["products"]] == ["Dear", "Cheap"]
        assert data["pagination"]["total_products"] == 2
        assert data["pagination"]["has_prev"] is False

    def test_browse_rejects_huge_limit(self, client):
        response = client.get("/api/products", params={"limit": 1000})

        assert response.status_code == 400
        assert response.json()["errors"]

    def test_category_path(self, client):
        owner = register()
        create(client, owner, name="Novel", category="Books")

        ok = client.get("/api/products/category/Books")
        bad = client.get("/api/products/category/Spaceships")

        assert [p["name"] for p in ok.json()["data"]["products"]] == ["Novel"]
        assert ok.json()["data"]["category"] == "Books"
        assert bad.status_code == 400

    def test_search(self, client):
        owner = register()
        create(client, owner, name="Bike far", lat=offset_north(30))
        create(client, owner, name="Bike near", lat=offset_north(1))

        response = client.get(
            "/api/products/search",
            params={"search": "bike", "loc": f"{DELHI[0]},{DELHI[1]}"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert [p["name"] for p in data["products"]] == ["Bike near", "Bike far"]
        assert data["products"][0]["distance_km"] == pytest.approx(1.0, rel=0.01)
        assert data["max_distance_km"] == 50
        assert data["results_count"] == 2

    def test_search_invalid_location(self, client):
        response = client.get("/api/products/search", params={"search": "bike", "loc": "1000,1000"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid location"

    def test_search_requires_term(self, client):
        response = client.get("/api/products/search", params={"loc": "28.6,77.2"})

        assert response.status_code == 400


class TestInteractionEndpoints:
    """Test likes."""

    def test_like_toggle(self, client):
        owner = register()
        fan = register()
        product = create(client, owner)

        liked = client.post("/api/interactions/like", json={"product_id": product["id"]}, headers=auth_headers(fan))
        assert liked.status_code == 200
        assert liked.json()["message"] == "Product liked successfully"
        assert liked.json()["data"] == {"product_id": product["id"], "liked": True, "likes_count": 1}

        detail = client.get(f"/api/products/{product['id']}", headers=auth_headers(fan))
        assert detail.json()["data"]["product"]["is_liked"] is True

        unliked = client.post("/api/interactions/like", json={"product_id": product["id"]}, headers=auth_headers(fan))
        assert unliked.json()["message"] == "Product unliked successfully"
        assert unliked.json()["data"]["likes_count"] == 0

    def test_like_requires_token(self, client):
        response = client.post("/api/interactions/like", json={"product_id": "65f1c0ffee0000000000abcd"})

        assert response.status_code == 401

    def test_like_missing_product(self, client):
        fan = register()
        response = client.post(
            "/api/interactions/like",
            json={"product_id": "65f1c0ffee0000000000abcd"},
            headers=auth_headers(fan)
        )

        assert response.status_code == 404

    def test_liked_list_skips_deleted(self, client):
        owner = register()
        fan = register()
        kept = create(client, owner, name="Kept")
        gone = create(client, owner, name="Gone")
        for product in (kept, gone):
            client.post("/api/interactions/like", json={"product_id": product["id"]}, headers=auth_headers(fan))
        client.delete(f"/api/products/{gone['id']}", headers=auth_headers(owner))

        response = client.post("/api/interactions/liked", headers=auth_headers(fan))

        assert response.status_code == 200
        assert [p["name"] for p in response.json()["data"]["products"]] == ["Kept"]


class TestServiceEndpoints:
    """Test health and root endpoints."""

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_unknown_route(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["success"] is False
