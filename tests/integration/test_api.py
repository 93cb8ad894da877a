"""
Integration Tests - Back-Office API
"""
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from backoffice.main import create_app

ADMIN = {"email": "admin@example.com", "password": "s3cret-pass"}
PNG = b"\x89PNG\r\n\x1a\nfake"


@pytest.fixture
def client(test_settings):
    with TestClient(create_app(test_settings)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    response = client.post("/api/v1/auth/login", json=ADMIN)
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def product_form(**overrides):
    form = {
        "name": "Phone Case",
        "description": "Shockproof silicone case",
        "category": "Mobile Accessories",
        "price": "1500",
        "stock": "10",
    }
    form.update(overrides)
    return form


class TestHealth:
    """Tests for health endpoints"""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"
        assert set(body["checks"]["projections"]) == {"Items", "orderReceipts", "Banners"}

    def test_probes(self, client):
        assert client.get("/api/v1/health/live").json() == {"status": "alive"}
        assert client.get("/api/v1/health/ready").json() == {"status": "ready"}


class TestAuth:
    """Tests for login, session and logout"""

    def test_blank_credentials(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "", "password": ""})

        assert response.status_code == 422
        assert response.json()["detail"] == "Please enter email and password."

    def test_wrong_credentials(self, client):
        response = client.post("/api/v1/auth/login", json={**ADMIN, "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid admin credentials."

    def test_routes_require_session(self, client):
        for path in ("/api/v1/products", "/api/v1/orders", "/api/v1/banners", "/api/v1/dashboard", "/api/v1/reports/sales"):
            assert client.get(path).status_code == 401

    def test_session_lifecycle(self, client, auth_headers):
        session = client.get("/api/v1/auth/session", headers=auth_headers).json()
        assert session["authenticated"] is True
        assert session["redirect_to"] == "dashboard"

        response = client.put("/api/v1/auth/session/last-view", json={"view": "sales"}, headers=auth_headers)
        assert response.json()["redirect_to"] == "sales"
        assert client.get("/api/v1/auth/session", headers=auth_headers).json()["last_view"] == "sales"

        assert client.post("/api/v1/auth/logout", headers=auth_headers).status_code == 204
        assert client.get("/api/v1/auth/session", headers=auth_headers).status_code == 401


class TestProducts:
    """Tests for product endpoints"""

    def test_create_list_update_delete(self, client, auth_headers):
        response = client.post(
            "/api/v1/products",
            data=product_form(),
            files={"image": ("case photo.png", PNG, "image/png")},
            headers=auth_headers,
        )
        assert response.status_code == 201
        product = response.json()
        assert product["imagePath"].startswith("Items/")
        assert product["imagePath"].endswith("_case_photo.png")

        media = client.get(product["imageUrl"])
        assert media.status_code == 200
        assert media.content == PNG

        listing = client.get("/api/v1/products", params={"search": "case"}, headers=auth_headers).json()
        assert listing["total"] == 1
        assert "Gems" in listing["categories"]

        response = client.put(
            f"/api/v1/products/{product['id']}",
            data=product_form(price="1750", image_url="https://cdn.example.com/case.png"),
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["imageUrl"] == "https://cdn.example.com/case.png"
        assert client.get(product["imageUrl"]).status_code == 404

        assert client.delete(f"/api/v1/products/{product['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/v1/products/{product['id']}", headers=auth_headers).status_code == 404

    def test_validation_errors_per_field(self, client, auth_headers):
        response = client.post(
            "/api/v1/products",
            data=product_form(name="", price="-5"),
            headers=auth_headers,
        )

        assert response.status_code == 422
        errors = response.json()["detail"]["errors"]
        assert errors["name"] == "Product name is required"
        assert errors["price"] == "Enter a valid price (0 or more)"

    def test_update_missing_product(self, client, auth_headers):
        response = client.put("/api/v1/products/missing", data=product_form(), headers=auth_headers)
        assert response.status_code == 404


class TestOrders:
    """Tests for order endpoints"""

    def test_order_flow(self, client, auth_headers):
        payload = {
            "customer": {"name": "Nimal Perera", "phone": "0771234567"},
            "items": [{"product_id": "prod-1", "price": 1500, "quantity": 2}],
            "total_amount": 3000,
        }
        created = client.post("/api/v1/orders", json=payload, headers=auth_headers)
        assert created.status_code == 201
        order_id = created.json()["id"]

        listing = client.get("/api/v1/orders", params={"tab": "pending"}, headers=auth_headers).json()
        assert listing["counts"] == {"all": 1, "pending": 1, "done": 0}
        assert listing["items"][0]["totalLabel"] == "Rs. 3,000"

        done = client.post(f"/api/v1/orders/{order_id}/done", headers=auth_headers)
        assert done.json()["status"] == "done"

        listing = client.get("/api/v1/orders", params={"tab": "done", "search": "nimal"}, headers=auth_headers).json()
        assert [order["id"] for order in listing["items"]] == [order_id]

        patched = client.patch(f"/api/v1/orders/{order_id}", json={"discount": "SALE10"}, headers=auth_headers)
        assert patched.json()["discount"] == "SALE10"

        assert client.delete(f"/api/v1/orders/{order_id}", headers=auth_headers).status_code == 204
        assert client.get("/api/v1/orders", headers=auth_headers).json()["total"] == 0

    def test_mark_done_missing(self, client, auth_headers):
        assert client.post("/api/v1/orders/missing/done", headers=auth_headers).status_code == 404


class TestBanners:
    """Tests for banner endpoints"""

    def test_banner_requires_image(self, client, auth_headers):
        response = client.post("/api/v1/banners", data={"title": "Sale", "subtitle": "20% off"}, headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["detail"]["errors"]["image"] == "Image URL or File required"

    def test_banner_flow(self, client, auth_headers):
        first = client.post(
            "/api/v1/banners",
            data={"title": "Gem Week", "subtitle": "Sapphires", "image_url": "https://cdn.example.com/gems.jpg"},
            headers=auth_headers,
        ).json()
        second = client.post(
            "/api/v1/banners",
            data={"title": "New Cases", "subtitle": "Fresh stock", "discount": "CASE5"},
            files={"image": ("cases.jpg", PNG, "image/jpeg")},
            headers=auth_headers,
        ).json()

        listing = client.get("/api/v1/banners", headers=auth_headers).json()
        assert listing["total"] == 2
        assert {banner["id"] for banner in listing["items"]} == {first["id"], second["id"]}

        assert client.delete(f"/api/v1/banners/{second['id']}", headers=auth_headers).status_code == 204
        assert client.get(second["imageUrl"]).status_code == 404


class TestDashboardAndReports:
    """Tests for dashboard and sales report"""

    def test_dashboard(self, client, auth_headers):
        client.post("/api/v1/products", data=product_form(price="1000"), headers=auth_headers)
        client.post("/api/v1/products", data=product_form(name="Ring", price="2500.5"), headers=auth_headers)
        client.post(
            "/api/v1/orders",
            json={"items": [{"product_id": "x", "price": 10, "quantity": 1}]},
            headers=auth_headers,
        )

        summary = client.get("/api/v1/dashboard", headers=auth_headers).json()

        assert summary["total_products"] == 2
        assert summary["catalog_value"] == 3500.5
        assert summary["catalog_value_label"] == "Rs. 3,500.5"
        assert summary["total_orders"] == 1
        assert summary["pending_orders"] == 1

    def test_sales_report_reflects_writes(self, client, auth_headers):
        product = client.post("/api/v1/products", data=product_form(price="500"), headers=auth_headers).json()
        order = client.post(
            "/api/v1/orders",
            json={
                "customer": {"email": "a@x.com"},
                "items": [{"product_id": product["id"], "price": 500, "quantity": 3}],
                "status": "done",
                "discount": "SALE10",
            },
            headers=auth_headers,
        ).json()

        report = client.get("/api/v1/reports/sales", params={"preset": "7d"}, headers=auth_headers).json()

        assert report["range"]["days"] == 7
        assert len(report["daily_trend"]) == 7
        assert report["totals"]["revenue"] == 1500
        assert report["totals"]["items_sold"] == 3
        assert report["top_products"][0]["key"] == product["id"]
        assert report["discounts"]["rows"][0]["discount"] == "SALE10"
        assert report["customers"]["total_customers"] == 1

        client.delete(f"/api/v1/orders/{order['id']}", headers=auth_headers)
        report = client.get("/api/v1/reports/sales", headers=auth_headers).json()
        assert report["totals"]["revenue"] == 0

    def test_custom_range(self, client, auth_headers):
        today = date.today()
        params = {"preset": "custom", "from": today.isoformat(), "to": (today - timedelta(days=2)).isoformat()}

        report = client.get("/api/v1/reports/sales", params=params, headers=auth_headers).json()

        assert [bucket["day"] for bucket in report["daily_trend"]][0] == (today - timedelta(days=2)).isoformat()
        assert report["range"]["days"] == 3

    def test_custom_range_requires_dates(self, client, auth_headers):
        response = client.get("/api/v1/reports/sales", params={"preset": "custom"}, headers=auth_headers)
        assert response.status_code == 422
