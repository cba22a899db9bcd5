import pytest
from fastapi.testclient import TestClient

from bookshop.services.shop import Shop
from bookshop.web.main import create_app

from conftest import NOW

SHIPPING = {
    "full_name": "Jane Reader",
    "email": "jane@example.com",
    "phone": "+1 555 0100",
    "address": "1 Library Lane",
    "city": "Springfield",
    "postal_code": "12345",
    "country": "USA",
}


@pytest.fixture
def client(test_settings):
    app = create_app(lambda: Shop(test_settings, clock=lambda: NOW), seed=False)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin(client):
    r = client.post("/auth/login", data={"email": "admin@bookshop.com", "password": "admin123"})
    assert r.status_code == 200
    return client


def _add_book(client, title="Dune", price=10.0, category="Fiction"):
    r = client.post(
        "/products",
        data={"title": title, "author": "Someone", "price": price, "category": category, "stock": 5},
    )
    assert r.status_code == 201
    return r.json()


def _register(client):
    r = client.post("/auth/register", data={"full_name": "Jane", "email": "jane@example.com", "password": "pw"})
    assert r.status_code == 201
    return r.json()


class TestProducts:
    def test_crud(self, admin):
        book = _add_book(admin)
        assert admin.get(f"/products/{book['id']}").json()["title"] == "Dune"

        r = admin.put(
            f"/products/{book['id']}",
            data={"title": "Dune", "author": "Frank Herbert", "price": 11.5, "category": "Fiction"},
        )
        assert r.json()["price"] == 11.5

        assert admin.delete(f"/products/{book['id']}").json() == {"ok": True}
        assert admin.get(f"/products/{book['id']}").status_code == 404
        assert admin.delete(f"/products/{book['id']}").status_code == 404

    def test_invalid_product(self, admin):
        r = admin.post("/products", data={"title": "", "author": "A", "price": 1, "category": "C"})
        assert r.status_code == 400

    def test_search_and_categories(self, admin):
        _add_book(admin, "Dune", 9.0, "Fiction")
        _add_book(admin, "Cosmos", 15.0, "Science")
        assert [p["title"] for p in admin.get("/products", params={"q": "cos"}).json()] == ["Cosmos"]
        assert [p["title"] for p in admin.get("/products", params={"sort": "desc"}).json()] == ["Cosmos", "Dune"]
        assert admin.get("/products/categories").json() == ["Fiction", "Science"]


class TestCartAndCheckout:
    def test_cart_flow_and_checkout(self, admin):
        user = _register(admin)
        a = _add_book(admin, "A", 10.0)
        b = _add_book(admin, "B", 5.0)

        admin.post("/cart/add", data={"product_id": a["id"], "quantity": 1})
        admin.post("/cart/add", data={"product_id": a["id"], "quantity": 1})
        cart = admin.post("/cart/add", data={"product_id": b["id"]}).json()
        assert cart["line_count"] == 2
        assert cart["unit_count"] == 3
        assert cart["total"] == pytest.approx(27.5)

        r = admin.post("/checkout", data={"user_id": user["id"], **SHIPPING})
        assert r.status_code == 201
        confirmation = r.json()
        assert confirmation["total"] == pytest.approx(27.5)
        assert admin.get("/cart").json()["line_count"] == 0

        order = admin.get(f"/orders/{confirmation['order_id']}").json()
        assert len(order["items"]) == 2
        assert order["customer_address"] == "1 Library Lane, Springfield, 12345, USA"

        r = admin.get(f"/orders/{confirmation['order_id']}/receipt")
        assert r.status_code == 200
        assert r.content.startswith(b"%PDF")

    def test_quantity_zero_removes_line(self, admin):
        a = _add_book(admin)
        admin.post("/cart/add", data={"product_id": a["id"], "quantity": 2})
        cart = admin.post("/cart/quantity", data={"product_id": a["id"], "quantity": 0}).json()
        assert cart["lines"] == []

    def test_add_unknown_product_or_bad_quantity(self, admin):
        assert admin.post("/cart/add", data={"product_id": 999}).status_code == 404
        a = _add_book(admin)
        assert admin.post("/cart/add", data={"product_id": a["id"], "quantity": 0}).status_code == 400

    def test_checkout_empty_cart(self, admin):
        user = _register(admin)
        r = admin.post("/checkout", data={"user_id": user["id"], **SHIPPING})
        assert r.status_code == 400
        assert admin.get("/orders").json() == []

    def test_checkout_unknown_user(self, client):
        assert client.post("/checkout", data={"user_id": 999, **SHIPPING}).status_code == 404


class TestAuth:
    def test_login_remember_logout(self, client):
        _register(client)
        assert client.post("/auth/login", data={"email": "jane@example.com", "password": "bad"}).status_code == 401
        r = client.post("/auth/login", data={"email": "jane@example.com", "password": "pw", "remember": "true"})
        assert r.status_code == 200
        assert client.get("/auth/me").json()["email"] == "jane@example.com"
        client.post("/auth/logout")
        assert client.get("/auth/me").status_code == 401

    def test_duplicate_registration(self, client):
        _register(client)
        r = client.post("/auth/register", data={"full_name": "J", "email": "jane@example.com", "password": "x"})
        assert r.status_code == 401


class TestRevenue:
    def test_reports(self, admin):
        user = _register(admin)
        a = _add_book(admin, "A", 10.0)
        admin.post("/cart/add", data={"product_id": a["id"], "quantity": 2})
        order_id = admin.post("/checkout", data={"user_id": user["id"], **SHIPPING}).json()["order_id"]

        summary = admin.get("/revenue/summary").json()
        assert summary["total_revenue"] == pytest.approx(22.0)
        assert summary["order_count"] == 1
        assert len(summary["daily"]) == 7
        assert len(summary["monthly"]) == 12
        assert summary["top_products"][0]["title"] == "A"

        assert len(admin.get("/revenue/daily", params={"days": 3}).json()) == 3
        assert len(admin.get("/revenue/monthly", params={"year": 2020}).json()) == 12
        assert admin.get("/revenue/top", params={"limit": 1}).json()[0]["total_sold"] == 2

        assert admin.delete(f"/orders/{order_id}").json() == {"ok": True}
        assert admin.get("/revenue/summary").json()["total_revenue"] == 0
        assert admin.delete(f"/orders/{order_id}").status_code == 404


class TestAdminAccess:
    ADMIN_ROUTES = [
        ("post", "/products"),
        ("put", "/products/1"),
        ("delete", "/products/1"),
        ("get", "/orders"),
        ("delete", "/orders/1"),
        ("get", "/revenue/summary"),
        ("get", "/revenue/daily"),
        ("get", "/revenue/monthly"),
        ("get", "/revenue/top"),
        ("get", "/revenue/range?start=2025-01-01T00:00:00&end=2025-02-01T00:00:00"),
    ]
    BOOK = {"title": "Dune", "author": "Someone", "price": 10.0, "category": "Fiction"}

    def _call(self, client, method, url):
        if method in ("post", "put"):
            return getattr(client, method)(url, data=self.BOOK)
        return getattr(client, method)(url)

    @pytest.mark.parametrize("method,url", ADMIN_ROUTES)
    def test_anonymous_is_rejected(self, client, method, url):
        r = self._call(client, method, url)
        assert r.status_code == 401
        assert r.json()["detail"] == "Not signed in"

    @pytest.mark.parametrize("method,url", ADMIN_ROUTES)
    def test_customer_is_rejected(self, client, method, url):
        _register(client)
        assert client.post("/auth/login", data={"email": "jane@example.com", "password": "pw"}).status_code == 200
        r = self._call(client, method, url)
        assert r.status_code == 401
        assert r.json()["detail"] == "Admin access required"

    def test_public_routes_stay_open(self, client):
        assert client.get("/products").status_code == 200
        assert client.get("/cart").status_code == 200

    def test_logout_drops_admin_rights(self, admin):
        assert admin.get("/orders").status_code == 200
        admin.post("/auth/logout")
        assert admin.get("/orders").status_code == 401
