"""
HTTP tests for the storefront API.

Verifies:
- Anonymous requests to customer/admin endpoints return 401
- Customers are denied admin endpoints (403)
- Cart -> checkout -> cancel flow against the SQL backends
- Checkout failure kinds map to distinct status codes
- Database faults on read paths return 503
"""

from contextlib import contextmanager

import pytest

from storefront import create_app
from storefront.auth import auth_state_for
from storefront.extensions import db
from storefront.models.records import StoredRecord
from storefront.services.inventory_service import default_inventory


def _set_stock(app, product_id, quantity):
    with app.app_context():
        default_inventory().set_stock(product_id, quantity)


def _stock(client, product_id):
    return client.get(f"/api/products/{product_id}").get_json()["product"]["stock"]


def _checkout(client, product_id, quantity):
    resp = client.post("/api/cart/items", json={"product_id": product_id, "quantity": quantity})
    assert resp.status_code == 201
    return client.post("/api/checkout")


@contextmanager
def _records_table_missing(app):
    with app.app_context():
        db.session.remove()
        StoredRecord.__table__.drop(db.engine)
    try:
        yield
    finally:
        with app.app_context():
            db.session.remove()
            StoredRecord.__table__.create(db.engine)


# =============================================================================
# SYSTEM / CATALOG
# =============================================================================


def test_health(client, clean_db):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["details"]["orders"] == 0


def test_products_include_stock(client, catalog):
    resp = client.get("/api/products")
    assert resp.status_code == 200
    products = {p["id"]: p for p in resp.get_json()["products"]}
    assert products["TEE-1"]["stock"] == 3
    assert products["MUG-1"]["price"] == 50


def test_unknown_product(client, catalog):
    assert client.get("/api/products/NOPE").status_code == 404


# =============================================================================
# AUTHORIZATION
# =============================================================================


class TestAuthorization:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/cart"),
            ("POST", "/api/cart/items"),
            ("GET", "/api/orders"),
            ("POST", "/api/orders/some-id/cancel"),
            ("GET", "/api/admin/orders"),
            ("GET", "/api/admin/metrics"),
            ("PUT", "/api/admin/settings/auto-confirm"),
        ],
    )
    def test_requires_auth(self, client, clean_db, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/admin/orders"),
            ("POST", "/api/admin/orders/some-id/confirm"),
            ("PUT", "/api/admin/inventory/TEE-1"),
            ("GET", "/api/admin/settings/auto-confirm"),
        ],
    )
    def test_customer_denied_admin(self, customer_client, method, path):
        resp = getattr(customer_client, method.lower())(path, json={})
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "ADMIN"

    def test_session_reports_admin(self, admin_client):
        state = admin_client.get("/api/session").get_json()["session"]
        assert state["is_admin"] is True
        assert state["email"] == "ops@shop.test"

    def test_sign_in_requires_email(self, client, clean_db):
        assert client.post("/api/session", json={"email": "nobody"}).status_code == 400

    def test_sign_in_disabled_by_default(self):
        app = create_app({
            'TESTING': True,
            'SECRET_KEY': 'test',
            'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        })
        resp = app.test_client().post("/api/session", json={"email": "admin-wannabe@evil.example"})
        assert resp.status_code == 404

    def test_admin_only_from_allow_list(self, client, clean_db):
        state = auth_state_for("admin-wannabe@evil.example", admin_emails=["ops@shop.test"])
        assert state.is_authenticated is True
        assert state.is_admin is False

        client.post("/api/session", json={"email": "admin@shop.test"})
        assert client.get("/api/session").get_json()["session"]["is_admin"] is False
        assert client.get("/api/admin/orders").status_code == 403


# =============================================================================
# CART
# =============================================================================


class TestCart:
    def test_add_clamps_to_stock(self, customer_client, catalog):
        resp = customer_client.post("/api/cart/items", json={"product_id": "TEE-1", "quantity": 9})
        assert resp.status_code == 201
        cart = resp.get_json()["cart"]
        assert cart["lines"][0]["quantity"] == 3
        assert cart["subtotal"] == 300

    def test_cart_survives_between_requests(self, customer_client, catalog):
        customer_client.post("/api/cart/items", json={"product_id": "MUG-1", "quantity": 2})
        cart = customer_client.get("/api/cart").get_json()["cart"]
        assert cart["item_count"] == 2

    def test_out_of_stock(self, app, customer_client, catalog):
        _set_stock(app, "TEE-1", 0)
        resp = customer_client.post("/api/cart/items", json={"product_id": "TEE-1"})
        assert resp.status_code == 409

    def test_invalid_quantity(self, customer_client, catalog):
        resp = customer_client.post("/api/cart/items", json={"product_id": "TEE-1", "quantity": 1.5})
        assert resp.status_code == 400

    def test_update_and_remove(self, customer_client, catalog):
        customer_client.post("/api/cart/items", json={"product_id": "MUG-1", "quantity": 2})

        resp = customer_client.patch("/api/cart/items/MUG-1", json={"quantity": 5})
        assert resp.get_json()["line"]["quantity"] == 5

        resp = customer_client.patch("/api/cart/items/MUG-1", json={"quantity": 0})
        assert resp.get_json()["cart"]["lines"] == []

        assert customer_client.delete("/api/cart/items/MUG-1").status_code == 404

    def test_clear(self, customer_client, catalog):
        customer_client.post("/api/cart/items", json={"product_id": "MUG-1"})
        resp = customer_client.delete("/api/cart")
        assert resp.get_json()["cart"]["item_count"] == 0


# =============================================================================
# CHECKOUT / ORDERS
# =============================================================================


class TestCheckout:
    def test_checkout_decrements_stock(self, customer_client, catalog):
        resp = _checkout(customer_client, "TEE-1", 2)

        assert resp.status_code == 201
        order = resp.get_json()["order"]
        assert order["status"] == "confirmed"
        assert order["subtotal"] == 200
        assert order["can_be_cancelled"] is True
        assert _stock(customer_client, "TEE-1") == 1
        assert customer_client.get("/api/cart").get_json()["cart"]["lines"] == []

    def test_insufficient_stock(self, app, customer_client, catalog):
        customer_client.post("/api/cart/items", json={"product_id": "TEE-1", "quantity": 3})
        _set_stock(app, "TEE-1", 1)

        resp = customer_client.post("/api/checkout")

        assert resp.status_code == 409
        body = resp.get_json()
        assert body["kind"] == "insufficient_stock"
        assert body["details"]["items"][0]["product_id"] == "TEE-1"
        assert customer_client.get("/api/orders").get_json()["orders"] == []
        assert _stock(customer_client, "TEE-1") == 1

    def test_unauthenticated_checkout(self, client, catalog):
        resp = client.post("/api/checkout")
        assert resp.status_code == 401
        assert resp.get_json()["kind"] == "unauthenticated"

    def test_empty_cart(self, customer_client, catalog):
        resp = customer_client.post("/api/checkout")
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "empty_cart"


class TestCustomerOrders:
    def test_history_is_per_customer(self, customer_client, other_customer_client, catalog):
        order_id = _checkout(customer_client, "MUG-1", 1).get_json()["order"]["id"]

        mine = customer_client.get("/api/orders").get_json()["orders"]
        assert [o["id"] for o in mine] == [order_id]
        assert other_customer_client.get("/api/orders").get_json()["orders"] == []
        assert other_customer_client.get(f"/api/orders/{order_id}").status_code == 404
        assert customer_client.get(f"/api/orders/{order_id}").status_code == 200

    def test_cancel_restores_stock(self, customer_client, catalog):
        order_id = _checkout(customer_client, "TEE-1", 2).get_json()["order"]["id"]

        resp = customer_client.post(f"/api/orders/{order_id}/cancel")

        assert resp.status_code == 200
        order = resp.get_json()["order"]
        assert order["status"] == "cancelled"
        assert order["can_be_cancelled"] is False
        assert _stock(customer_client, "TEE-1") == 3

        assert customer_client.post(f"/api/orders/{order_id}/cancel").status_code == 409

    def test_cannot_cancel_someone_elses_order(self, customer_client, other_customer_client, catalog):
        order_id = _checkout(customer_client, "TEE-1", 1).get_json()["order"]["id"]
        assert other_customer_client.post(f"/api/orders/{order_id}/cancel").status_code == 404

    def test_history_unavailable_when_storage_fails(self, app, customer_client, catalog):
        with _records_table_missing(app):
            resp = customer_client.get("/api/orders")

        assert resp.status_code == 503
        assert "error" in resp.get_json()


# =============================================================================
# ADMIN
# =============================================================================


class TestAdmin:
    def test_manual_confirmation_flow(self, admin_client, customer_client, catalog):
        resp = admin_client.put("/api/admin/settings/auto-confirm", json={"enabled": False})
        assert resp.get_json() == {"enabled": False}

        order = _checkout(customer_client, "MUG-1", 1).get_json()["order"]
        assert order["status"] == "pending"
        assert order["shipping_status_label"] == "Awaiting confirmation"

        resp = admin_client.post(f"/api/admin/orders/{order['id']}/confirm")
        assert resp.status_code == 200
        confirmed = resp.get_json()["order"]
        assert confirmed["shipping_status"] == "processing"
        assert confirmed["timeline"][-1]["message"] == "Order confirmed by ops@shop.test"

        resp = admin_client.post(f"/api/admin/orders/{order['id']}/shipping", json={"shipping_status": "shipped"})
        assert resp.status_code == 200
        assert customer_client.get(f"/api/orders/{order['id']}").get_json()["order"]["can_be_cancelled"] is False

        resp = admin_client.post(f"/api/admin/orders/{order['id']}/shipping", json={"shipping_status": "shipped"})
        assert resp.status_code == 409

    def test_unknown_order(self, admin_client, catalog):
        assert admin_client.post("/api/admin/orders/missing/confirm").status_code == 404

    def test_list_orders_filters_by_status(self, admin_client, customer_client, catalog):
        _checkout(customer_client, "MUG-1", 1)
        assert len(admin_client.get("/api/admin/orders").get_json()["orders"]) == 1
        assert admin_client.get("/api/admin/orders?status=pending").get_json()["orders"] == []

    def test_stock_overrides(self, admin_client, catalog):
        resp = admin_client.put("/api/admin/inventory/TEE-1", json={"quantity": 12})
        assert resp.get_json()["stock"] == 12

        resp = admin_client.post("/api/admin/inventory/TEE-1/adjust", json={"delta": -20})
        assert resp.get_json()["stock"] == 0

        assert admin_client.put("/api/admin/inventory/NOPE", json={"quantity": 1}).status_code == 404
        assert admin_client.put("/api/admin/inventory/TEE-1", json={"quantity": -1}).status_code == 400

    def test_metrics(self, admin_client, customer_client, catalog):
        _checkout(customer_client, "TEE-1", 2)

        resp = admin_client.get("/api/admin/metrics")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["revenue"]["total_revenue"] == 200
        assert body["revenue"]["confirmed_count"] == 1
        assert body["inventory"]["total_products"] == 2
        assert body["inventory"]["total_units"] == 11
        assert admin_client.get("/api/admin/metrics?group_by=week").status_code == 400

    def test_shipping_cancelled_restores_stock(self, admin_client, customer_client, catalog):
        order_id = _checkout(customer_client, "TEE-1", 2).get_json()["order"]["id"]
        assert _stock(customer_client, "TEE-1") == 1

        resp = admin_client.post(f"/api/admin/orders/{order_id}/shipping", json={"shipping_status": "cancelled"})

        assert resp.status_code == 200
        order = resp.get_json()["order"]
        assert order["status"] == "cancelled"
        assert order["shipping_status"] == "cancelled"
        assert _stock(customer_client, "TEE-1") == 3

        resp = admin_client.post(f"/api/admin/orders/{order_id}/shipping", json={"shipping_status": "cancelled"})
        assert resp.status_code == 409
        assert _stock(customer_client, "TEE-1") == 3

    def test_metrics_unavailable_when_storage_fails(self, app, admin_client, catalog):
        with _records_table_missing(app):
            resp = admin_client.get("/api/admin/metrics")
        assert resp.status_code == 503
